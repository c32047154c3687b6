"""
Policy data as read from MongoDB.

PolicyView is the joined policy head (one record per collection).
RawPolicyData is what the extract phase hands to the transforms: a
tagged union on `geography`, each variant carrying only the fields that
exist for that country.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from coi_service.schemas.common import AdditionalInsured, CamelModel


class VersionedRecord(BaseModel):
    """A versioned database document: `{_id, version, data}`."""

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    id: Any = Field(default=None, alias="_id")
    version: int | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class PolicyView(BaseModel):
    """Consistent cross-collection snapshot of one active policy."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    application: dict[str, Any] | None = None
    application_answers: VersionedRecord | None = Field(default=None, alias="applicationAnswers")
    application_owner: VersionedRecord | None = Field(default=None, alias="applicationOwner")
    quote: VersionedRecord | None = None
    policy: VersionedRecord


class SubPolicy(CamelModel):
    """Entry of `policy.data.policies`: one line of business of a US policy."""

    kind: str
    policy_id: str
    munich_policy_id: str | None = None


class _RawPolicyDataBase(CamelModel):
    policy_foxden_id: str
    additional_insured: AdditionalInsured

    lobs: tuple[str, ...] = ()
    carrier_partner: str
    time_zone: str
    recipient_email: str
    application_id: str | None = None

    # Validated by the transforms: the database is trusted, not assumed
    business_name: Any = None
    dba_name: str | None = None

    sub_policies: tuple[SubPolicy, ...] = ()


class CanadaPolicyData(_RawPolicyDataBase):
    geography: Literal["CA"] = "CA"

    named_insured_address: Any = None
    profession: Any = None
    effective_date: datetime | None = None
    expiry_date: datetime | None = None
    rating_input: dict[str, Any] | None = None


class USPolicyData(_RawPolicyDataBase):
    geography: Literal["US"] = "US"

    business_address: Any = None
    profession_list: tuple[str, ...] = ()
    rating_input: dict[str, Any] | None = None


RawPolicyData = Annotated[
    Union[CanadaPolicyData, USPolicyData],
    Field(discriminator="geography"),
]

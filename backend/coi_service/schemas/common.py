"""Shared request/address schemas."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from coi_service.core.constants import Geography


class CamelModel(BaseModel):
    """Immutable model that reads and writes camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class Address(CamelModel):
    """Postal address; `province` holds the abbreviation (ON, BC, TX, ...)."""

    street: str
    city: str
    province: str
    postal_code: str

    def lines(self) -> str:
        """Street line + "city, province, postal" line."""
        return f"{self.street}\n{self.city}, {self.province}, {self.postal_code}"


class AdditionalInsured(CamelModel):
    """Party the certificate is issued to (also the certificate holder)."""

    name: str = Field(..., min_length=1)
    address: Address


class COIRequested(CamelModel):
    """Event that asks for the certificate(s) of one policy."""

    policy_foxden_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("policyFoxdenId", "policyIdentifier", "policy_foxden_id"),
    )
    geography: Geography
    additional_insured: AdditionalInsured

"""
Canonical model — the geography-agnostic certificate data.

Built once per (policy, line of business) by the transform phase and
consumed only by the field mapper.  Field-mapping paths in the COI
configs (e.g. "canonical.limits.occurrence_limit") address these
attribute names.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from coi_service.schemas.common import AdditionalInsured, Address

Amount = int | float


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class CoverageAmount(_Frozen):
    amount: Amount
    deductible: Amount


class GlCoverage(_Frozen):
    general_aggregate: CoverageAmount
    each_occurrence: CoverageAmount
    product_and_completed_operations_aggregate: CoverageAmount
    personal_and_advertising_injury_liability: CoverageAmount
    medical_payments: CoverageAmount
    tenant_legal_liability: CoverageAmount
    pollution_liability_extension: CoverageAmount | None = None


class EoCoverage(_Frozen):
    deductible: Amount
    aggregate_amount: Amount
    occurrence_amount: Amount


class OtherCoverage(_Frozen):
    name: str
    limit: CoverageAmount


class Coverages(_Frozen):
    gl: GlCoverage
    eo: EoCoverage | None = None
    others: list[OtherCoverage] = Field(default_factory=list)


class Insurer(_Frozen):
    name: str


class Insured(_Frozen):
    # "{name}\n{street}\n{city}, {province}, {postalCode}"
    block: str
    name: str
    address: Address


class PolicyDates(_Frozen):
    effective_date: datetime
    expiration_date: datetime


class Limits(_Frozen):
    occurrence_limit: Amount
    premises_rented_to_you_limit: Amount
    medical_payments_limit: Amount
    aggregate_limit: Amount


class Producer(_Frozen):
    name: str
    phone: str
    email: str


class Canonical(_Frozen):
    policy_foxden_id: str
    policy_number: str
    insurer: Insurer
    insured: Insured
    additional_insured: AdditionalInsured
    certificate_number: int
    dates: PolicyDates
    limits: Limits
    coverages: Coverages
    description: str
    certificate_holder: AdditionalInsured
    producer: Producer

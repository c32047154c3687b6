"""
US transform — US common rating input → Canonical.

The policy number is the carrier sub-policy id for the requested LOB.
The certificate number counts the certificates already issued for that
policy number; numbering is best-effort and never blocks generation.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, NonNegativeFloat, ValidationError

from coi_service.core.config import settings
from coi_service.core.constants import US_PRODUCER, Collection
from coi_service.core.logging import get_logger
from coi_service.pipeline.errors import ConsistencyViolationError
from coi_service.pipeline.transform.utils import (
    format_insured_block,
    generate_named_insured,
    get_policy_id_by_line_of_business,
    join_professions,
    to_address,
    to_amount,
)
from coi_service.schemas.canonical import (
    Canonical,
    CoverageAmount,
    Coverages,
    GlCoverage,
    Insured,
    Insurer,
    Limits,
    PolicyDates,
    Producer,
)
from coi_service.schemas.policy import USPolicyData

logger = get_logger(__name__)

BUSINESS_ADDRESS_LABEL = "Business address"


class USRatingGlInput(BaseModel):
    """The `GL` block of a US common rating input."""

    model_config = ConfigDict(extra="allow")

    policy_effective_date: datetime = Field(..., alias="policyEffectiveDate")
    policy_expiration_date: datetime = Field(..., alias="policyExpirationDate")
    occurrence_limit: NonNegativeFloat = Field(..., alias="occurrenceLimit")
    premises_rented_to_you_limit: NonNegativeFloat = Field(..., alias="premisesRentedToYouLimit")
    medical_payments_limit: NonNegativeFloat = Field(..., alias="medicalPaymentsLimit")
    aggregate_limit: NonNegativeFloat = Field(..., alias="aggregateLimit")


async def next_certificate_number(db: Any, policy_number: str) -> int:
    """Count of existing COI records for `policy_number`, plus one."""
    try:
        count = await db[Collection.COI_RECORD.value].count_documents(
            {"data.policyFoxdenId": policy_number}
        )
    except Exception as exc:
        # Numbering must not block generation, whatever the driver raises
        logger.warning(
            "Certificate count failed, numbering from 1",
            policy_number=policy_number,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return 1
    return count + 1


async def transform_us(raw: USPolicyData, lob: str, db: Any) -> Canonical:
    """Build the US canonical record for one line of business."""
    policy_foxden_id = raw.policy_foxden_id

    if raw.rating_input is None:
        raise ConsistencyViolationError(
            "US rating input missing for US path",
            policy_foxden_id=policy_foxden_id,
            lob=lob,
        )

    if raw.business_address is None:
        raise ConsistencyViolationError(
            "Business address missing for US path",
            policy_foxden_id=policy_foxden_id,
            lob=lob,
        )
    address = to_address(raw.business_address, BUSINESS_ADDRESS_LABEL)

    gl_input = _parse_gl_input(raw.rating_input, policy_foxden_id)

    occurrence_limit = to_amount(gl_input.occurrence_limit, "occurrenceLimit")
    premises_rented_limit = to_amount(gl_input.premises_rented_to_you_limit, "premisesRentedToYouLimit")
    medical_payments_limit = to_amount(gl_input.medical_payments_limit, "medicalPaymentsLimit")
    aggregate_limit = to_amount(gl_input.aggregate_limit, "aggregateLimit")

    policy_number = get_policy_id_by_line_of_business(raw.sub_policies, lob)
    certificate_number = await next_certificate_number(db, policy_number)

    deductible = to_amount(settings.US_DEFAULT_DEDUCTIBLE, "US_DEFAULT_DEDUCTIBLE")

    def limit(amount: int | float) -> CoverageAmount:
        return CoverageAmount(amount=amount, deductible=deductible)

    gl = GlCoverage(
        general_aggregate=limit(aggregate_limit),
        each_occurrence=limit(occurrence_limit),
        product_and_completed_operations_aggregate=limit(aggregate_limit),
        personal_and_advertising_injury_liability=limit(occurrence_limit),
        medical_payments=limit(medical_payments_limit),
        tenant_legal_liability=limit(premises_rented_limit),
    )

    name = generate_named_insured(raw.business_name, raw.dba_name)

    return Canonical(
        policy_foxden_id=policy_foxden_id,
        policy_number=policy_number,
        insurer=Insurer(name=settings.US_DEFAULT_INSURER_NAME),
        insured=Insured(block=format_insured_block(name, address), name=name, address=address),
        additional_insured=raw.additional_insured,
        certificate_number=certificate_number,
        dates=PolicyDates(
            effective_date=gl_input.policy_effective_date,
            expiration_date=gl_input.policy_expiration_date,
        ),
        limits=Limits(
            occurrence_limit=occurrence_limit,
            premises_rented_to_you_limit=premises_rented_limit,
            medical_payments_limit=medical_payments_limit,
            aggregate_limit=aggregate_limit,
        ),
        coverages=Coverages(gl=gl),
        description=join_professions(raw.profession_list),
        certificate_holder=raw.additional_insured,
        producer=Producer(**US_PRODUCER),
    )


def _parse_gl_input(rating_input: dict[str, Any], policy_foxden_id: str) -> USRatingGlInput:
    gl = rating_input.get("GL")
    if not isinstance(gl, dict):
        raise ConsistencyViolationError(
            "US rating input has no GL block",
            policy_foxden_id=policy_foxden_id,
        )
    try:
        return USRatingGlInput.model_validate(gl)
    except ValidationError as exc:
        raise ConsistencyViolationError(
            f"US rating input is malformed: {exc}",
            policy_foxden_id=policy_foxden_id,
        ) from exc

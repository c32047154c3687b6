"""
Canada transform — Canada rating input → Canonical.

The rating input comes straight from the quote document.  Its coverage
flags must be real booleans and its limits are coerced to numbers; a
violation means the database broke its contract, so every check raises
ConsistencyViolationError rather than a recoverable error.

Several GL sub-limits intentionally mirror the occurrence limit, matching
how the carrier rates Canadian GL.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool, ValidationError

from coi_service.core.constants import (
    CA_PRODUCER,
    CANADA_INSURER_NAME,
    UNMANNED_AIRCRAFT_COVERAGE,
)
from coi_service.pipeline.errors import ConsistencyViolationError
from coi_service.pipeline.transform.utils import (
    format_insured_block,
    generate_named_insured,
    join_professions,
    to_address,
    to_amount,
)
from coi_service.schemas.canonical import (
    Canonical,
    CoverageAmount,
    Coverages,
    EoCoverage,
    GlCoverage,
    Insured,
    Insurer,
    Limits,
    OtherCoverage,
    PolicyDates,
    Producer,
)
from coi_service.schemas.policy import CanadaPolicyData


class CanadaRatingGlInput(BaseModel):
    """The `GL` block of a Canada rating input; limits are coerced later."""

    model_config = ConfigDict(extra="allow")

    aggregate_limit: Any = Field(None, alias="aggregateLimit")
    deductible: Any = None
    occurrence_limit: Any = Field(None, alias="occurrenceLimit")
    medical_payments_limit: Any = Field(None, alias="medicalPaymentsLimit")
    tenant_legal_liability_limit: Any = Field(None, alias="tenantLegalLiabilityLimit")

    limited_pollution_liability: StrictBool = Field(..., alias="limitedPollutionLiability")
    limited_pollution_liability_occurrence_limit: Any = Field(
        None, alias="limitedPollutionLiabilityOccurrenceLimit"
    )

    limited_coverage_for_unmanned_aircraft: StrictBool = Field(
        ..., alias="limitedCoverageForUnmannedAircraft"
    )
    limited_coverage_for_unmanned_aircraft_limit: Any = Field(
        None, alias="limitedCoverageForUnmannedAircraftLimit"
    )

    miscellaneous_eo: StrictBool = Field(..., alias="miscellaneousEO")
    miscellaneous_eo_deductible: Any = Field(None, alias="miscellaneousEODeductible")
    miscellaneous_eo_occurrence_limit: Any = Field(None, alias="miscellaneousEOOccurrenceLimit")
    miscellaneous_eo_aggregate_limit: Any = Field(None, alias="miscellaneousEOAggregateLimit")


def transform_canada(raw: CanadaPolicyData, lob: str) -> Canonical:
    """Build the Canada canonical record (one certificate per policy)."""
    policy_foxden_id = raw.policy_foxden_id

    if raw.rating_input is None:
        raise ConsistencyViolationError(
            "Canada rating input missing for CA path",
            policy_foxden_id=policy_foxden_id,
            lob=lob,
        )

    if raw.named_insured_address is None:
        raise ConsistencyViolationError(
            "Named insured address missing for CA path",
            policy_foxden_id=policy_foxden_id,
            lob=lob,
        )
    address = to_address(raw.named_insured_address, "Named insured address")

    if not isinstance(raw.effective_date, datetime) or not isinstance(raw.expiry_date, datetime):
        raise ConsistencyViolationError(
            "Effective / expiry date missing for CA path",
            policy_foxden_id=policy_foxden_id,
            lob=lob,
        )

    gl_input = _parse_gl_input(raw.rating_input, policy_foxden_id)

    aggregate_limit = to_amount(gl_input.aggregate_limit, "aggregateLimit")
    deductible = to_amount(gl_input.deductible, "deductible")
    occurrence_limit = to_amount(gl_input.occurrence_limit, "occurrenceLimit")
    medical_payments_limit = to_amount(gl_input.medical_payments_limit, "medicalPaymentsLimit")
    tenant_legal_liability_limit = to_amount(
        gl_input.tenant_legal_liability_limit, "tenantLegalLiabilityLimit"
    )

    def limit(amount: int | float) -> CoverageAmount:
        return CoverageAmount(amount=amount, deductible=deductible)

    pollution = None
    if gl_input.limited_pollution_liability:
        pollution = limit(
            to_amount(
                gl_input.limited_pollution_liability_occurrence_limit,
                "limitedPollutionLiabilityOccurrenceLimit",
            )
        )

    gl = GlCoverage(
        general_aggregate=limit(aggregate_limit),
        each_occurrence=limit(occurrence_limit),
        product_and_completed_operations_aggregate=limit(occurrence_limit),
        personal_and_advertising_injury_liability=limit(occurrence_limit),
        medical_payments=limit(medical_payments_limit),
        tenant_legal_liability=limit(tenant_legal_liability_limit),
        pollution_liability_extension=pollution,
    )

    eo = None
    if gl_input.miscellaneous_eo:
        eo = EoCoverage(
            deductible=to_amount(gl_input.miscellaneous_eo_deductible, "miscellaneousEODeductible"),
            aggregate_amount=to_amount(
                gl_input.miscellaneous_eo_aggregate_limit, "miscellaneousEOAggregateLimit"
            ),
            occurrence_amount=to_amount(
                gl_input.miscellaneous_eo_occurrence_limit, "miscellaneousEOOccurrenceLimit"
            ),
        )

    others = []
    if gl_input.limited_coverage_for_unmanned_aircraft:
        others.append(
            OtherCoverage(
                name=UNMANNED_AIRCRAFT_COVERAGE,
                limit=limit(
                    to_amount(
                        gl_input.limited_coverage_for_unmanned_aircraft_limit,
                        "limitedCoverageForUnmannedAircraftLimit",
                    )
                ),
            )
        )

    name = generate_named_insured(raw.business_name, raw.dba_name)

    return Canonical(
        policy_foxden_id=policy_foxden_id,
        # No carrier-assigned number yet; the certificate shows the Foxden id
        policy_number=policy_foxden_id,
        insurer=Insurer(name=CANADA_INSURER_NAME),
        insured=Insured(block=format_insured_block(name, address), name=name, address=address),
        additional_insured=raw.additional_insured,
        certificate_number=0,
        dates=PolicyDates(effective_date=raw.effective_date, expiration_date=raw.expiry_date),
        limits=Limits(
            occurrence_limit=occurrence_limit,
            premises_rented_to_you_limit=0,
            medical_payments_limit=medical_payments_limit,
            aggregate_limit=aggregate_limit,
        ),
        coverages=Coverages(gl=gl, eo=eo, others=others),
        description=join_professions(raw.profession),
        certificate_holder=raw.additional_insured,
        producer=Producer(**CA_PRODUCER),
    )


def _parse_gl_input(rating_input: dict[str, Any], policy_foxden_id: str) -> CanadaRatingGlInput:
    gl = rating_input.get("GL")
    if not isinstance(gl, dict):
        raise ConsistencyViolationError(
            "Canada rating input has no GL block",
            policy_foxden_id=policy_foxden_id,
        )
    try:
        return CanadaRatingGlInput.model_validate(gl)
    except ValidationError as exc:
        raise ConsistencyViolationError(
            f"Canada rating input is malformed: {exc}",
            policy_foxden_id=policy_foxden_id,
        ) from exc

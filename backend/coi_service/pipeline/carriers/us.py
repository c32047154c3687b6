"""
US carriers — ACORD 25 (2016/03) form fill.

StateNational and Munich share the ACORD template and field mappings;
they differ in forms descriptor (insurer block, NAIC code) and signature.
"""

from __future__ import annotations

from coi_service.core.constants import Geography, TemplateType
from coi_service.pipeline.carriers.paths import asset, template
from coi_service.schemas.coi_config import COIConfig

ACORD25_TEMPLATE = template("acord25", "acord_25_2016-03.pdf")
US_EMAIL_TEMPLATE = template("email", "us", "email_body.html")

# Output keys are the formVariable names used by the forms descriptors
US_FIELD_MAPPINGS: dict[str, str] = {
    "insured": "canonical.insured.block",
    "certificateNumber": "canonical.certificate_number",
    "policyNumber": "canonical.policy_number",
    "effectiveDate": "canonical.dates.effective_date",
    "expirationDate": "canonical.dates.expiration_date",
    "occurrenceLimit": "canonical.limits.occurrence_limit",
    "premisesRentedToYouLimit": "canonical.limits.premises_rented_to_you_limit",
    "medicalPaymentsLimit": "canonical.limits.medical_payments_limit",
    "aggregateLimit": "canonical.limits.aggregate_limit",
    "description": "canonical.description",
    "certificateHolder": "canonical.certificate_holder",
    "carrierPartner": "carrier_partner",
    "timeZone": "time_zone",
    "producerName": "canonical.producer.name",
    "producerPhone": "canonical.producer.phone",
    "producerEmail": "canonical.producer.email",
    "dateNow": "now",
    "lob": "lob",
}

_LOB_COLLECTIONS = {
    "GL": "general_liability_policies",
    "EO": "eo_policies",
}


def _us_config(lob: str, carrier_partner: str, forms: str, signature: str) -> COIConfig:
    return COIConfig(
        lob=lob,
        geography=Geography.US,
        carrier_partner=carrier_partner,
        db_collection=_LOB_COLLECTIONS[lob],
        template_type=TemplateType.ACORD25,
        template_path=ACORD25_TEMPLATE,
        forms_config_path=template("forms", forms),
        signature_path=asset("signatures", signature),
        email_template_path=US_EMAIL_TEMPLATE,
        field_mappings=US_FIELD_MAPPINGS,
    )


US_CONFIGS: list[COIConfig] = [
    _us_config("GL", "StateNational", "us_state_national.json", "StateNationalPresidentSignature.png"),
    _us_config("EO", "StateNational", "us_state_national.json", "StateNationalPresidentSignature.png"),
    _us_config("GL", "Munich", "us_munich.json", "MunichUSSignature.png"),
    _us_config("EO", "Munich", "us_munich.json", "MunichUSSignature.png"),
]

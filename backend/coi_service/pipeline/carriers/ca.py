"""
Canada carriers — HTML certificate rendered to PDF.

Foxquilt and Greenlight share the template; the insurer is Lloyd's for
both.  One certificate covers GL plus the optional E&O block.
"""

from __future__ import annotations

from coi_service.core.constants import Geography, TemplateType
from coi_service.pipeline.carriers.paths import template
from coi_service.schemas.coi_config import COIConfig

CA_HTML_TEMPLATE = template("html", "certificate_ca.html.j2")
CA_EMAIL_TEMPLATE = template("email", "ca", "email_body.html")

CA_FIELD_MAPPINGS: dict[str, str] = {
    "policyFoxdenId": "canonical.policy_number",
    "insuranceCompany": "canonical.insurer.name",
    "namedInsured": "canonical.insured",
    "additionalInsured": "canonical.additional_insured",
    "effectiveDate": "canonical.dates.effective_date",
    "expiryDate": "canonical.dates.expiration_date",
    "coverages": "canonical.coverages",
    "descriptionOfOperations": "canonical.description",
    "dateNow": "now",
    "timeZone": "time_zone",
}


def _ca_config(carrier_partner: str) -> COIConfig:
    return COIConfig(
        lob="GL",
        geography=Geography.CA,
        carrier_partner=carrier_partner,
        db_collection="general_liability_policies",
        template_type=TemplateType.HTML,
        template_path=CA_HTML_TEMPLATE,
        email_template_path=CA_EMAIL_TEMPLATE,
        field_mappings=CA_FIELD_MAPPINGS,
    )


CA_CONFIGS: list[COIConfig] = [
    _ca_config("Foxquilt"),
    _ca_config("Greenlight"),
]

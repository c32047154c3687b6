"""COI configuration entries and the ACORD forms descriptor."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from coi_service.core.constants import Geography, TemplateType
from coi_service.pipeline.map.field_mapper import validate_field_mappings
from coi_service.schemas.common import CamelModel


class COIConfig(BaseModel):
    """Rendering rules for one (lob, geography, carrier partner) combination."""

    model_config = ConfigDict(frozen=True)

    lob: str
    geography: Geography
    carrier_partner: str
    db_collection: str
    template_type: TemplateType
    template_path: str
    forms_config_path: str | None = None
    signature_path: str | None = None
    email_template_path: str
    field_mappings: dict[str, str]

    @field_validator("field_mappings")
    @classmethod
    def _paths_resolve(cls, value: dict[str, str]) -> dict[str, str]:
        validate_field_mappings(value)
        return value

    @model_validator(mode="after")
    def _acord_needs_forms(self) -> "COIConfig":
        if self.template_type == TemplateType.ACORD25 and not self.forms_config_path:
            raise ValueError("acord25 configs require forms_config_path")
        return self

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.lob, self.geography, self.carrier_partner)


class FormField(CamelModel):
    """
    One ACORD form field.

    Either `form_default_value` (a literal) or `form_variable` (a key of
    the mapped fields) supplies the value.  Checkboxes are checked when
    the value equals `expected_value`.  `is_digit` keeps numbers as plain
    digits instead of currency.
    """

    form_name: str
    type: Literal["text", "checkbox"]
    form_variable: str | None = None
    form_default_value: str | None = None
    expected_value: str | None = None
    is_digit: bool = False

    @model_validator(mode="after")
    def _has_value_source(self) -> "FormField":
        if self.form_default_value is None and not self.form_variable:
            raise ValueError(
                f"neither formDefaultValue nor formVariable provided for field {self.form_name!r}"
            )
        return self


class FormsConfig(CamelModel):
    forms: list[FormField]

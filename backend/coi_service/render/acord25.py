"""
ACORD 25 renderer — fills the ACORD 25 (2016/03) PDF form with pypdf.

The forms descriptor (JSON, see templates/forms/) lists every form field
and where its value comes from:

    {"formName": "US-Coi-policyNumber", "type": "text", "formVariable": "policyNumber"}
    {"formName": "US-Coi-glOccur", "type": "checkbox",
     "formDefaultValue": "Yes", "expectedValue": "Yes"}

Values are looked up in the mapped fields, enriched with a few system
fields.  Datetimes are written MM-dd-yyyy in the request time zone and
numbers as US currency unless the field is marked `isDigit`.  Fields
that are not present in the template are skipped.

The carrier signature (PNG) is stamped into the rectangle of the
`US-Coi-signature` widget.  A missing image or widget leaves the
certificate unsigned.
"""

from __future__ import annotations

import io
import json
import os
from datetime import datetime, timezone
from typing import Any

from PIL import Image
from pydantic import ValidationError
from pypdf import PageObject, PdfReader, PdfWriter, Transformation
from pypdf.errors import PyPdfError
from pypdf.generic import BooleanObject, NameObject, TextStringObject

from coi_service.core.constants import US_PRODUCER
from coi_service.core.logging import get_logger
from coi_service.pipeline.errors import RenderError
from coi_service.render.helpers import ACORD_DATE_FORMAT, format_currency, format_date
from coi_service.schemas.coi_config import FormField, FormsConfig

logger = get_logger(__name__)

CERTIFICATE_HOLDER_FIELD = "US-Coi-certificateHolder"
SIGNATURE_FIELD = "US-Coi-signature"
DEFAULT_TIME_ZONE = "America/New_York"


def load_forms_config(path: str) -> FormsConfig:
    """
    Read and validate a forms descriptor.

    Raises:
        RenderError: File missing or not a valid descriptor.
    """
    try:
        with open(path, encoding="utf-8") as fh:
            return FormsConfig.model_validate(json.load(fh))
    except FileNotFoundError as exc:
        raise RenderError(f"Forms config not found: {path}") from exc
    except (json.JSONDecodeError, ValidationError) as exc:
        raise RenderError(f"Invalid forms config {path}: {exc}") from exc


def enrich_input(mapped: dict[str, Any]) -> dict[str, Any]:
    """Add the system fields every ACORD template expects."""
    enriched = dict(mapped)
    enriched["dateNow"] = mapped.get("dateNow") or datetime.now(timezone.utc)
    enriched["usEmail"] = mapped.get("producerEmail") or mapped.get("usEmail") or US_PRODUCER["email"]
    enriched["usPhoneNumber"] = (
        mapped.get("producerPhone") or mapped.get("usPhoneNumber") or US_PRODUCER["phone"]
    )
    return enriched


def resolve_form_value(field: FormField, values: dict[str, Any], time_zone: str) -> tuple[str, bool]:
    """Return (text, checked) for one form field."""
    if field.form_default_value is not None:
        checked = field.expected_value is not None and field.form_default_value == field.expected_value
        return field.form_default_value, checked

    raw = values.get(field.form_variable)

    if isinstance(raw, datetime):
        raw = format_date(raw, time_zone, fmt=ACORD_DATE_FORMAT)
    elif isinstance(raw, (int, float)) and not isinstance(raw, bool) and not field.is_digit:
        raw = format_currency(raw)

    checked = field.type == "checkbox" and field.expected_value is not None and raw == field.expected_value
    return ("" if raw is None else str(raw)), checked


def certificate_holder_block(values: dict[str, Any]) -> str | None:
    holder = values.get("certificateHolder") or values.get("additionalInsured")
    name = getattr(holder, "name", None)
    address = getattr(holder, "address", None)
    if not name or address is None:
        return None
    return f"{name}\n{address.lines()}"


def fill_acord25(
    template_path: str,
    forms_config_path: str,
    mapped: dict[str, Any],
    signature_path: str | None = None,
) -> bytes:
    """
    Fill the ACORD template and return the PDF bytes.

    Blocking; callers on the event loop run it in a thread.

    Raises:
        RenderError: Template or descriptor missing or unreadable.
    """
    if not os.path.exists(template_path):
        raise RenderError(f"ACORD template not found: {template_path}")

    forms = load_forms_config(forms_config_path)
    values = enrich_input(mapped)
    time_zone = values.get("timeZone") or DEFAULT_TIME_ZONE

    texts: dict[str, str] = {}
    checkboxes: dict[str, bool] = {}
    for field in forms.forms:
        text, checked = resolve_form_value(field, values, time_zone)
        if field.type == "checkbox":
            checkboxes[field.form_name] = checked
        else:
            texts[field.form_name] = text

    holder = certificate_holder_block(values)
    if holder:
        texts[CERTIFICATE_HOLDER_FIELD] = holder

    try:
        writer = PdfWriter(clone_from=PdfReader(template_path))
        matched = _fill_annotations(writer, texts, checkboxes)

        if signature_path:
            stamp_signature(writer, signature_path)

        if "/AcroForm" in writer._root_object:
            writer._root_object["/AcroForm"].update(
                {NameObject("/NeedAppearances"): BooleanObject(True)}
            )

        buffer = io.BytesIO()
        writer.write(buffer)
    except (PyPdfError, OSError) as exc:
        raise RenderError(f"ACORD form fill failed: {exc}") from exc

    unmatched = sorted((set(texts) | set(checkboxes)) - matched)
    if unmatched:
        logger.debug("Form fields not in template", fields=unmatched)

    return buffer.getvalue()


# ─── pypdf annotation helpers ──────────────────────

def _fill_annotations(writer: PdfWriter, texts: dict[str, str], checkboxes: dict[str, bool]) -> set[str]:
    matched: set[str] = set()
    for page in writer.pages:
        if "/Annots" not in page:
            continue
        for annot_ref in page["/Annots"]:
            annot = annot_ref.get_object()
            name = _field_name(annot, texts, checkboxes)
            if name is None:
                continue

            if _field_type(annot) == "/Btn":
                if checkboxes.get(name):
                    on_state = _checkbox_on_state(annot)
                    annot.update({
                        NameObject("/V"): NameObject(on_state),
                        NameObject("/AS"): NameObject(on_state),
                    })
            elif name in texts:
                annot.update({NameObject("/V"): TextStringObject(texts[name])})
                if "/AP" in annot:
                    del annot["/AP"]
            matched.add(name)
    return matched


def _field_names(annot) -> tuple[str, str]:
    """(short name, fully qualified name) of a widget annotation."""
    short = str(annot.get("/T", ""))
    parts = [short] if short else []
    parent = annot.get("/Parent")
    while parent is not None:
        parent = parent.get_object()
        if parent.get("/T"):
            parts.insert(0, str(parent["/T"]))
        parent = parent.get("/Parent")
    return short, ".".join(parts)


def _field_name(annot, texts: dict[str, str], checkboxes: dict[str, bool]) -> str | None:
    """Match by short name first, then by fully qualified name."""
    for candidate in _field_names(annot):
        if candidate and (candidate in texts or candidate in checkboxes):
            return candidate
    return None


def _field_type(annot) -> str:
    node = annot
    while node is not None:
        if node.get("/FT"):
            return str(node["/FT"])
        parent = node.get("/Parent")
        node = parent.get_object() if parent is not None else None
    return ""


def _checkbox_on_state(annot) -> str:
    """The appearance state that is not /Off; /Yes when undiscoverable."""
    appearance = annot.get("/AP")
    if appearance is None:
        return "/Yes"
    normal = appearance.get_object().get("/N")
    if normal is None:
        return "/Yes"
    normal = normal.get_object()
    if hasattr(normal, "keys"):
        for key in normal.keys():
            if str(key) != "/Off":
                return str(key)
    return "/Yes"


# ─── carrier signature ─────────────────────────────

def stamp_signature(writer: PdfWriter, signature_path: str) -> bool:
    """
    Draw the signature image over the `US-Coi-signature` widget.

    The image is scaled to fit the widget rectangle and centred in it.
    Returns False, leaving the document untouched, when the image file
    or the widget is missing or the image cannot be decoded.
    """
    if not os.path.isfile(signature_path):
        logger.debug("Signature image not found, skipping", path=signature_path)
        return False

    located = _find_widget(writer, SIGNATURE_FIELD)
    if located is None:
        logger.debug("Signature field not in template, skipping", field=SIGNATURE_FIELD)
        return False
    page, rect = located

    try:
        stamp = _image_page(signature_path)
    except OSError as exc:
        logger.warning("Signature image unreadable, skipping", path=signature_path, error=str(exc))
        return False

    x0, y0, x1, y1 = rect
    width = float(stamp.mediabox.width)
    height = float(stamp.mediabox.height)
    scale = min((x1 - x0) / width, (y1 - y0) / height)
    offset_x = x0 + ((x1 - x0) - width * scale) / 2
    offset_y = y0 + ((y1 - y0) - height * scale) / 2

    page.merge_transformed_page(
        stamp,
        Transformation().scale(scale, scale).translate(offset_x, offset_y),
    )
    return True


def _find_widget(writer: PdfWriter, field_name: str) -> tuple[PageObject, tuple[float, float, float, float]] | None:
    for page in writer.pages:
        if "/Annots" not in page:
            continue
        for annot_ref in page["/Annots"]:
            annot = annot_ref.get_object()
            if field_name in _field_names(annot) and "/Rect" in annot:
                xa, ya, xb, yb = (float(v) for v in annot["/Rect"])
                return page, (min(xa, xb), min(ya, yb), max(xa, xb), max(ya, yb))
    return None


def _image_page(path: str) -> PageObject:
    """One-page PDF holding the image at one point per pixel."""
    with Image.open(path) as image:
        rgba = image.convert("RGBA")
    # PDF output has no alpha channel; transparent pixels become paper white
    flat = Image.new("RGB", rgba.size, "white")
    flat.paste(rgba, mask=rgba.getchannel("A"))

    buffer = io.BytesIO()
    flat.save(buffer, format="PDF", resolution=72.0)
    buffer.seek(0)
    return PdfReader(buffer).pages[0]

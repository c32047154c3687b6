"""
FieldMapper — projects the canonical model into renderer inputs.

Each COI config carries a field-mapping table:

    {"policyNumber": "canonical.policy_number", "lob": "lob", ...}

Every path is a dotted lookup into a MappingContext.  Lookups never
raise: a segment that does not resolve yields None for that key only.
Tables are checked up front by validate_field_mappings() so a typo in
a config fails at import time instead of silently rendering blanks.
"""

from __future__ import annotations

import dataclasses
import types
import typing
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from coi_service.core.logging import get_logger
from coi_service.schemas.canonical import Canonical

logger = get_logger(__name__)


@dataclass(frozen=True)
class MappingContext:
    """The fixed shape every mapping path is evaluated against."""

    canonical: Canonical
    lob: str
    geography: str
    carrier_partner: str
    time_zone: str
    now: datetime


MAPPING_ROOTS = frozenset(f.name for f in dataclasses.fields(MappingContext))


def resolve_path(obj: Any, path: str) -> Any:
    """Follow a dotted path through attributes, mapping keys and list indices."""
    current = obj
    for segment in path.split("."):
        if current is None:
            return None
        current = _step(current, segment)
    return current


def _step(current: Any, segment: str) -> Any:
    if isinstance(current, Mapping):
        return current.get(segment)
    if isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
        if not segment.isdigit():
            return None
        index = int(segment)
        return current[index] if index < len(current) else None
    if isinstance(current, BaseModel):
        if segment not in type(current).model_fields:
            return None
        return getattr(current, segment)
    if dataclasses.is_dataclass(current):
        return getattr(current, segment, None)
    return None


def map_fields(context: MappingContext, field_mappings: Mapping[str, str]) -> dict[str, Any]:
    """Resolve every entry of the table against `context`."""
    mapped = {key: resolve_path(context, path) for key, path in field_mappings.items()}

    missing = [key for key, value in mapped.items() if value is None]
    if missing:
        logger.debug("Mapped fields without a value", fields=missing, lob=context.lob)

    return mapped


# ═══════════════════════════════════════════════════════════
#  Static validation
# ═══════════════════════════════════════════════════════════

def validate_field_mappings(field_mappings: Mapping[str, str]) -> None:
    """
    Check that every path can resolve against a MappingContext.

    Root segments must name a context field.  Paths under `canonical`
    are walked through the Canonical model's declared fields; list
    positions must be numeric.  Scalar roots take no sub-path.

    Raises:
        ValueError: listing every invalid entry.
    """
    problems = []
    for key, path in field_mappings.items():
        error = _check_path(path)
        if error:
            problems.append(f"{key} -> {path!r}: {error}")

    if problems:
        raise ValueError("Invalid field mappings: " + "; ".join(problems))


def _check_path(path: str) -> str | None:
    root, *rest = path.split(".")
    if root not in MAPPING_ROOTS:
        return f"unknown root {root!r}"
    if root != "canonical":
        return f"{root!r} has no sub-fields" if rest else None

    annotation: Any = Canonical
    for segment in rest:
        annotation = _unwrap_optional(annotation)
        origin = typing.get_origin(annotation)

        if origin in (list, tuple, Sequence):
            if not segment.isdigit():
                return f"{segment!r} is not a list index"
            annotation = typing.get_args(annotation)[0]
        elif isinstance(annotation, type) and issubclass(annotation, BaseModel):
            field = annotation.model_fields.get(segment)
            if field is None:
                return f"{annotation.__name__} has no field {segment!r}"
            annotation = field.annotation
        else:
            return f"cannot descend into {segment!r}"
    return None


def _unwrap_optional(annotation: Any) -> Any:
    if typing.get_origin(annotation) in (typing.Union, types.UnionType):
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation

"""Helpers shared by the Canada and US transforms."""

from __future__ import annotations

import math
from collections.abc import Iterable
from decimal import Decimal, InvalidOperation
from typing import Any

from coi_service.pipeline.errors import ConsistencyViolationError, SubPolicyNotFoundError
from coi_service.schemas.common import Address
from coi_service.schemas.policy import SubPolicy


def generate_named_insured(company_name: Any, dba_name: Any) -> str:
    """
    Combine company and DBA name: "Acme Corp" or "Acme Corp DBA Widget Store".

    A blank or whitespace-only DBA is treated as absent.
    """
    if not isinstance(company_name, str):
        raise ConsistencyViolationError("Invalid company name")
    if isinstance(dba_name, str) and dba_name.strip():
        return f"{company_name} DBA {dba_name}"
    return company_name


def is_address_type(value: Any) -> bool:
    """True when `value` has non-blank street, city, province and postalCode."""
    if not isinstance(value, dict):
        return False
    return all(
        isinstance(value.get(key), str) and value[key].strip()
        for key in ("street", "city", "province", "postalCode")
    )


def to_address(value: Any, label: str) -> Address:
    if not is_address_type(value):
        raise ConsistencyViolationError(f"{label} (stored in database) is not an address")
    return Address.model_validate(value)


def format_insured_block(name: str, address: Address) -> str:
    return f"{name}\n{address.lines()}"


def get_policy_id_by_line_of_business(sub_policies: Iterable[SubPolicy], lob: str) -> str:
    """
    Return the sub-policy id for `lob`.

    Raises:
        SubPolicyNotFoundError: No sub-policy of that kind.
    """
    for sub_policy in sub_policies:
        if sub_policy.kind == lob:
            return sub_policy.policy_id
    raise SubPolicyNotFoundError(f"No policy found for line of business: {lob}", lob=lob)


def to_amount(value: Any, field: str) -> int | float:
    """
    Coerce a stored limit/deductible to a number.

    Accepts numbers, numeric strings and BSON Decimal128.  Integral
    values come back as int.  Negative or non-finite values raise.
    """
    if isinstance(value, bool):
        raise ConsistencyViolationError(f"{field} is a boolean, expected a number")

    if hasattr(value, "to_decimal"):
        value = value.to_decimal()

    try:
        number = float(Decimal(str(value)) if isinstance(value, (str, Decimal)) else value)
    except (TypeError, ValueError, InvalidOperation) as exc:
        raise ConsistencyViolationError(f"{field} is not a number: {value!r}") from exc

    if not math.isfinite(number) or number < 0:
        raise ConsistencyViolationError(f"{field} must be a non-negative finite number, got {value!r}")

    return int(number) if number.is_integer() else number


def join_professions(professions: Any) -> str:
    if isinstance(professions, str):
        return professions
    if isinstance(professions, (list, tuple)):
        return ", ".join(str(p) for p in professions)
    return ""

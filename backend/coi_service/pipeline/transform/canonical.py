"""CanonicalBuilder — dispatch RawPolicyData to the geography transform."""

from __future__ import annotations

from typing import Any

from coi_service.pipeline.transform.canada import transform_canada
from coi_service.pipeline.transform.us import transform_us
from coi_service.schemas.canonical import Canonical
from coi_service.schemas.policy import CanadaPolicyData, USPolicyData


async def build_canonical(raw: CanadaPolicyData | USPolicyData, lob: str, db: Any) -> Canonical:
    """Build the canonical record for one line of business of `raw`."""
    match raw:
        case CanadaPolicyData():
            return transform_canada(raw, lob)
        case USPolicyData():
            return await transform_us(raw, lob, db)
    raise TypeError(f"Unsupported policy data: {type(raw).__name__}")

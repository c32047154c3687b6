"""
LobContext — mutable state carried through the steps of one LOB run.

One context exists per line of business.  The RawPolicyData it holds is
frozen and shared with the sibling LOBs of the same request; everything
else is private to this run and filled in progressively:

    config      → ResolveConfigStep
    canonical   → BuildCanonicalStep
    mapped      → MapFieldsStep
    pdf_bytes   → RenderDocumentStep
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from coi_service.schemas.canonical import Canonical
from coi_service.schemas.coi_config import COIConfig
from coi_service.schemas.policy import CanadaPolicyData, USPolicyData


# ═══════════════════════════════════════════════════════════
#  StepResult
# ═══════════════════════════════════════════════════════════

@dataclass
class StepResult:
    """Outcome of a single pipeline step execution."""

    step_name: str
    status: str                     # StepStatus value
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: int = 0
    error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "step_name": self.step_name,
            "status": self.status,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_ms": self.duration_ms,
            "error": self.error,
            "metadata": self.metadata,
        }


# ═══════════════════════════════════════════════════════════
#  LobContext
# ═══════════════════════════════════════════════════════════

@dataclass
class LobContext:
    """Carries all state between the steps of one LOB."""

    # ─── Identity (set at init) ────────────────────────
    raw: CanadaPolicyData | USPolicyData
    lob: str
    db: Any = None
    execution_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    now: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # ─── Populated by steps ────────────────────────────
    config: COIConfig | None = None
    canonical: Canonical | None = None
    mapped: dict[str, Any] = field(default_factory=dict)
    pdf_bytes: bytes | None = None

    # ─── Execution tracking ────────────────────────────
    step_results: list[StepResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def policy_foxden_id(self) -> str:
        return self.raw.policy_foxden_id

    @property
    def geography(self) -> str:
        return self.raw.geography

    def add_error(self, error: str) -> None:
        self.errors.append(error)

    def to_summary_dict(self) -> dict[str, Any]:
        """Compact summary for logging."""
        return {
            "execution_id": self.execution_id,
            "policy_foxden_id": self.policy_foxden_id,
            "geography": self.geography,
            "lob": self.lob,
            "carrier_partner": self.raw.carrier_partner,
            "template_type": self.config.template_type if self.config else None,
            "certificate_number": self.canonical.certificate_number if self.canonical else None,
            "mapped_fields": len(self.mapped),
            "pdf_bytes": len(self.pdf_bytes) if self.pdf_bytes else 0,
            "steps_completed": len(self.step_results),
            "errors": self.errors,
        }

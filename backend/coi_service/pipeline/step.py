"""
PipelineStep — abstract base class for the steps of a LOB run.

The engine calls execute() and records timing, logging and errors;
steps only implement the business logic and raise COIError subclasses
on failure.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any

from coi_service.core.constants import StepStatus
from coi_service.pipeline.context import LobContext, StepResult


class PipelineStep(ABC):
    """
    Base class for every pipeline step.

    Subclasses MUST implement:
        - name (str)          — unique identifier, e.g. "map_fields"
        - description (str)   — human-readable label for logs
        - execute(ctx)        — the actual business logic
    """

    name: str = "unnamed_step"
    description: str = "No description"

    @abstractmethod
    async def execute(self, ctx: LobContext) -> StepResult:
        """
        Run the step's logic.  Must return a StepResult.

        Read from and write to `ctx` to pass data between steps.
        """
        ...

    # ─── Helpers available to all steps ────────────────

    def _result(
        self,
        status: str,
        started_at: datetime,
        error: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> StepResult:
        now = self._now()
        return StepResult(
            step_name=self.name,
            status=status,
            started_at=started_at,
            completed_at=now,
            duration_ms=int((now - started_at).total_seconds() * 1000),
            error=error,
            metadata=metadata or {},
        )

    def _success(self, started_at: datetime, metadata: dict[str, Any] | None = None) -> StepResult:
        """Build a successful StepResult with timing."""
        return self._result(StepStatus.COMPLETED, started_at, metadata=metadata)

    def _failure(
        self,
        started_at: datetime,
        error: str,
        metadata: dict[str, Any] | None = None,
    ) -> StepResult:
        """Build a failed StepResult with timing and error message."""
        return self._result(StepStatus.FAILED, started_at, error=error, metadata=metadata)

    def _now(self) -> datetime:
        """UTC-aware now."""
        return datetime.now(timezone.utc)

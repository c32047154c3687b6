"""
PipelineEngine — runs the COI pipeline for one request.

    extract (once) → filter LOBs with a config → one task per LOB

Extract-phase errors (not found, schema drift, consistency violation)
abort the whole request.  Per-LOB errors are captured in that LOB's
result: the LOBs run concurrently and are joined settle-all, so one
failing LOB never cancels its siblings.  There are no retries and no
internal timeouts.
"""

from __future__ import annotations

import asyncio
import traceback
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import structlog

from coi_service.core.constants import BatchStatus, LobStatus, StepStatus
from coi_service.pipeline.config_resolver import ConfigResolver
from coi_service.pipeline.context import LobContext, StepResult
from coi_service.pipeline.errors import COIError
from coi_service.pipeline.extract.extractor import extract
from coi_service.pipeline.flow import coi_flow
from coi_service.pipeline.step import PipelineStep
from coi_service.schemas.common import COIRequested
from coi_service.schemas.policy import CanadaPolicyData, USPolicyData


@dataclass
class LobResult:
    """Outcome of one line of business."""

    lob: str
    status: str                     # LobStatus value
    error: str | None = None
    error_type: str | None = None
    duration_ms: int = 0
    step_results: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "lob": self.lob,
            "status": self.status,
            "error": self.error,
            "error_type": self.error_type,
            "duration_ms": self.duration_ms,
            "step_results": self.step_results,
        }


@dataclass
class COIBatchResult:
    """Tally of one request across its lines of business."""

    policy_foxden_id: str
    geography: str
    status: str                     # BatchStatus value
    lobs: list[str] = field(default_factory=list)
    results: list[LobResult] = field(default_factory=list)
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.status == LobStatus.COMPLETED)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.status == LobStatus.FAILED)

    def to_dict(self) -> dict[str, Any]:
        return {
            "policy_foxden_id": self.policy_foxden_id,
            "geography": self.geography,
            "status": self.status,
            "lobs": self.lobs,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "results": [r.to_dict() for r in self.results],
        }


class PipelineEngine:
    """
    Orchestrates extract → per-LOB transform/map/render/send.

    Usage::

        engine = PipelineEngine(db)
        result = await engine.run(COIRequested.model_validate(payload))
    """

    def __init__(
        self,
        db: Any,
        resolver: ConfigResolver | None = None,
        flow_factory: Callable[[], list[PipelineStep]] | None = None,
    ) -> None:
        self.db = db
        self.resolver = resolver or ConfigResolver()
        self.flow_factory = flow_factory or (lambda: coi_flow(self.resolver))
        self.logger = structlog.get_logger("coi.engine")

    async def run(self, event: COIRequested) -> COIBatchResult:
        """
        Generate every certificate of the policy named in `event`.

        Raises:
            NotFoundError / SchemaDriftError / ConsistencyViolationError:
                From the extract phase.
        """
        started_at = datetime.now(timezone.utc)
        log = self.logger.bind(policy_foxden_id=event.policy_foxden_id, geography=event.geography)
        log.info("COI generation started")

        raw = await extract(self.db, event)

        lobs = [
            lob
            for lob in raw.lobs
            if self.resolver.exists(lob, raw.geography, raw.carrier_partner)
        ]
        skipped = [lob for lob in raw.lobs if lob not in lobs]
        if skipped:
            log.warning("No COI config for LOBs, skipping", lobs=skipped, carrier_partner=raw.carrier_partner)

        if not lobs:
            log.warning("No eligible lines of business", discovered=list(raw.lobs))
            return COIBatchResult(
                policy_foxden_id=event.policy_foxden_id,
                geography=event.geography,
                status=BatchStatus.NOTHING_TO_GENERATE,
                started_at=started_at,
                completed_at=datetime.now(timezone.utc),
            )

        outcomes = await asyncio.gather(
            *(self.run_lob(raw, lob) for lob in lobs),
            return_exceptions=True,
        )

        results = []
        for lob, outcome in zip(lobs, outcomes):
            if isinstance(outcome, BaseException):
                # run_lob captures errors itself; this is a last resort
                log.error("LOB task crashed", lob=lob, error=repr(outcome))
                outcome = LobResult(
                    lob=lob,
                    status=LobStatus.FAILED,
                    error=str(outcome),
                    error_type=type(outcome).__name__,
                )
            results.append(outcome)

        batch = COIBatchResult(
            policy_foxden_id=event.policy_foxden_id,
            geography=event.geography,
            status=_batch_status(results),
            lobs=lobs,
            results=results,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc),
        )

        for result in results:
            if result.status == LobStatus.COMPLETED:
                log.info("COI generated", lob=result.lob, duration_ms=result.duration_ms)
            else:
                log.error("COI generation failed", lob=result.lob, error=result.error)

        log.info(
            "COI generation finished",
            status=batch.status,
            succeeded=batch.succeeded,
            failed=batch.failed,
        )
        return batch

    async def run_lob(self, raw: CanadaPolicyData | USPolicyData, lob: str) -> LobResult:
        """Run the flow for one LOB; never raises for step errors."""
        ctx = LobContext(raw=raw, lob=lob, db=self.db)
        return await self.run_steps(ctx, self.flow_factory())

    async def run_steps(self, ctx: LobContext, steps: list[PipelineStep]) -> LobResult:
        """
        Execute an ordered list of steps; the first failure stops the LOB.

        Can be called directly with a pre-built step list in tests.
        """
        started_at = datetime.now(timezone.utc)
        log = self.logger.bind(
            policy_foxden_id=ctx.policy_foxden_id,
            lob=ctx.lob,
            execution_id=ctx.execution_id,
        )

        status = LobStatus.COMPLETED
        error: str | None = None
        error_type: str | None = None

        for index, step in enumerate(steps):
            step_log = log.bind(step_name=step.name, step_index=index + 1)

            step_log.debug(f"Step {index + 1}/{len(steps)}: {step.description}")
            result, error_type = await self._execute(step, ctx, step_log)
            ctx.step_results.append(result)

            if result.status == StepStatus.FAILED:
                step_log.error("Step failed, LOB stopping", error=result.error, error_type=error_type)
                ctx.add_error(f"Step '{step.name}' failed: {result.error}")
                status = LobStatus.FAILED
                error = result.error
                break

            step_log.debug("Step completed", duration_ms=result.duration_ms)

        log.debug("LOB run finished", summary=ctx.to_summary_dict())
        completed_at = datetime.now(timezone.utc)
        return LobResult(
            lob=ctx.lob,
            status=status,
            error=error,
            error_type=error_type,
            duration_ms=int((completed_at - started_at).total_seconds() * 1000),
            step_results=[sr.to_dict() for sr in ctx.step_results],
        )

    async def _execute(
        self,
        step: PipelineStep,
        ctx: LobContext,
        log: structlog.BoundLogger,
    ) -> tuple[StepResult, str | None]:
        started_at = datetime.now(timezone.utc)
        try:
            return await step.execute(ctx), None

        except COIError as exc:
            return (
                step._failure(started_at, str(exc), metadata={"error_type": exc.error_type, **exc.details}),
                exc.error_type,
            )

        except Exception as exc:
            # Unexpected error: keep the traceback with the result
            log.exception("Unexpected error in step", error=str(exc))
            return (
                step._failure(
                    started_at,
                    f"Unexpected: {exc}",
                    metadata={"traceback": traceback.format_exc()},
                ),
                "unexpected",
            )


def _batch_status(results: list[LobResult]) -> str:
    succeeded = sum(1 for r in results if r.status == LobStatus.COMPLETED)
    if succeeded == len(results):
        return BatchStatus.COMPLETED
    if succeeded == 0:
        return BatchStatus.FAILED
    return BatchStatus.PARTIALLY_COMPLETED

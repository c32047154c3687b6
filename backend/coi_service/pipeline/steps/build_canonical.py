"""BuildCanonicalStep — RawPolicyData → Canonical for one LOB."""

from __future__ import annotations

from coi_service.pipeline.context import LobContext, StepResult
from coi_service.pipeline.step import PipelineStep
from coi_service.pipeline.transform.canonical import build_canonical


class BuildCanonicalStep(PipelineStep):
    name = "build_canonical"
    description = "Transform policy data into the canonical certificate model"

    async def execute(self, ctx: LobContext) -> StepResult:
        started_at = self._now()

        ctx.canonical = await build_canonical(ctx.raw, ctx.lob, ctx.db)

        return self._success(
            started_at,
            metadata={
                "policy_number": ctx.canonical.policy_number,
                "certificate_number": ctx.canonical.certificate_number,
            },
        )

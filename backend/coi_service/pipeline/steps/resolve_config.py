"""
ResolveConfigStep — picks the rendering rules for the LOB.

The engine only schedules LOBs whose config exists, so a miss here means
the registry changed between scheduling and execution.
"""

from __future__ import annotations

from coi_service.core.logging import get_logger
from coi_service.pipeline.config_resolver import ConfigResolver
from coi_service.pipeline.context import LobContext, StepResult
from coi_service.pipeline.step import PipelineStep

logger = get_logger(__name__)


class ResolveConfigStep(PipelineStep):
    """Resolve the COIConfig for (lob, geography, carrier partner)."""

    name = "resolve_config"
    description = "Resolve COI config for line of business"

    def __init__(self, resolver: ConfigResolver | None = None) -> None:
        self.resolver = resolver or ConfigResolver()

    async def execute(self, ctx: LobContext) -> StepResult:
        started_at = self._now()

        ctx.config = self.resolver.resolve(ctx.lob, ctx.geography, ctx.raw.carrier_partner)

        return self._success(
            started_at,
            metadata={
                "carrier_partner": ctx.config.carrier_partner,
                "template_type": ctx.config.template_type,
            },
        )

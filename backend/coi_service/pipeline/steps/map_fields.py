"""
MapFieldsStep — projects the canonical record through the config's
field-mapping table into the renderer input.
"""

from __future__ import annotations

from coi_service.pipeline.context import LobContext, StepResult
from coi_service.pipeline.errors import StepExecutionError
from coi_service.pipeline.map.field_mapper import MappingContext, map_fields
from coi_service.pipeline.step import PipelineStep


class MapFieldsStep(PipelineStep):
    name = "map_fields"
    description = "Map canonical fields to template variables"

    async def execute(self, ctx: LobContext) -> StepResult:
        started_at = self._now()

        if ctx.config is None or ctx.canonical is None:
            raise StepExecutionError(
                "Config and canonical record must be resolved before mapping",
                step_name=self.name,
                lob=ctx.lob,
            )

        mapping_context = MappingContext(
            canonical=ctx.canonical,
            lob=ctx.lob,
            geography=ctx.geography,
            carrier_partner=ctx.raw.carrier_partner,
            time_zone=ctx.raw.time_zone,
            now=ctx.now,
        )
        ctx.mapped = map_fields(mapping_context, ctx.config.field_mappings)

        unresolved = [key for key, value in ctx.mapped.items() if value is None]
        return self._success(
            started_at,
            metadata={"fields": len(ctx.mapped), "unresolved": unresolved},
        )

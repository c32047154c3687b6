"""
RenderDocumentStep — mapped fields → certificate PDF.

    acord25  ACORD 25 form fill and carrier signature (pypdf), run in a worker thread
    html     Jinja2 template, converted by Browserless
"""

from __future__ import annotations

import asyncio

import httpx

from coi_service.core.constants import TemplateType
from coi_service.pipeline.context import LobContext, StepResult
from coi_service.pipeline.errors import RenderError, StepExecutionError
from coi_service.pipeline.step import PipelineStep
from coi_service.render.acord25 import fill_acord25
from coi_service.render.html import render_html
from coi_service.render.html2pdf import html_to_pdf


class RenderDocumentStep(PipelineStep):
    name = "render_document"
    description = "Render certificate PDF"

    def __init__(self, http_client: httpx.AsyncClient | None = None) -> None:
        self.http_client = http_client

    async def execute(self, ctx: LobContext) -> StepResult:
        started_at = self._now()
        config = ctx.config
        if config is None:
            raise StepExecutionError("Config must be resolved before rendering", step_name=self.name)

        if config.template_type == TemplateType.ACORD25:
            ctx.pdf_bytes = await asyncio.to_thread(
                fill_acord25,
                config.template_path,
                config.forms_config_path,
                ctx.mapped,
                config.signature_path,
            )
        elif config.template_type == TemplateType.HTML:
            html = await render_html(config.template_path, ctx.mapped)
            ctx.pdf_bytes = await html_to_pdf(html, client=self.http_client)
        else:
            raise RenderError(
                f"Unsupported template type: {config.template_type}",
                policy_foxden_id=ctx.policy_foxden_id,
                lob=ctx.lob,
            )

        return self._success(
            started_at,
            metadata={"template_type": config.template_type, "bytes": len(ctx.pdf_bytes)},
        )

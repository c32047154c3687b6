"""
COI flow — the ordered steps run for every line of business.

    ResolveConfig → BuildCanonical → MapFields → RenderDocument → SendEmail

Collaborators are injectable so tests (and the local run script) can
swap the HTTP client or the mail sender without touching the steps.
"""

from __future__ import annotations

import httpx

from coi_service.delivery.email import EmailSender
from coi_service.pipeline.config_resolver import ConfigResolver
from coi_service.pipeline.step import PipelineStep
from coi_service.pipeline.steps.build_canonical import BuildCanonicalStep
from coi_service.pipeline.steps.map_fields import MapFieldsStep
from coi_service.pipeline.steps.render_document import RenderDocumentStep
from coi_service.pipeline.steps.resolve_config import ResolveConfigStep
from coi_service.pipeline.steps.send_email import SendEmailStep


def coi_flow(
    resolver: ConfigResolver | None = None,
    http_client: httpx.AsyncClient | None = None,
    sender: EmailSender | None = None,
) -> list[PipelineStep]:
    return [
        ResolveConfigStep(resolver),
        BuildCanonicalStep(),
        MapFieldsStep(),
        RenderDocumentStep(http_client),
        SendEmailStep(sender),
    ]

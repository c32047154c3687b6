"""SendEmailStep — emails the rendered certificate to the policy owner."""

from __future__ import annotations

from coi_service.delivery.email import EmailSender
from coi_service.pipeline.context import LobContext, StepResult
from coi_service.pipeline.errors import StepExecutionError
from coi_service.pipeline.step import PipelineStep


class SendEmailStep(PipelineStep):
    name = "send_email"
    description = "Email certificate to policy owner"

    def __init__(self, sender: EmailSender | None = None) -> None:
        self.sender = sender or EmailSender()

    async def execute(self, ctx: LobContext) -> StepResult:
        started_at = self._now()

        if ctx.pdf_bytes is None:
            raise StepExecutionError("No rendered certificate to send", step_name=self.name, lob=ctx.lob)

        await self.sender.send(
            pdf_bytes=ctx.pdf_bytes,
            recipient=ctx.raw.recipient_email,
            email_template_path=ctx.config.email_template_path if ctx.config else None,
            geography=ctx.geography,
        )

        return self._success(started_at, metadata={"recipient": ctx.raw.recipient_email})

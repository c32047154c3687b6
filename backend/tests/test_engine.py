"""PipelineEngine: LOB fan-out, settle-all join, end-to-end mapping."""

import httpx
import pytest

from coi_service.core.config import settings
from coi_service.core.constants import Collection
from coi_service.pipeline.config_resolver import ConfigResolver
from coi_service.pipeline.context import LobContext, StepResult
from coi_service.pipeline.engine import PipelineEngine
from coi_service.pipeline.errors import PolicyNotFoundError, RenderError, SchemaDriftError
from coi_service.pipeline.extract.extractor import extract
from coi_service.pipeline.flow import coi_flow
from coi_service.pipeline.step import PipelineStep
from coi_service.pipeline.steps.build_canonical import BuildCanonicalStep
from coi_service.pipeline.steps import render_document
from coi_service.pipeline.steps.map_fields import MapFieldsStep
from coi_service.pipeline.steps.render_document import RenderDocumentStep
from coi_service.pipeline.steps.resolve_config import ResolveConfigStep


class CaptureStep(PipelineStep):
    """Records the mapped fields of every LOB that reaches it."""

    name = "capture"
    description = "Capture mapped fields"

    def __init__(self, sink: dict) -> None:
        self.sink = sink

    async def execute(self, ctx: LobContext) -> StepResult:
        started_at = self._now()
        self.sink[ctx.lob] = ctx.mapped
        return self._success(started_at)


class FailForLobStep(PipelineStep):
    name = "fail_for_lob"
    description = "Fail one line of business"

    def __init__(self, lob: str, exc: Exception) -> None:
        self.lob = lob
        self.exc = exc

    async def execute(self, ctx: LobContext) -> StepResult:
        started_at = self._now()
        if ctx.lob == self.lob:
            raise self.exc
        return self._success(started_at)


class FakeSender:
    def __init__(self) -> None:
        self.sent: list[dict] = []

    async def send(self, **kwargs) -> None:
        self.sent.append(kwargs)


def _engine(db, *extra_steps):
    resolver = ConfigResolver()
    return PipelineEngine(
        db,
        resolver=resolver,
        flow_factory=lambda: [
            ResolveConfigStep(resolver),
            BuildCanonicalStep(),
            MapFieldsStep(),
            *extra_steps,
        ],
    )


async def test_us_policy_generates_one_certificate_per_lob(fake_db, us_event, us_row):
    fake_db[Collection.ACTIVE_POLICY.value].rows = [us_row()]
    captured: dict = {}

    batch = await _engine(fake_db, CaptureStep(captured)).run(us_event)

    assert batch.status == "COMPLETED"
    assert batch.lobs == ["GL", "EO"]
    assert batch.succeeded == 2
    assert captured["GL"]["policyNumber"] == "P-1"
    assert captured["EO"]["policyNumber"] == "P-2"
    assert captured["GL"]["certificateNumber"] == 1
    assert captured["GL"]["carrierPartner"] == "StateNational"
    assert captured["GL"]["insured"].startswith("Lone Star LLC DBA Star Cleaning\n")
    assert captured["GL"]["lob"] == "GL"


async def test_one_failing_lob_does_not_cancel_siblings(fake_db, us_event, us_row):
    fake_db[Collection.ACTIVE_POLICY.value].rows = [us_row()]
    captured: dict = {}

    batch = await _engine(
        fake_db,
        FailForLobStep("EO", RenderError("template broke")),
        CaptureStep(captured),
    ).run(us_event)

    assert batch.status == "PARTIALLY_COMPLETED"
    assert batch.succeeded == 1
    assert batch.failed == 1
    failed = next(r for r in batch.results if r.lob == "EO")
    assert failed.error == "template broke"
    assert failed.error_type == "render_error"
    assert list(captured) == ["GL"]


async def test_unexpected_exception_is_captured(fake_db, us_event, us_row):
    fake_db[Collection.ACTIVE_POLICY.value].rows = [us_row(policies=[{"kind": "GL", "policyId": "P-1"}])]

    batch = await _engine(fake_db, FailForLobStep("GL", KeyError("boom"))).run(us_event)

    assert batch.status == "FAILED"
    assert batch.results[0].error_type == "unexpected"
    assert batch.results[0].step_results[-1]["step_name"] == "fail_for_lob"


async def test_first_failing_step_stops_the_lob(fake_db, us_event, us_row):
    fake_db[Collection.ACTIVE_POLICY.value].rows = [
        us_row(policies=[{"kind": "GL", "policyId": "P-1"}], gl={"policyEffectiveDate": "x"})
    ]
    captured: dict = {}

    batch = await _engine(fake_db, CaptureStep(captured)).run(us_event)

    result = batch.results[0]
    assert result.status == "FAILED"
    assert result.error_type == "consistency_violation"
    assert [s["step_name"] for s in result.step_results] == ["resolve_config", "build_canonical"]
    assert captured == {}


async def test_lobs_without_config_are_skipped(fake_db, us_event, us_row):
    fake_db[Collection.ACTIVE_POLICY.value].rows = [us_row(policies=[{"kind": "WC", "policyId": "P-9"}])]

    batch = await _engine(fake_db).run(us_event)

    assert batch.status == "NOTHING_TO_GENERATE"
    assert batch.results == []


async def test_extract_errors_abort_the_request(fake_db, us_event, canada_row):
    with pytest.raises(PolicyNotFoundError):
        await _engine(fake_db).run(us_event)

    fake_db[Collection.ACTIVE_POLICY.value].rows = [canada_row(versions=(7, 6, 10))]
    with pytest.raises(SchemaDriftError):
        await _engine(fake_db).run(us_event)


async def test_run_steps_summary_describes_the_lob(fake_db, us_event, us_row):
    fake_db[Collection.ACTIVE_POLICY.value].rows = [us_row(policies=[{"kind": "GL", "policyId": "P-1"}])]
    raw = await extract(fake_db, us_event)
    ctx = LobContext(raw=raw, lob="GL", db=fake_db)
    engine = _engine(fake_db)

    result = await engine.run_steps(ctx, engine.flow_factory())

    summary = ctx.to_summary_dict()
    assert result.status == "COMPLETED"
    assert summary["carrier_partner"] == "StateNational"
    assert summary["template_type"] == "acord25"
    assert summary["certificate_number"] == 1
    assert summary["mapped_fields"] == len(ctx.mapped)
    assert summary["steps_completed"] == 3
    assert summary["errors"] == []


async def test_render_step_passes_carrier_signature(fake_db, us_event, us_row, monkeypatch):
    calls = []

    def fill(*args):
        calls.append(args)
        return b"%PDF-1.7"

    monkeypatch.setattr(render_document, "fill_acord25", fill)
    fake_db[Collection.ACTIVE_POLICY.value].rows = [us_row(policies=[{"kind": "GL", "policyId": "P-1"}])]

    batch = await _engine(fake_db, RenderDocumentStep()).run(us_event)

    assert batch.status == "COMPLETED"
    template_path, forms_config_path, mapped, signature_path = calls[0]
    assert forms_config_path.endswith("us_state_national.json")
    assert mapped["policyNumber"] == "P-1"
    assert signature_path.endswith("StateNationalPresidentSignature.png")


async def test_canada_html_flow_renders_and_emails(fake_db, ca_event, canada_row, monkeypatch):
    fake_db[Collection.ACTIVE_POLICY.value].rows = [canada_row()]
    monkeypatch.setattr(settings, "BROWSERLESS_API_TOKEN", "test-token")
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, content=b"%PDF-1.4 fake")

    sender = FakeSender()
    resolver = ConfigResolver()
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        engine = PipelineEngine(
            fake_db,
            resolver=resolver,
            flow_factory=lambda: coi_flow(resolver, http_client=client, sender=sender),
        )
        batch = await engine.run(ca_event)

    assert batch.status == "COMPLETED", batch.results[0].error
    assert requests[0].url.params["token"] == "test-token"
    html = requests[0].read().decode()
    assert "Maple Works Ltd" in html
    assert "Ontario" in html
    assert "$1,000,000" in html
    assert "2024/03/01" in html

    assert len(sender.sent) == 1
    assert sender.sent[0]["pdf_bytes"] == b"%PDF-1.4 fake"
    assert sender.sent[0]["recipient"] == "owner@example.com"
    assert sender.sent[0]["email_template_path"].endswith("email_body.html")


async def test_canada_html_flow_without_token_fails_lob(fake_db, ca_event, canada_row, monkeypatch):
    fake_db[Collection.ACTIVE_POLICY.value].rows = [canada_row()]
    monkeypatch.setattr(settings, "BROWSERLESS_API_TOKEN", "")
    sender = FakeSender()
    resolver = ConfigResolver()

    engine = PipelineEngine(
        fake_db,
        resolver=resolver,
        flow_factory=lambda: coi_flow(resolver, sender=sender),
    )
    batch = await engine.run(ca_event)

    assert batch.status == "FAILED"
    assert batch.results[0].error_type == "render_error"
    assert sender.sent == []

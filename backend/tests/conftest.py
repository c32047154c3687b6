"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import copy
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any

import pytest

from coi_service.schemas.common import COIRequested


# ═══════════════════════════════════════════════════════════
#  In-memory MongoDB fakes (async collection / cursor surface)
# ═══════════════════════════════════════════════════════════

class FakeCursor:
    def __init__(self, rows: list[dict[str, Any]]) -> None:
        self._rows = list(rows)
        self.closed = False

    def __aiter__(self):
        return self

    async def __anext__(self) -> dict[str, Any]:
        if not self._rows:
            raise StopAsyncIteration
        return self._rows.pop(0)

    async def close(self) -> None:
        self.closed = True


class FakeCollection:
    def __init__(self) -> None:
        self.rows: list[dict[str, Any]] = []
        self.count: int = 0
        self.count_error: Exception | None = None
        self.pipelines: list[list[dict[str, Any]]] = []
        self.count_filters: list[dict[str, Any]] = []
        self.cursors: list[FakeCursor] = []

    async def aggregate(self, pipeline: list[dict[str, Any]]) -> FakeCursor:
        self.pipelines.append(pipeline)
        rows = [_substitute_root_answers(pipeline, row) for row in copy.deepcopy(self.rows)]
        cursor = FakeCursor(rows)
        self.cursors.append(cursor)
        return cursor

    async def count_documents(self, filter: dict[str, Any]) -> int:
        self.count_filters.append(filter)
        if self.count_error is not None:
            raise self.count_error
        return self.count


def _substitute_root_answers(pipeline: list[dict[str, Any]], row: dict[str, Any]) -> dict[str, Any]:
    """Apply the $cond projection that swaps in a Root policy's answers snapshot."""
    for stage in pipeline:
        projected = stage.get("$project", {}).get("applicationAnswers")
        if not isinstance(projected, dict) or "$cond" not in projected:
            continue
        root_kind = projected["$cond"]["if"]["$ne"][1]
        policy_data = row.get("policy", {}).get("data", {})
        if policy_data.get("kind") == root_kind:
            row["applicationAnswers"] = policy_data.get("applicationAnswers")
    return row


class FakeDatabase:
    def __init__(self) -> None:
        self.collections: dict[str, FakeCollection] = defaultdict(FakeCollection)

    def __getitem__(self, name: str) -> FakeCollection:
        return self.collections[name]


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


# ═══════════════════════════════════════════════════════════
#  Sample documents
# ═══════════════════════════════════════════════════════════

ADDITIONAL_INSURED = {
    "name": "Holder Co",
    "address": {
        "street": "1 Main St",
        "city": "Toronto",
        "province": "ON",
        "postalCode": "M5V 1A1",
    },
}


def canada_gl_input(**overrides: Any) -> dict[str, Any]:
    gl = {
        "aggregateLimit": 2000000,
        "deductible": 1000,
        "occurrenceLimit": 1000000,
        "medicalPaymentsLimit": 2500,
        "tenantLegalLiabilityLimit": 500000,
        "limitedPollutionLiability": False,
        "limitedPollutionLiabilityOccurrenceLimit": 0,
        "limitedCoverageForUnmannedAircraft": False,
        "limitedCoverageForUnmannedAircraftLimit": 0,
        "miscellaneousEO": False,
        "miscellaneousEODeductible": 0,
        "miscellaneousEOOccurrenceLimit": 0,
        "miscellaneousEOAggregateLimit": 0,
    }
    gl.update(overrides)
    return gl


def us_gl_input(**overrides: Any) -> dict[str, Any]:
    gl = {
        "policyEffectiveDate": "2024-01-01T05:00:00Z",
        "policyExpirationDate": "2025-01-01T05:00:00Z",
        "occurrenceLimit": 1000000,
        "premisesRentedToYouLimit": 100000,
        "medicalPaymentsLimit": 5000,
        "aggregateLimit": 2000000,
    }
    gl.update(overrides)
    return gl


def _policy_head_row(
    *,
    policy_data: dict[str, Any],
    answers: dict[str, Any],
    quote_data: dict[str, Any],
    versions: tuple[int, int, int] = (7, 6, 9),
) -> dict[str, Any]:
    answers_version, policy_version, quote_version = versions
    return {
        "policy": {"_id": "policy-oid", "version": policy_version, "data": policy_data},
        "applicationAnswers": {
            "_id": "answers-oid",
            "version": answers_version,
            "data": {"applicationId": "app-1", "timeZone": "America/Toronto", "answers": answers},
        },
        "quote": {"_id": "quote-oid", "version": quote_version, "data": quote_data},
        "applicationOwner": {"_id": "owner-oid", "data": {"authenticatedEmail": "owner@example.com"}},
        "application": {"_id": "app-1"},
    }


@pytest.fixture
def canada_row():
    def build(gl: dict[str, Any] | None = None, versions=(7, 6, 9), **answer_overrides: Any) -> dict[str, Any]:
        answers = {
            "BusinessInformation_100_CompanyName_WORLD_EN": "Maple Works Ltd",
            "BusinessInformation_100_DBAName_WORLD_EN": "",
            "BusinessInformation_100_MailingAddress_WORLD_EN": {
                "street": "22 Bay St",
                "city": "Toronto",
                "province": "ON",
                "postalCode": "M5J 2N8",
            },
            "BusinessInformation_100_Profession_WORLD_EN": ["consultant"],
            "professionLabelList": ["Consultant", "Designer"],
        }
        answers.update(answer_overrides)
        return _policy_head_row(
            policy_data={
                "kind": "Endorsement",
                "policies": [],
                "coverage": {
                    "effectiveDate": datetime(2024, 3, 1, 5, tzinfo=timezone.utc),
                    "expiryDate": "2025-03-01T05:00:00Z",
                },
            },
            answers=answers,
            quote_data={
                "kind": "Original",
                "rating": {"kind": "Canada", "input": {"GL": gl or canada_gl_input()}},
            },
            versions=versions,
        )

    return build


@pytest.fixture
def us_row():
    def build(
        policies: list[dict[str, Any]] | None = None,
        carrier_partner: str = "StateNational",
        gl: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return _policy_head_row(
            policy_data={
                "kind": "Endorsement",
                "carrierPartner": carrier_partner,
                "policies": policies
                if policies is not None
                else [{"kind": "GL", "policyId": "P-1"}, {"kind": "EO", "policyId": "P-2"}],
            },
            answers={
                "BusinessInformation_100_CompanyName_WORLD_EN": "Lone Star LLC",
                "BusinessInformation_100_DBAName_WORLD_EN": "Star Cleaning",
                "BusinessInformation_100_BusinessAddress_WORLD_EN": {
                    "street": "500 Congress Ave",
                    "city": "Austin",
                    "province": "TX",
                    "postalCode": "78701",
                },
                "professionLabelList": ["Janitorial Services"],
            },
            quote_data={
                "kind": "Original",
                "rating": {"kind": "US", "input": {"GL": gl or us_gl_input()}},
            },
        )

    return build


@pytest.fixture
def ca_event() -> COIRequested:
    return COIRequested.model_validate(
        {"policyFoxdenId": "FOX-CA-1", "geography": "CA", "additionalInsured": ADDITIONAL_INSURED}
    )


@pytest.fixture
def us_event() -> COIRequested:
    return COIRequested.model_validate(
        {"policyIdentifier": "FOX-US-1", "geography": "US", "additionalInsured": ADDITIONAL_INSURED}
    )


@pytest.fixture
def canada_gl():
    return canada_gl_input


@pytest.fixture
def us_gl():
    return us_gl_input


@pytest.fixture
def additional_insured() -> dict[str, Any]:
    return copy.deepcopy(ADDITIONAL_INSURED)

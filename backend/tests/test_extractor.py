"""Extract phase: LOB discovery, defaults and geography variants."""

import copy
from datetime import datetime, timezone

import pytest

from coi_service.core.constants import Collection
from coi_service.pipeline.errors import ConsistencyViolationError, PolicyNotFoundError
from coi_service.pipeline.extract.extractor import extract
from coi_service.schemas.policy import CanadaPolicyData, USPolicyData


async def test_policy_not_found(fake_db, ca_event):
    with pytest.raises(PolicyNotFoundError) as excinfo:
        await extract(fake_db, ca_event)
    assert excinfo.value.policy_foxden_id == "FOX-CA-1"
    assert excinfo.value.error_type == "not_found"


async def test_canada_defaults(fake_db, ca_event, canada_row):
    fake_db[Collection.ACTIVE_POLICY.value].rows = [canada_row()]

    raw = await extract(fake_db, ca_event)

    assert isinstance(raw, CanadaPolicyData)
    assert raw.lobs == ("GL",)
    assert raw.carrier_partner == "Foxquilt"
    assert raw.time_zone == "America/Toronto"
    assert raw.recipient_email == "owner@example.com"
    assert raw.business_name == "Maple Works Ltd"
    assert raw.dba_name is None
    assert raw.profession == ["Consultant", "Designer"]
    assert raw.rating_input["GL"]["occurrenceLimit"] == 1000000


async def test_canada_dates_are_datetimes(fake_db, ca_event, canada_row):
    fake_db[Collection.ACTIVE_POLICY.value].rows = [canada_row()]

    raw = await extract(fake_db, ca_event)

    assert raw.effective_date == datetime(2024, 3, 1, 5, tzinfo=timezone.utc)
    assert raw.expiry_date == datetime(2025, 3, 1, 5, tzinfo=timezone.utc)


async def test_root_policy_reads_embedded_answers_snapshot(fake_db, ca_event, canada_row):
    row = canada_row()
    snapshot = copy.deepcopy(row["applicationAnswers"])
    snapshot["data"]["answers"]["BusinessInformation_100_CompanyName_WORLD_EN"] = "Maple Works Root Ltd"
    row["policy"]["data"]["kind"] = "Root"
    row["policy"]["data"]["applicationAnswers"] = snapshot
    fake_db[Collection.ACTIVE_POLICY.value].rows = [row]

    raw = await extract(fake_db, ca_event)

    assert raw.business_name == "Maple Works Root Ltd"


async def test_us_lobs_from_sub_policies(fake_db, us_event, us_row):
    fake_db[Collection.ACTIVE_POLICY.value].rows = [
        us_row(policies=[
            {"kind": "GL", "policyId": "P-1"},
            {"kind": "EO", "policyId": "P-2"},
            {"kind": "GL", "policyId": "P-3"},
        ])
    ]

    raw = await extract(fake_db, us_event)

    assert isinstance(raw, USPolicyData)
    assert raw.lobs == ("GL", "EO")
    assert raw.carrier_partner == "StateNational"
    assert raw.dba_name == "Star Cleaning"
    assert raw.profession_list == ("Janitorial Services",)
    assert raw.business_address["city"] == "Austin"


async def test_us_without_sub_policies_has_no_lobs(fake_db, us_event, us_row):
    fake_db[Collection.ACTIVE_POLICY.value].rows = [us_row(policies=[])]

    raw = await extract(fake_db, us_event)

    assert raw.lobs == ()


async def test_rating_input_only_for_original_quotes(fake_db, ca_event, canada_row):
    row = canada_row()
    row["quote"]["data"]["kind"] = "Renewal"
    fake_db[Collection.ACTIVE_POLICY.value].rows = [row]

    raw = await extract(fake_db, ca_event)

    assert raw.rating_input is None


async def test_missing_owner_is_consistency_violation(fake_db, ca_event, canada_row):
    row = canada_row()
    del row["applicationOwner"]
    fake_db[Collection.ACTIVE_POLICY.value].rows = [row]

    with pytest.raises(ConsistencyViolationError):
        await extract(fake_db, ca_event)


async def test_time_zone_from_answers(fake_db, ca_event, canada_row):
    row = canada_row()
    row["applicationAnswers"]["data"]["timeZone"] = "America/Vancouver"
    fake_db[Collection.ACTIVE_POLICY.value].rows = [row]

    raw = await extract(fake_db, ca_event)

    assert raw.time_zone == "America/Vancouver"


async def test_rating_kind_mismatch_still_extracts(fake_db, us_event, us_row):
    row = us_row()
    row["quote"]["data"]["rating"]["kind"] = "Canada"
    fake_db[Collection.ACTIVE_POLICY.value].rows = [row]

    raw = await extract(fake_db, us_event)

    assert isinstance(raw, USPolicyData)

"""US transform: sub-policy numbering, certificate count, GL block."""

from datetime import datetime, timezone

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from coi_service.core.constants import Collection
from coi_service.pipeline.errors import ConsistencyViolationError, SubPolicyNotFoundError
from coi_service.pipeline.transform.canonical import build_canonical
from coi_service.pipeline.transform.us import transform_us
from coi_service.schemas.policy import USPolicyData


@pytest.fixture
def us_raw(us_gl, additional_insured):
    def build(gl=None, **overrides):
        data = {
            "policyFoxdenId": "FOX-US-1",
            "additionalInsured": additional_insured,
            "lobs": ["GL", "EO"],
            "carrierPartner": "StateNational",
            "timeZone": "America/Chicago",
            "recipientEmail": "owner@example.com",
            "businessName": "Lone Star LLC",
            "subPolicies": [
                {"kind": "GL", "policyId": "P-1"},
                {"kind": "EO", "policyId": "P-2"},
            ],
            "businessAddress": {
                "street": "500 Congress Ave",
                "city": "Austin",
                "province": "TX",
                "postalCode": "78701",
            },
            "professionList": ["Janitorial Services", "Window Cleaning"],
            "ratingInput": {"GL": gl if gl is not None else us_gl()},
        }
        data.update(overrides)
        return USPolicyData.model_validate(data)

    return build


async def test_policy_number_from_sub_policy(fake_db, us_raw):
    gl = await transform_us(us_raw(), "GL", fake_db)
    eo = await transform_us(us_raw(), "EO", fake_db)

    assert gl.policy_number == "P-1"
    assert eo.policy_number == "P-2"
    assert gl.policy_foxden_id == "FOX-US-1"


async def test_missing_sub_policy(fake_db, us_raw):
    with pytest.raises(SubPolicyNotFoundError):
        await transform_us(us_raw(), "WC", fake_db)


async def test_certificate_number_counts_existing_records(fake_db, us_raw):
    fake_db[Collection.COI_RECORD.value].count = 4

    canonical = await transform_us(us_raw(), "GL", fake_db)

    assert canonical.certificate_number == 5
    assert fake_db[Collection.COI_RECORD.value].count_filters == [{"data.policyFoxdenId": "P-1"}]


async def test_certificate_number_defaults_to_one_on_db_error(fake_db, us_raw):
    fake_db[Collection.COI_RECORD.value].count_error = ServerSelectionTimeoutError("down")

    canonical = await transform_us(us_raw(), "GL", fake_db)

    assert canonical.certificate_number == 1


async def test_certificate_number_defaults_to_one_on_any_count_failure(fake_db, us_raw):
    fake_db[Collection.COI_RECORD.value].count_error = TimeoutError("count timed out")

    canonical = await transform_us(us_raw(), "GL", fake_db)

    assert canonical.certificate_number == 1


async def test_gl_block_from_headline_limits(fake_db, us_raw):
    gl = (await transform_us(us_raw(), "GL", fake_db)).coverages.gl

    assert gl.general_aggregate.amount == 2000000
    assert gl.product_and_completed_operations_aggregate.amount == 2000000
    assert gl.each_occurrence.amount == 1000000
    assert gl.personal_and_advertising_injury_liability.amount == 1000000
    assert gl.medical_payments.amount == 5000
    assert gl.tenant_legal_liability.amount == 100000
    assert gl.each_occurrence.deductible == 0


async def test_identity_fields(fake_db, us_raw):
    canonical = await transform_us(us_raw(dbaName="Star Cleaning"), "GL", fake_db)

    assert canonical.insurer.name == "State National Insurance Company"
    assert canonical.insured.block == (
        "Lone Star LLC DBA Star Cleaning\n500 Congress Ave\nAustin, TX, 78701"
    )
    assert canonical.description == "Janitorial Services, Window Cleaning"
    assert canonical.dates.effective_date == datetime(2024, 1, 1, 5, tzinfo=timezone.utc)
    assert canonical.limits.premises_rented_to_you_limit == 100000


async def test_missing_rating_input(fake_db, us_raw):
    with pytest.raises(ConsistencyViolationError):
        await transform_us(us_raw(ratingInput=None), "GL", fake_db)


async def test_malformed_rating_input(fake_db, us_raw, us_gl):
    with pytest.raises(ConsistencyViolationError):
        await transform_us(us_raw(gl=us_gl(occurrenceLimit="lots")), "GL", fake_db)


async def test_invalid_company_name(fake_db, us_raw):
    with pytest.raises(ConsistencyViolationError):
        await transform_us(us_raw(businessName=42), "GL", fake_db)


async def test_build_canonical_dispatches_on_geography(fake_db, us_raw):
    canonical = await build_canonical(us_raw(), "EO", fake_db)

    assert canonical.policy_number == "P-2"

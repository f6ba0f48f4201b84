from datetime import timedelta

import pytest

from backoffice.models.base import utcnow
from backoffice.services.deal_service import DealService
from backoffice.services.requirement_service import RequirementService


@pytest.fixture
def service(db, cache):
    return RequirementService(db, cache)


REQUIREMENT = {
    "demand": "Mr. Rao",
    "preferred_type": "Villa",
    "preferred_location": "Arabian Ranches",
    "budget": "900K - 1.2M",
}


def test_create_normalizes_budget_and_defaults_ranges(service, broker):
    result = service.create(REQUIREMENT, broker.user_id)

    assert result.success, result.errors
    record = result.record
    assert record["budget"] == "900000 - 1200000"
    assert record["preferred_square_footage"] == "0"
    assert record["preferred_roi"] == "0"
    assert record["status"] == "open"
    assert record["rtm_offplan"] == "NONE"
    assert record["user_id"] == broker.user_id


def test_create_requires_core_fields(service, broker):
    result = service.create({"demand": "Someone"}, broker.user_id)

    assert not result.success
    assert {m.split(":")[0] for m in result.errors} >= {"preferred_type", "preferred_location", "budget"}


def test_update_cannot_clear_a_required_field(service, broker):
    created = service.create(REQUIREMENT, broker.user_id).record

    result = service.update_fields(created["requirement_id"], {"demand": None})

    assert not result.success
    assert result.error == "ValidationError"
    assert service.get(created["requirement_id"])["demand"] == "Mr. Rao"


def test_status_transitions_are_unrestricted(service, broker):
    created = service.create(REQUIREMENT, broker.user_id).record

    for status in ("closed", "open", "negotiation", "rejected"):
        result = service.set_status(created["requirement_id"], status)
        assert result.success
        assert result.record["status"] == status


def test_flag_toggle(service, broker):
    created = service.create(REQUIREMENT, broker.user_id).record

    result = service.set_flag(created["requirement_id"], "viewing", True)

    assert result.success
    assert result.record["viewing"] is True


def test_only_known_flags_toggle(service, broker):
    created = service.create(REQUIREMENT, broker.user_id).record

    result = service.set_flag(created["requirement_id"], "demand", True)

    assert not result.success
    assert result.error == "ValidationError"


def test_list_marks_rows_with_a_deal(db, cache, service, add_requirement):
    with_deal = add_requirement(demand="Has deal")
    add_requirement(demand="No deal")
    DealService(db, cache).create(with_deal.requirement_id)

    flags = {row["demand"]: row["has_deal"] for row in service.list({}).rows}

    assert flags == {"Has deal": True, "No deal": False}


def test_has_deal_does_not_leak_into_the_cached_page(service, add_requirement):
    add_requirement()
    service.list({})

    cached = service.queries.list("requirement", {})

    assert "has_deal" not in cached.rows[0]


def test_stale_unassigned(db, cache, service, add_requirement):
    old = add_requirement(demand="Old", date_created=utcnow() - timedelta(days=10))
    older_with_deal = add_requirement(demand="Old with deal", date_created=utcnow() - timedelta(days=12))
    add_requirement(demand="Fresh")
    DealService(db, cache).create(older_with_deal.requirement_id)

    stale = service.stale_unassigned(days=7)

    assert [r["requirement_id"] for r in stale] == [old.requirement_id]


def test_update_cannot_clear_closed_set_fields(service, broker):
    created = service.create({**REQUIREMENT, "category": "NESTSEEKERS"}, broker.user_id).record

    result = service.update_fields(created["requirement_id"], {"status": None, "rtm_offplan": None, "category": None})

    assert not result.success
    assert {m.split(":")[0] for m in result.errors} == {"status", "rtm_offplan", "category"}
    stored = service.get(created["requirement_id"])
    assert stored["status"] == "open"
    assert stored["category"] == "NESTSEEKERS"


def test_roi_beyond_column_precision_is_a_field_error(service, broker):
    result = service.create({**REQUIREMENT, "preferred_roi": "1000"}, broker.user_id)

    assert not result.success
    assert any(message.startswith("preferred_roi") for message in result.errors)

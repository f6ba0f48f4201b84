import pytest

from backoffice.services.deal_service import DealService
from backoffice.services.inventory_service import InventoryService


@pytest.fixture
def service(db, cache):
    return DealService(db, cache)


@pytest.fixture
def deal(service, add_requirement):
    requirement = add_requirement(demand="Ms. Khan")
    result = service.create(requirement.requirement_id)
    assert result.success
    return result.record


def test_new_deal_starts_open(deal):
    assert deal["status"] == "open"
    assert deal["inventory_id"] is None


def test_deal_for_unknown_requirement(service):
    result = service.create("missing")

    assert not result.success
    assert result.error == "NotFound"


def test_shortlist_add_list_remove(service, deal, add_inventory):
    unit = add_inventory(project_name="Shortlisted")

    added = service.assign_potential_inventory(deal["deal_id"], {"inventory_id": unit.inventory_id, "remarks": "good fit"})
    assert added.success
    assert [u["project_name"] for u in service.list_assigned_inventory(deal["deal_id"])] == ["Shortlisted"]

    assert service.remove_potential_inventory(deal["deal_id"], unit.inventory_id).success
    assert service.list_assigned_inventory(deal["deal_id"]) == []
    assert service.remove_potential_inventory(deal["deal_id"], unit.inventory_id).error == "NotFound"


def test_final_inventory_reserves_the_unit(db, service, deal, add_inventory):
    unit = add_inventory()

    result = service.assign_final_inventory(deal["deal_id"], {"inventory_id": unit.inventory_id})

    assert result.success
    assert result.record["status"] == "negotiation"
    assert result.record["inventory_id"] == unit.inventory_id
    assert InventoryService(db).get(unit.inventory_id)["unit_status"] == "reserved"


def test_final_inventory_with_unknown_unit_changes_nothing(service, deal):
    result = service.assign_final_inventory(deal["deal_id"], {"inventory_id": "missing"})

    assert result.error == "NotFound"
    assert service.get(deal["deal_id"])["status"] == "open"


def test_closing_with_a_unit_marks_it_sold(db, service, deal, add_inventory):
    unit = add_inventory()

    result = service.update(deal["deal_id"], {
        "status": "closed",
        "inventory_id": unit.inventory_id,
        "outstanding_amount": "250K",
        "payment_plan": "60/40",
    })

    assert result.success
    assert result.record["outstanding_amount"] == "250000"
    assert InventoryService(db).get(unit.inventory_id)["unit_status"] == "sold"


def test_stage_changes_are_unrestricted(service, deal):
    for status in ("closed", "open", "rejected", "assigned"):
        assert service.update(deal["deal_id"], {"status": status}).record["status"] == status


def test_update_requires_a_valid_stage(service, deal):
    assert service.update(deal["deal_id"], {"status": "won"}).error == "ValidationError"
    assert service.update("missing", {"status": "open"}).error == "NotFound"


def test_open_and_closed_lists(service, add_requirement):
    first = service.create(add_requirement(demand="Open buyer").requirement_id).record
    second = service.create(add_requirement(demand="Closed buyer").requirement_id).record
    service.update(second["deal_id"], {"status": "closed"})

    open_deals = service.list_open()
    closed_deals = service.list_closed()

    assert [d["deal"]["deal_id"] for d in open_deals] == [first["deal_id"]]
    assert [d["requirement"]["demand"] for d in closed_deals] == ["Closed buyer"]
    assert service.list_open(search="closed buyer") == []
    assert len(service.list_closed(search="closed buyer")) == 1


def test_deal_with_requirement(service, deal):
    found = service.get_with_requirement(deal["deal_id"])

    assert found["deal"]["deal_id"] == deal["deal_id"]
    assert found["requirement"]["demand"] == "Ms. Khan"
    assert service.get_with_requirement("missing") is None


def test_deals_for_requirement(service, deal):
    assert [d["deal_id"] for d in service.list_for_requirement(deal["requirement_id"])] == [deal["deal_id"]]


def test_deal_changes_invalidate_inventory_lists(db, cache, service, deal, add_inventory):
    inventory = InventoryService(db, cache)
    unit = add_inventory()
    available = {"filterColumn": "Status", "filterValue": "available"}
    assert inventory.list(available).total == 1

    service.assign_final_inventory(deal["deal_id"], {"inventory_id": unit.inventory_id})

    assert inventory.list(available).total == 0


def test_update_with_unknown_unit_reports_not_found(service, deal):
    result = service.update(deal["deal_id"], {"status": "negotiation", "inventory_id": "does-not-exist"})

    assert result.error == "NotFound"
    stored = service.get(deal["deal_id"])
    assert stored["inventory_id"] is None
    assert stored["status"] == "open"


def test_update_links_an_existing_unit_without_selling_it(db, service, deal, add_inventory):
    unit = add_inventory()

    result = service.update(deal["deal_id"], {"status": "negotiation", "inventory_id": unit.inventory_id})

    assert result.record["inventory_id"] == unit.inventory_id
    assert InventoryService(db).get(unit.inventory_id)["unit_status"] == "available"


def test_outstanding_amount_must_fit_its_column(service, deal):
    result = service.update(deal["deal_id"], {"status": "closed", "outstanding_amount": "1000000000000"})

    assert result.error == "ValidationError"
    assert result.errors[0].startswith("outstanding_amount")

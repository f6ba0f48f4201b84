from datetime import datetime

import pytest

from backoffice.services.user_service import UserService


@pytest.fixture
def service(db, cache):
    return UserService(db, cache)


def test_create_and_duplicate_email(service):
    first = service.create({"user_id": "u-1", "email": "sam@example.com", "name": "Sam", "role": "broker"})
    again = service.create({"user_id": "u-2", "email": "sam@example.com", "name": "Sam Two"})

    assert first.success
    assert first.record["role"] == "broker"
    assert not again.success
    assert again.error == "ValidationError"
    assert again.errors == ["email: Email already registered"]


def test_create_rejects_bad_email(service):
    result = service.create({"user_id": "u-1", "email": "not-an-email"})

    assert not result.success
    assert any(message.startswith("email") for message in result.errors)


def test_new_users_default_to_guest(service):
    record = service.create({"user_id": "u-1", "email": "new@example.com"}).record

    assert record["role"] == "guest"
    assert service.get_role("u-1") == "guest"


def test_update_role(service, broker):
    result = service.update_role(broker.user_id, "admin")

    assert result.success
    assert service.get_role(broker.user_id) == "admin"
    assert service.update_role(broker.user_id, "overlord").error == "ValidationError"
    assert service.update_role("ghost", "admin").error == "NotFound"


def test_update_profile_keeps_emails_unique(service, broker, admin):
    taken = service.update_profile(broker.user_id, {"name": "Bea B", "email": admin.email})
    ok = service.update_profile(broker.user_id, {"name": "Bea B", "email": "bea@example.com"})

    assert not taken.success
    assert ok.success
    assert ok.record["email"] == "bea@example.com"


def test_disable_and_enable(service, broker):
    assert service.set_disabled(broker.user_id, True).record["is_disabled"] is True
    assert service.set_disabled(broker.user_id, False).record["is_disabled"] is False


def test_record_login(service, broker):
    assert service.record_login(broker.user_id).success
    assert service.get(broker.user_id)["last_login"] is not None


def test_list_honours_legacy_role_parameter(service, make_user):
    make_user("a", role="admin")
    make_user("b", role="customer")
    make_user("c", role="staff")

    assert {r["user_id"] for r in service.list({"role": "user"}).rows} == {"b"}
    assert {r["user_id"] for r in service.list({"role": "manager"}).rows} == {"c"}
    assert service.list({"role": "all"}).total == 3
    assert service.list({"role": "nonsense"}).total == 3


def test_list_defaults_to_newest_first(service, make_user):
    make_user("old", created_at=datetime(2023, 1, 1))
    make_user("new", created_at=datetime(2024, 1, 1))

    assert [r["user_id"] for r in service.list({}).rows] == ["new", "old"]


def test_list_brokers(service, make_user):
    make_user("z", role="broker", name="Zed")
    make_user("a", role="broker", name="Amy")
    make_user("x", role="admin", name="Xena")

    assert [b["name"] for b in service.list_brokers()] == ["Amy", "Zed"]


def test_notification_preferences_upsert(service, broker):
    assert service.get_notification_preferences(broker.user_id) == {
        "new_inventory_notif": False,
        "new_requirement_notif": False,
        "pending_requirement_notif": False,
    }

    service.update_notification_preferences(broker.user_id, {"new_inventory_notif": True})
    service.update_notification_preferences(broker.user_id, {"new_inventory_notif": True, "new_requirement_notif": True})

    prefs = service.get_notification_preferences(broker.user_id)
    assert prefs["new_inventory_notif"] is True
    assert prefs["new_requirement_notif"] is True
    assert prefs["pending_requirement_notif"] is False


def test_duplicate_user_id_is_reported_on_user_id(service, broker):
    result = service.create({"user_id": broker.user_id, "email": "someone.else@example.com", "name": "Other"})

    assert not result.success
    assert result.errors == ["user_id: User already registered"]

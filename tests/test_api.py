import pytest


@pytest.fixture
def as_broker(broker, auth_headers):
    return auth_headers(broker.user_id)


@pytest.fixture
def as_admin(admin, auth_headers):
    return auth_headers(admin.user_id)


def create_unit(client, headers, **fields):
    payload = {"project_name": "Sobha Hartland", "property_type": "Apartment", "location": "MBR City", **fields}
    response = client.post("/api/inventory", json=payload, headers=headers)
    assert response.status_code == 201, response.json()
    return response.json()["record"]


# --- Identity ---

def test_me_returns_the_token_owner(client, as_broker, broker):
    response = client.get("/auth/me", headers=as_broker)

    assert response.status_code == 200
    assert response.json()["user_id"] == broker.user_id
    assert response.json()["role"] == "broker"


def test_missing_token_is_rejected(client):
    assert client.get("/api/inventory").status_code in (401, 403)


def test_bad_token_is_rejected(client):
    response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


def test_unknown_user_is_rejected(client, auth_headers):
    assert client.get("/auth/me", headers=auth_headers("nobody")).status_code == 401


def test_disabled_user_is_forbidden(client, make_user, auth_headers):
    make_user("off", is_disabled=True)

    assert client.get("/auth/me", headers=auth_headers("off")).status_code == 403


def test_record_login(client, as_broker):
    response = client.post("/auth/me/login", headers=as_broker)

    assert response.status_code == 200
    assert client.get("/auth/me", headers=as_broker).json()["last_login"] is not None


# --- Inventory ---

def test_inventory_list_shape_and_filters(client, as_broker):
    for price in ("100", "109", "111", "200"):
        create_unit(client, as_broker, price_aed=price)

    response = client.get(
        "/api/inventory",
        params={"filterColumn": "Price (AED)", "filterValue": "100", "pageSize": "1"},
        headers=as_broker,
    )

    body = response.json()
    assert response.status_code == 200
    assert set(body) == {"rows", "total", "page", "pageSize"}
    assert body["total"] == 2
    assert body["pageSize"] == 1
    assert len(body["rows"]) == 1


def test_guest_cannot_create_inventory(client, guest, auth_headers):
    response = client.post(
        "/api/inventory",
        json={"project_name": "X", "property_type": "Y", "location": "Z"},
        headers=auth_headers(guest.user_id),
    )

    assert response.status_code == 403


def test_invalid_create_returns_field_errors(client, as_broker):
    response = client.post("/api/inventory", json={"project_name": "Only a name"}, headers=as_broker)

    body = response.json()
    assert response.status_code == 422
    assert body["success"] is False
    assert body["error"] == "ValidationError"
    assert any(e.startswith("location") for e in body["errors"])


def test_status_change_and_lookup(client, as_broker):
    unit = create_unit(client, as_broker, unit_status="sold")

    response = client.patch(f"/api/inventory/{unit['inventory_id']}/status", json={"status": "available"}, headers=as_broker)

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert client.get(f"/api/inventory/{unit['inventory_id']}", headers=as_broker).json()["unit_status"] == "available"


def test_missing_inventory(client, as_broker):
    assert client.get("/api/inventory/nope", headers=as_broker).status_code == 404

    response = client.patch("/api/inventory/nope", json={"remarks": "x"}, headers=as_broker)
    assert response.status_code == 404
    assert response.json()["error"] == "NotFound"


def test_delete_inventory(client, as_broker):
    unit = create_unit(client, as_broker)

    assert client.delete(f"/api/inventory/{unit['inventory_id']}", headers=as_broker).status_code == 200
    assert client.get("/api/inventory", headers=as_broker).json()["total"] == 0


# --- Requirements and deals ---

def test_requirement_flow_with_deal(client, as_broker):
    created = client.post("/api/requirements", json={
        "demand": "Walk-in",
        "preferred_type": "Villa",
        "preferred_location": "Dubai Hills",
        "budget": "2M - 3M",
    }, headers=as_broker)
    assert created.status_code == 201
    requirement = created.json()["record"]
    assert requirement["budget"] == "2000000 - 3000000"

    unit = create_unit(client, as_broker)
    recommended = client.get(f"/api/requirements/{requirement['requirement_id']}/recommended", headers=as_broker)
    assert recommended.json()["total"] == 1

    deal = client.post("/api/deals", json={"requirement_id": requirement["requirement_id"]}, headers=as_broker)
    assert deal.status_code == 201
    deal_id = deal.json()["record"]["deal_id"]

    final = client.post(f"/api/deals/{deal_id}/final-inventory", json={"inventory_id": unit["inventory_id"]}, headers=as_broker)
    assert final.json()["record"]["status"] == "negotiation"

    listing = client.get("/api/requirements", headers=as_broker).json()
    assert listing["rows"][0]["has_deal"] is True
    assert client.get(f"/api/requirements/{requirement['requirement_id']}/recommended", headers=as_broker).json()["total"] == 0

    detail = client.get(f"/api/deals/{deal_id}", headers=as_broker).json()
    assert detail["requirement"]["demand"] == "Walk-in"
    assert [d["deal"]["deal_id"] for d in client.get("/api/deals", headers=as_broker).json()] == [deal_id]


def test_recommended_for_missing_requirement(client, as_broker):
    response = client.get("/api/requirements/missing/recommended", headers=as_broker)

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Requirement missing not found", "error": "NotFound"}


def test_bad_request_body_uses_the_same_error_shape(client, as_broker, add_requirement):
    requirement = add_requirement()

    response = client.patch(
        f"/api/requirements/{requirement.requirement_id}/flags/call",
        json={"value": "sometimes"},
        headers=as_broker,
    )

    body = response.json()
    assert response.status_code == 422
    assert body["success"] is False
    assert body["errors"][0].startswith("value")


# --- Users ---

def test_user_admin_routes_need_admin(client, as_broker, as_admin):
    assert client.get("/api/users", headers=as_broker).status_code == 403

    response = client.get("/api/users", params={"role": "broker"}, headers=as_admin)
    assert response.status_code == 200
    assert [row["user_id"] for row in response.json()["rows"]] == ["broker-1"]


def test_admin_changes_a_role(client, as_admin, broker):
    response = client.patch(f"/api/users/{broker.user_id}/role", json={"role": "staff"}, headers=as_admin)

    assert response.status_code == 200
    assert response.json()["record"]["role"] == "staff"


def test_own_notification_preferences(client, as_broker):
    client.put("/api/users/me/notifications", json={"pending_requirement_notif": True}, headers=as_broker)

    prefs = client.get("/api/users/me/notifications", headers=as_broker).json()

    assert prefs["pending_requirement_notif"] is True
    assert prefs["new_inventory_notif"] is False


# --- Dashboard and import ---

def test_dashboard(client, as_broker):
    create_unit(client, as_broker)

    assert client.get("/api/dashboard/summary", headers=as_broker).json()["inventoryChanges"] == 1
    assert len(client.get("/api/dashboard/monthly", params={"months": 4}, headers=as_broker).json()["months"]) == 4


def test_csv_upload(client, as_broker):
    csv_text = "inventory_id,project_name,property_type,location\n,Uploaded,Villa,Jumeirah\nabc,Skipped,Villa,Jumeirah\n"

    response = client.post(
        "/api/import/inventory",
        files={"file": ("inventory.csv", csv_text.encode("utf-8"), "text/csv")},
        headers=as_broker,
    )

    assert response.status_code == 200
    assert response.json() == {"created": 1, "skipped": 1, "failed": []}


def test_csv_upload_of_unknown_kind(client, as_broker):
    response = client.post(
        "/api/import/users",
        files={"file": ("users.csv", b"user_id\nx\n", "text/csv")},
        headers=as_broker,
    )

    assert response.status_code == 422
    assert response.json()["error"] == "ValidationError"

"""
Store management tests.
"""


def test_superadmin_creates_store(client, superadmin_headers):
    resp = client.post("/api/stores", headers=superadmin_headers,
                       json={"account_code": "STORE7", "store_name": "Airport Kiosk"})
    assert resp.status_code == 201
    assert resp.json["data"]["status"] == "active"


def test_duplicate_account_code(client, superadmin_headers, store):
    resp = client.post("/api/stores", headers=superadmin_headers,
                       json={"account_code": "STORE1", "store_name": "Again"})
    assert resp.status_code == 400
    assert "already exists" in resp.json["message"]


def test_missing_fields(client, superadmin_headers):
    resp = client.post("/api/stores", headers=superadmin_headers, json={"account_code": "S1"})
    assert resp.status_code == 400


def test_toggle_and_filter(client, superadmin_headers, admin_headers, store, second_store):
    resp = client.patch("/api/stores/STORE2/toggle-status", headers=superadmin_headers)
    assert resp.json["data"]["status"] == "inactive"

    everything = client.get("/api/stores", headers=admin_headers).json["data"]
    assert [s["account_code"] for s in everything] == ["STORE1", "STORE2"]

    active = client.get("/api/stores?include_inactive=false", headers=admin_headers).json["data"]
    assert [s["account_code"] for s in active] == ["STORE1"]


def test_toggle_unknown_store(client, superadmin_headers):
    assert client.patch("/api/stores/NOPE/toggle-status", headers=superadmin_headers).status_code == 404

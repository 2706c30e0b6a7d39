"""
Order claim and assignment tests.

Verifies:
- Vendors claim only unclaimed lines
- Admin assign overwrites, unassign clears
- Bulk operations are best-effort with per-id results
- Bulk assign followed by bulk unassign restores every line
"""

from clamio.models import Order
from conftest import PASSWORD, make_order


def _order(db_session, unique_id):
    db_session.expire_all()
    return db_session.get(Order, unique_id)


class TestVendorClaim:

    def test_claim_unclaimed(self, client, vendor, vendor_headers, db_session):
        make_order("1001_1")
        resp = client.post("/api/orders/claim", headers=vendor_headers, json={"unique_id": "1001_1"})
        assert resp.status_code == 200

        order = _order(db_session, "1001_1")
        assert order.status == "claimed"
        assert order.vendor_name == vendor.warehouse_id
        assert order.vendor_id == vendor.id
        assert order.claimed_at is not None
        assert order.last_claimed_by == vendor.warehouse_id

    def test_claim_already_claimed(self, client, vendor_headers, other_vendor):
        make_order("1002_1", status="claimed", vendor_name=other_vendor.warehouse_id)
        resp = client.post("/api/orders/claim", headers=vendor_headers, json={"unique_id": "1002_1"})
        assert resp.status_code == 400
        assert resp.json["message"] == "Order row is not unclaimed"

    def test_claim_missing(self, client, vendor_headers):
        resp = client.post("/api/orders/claim", headers=vendor_headers, json={"unique_id": "nope"})
        assert resp.status_code == 404
        assert resp.json["message"] == "Order row not found"

    def test_bulk_claim_reports_failures(self, client, vendor_headers, other_vendor):
        make_order("2001_1")
        make_order("2001_2")
        make_order("2002_1", status="claimed", vendor_name=other_vendor.warehouse_id)

        resp = client.post("/api/orders/bulk-claim", headers=vendor_headers,
                           json={"unique_ids": ["2001_1", "2001_2", "2002_1", "missing"]})
        assert resp.status_code == 200
        data = resp.json["data"]
        assert data["total_requested"] == 4
        assert data["total_successful"] == 2
        assert data["total_failed"] == 2
        reasons = {f["unique_id"]: f["reason"] for f in data["failed"]}
        assert reasons == {"2002_1": "Order row is not unclaimed", "missing": "Order row not found"}

    def test_vendor_sees_own_orders(self, client, vendor, vendor_headers, other_vendor):
        make_order("3001_1", status="claimed", vendor_name=vendor.warehouse_id)
        make_order("3002_1", status="claimed", vendor_name=other_vendor.warehouse_id)
        resp = client.get("/api/orders/vendor", headers=vendor_headers)
        assert [o["unique_id"] for o in resp.json["data"]["orders"]] == ["3001_1"]


class TestAdminAssignment:

    def test_assign_then_reassign(self, client, admin_headers, vendor, other_vendor, db_session):
        make_order("4001_1")
        resp = client.post("/api/orders/assign", headers=admin_headers,
                           json={"unique_id": "4001_1", "warehouse_id": vendor.warehouse_id})
        assert resp.status_code == 200
        assert _order(db_session, "4001_1").vendor_name == vendor.warehouse_id

        resp = client.post("/api/orders/assign", headers=admin_headers,
                           json={"unique_id": "4001_1", "warehouse_id": other_vendor.warehouse_id})
        assert resp.status_code == 200
        order = _order(db_session, "4001_1")
        assert order.vendor_name == other_vendor.warehouse_id
        assert order.status == "claimed"

    def test_assign_unknown_vendor(self, client, admin_headers):
        make_order("4002_1")
        resp = client.post("/api/orders/assign", headers=admin_headers,
                           json={"unique_id": "4002_1", "warehouse_id": "99999"})
        assert resp.status_code == 400

    def test_unassign(self, client, admin_headers, vendor, db_session):
        make_order("4003_1", status="claimed", vendor_name=vendor.warehouse_id, vendor_id=vendor.id)
        resp = client.post("/api/orders/unassign", headers=admin_headers, json={"unique_id": "4003_1"})
        assert resp.status_code == 200
        order = _order(db_session, "4003_1")
        assert order.vendor_name is None
        assert order.vendor_id is None
        assert order.status == "unclaimed"

    def test_bulk_assign_then_unassign_restores(self, client, superadmin_headers, vendor, db_session):
        ids = ["5001_1", "5001_2", "5002_1"]
        for uid in ids:
            make_order(uid)

        resp = client.post("/api/orders/bulk-assign", headers=superadmin_headers,
                           json={"unique_ids": ids, "warehouse_id": vendor.warehouse_id})
        assert resp.json["data"]["total_successful"] == 3
        db_session.expire_all()
        assert {o.vendor_name for o in db_session.query(Order).all()} == {vendor.warehouse_id}

        resp = client.post("/api/orders/bulk-unassign", headers=superadmin_headers, json={"unique_ids": ids})
        assert resp.json["data"]["total_successful"] == 3
        db_session.expire_all()
        for order in db_session.query(Order).all():
            assert order.vendor_name is None
            assert order.status == "unclaimed"

    def test_bulk_requires_ids(self, client, admin_headers):
        resp = client.post("/api/orders/bulk-unassign", headers=admin_headers, json={"unique_ids": []})
        assert resp.status_code == 400

    def test_status_update(self, client, admin_headers, vendor, db_session):
        make_order("6001_1", status="claimed", vendor_name=vendor.warehouse_id)
        resp = client.patch("/api/orders/6001_1/status", headers=admin_headers, json={"status": "handover"})
        assert resp.status_code == 200
        assert _order(db_session, "6001_1").status == "handover"

    def test_list_filters(self, client, admin_headers, vendor):
        make_order("7001_1")
        make_order("7002_1", status="claimed", vendor_name=vendor.warehouse_id)
        resp = client.get("/api/orders?status=unclaimed", headers=admin_headers)
        assert [o["unique_id"] for o in resp.json["data"]["orders"]] == ["7001_1"]
        resp = client.get(f"/api/orders?vendor={vendor.warehouse_id}", headers=admin_headers)
        assert [o["unique_id"] for o in resp.json["data"]["orders"]] == ["7002_1"]

    def test_admin_paths_take_vendor_warehouse_id(self, client, admin_headers, vendor, db_session):
        make_order("8001_1")
        make_order("8001_2")
        make_order("8002_1")

        resp = client.post("/api/orders/admin/assign", headers=admin_headers,
                           json={"unique_id": "8001_1", "vendor_warehouse_id": vendor.warehouse_id})
        assert resp.status_code == 200
        assert _order(db_session, "8001_1").vendor_name == vendor.warehouse_id

        resp = client.post("/api/orders/admin/bulk-assign", headers=admin_headers,
                           json={"unique_ids": ["8001_2", "8002_1"], "vendor_warehouse_id": vendor.warehouse_id})
        assert resp.json["data"]["total_successful"] == 2

        listed = client.get(f"/api/orders/admin/all?vendor={vendor.warehouse_id}", headers=admin_headers)
        assert sorted(o["unique_id"] for o in listed.json["data"]["orders"]) == ["8001_1", "8001_2", "8002_1"]

        resp = client.post("/api/orders/admin/unassign", headers=admin_headers, json={"unique_id": "8001_1"})
        assert resp.status_code == 200
        assert _order(db_session, "8001_1").status == "unclaimed"

        resp = client.post("/api/orders/admin/bulk-unassign", headers=admin_headers,
                           json={"unique_ids": ["8001_2", "8002_1"]})
        assert resp.json["data"]["total_successful"] == 2
        assert _order(db_session, "8002_1").vendor_name is None

    def test_assign_requires_warehouse(self, client, admin_headers):
        make_order("8003_1")
        resp = client.post("/api/orders/admin/assign", headers=admin_headers, json={"unique_id": "8003_1"})
        assert resp.status_code == 400
        assert resp.json["message"] == "unique_id and vendor_warehouse_id are required"


class TestVendorSessionToken:

    def test_claim_with_login_token(self, client, vendor, db_session):
        login = client.post("/api/auth/login", json={"email": vendor.email, "password": PASSWORD})
        token = login.json["data"]["vendorToken"]
        make_order("9001_1")

        resp = client.post("/api/orders/claim", headers={"Authorization": token}, json={"unique_id": "9001_1"})
        assert resp.status_code == 200
        assert _order(db_session, "9001_1").vendor_name == vendor.warehouse_id

    def test_unknown_token(self, client, vendor):
        make_order("9002_1")
        resp = client.post("/api/orders/claim", headers={"Authorization": "not-a-session"},
                           json={"unique_id": "9002_1"})
        assert resp.status_code == 401
        assert resp.json["message"] == "Invalid or expired vendor session"

    def test_token_stops_working_after_logout(self, client, vendor, vendor_headers):
        token = client.post("/api/auth/login", json={"email": vendor.email, "password": PASSWORD}).json["data"]["vendorToken"]
        client.post("/api/auth/logout", headers=vendor_headers)
        make_order("9003_1")

        resp = client.post("/api/orders/bulk-claim", headers={"Authorization": token}, json={"unique_ids": ["9003_1"]})
        assert resp.status_code == 401

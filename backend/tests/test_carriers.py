"""
Carrier priority ledger tests.

Verifies:
- move up then move down restores the ordering
- moves at the list boundary are no-ops
- CSV import rules: known stores, positive unique priorities per store,
  complete coverage of existing carriers, no duplicate ids per store
"""

import io

import pytest

from clamio.models import Carrier
from clamio.services import carrier_service
from clamio.services.carrier_service import CarrierValidationError
from conftest import make_carrier


def _order_of(db_session, account_code="STORE1"):
    db_session.expire_all()
    return [
        c.carrier_id for c in db_session.query(Carrier)
        .filter(Carrier.account_code == account_code)
        .order_by(Carrier.priority)
    ]


@pytest.fixture
def three_carriers(store):
    make_carrier("DLV", 1)
    make_carrier("BLU", 2)
    make_carrier("XPB", 3)


class TestMove:

    def test_up_then_down_is_identity(self, client, admin_headers, three_carriers, db_session):
        before = _order_of(db_session)

        resp = client.post("/api/carriers/BLU/move", headers=admin_headers,
                           json={"direction": "up", "account_code": "STORE1"})
        assert resp.json["data"]["moved"] is True
        assert _order_of(db_session) == ["BLU", "DLV", "XPB"]

        client.post("/api/carriers/BLU/move", headers=admin_headers,
                    json={"direction": "down", "account_code": "STORE1"})
        assert _order_of(db_session) == before

    def test_boundaries_are_noops(self, client, admin_headers, three_carriers, db_session):
        resp = client.post("/api/carriers/DLV/move", headers=admin_headers,
                           json={"direction": "up", "account_code": "STORE1"})
        assert resp.status_code == 200
        assert resp.json["data"]["moved"] is False

        resp = client.post("/api/carriers/XPB/move", headers=admin_headers,
                           json={"direction": "down", "account_code": "STORE1"})
        assert resp.json["data"]["moved"] is False
        assert _order_of(db_session) == ["DLV", "BLU", "XPB"]

    def test_move_stays_within_store(self, client, admin_headers, three_carriers, second_store, db_session):
        make_carrier("BLU", 1, account_code="STORE2")
        make_carrier("DLV", 2, account_code="STORE2")

        client.post("/api/carriers/DLV/move", headers=admin_headers,
                    json={"direction": "up", "account_code": "STORE2"})
        assert _order_of(db_session, "STORE2") == ["DLV", "BLU"]
        assert _order_of(db_session, "STORE1") == ["DLV", "BLU", "XPB"]

    def test_ambiguous_carrier_needs_store(self, client, admin_headers, three_carriers, second_store):
        make_carrier("BLU", 1, account_code="STORE2")
        resp = client.post("/api/carriers/BLU/move", headers=admin_headers, json={"direction": "up"})
        assert resp.status_code == 400

    def test_unknown_carrier(self, client, admin_headers, three_carriers):
        resp = client.post("/api/carriers/NOPE/move", headers=admin_headers,
                           json={"direction": "up", "account_code": "STORE1"})
        assert resp.status_code == 404

    def test_bad_direction(self, client, admin_headers, three_carriers):
        resp = client.post("/api/carriers/BLU/move", headers=admin_headers,
                           json={"direction": "sideways", "account_code": "STORE1"})
        assert resp.status_code == 400


HEADER = "carrier_id,carrier_name,status,priority,weight_in_kg,account_code\n"


def _upload(client, headers, body: str, filename="carriers.csv"):
    return client.post(
        "/api/carriers/upload",
        headers=headers,
        data={"file": (io.BytesIO(body.encode("utf-8")), filename)},
        content_type="multipart/form-data",
    )


class TestCsvImport:

    def test_reorders_and_inserts(self, client, admin_headers, three_carriers, db_session):
        body = HEADER + (
            "XPB,Xpressbees,active,1,1,STORE1\n"
            "DLV,Delhivery,active,2,0.5,STORE1\n"
            "BLU,Bluedart,inactive,3,,STORE1\n"
            "SHD,Shadowfax,pending,4,2,STORE1\n"
        )
        resp = _upload(client, admin_headers, body)
        assert resp.status_code == 200, resp.json
        data = resp.json["data"]
        assert data["updatedCount"] == 3
        assert data["insertedCount"] == 1
        assert data["totalCarriers"] == 4
        assert _order_of(db_session) == ["XPB", "DLV", "BLU", "SHD"]

        blu = db_session.query(Carrier).filter_by(carrier_id="BLU").one()
        assert blu.status == "inactive"
        assert blu.weight_in_kg is None

    def test_missing_existing_carrier(self, client, admin_headers, three_carriers, db_session):
        body = HEADER + "DLV,Delhivery,active,1,0.5,STORE1\nBLU,Bluedart,active,2,0.5,STORE1\n"
        resp = _upload(client, admin_headers, body)
        assert resp.status_code == 400
        assert any("missing the following carrier IDs" in e and "XPB" in e for e in resp.json["errors"])
        assert _order_of(db_session) == ["DLV", "BLU", "XPB"]

    def test_duplicate_priority(self, client, admin_headers, three_carriers):
        body = HEADER + (
            "DLV,Delhivery,active,1,0.5,STORE1\n"
            "BLU,Bluedart,active,1,0.5,STORE1\n"
            "XPB,Xpressbees,active,2,0.5,STORE1\n"
        )
        resp = _upload(client, admin_headers, body)
        assert resp.status_code == 400
        assert any(e.startswith("Priority values must be unique") for e in resp.json["errors"])

    @pytest.mark.parametrize("priority", ["0", "-1", "abc", "1.5", ""])
    def test_priority_must_be_positive_integer(self, client, admin_headers, store, priority):
        resp = _upload(client, admin_headers, HEADER + f"DLV,Delhivery,active,{priority},0.5,STORE1\n")
        assert resp.status_code == 400
        assert "positive integer" in resp.json["errors"][0]

    def test_unknown_store(self, client, admin_headers, store):
        resp = _upload(client, admin_headers, HEADER + "DLV,Delhivery,active,1,0.5,NOSTORE\n")
        assert resp.status_code == 400
        assert "unknown account_code" in resp.json["errors"][0]

    def test_duplicate_carrier_in_store(self, client, admin_headers, store):
        body = HEADER + "DLV,Delhivery,active,1,0.5,STORE1\nDLV,Delhivery,active,2,0.5,STORE1\n"
        resp = _upload(client, admin_headers, body)
        assert resp.status_code == 400
        assert "duplicate carrier_id" in resp.json["errors"][0]

    def test_same_id_across_stores(self, client, admin_headers, store, second_store):
        body = HEADER + "DLV,Delhivery,active,1,0.5,STORE1\nDLV,Delhivery,active,1,0.5,STORE2\n"
        resp = _upload(client, admin_headers, body)
        assert resp.status_code == 200
        assert resp.json["data"]["stores"] == ["STORE1", "STORE2"]

    def test_missing_columns(self, client, admin_headers, store):
        resp = _upload(client, admin_headers, "carrier_id,priority\nDLV,1\n")
        assert resp.status_code == 400
        assert resp.json["message"].startswith("Missing required columns")

    def test_no_file(self, client, admin_headers):
        resp = client.post("/api/carriers/upload", headers=admin_headers, data={},
                           content_type="multipart/form-data")
        assert resp.status_code == 400
        assert resp.json["message"] == "No file uploaded"

    def test_unsupported_extension(self, client, admin_headers, store):
        resp = _upload(client, admin_headers, HEADER, filename="carriers.txt")
        assert resp.status_code == 400

    def test_untouched_store_is_left_alone(self, store, second_store, db_session):
        make_carrier("DLV", 1)
        make_carrier("XPB", 1, account_code="STORE2")
        carrier_service.import_carriers([
            {"carrier_id": "DLV", "carrier_name": "Delhivery", "status": "active",
             "priority": "1", "weight_in_kg": "", "account_code": "STORE1"},
        ])
        assert _order_of(db_session, "STORE2") == ["XPB"]

    def test_empty_rows(self, store):
        with pytest.raises(CarrierValidationError):
            carrier_service.validate_import_rows([])


class TestExport:

    def test_export_sorted_by_priority(self, client, admin_headers, store):
        make_carrier("B", 2)
        make_carrier("A", 1)
        resp = client.get("/api/carriers/export", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.mimetype == "text/csv"
        lines = resp.get_data(as_text=True).strip().splitlines()
        assert lines[0] == HEADER.strip()
        assert [line.split(",")[0] for line in lines[1:]] == ["A", "B"]

    def test_format(self, client, admin_headers):
        resp = client.get("/api/carriers/format", headers=admin_headers)
        assert resp.json["data"]["columns"][0] == "carrier_id"

"""
Health, routing fallbacks, database outages and Flask CLI commands.
"""

from clamio import create_app, decorators
from clamio.extensions import db
from clamio.models import Store, User
from conftest import basic_headers


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json["data"]["status"] == "OK"
    assert resp.json["data"]["environment"] == "test"
    assert resp.json["data"]["timestamp"].endswith("Z")


def test_api_index(client):
    data = client.get("/api").json["data"]
    assert data["settlements"] == "/api/settlements/admin/all"
    assert data["inventory"] == "/api/admin/inventory/aggregate"


def test_unknown_route(client):
    resp = client.get("/api/nothing-here")
    assert resp.status_code == 404
    assert resp.json == {"success": False, "message": "Route /api/nothing-here not found"}


def test_method_not_allowed_stays_json(client):
    resp = client.delete("/health")
    assert resp.status_code == 405
    assert resp.json["success"] is False


class TestCli:

    def test_system_init_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()

        first = runner.invoke(args=["system", "init"])
        assert first.exit_code == 0, first.output
        assert "Created superadmin" in first.output

        second = runner.invoke(args=["system", "init"])
        assert "already exists" in second.output

        superadmins = db_session.query(User).filter(User.role == "superadmin").all()
        assert len(superadmins) == 1
        assert superadmins[0].token

    def test_create_vendor_and_list(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "users", "create", "--name", "Ravi Kumar", "--email", "ravi@clamio.test",
            "--password", "Password123", "--role", "vendor", "--warehouse-id", "67399",
        ])
        assert result.exit_code == 0, result.output

        listed = runner.invoke(args=["users", "list", "--role", "vendor"])
        assert "ravi@clamio.test" in listed.output
        assert "67399" in listed.output

    def test_create_user_rejects_weak_password(self, app):
        result = app.test_cli_runner().invoke(args=[
            "users", "create", "--name", "Weak", "--email", "weak@clamio.test",
            "--password", "short", "--role", "admin", "--contact-number", "9876543210",
        ])
        assert result.exit_code != 0

    def test_create_store(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["stores", "create", "--account-code", "STORE9", "--name", "Pop-up"])
        assert result.exit_code == 0, result.output
        assert db_session.query(Store).filter_by(account_code="STORE9").count() == 1

    def test_cleanup_notifications(self, app):
        result = app.test_cli_runner().invoke(args=["maintenance", "cleanup-notifications", "--retention-days", "30"])
        assert result.exit_code == 0
        assert "Deleted 0 notifications older than 30 days" in result.output


def test_cors_only_for_configured_origin(client):
    allowed = client.get("/health", headers={"Origin": "http://localhost:3000"})
    assert allowed.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"

    other = client.get("/health", headers={"Origin": "http://evil.example"})
    assert "Access-Control-Allow-Origin" not in other.headers


class TestDatabaseOutage:

    def _app(self, uri):
        return create_app({
            'TESTING': True,
            'SQLALCHEMY_DATABASE_URI': uri,
            'BCRYPT_ROUNDS': 4,
            'ENVIRONMENT': 'test',
        })

    def test_unreachable_database_is_503(self, tmp_path):
        broken = self._app(f"sqlite:///{tmp_path / 'missing' / 'clamio.sqlite3'}")
        resp = broken.test_client().get("/api/settlements/vendor/payments",
                                        headers=basic_headers("vendor@clamio.test"))
        assert resp.status_code == 503
        assert resp.json == {"success": False, "message": "Database connection not available"}

    def test_reconnect_retries_once(self, tmp_path, monkeypatch):
        folder = tmp_path / "later"
        recovering = self._app(f"sqlite:///{folder / 'clamio.sqlite3'}")
        real_reconnect = decorators._reconnect
        calls = []

        def reconnect_after_restore():
            calls.append(1)
            folder.mkdir()
            real_reconnect()
            db.create_all()

        monkeypatch.setattr(decorators, "_reconnect", reconnect_after_restore)
        resp = recovering.test_client().get("/api/settlements/vendor/payments",
                                            headers=basic_headers("vendor@clamio.test"))
        # The retry reached the restored database, which has no such user
        assert resp.status_code == 401
        assert calls == [1]

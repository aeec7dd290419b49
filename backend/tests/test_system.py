# Overview: Pytest coverage for health and version endpoints and CLI commands.

from kickvault.models import User
from kickvault.routes.system import API_VERSION


def test_health(client, db_session, owner_a):
    response = client.get('/health')

    assert response.status_code == 200
    assert response.json["status"] == "healthy"


def test_version(client):
    assert client.get('/version').json["api_version"] == API_VERSION


class TestCli:

    def test_create_account_and_set_plan(self, app, db_session):
        runner = app.test_cli_runner()

        created = runner.invoke(args=[
            "accounts", "create",
            "--username", "cli_owner",
            "--email", "cli@example.com",
            "--password", "Password123",
        ])
        assert created.exit_code == 0, created.output

        upgraded = runner.invoke(args=["accounts", "set-plan", "cli_owner", "team"])
        assert upgraded.exit_code == 0, upgraded.output
        assert db_session.query(User).filter_by(username="cli_owner").one().plan == "team"

        listing = runner.invoke(args=["accounts", "list"])
        assert "cli_owner" in listing.output

    def test_set_plan_unknown_user(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["accounts", "set-plan", "ghost", "team"])
        assert "not found" in result.output

    def test_deactivate_revokes_sessions(self, app, client, db_session, owner_a, headers_a):
        assert client.get('/api/auth/me', headers=headers_a).status_code == 200

        result = app.test_cli_runner().invoke(args=["accounts", "deactivate", "owner_a"])

        assert "1 sessions revoked" in result.output
        assert db_session.get(User, owner_a.id).is_active is False
        assert client.get('/api/auth/me', headers=headers_a).status_code == 401

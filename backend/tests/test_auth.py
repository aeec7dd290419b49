# Overview: Pytest coverage for signup, login throttling, sessions and the consignor portal.

"""
Authentication Tests

SECURITY TESTS:
- Password strength enforced at signup
- Login lockout after repeated failures
- Logout revokes the bearer token
- Consignor portal returns one generic failure for every bad credential
"""

import pytest

from kickvault.models import Avatar, PaymentType, SecurityEvent
from kickvault.services import login_throttle_service
from kickvault.services.auth_service import (
    PasswordValidationError, authenticate, create_user, validate_password_strength,
)

from conftest import PASSWORD, auth_headers, get_auth_token


class TestPasswordStrength:

    @pytest.mark.parametrize("password", ["short1A", "alllowercase1", "ALLUPPERCASE1", "NoDigitsHere"])
    def test_weak_passwords_rejected(self, password):
        with pytest.raises(PasswordValidationError):
            validate_password_strength(password)

    def test_strong_password_accepted(self):
        validate_password_strength(PASSWORD)


class TestSignup:

    def test_signup_provisions_defaults(self, client, db_session):
        response = client.post('/api/auth/signup', json={
            "username": "newowner",
            "email": "NewOwner@Example.com",
            "password": PASSWORD,
        })

        assert response.status_code == 201
        assert response.json["token"]
        user = response.json["user"]
        assert user["email"] == "newowner@example.com"
        assert user["plan"] == "free"

        assert db_session.query(Avatar).filter_by(owner_id=user["id"], avatar_type="Main").count() == 1
        assert db_session.query(PaymentType).filter_by(owner_id=user["id"], name="Cash").count() == 1

    def test_duplicate_username_conflicts(self, client, owner_a):
        response = client.post('/api/auth/signup', json={
            "username": "owner_a",
            "email": "other@example.com",
            "password": PASSWORD,
        })
        assert response.status_code == 409

    def test_weak_password_rejected(self, client, db_session):
        response = client.post('/api/auth/signup', json={
            "username": "weakling",
            "email": "weak@example.com",
            "password": "password",
        })
        assert response.status_code == 400

    def test_missing_fields(self, client, db_session):
        assert client.post('/api/auth/signup', json={"username": "x"}).status_code == 400


class TestLogin:

    def test_login_by_username_or_email(self, client, owner_a):
        assert get_auth_token(client, "owner_a")
        assert get_auth_token(client, "owner_a@example.com")

    def test_wrong_password(self, client, owner_a):
        response = client.post('/api/auth/login', json={"username": "owner_a", "password": "Wrong12345"})
        assert response.status_code == 401
        assert response.json["error"] == "Invalid credentials"

    def test_authenticate_updates_last_login(self, db_session, owner_a):
        assert owner_a.last_login_at is None
        assert authenticate("owner_a", PASSWORD) is owner_a
        assert owner_a.last_login_at is not None

    def test_lockout_after_max_failures(self, client, owner_a):
        statuses = []
        for _ in range(login_throttle_service.MAX_FAILED_ATTEMPTS):
            response = client.post('/api/auth/login', json={"username": "owner_a", "password": "Wrong12345"})
            statuses.append(response.status_code)

        assert statuses[:-1] == [401] * (login_throttle_service.MAX_FAILED_ATTEMPTS - 1)
        assert statuses[-1] == 429

        # Correct password is refused while locked
        locked = client.post('/api/auth/login', json={"username": "owner_a", "password": PASSWORD})
        assert locked.status_code == 429
        assert locked.json["locked"] is True

        status = client.get('/api/auth/lockout-status/owner_a').json
        assert status["locked"] is True
        assert status["failed_attempts"] == login_throttle_service.MAX_FAILED_ATTEMPTS

    def test_failures_recorded_as_security_events(self, client, db_session, owner_a):
        client.post('/api/auth/login', json={"username": "owner_a", "password": "Wrong12345"})

        event = db_session.query(SecurityEvent).filter_by(event_type="LOGIN_FAILED").one()
        assert event.user_id == owner_a.id
        assert event.action == "owner_a"


class TestSessions:

    def test_me(self, client, headers_a):
        response = client.get('/api/auth/me', headers=headers_a)

        assert response.status_code == 200
        assert response.json["user"]["username"] == "owner_a"
        assert response.json["plan"]["variant_limit"] == 100

    def test_logout_revokes_token(self, client, owner_a):
        token = get_auth_token(client, "owner_a")
        headers = auth_headers(token)

        assert client.post('/api/auth/logout', headers=headers).status_code == 200
        assert client.get('/api/auth/me', headers=headers).status_code == 401
        assert client.post('/api/auth/logout', headers=headers).status_code == 401

    def test_missing_token(self, client, db_session):
        assert client.get('/api/auth/me').status_code == 401

    def test_deactivated_user_rejected(self, client, db_session, owner_a, headers_a):
        owner_a.is_active = False
        db_session.commit()

        assert client.get('/api/auth/me', headers=headers_a).status_code == 401


class TestConsignorPortal:

    @pytest.fixture
    def consignor_id(self, client, headers_a):
        response = client.post('/api/consignors', json={
            "name": "Jordan", "portal_password": "portal-pass",
        }, headers=headers_a)
        assert response.json["has_portal_access"] is True
        return response.json["id"]

    def test_portal_snapshot(self, client, consignor_id):
        response = client.post('/api/consignors/portal', json={
            "consignorId": consignor_id, "password": "portal-pass",
        })

        assert response.status_code == 200
        assert response.json["consignor"]["name"] == "Jordan"
        assert response.json["stats"]["pending_payout_cents"] == 0
        assert response.json["currency"] == "USD"

    def test_generic_failure(self, client, consignor_id):
        wrong = client.post('/api/consignors/portal', json={"consignorId": consignor_id, "password": "nope"})
        unknown = client.post('/api/consignors/portal', json={"consignorId": 99999, "password": "nope"})

        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json == unknown.json == {"error": "Invalid credentials"}

    def test_portal_disabled_without_password(self, client, headers_a):
        consignor_id = client.post('/api/consignors', json={"name": "Sam"}, headers=headers_a).json["id"]

        response = client.post('/api/consignors/portal', json={"consignorId": consignor_id, "password": "anything"})

        assert response.status_code == 401

    def test_short_portal_password_rejected(self, client, headers_a):
        response = client.post('/api/consignors', json={"name": "Sam", "portal_password": "123"}, headers=headers_a)
        assert response.status_code == 400

    def test_portal_lockout(self, client, consignor_id):
        for _ in range(login_throttle_service.MAX_FAILED_ATTEMPTS):
            client.post('/api/consignors/portal', json={"consignorId": consignor_id, "password": "nope"})

        response = client.post('/api/consignors/portal', json={
            "consignorId": consignor_id, "password": "portal-pass",
        })

        assert response.status_code == 429

    def test_lockout_shared_across_id_spellings(self, client, consignor_id):
        for _ in range(login_throttle_service.MAX_FAILED_ATTEMPTS):
            client.post('/api/consignors/portal', json={"consignorId": consignor_id, "password": "nope"})

        for spelling in (f"0{consignor_id}", f" {consignor_id} ", f"+{consignor_id}", str(consignor_id)):
            response = client.post('/api/consignors/portal', json={
                "consignorId": spelling, "password": "portal-pass",
            })
            assert response.status_code == 429, spelling

    def test_non_numeric_id_is_generic_failure(self, client, consignor_id):
        response = client.post('/api/consignors/portal', json={"consignorId": "abc", "password": "portal-pass"})

        assert response.status_code == 401
        assert response.json == {"error": "Invalid credentials"}

    def test_missing_fields(self, client, db_session):
        assert client.post('/api/consignors/portal', json={"consignorId": 1}).status_code == 400


def test_create_user_rejects_bad_email(db_session):
    with pytest.raises(ValueError):
        create_user("someone", "not-an-email", PASSWORD)

"""
Unit tests for API v1 routes.

Runs the routers against domain services wired to in-memory adapters,
through dependency overrides. No database, Redis or broker is touched.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from account_engine.api.dependencies import (
    get_account_service,
    get_auth_engine,
    get_company_service,
)
from account_engine.api.errors import add_exception_handlers
from account_engine.api.v1 import router
from account_engine.domain.exceptions import PersistenceFailed


@pytest.fixture
def app(engine, account_service, company_service) -> FastAPI:
    """Create test FastAPI application."""
    test_app = FastAPI()
    add_exception_handlers(test_app)
    test_app.include_router(router, prefix="/v1")

    test_app.dependency_overrides[get_auth_engine] = lambda: engine
    test_app.dependency_overrides[get_account_service] = lambda: account_service
    test_app.dependency_overrides[get_company_service] = lambda: company_service
    return test_app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create test client for the application."""
    return TestClient(app)


def register(client: TestClient, email: str = "a@x.io") -> dict:
    response = client.post(
        "/v1/auth/register",
        json={"email": email, "password": "password123", "name": "Alice"},
    )
    assert response.status_code == 201
    return response.json()


def register_and_login(client: TestClient, dispatcher, email: str = "a@x.io") -> dict:
    """Register, verify and return bearer headers."""
    body = register(client, email)
    response = client.post(
        "/v1/auth/verify-email",
        json={"token": body["verification_token"], "otp": dispatcher.last_code},
    )
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}


class TestRegisterEndpoint:
    """Tests for POST /v1/auth/register."""

    def test_register_success_returns_201(self, client: TestClient) -> None:
        body = register(client)

        assert body["message"] == "Verification code sent"
        assert body["user"]["email"] == "a@x.io"
        assert body["user"]["status"] == "PENDING_VERIFICATION"
        assert body["expires_in_seconds"] == 600
        assert len(body["verification_token"]) == 64

    def test_ids_are_strings(self, client: TestClient) -> None:
        assert isinstance(register(client)["user"]["id"], str)

    def test_password_hash_not_exposed(self, client: TestClient) -> None:
        assert "password_hash" not in register(client)["user"]

    def test_duplicate_returns_409(self, client: TestClient) -> None:
        register(client)

        response = client.post(
            "/v1/auth/register",
            json={"email": "a@x.io", "password": "password123", "name": "Alice"},
        )

        assert response.status_code == 409
        assert response.json() == {
            "detail": "Email already registered",
            "code": "EMAIL_ALREADY_EXISTS",
        }

    @pytest.mark.parametrize(
        "payload",
        [
            {"email": "not-an-email", "password": "password123", "name": "Alice"},
            {"email": "a@x.io", "password": "short", "name": "Alice"},
            {"email": "a@x.io", "password": "password123", "name": "A"},
            {"email": "a@x.io", "password": "password123"},
        ],
    )
    def test_validation_errors_return_422(self, client: TestClient, payload: dict) -> None:
        assert client.post("/v1/auth/register", json=payload).status_code == 422


class TestVerifyEndpoint:
    """Tests for POST /v1/auth/verify-email."""

    def test_verify_returns_session(self, client: TestClient, dispatcher) -> None:
        body = register(client)

        response = client.post(
            "/v1/auth/verify-email",
            json={"token": body["verification_token"], "otp": dispatcher.last_code},
        )

        assert response.status_code == 200
        assert response.json()["token_type"] == "bearer"
        assert response.json()["user"]["status"] == "ACTIVE"

    def test_wrong_code_returns_400(self, client: TestClient, dispatcher) -> None:
        body = register(client)
        wrong = f"{(int(dispatcher.last_code) + 1) % 1_000_000:06d}"

        response = client.post(
            "/v1/auth/verify-email", json={"token": body["verification_token"], "otp": wrong}
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_OTP"

    def test_lockout_returns_429(self, client: TestClient, dispatcher) -> None:
        body = register(client)
        code = dispatcher.last_code
        wrong = f"{(int(code) + 1) % 1_000_000:06d}"
        for _ in range(3):
            client.post(
                "/v1/auth/verify-email", json={"token": body["verification_token"], "otp": wrong}
            )

        response = client.post(
            "/v1/auth/verify-email", json={"token": body["verification_token"], "otp": code}
        )

        assert response.status_code == 429
        assert response.json()["code"] == "MAX_OTP_ATTEMPTS_EXCEEDED"

    def test_unknown_token_returns_400(self, client: TestClient) -> None:
        response = client.post("/v1/auth/verify-email", json={"token": "abc", "otp": "123456"})

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_VERIFICATION_TOKEN"

    @pytest.mark.parametrize("otp", ["12345", "1234567", "abcdef", ""])
    def test_malformed_otp_returns_422(self, client: TestClient, otp: str) -> None:
        response = client.post("/v1/auth/verify-email", json={"token": "abc", "otp": otp})

        assert response.status_code == 422


class TestLoginEndpoint:
    """Tests for POST /v1/auth/login."""

    def test_login_success(self, client: TestClient, dispatcher) -> None:
        register_and_login(client, dispatcher)

        response = client.post(
            "/v1/auth/login", json={"email": "a@x.io", "password": "password123"}
        )

        assert response.status_code == 200
        assert response.json()["expires_in"] == 24 * 3600

    def test_unverified_returns_403(self, client: TestClient) -> None:
        register(client)

        response = client.post(
            "/v1/auth/login", json={"email": "a@x.io", "password": "password123"}
        )

        assert response.status_code == 403
        assert response.json()["code"] == "EMAIL_NOT_VERIFIED"

    def test_bad_credentials_return_401(self, client: TestClient, dispatcher) -> None:
        register_and_login(client, dispatcher)

        wrong_password = client.post(
            "/v1/auth/login", json={"email": "a@x.io", "password": "wrong-password"}
        )
        unknown_email = client.post(
            "/v1/auth/login", json={"email": "b@x.io", "password": "password123"}
        )

        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json()

    def test_suspended_returns_403(
        self, client: TestClient, dispatcher, accounts, suspend
    ) -> None:
        register_and_login(client, dispatcher)
        suspend(accounts.find_by_email("a@x.io").id)

        response = client.post(
            "/v1/auth/login", json={"email": "a@x.io", "password": "password123"}
        )

        assert response.status_code == 403
        assert response.json()["code"] == "ACCOUNT_SUSPENDED"


class TestResendAndReset:
    def test_resend_returns_new_token(self, client: TestClient) -> None:
        first = register(client)["verification_token"]

        response = client.post("/v1/auth/resend-otp", json={"email": "a@x.io"})

        assert response.status_code == 200
        assert response.json()["verification_token"] != first

    def test_resend_unknown_returns_404(self, client: TestClient) -> None:
        response = client.post("/v1/auth/resend-otp", json={"email": "b@x.io"})

        assert response.status_code == 404
        assert response.json()["code"] == "USER_NOT_FOUND"

    def test_resend_verified_returns_409(self, client: TestClient, dispatcher) -> None:
        register_and_login(client, dispatcher)

        response = client.post("/v1/auth/resend-otp", json={"email": "a@x.io"})

        assert response.status_code == 409

    def test_forgot_and_reset(self, client: TestClient, dispatcher) -> None:
        register_and_login(client, dispatcher)

        forgot = client.post("/v1/auth/forgot-password", json={"email": "a@x.io"})
        reset = client.post(
            "/v1/auth/reset-password",
            json={
                "token": forgot.json()["verification_token"],
                "otp": dispatcher.last_code,
                "new_password": "new-password-1",
            },
        )
        login = client.post(
            "/v1/auth/login", json={"email": "a@x.io", "password": "new-password-1"}
        )

        assert forgot.status_code == 200
        assert reset.status_code == 200
        assert reset.json() == {"message": "Password updated"}
        assert login.status_code == 200


class TestAuthentication:
    """Protected routes require a valid bearer token."""

    @pytest.mark.parametrize(
        "path", ["/v1/auth/me", "/v1/users/me", "/v1/users", "/v1/companies"]
    )
    def test_missing_token_returns_401(self, client: TestClient, path: str) -> None:
        response = client.get(path)

        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHORIZED"
        assert response.headers["www-authenticate"] == "Bearer"

    def test_invalid_token_returns_401(self, client: TestClient) -> None:
        response = client.get("/v1/auth/me", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401

    def test_me(self, client: TestClient, dispatcher) -> None:
        headers = register_and_login(client, dispatcher)

        response = client.get("/v1/auth/me", headers=headers)

        assert response.status_code == 200
        assert response.json()["email"] == "a@x.io"
        assert response.json()["email_verified_at"] is not None


class TestUserEndpoints:
    def test_profile_roundtrip(self, client: TestClient, dispatcher) -> None:
        headers = register_and_login(client, dispatcher)

        updated = client.put("/v1/users/me", json={"name": "Alice L"}, headers=headers)
        fetched = client.get("/v1/users/me", headers=headers)

        assert updated.status_code == 200
        assert fetched.json()["name"] == "Alice L"

    def test_profile_phone_and_gender(self, client: TestClient, dispatcher) -> None:
        headers = register_and_login(client, dispatcher)

        response = client.put(
            "/v1/users/me",
            json={"name": "Alice", "phone": "555-0100", "gender": "FEMALE"},
            headers=headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["phone"] == "555-0100"
        assert body["gender"] == "FEMALE"
        assert body["avatar_key"] is None

    def test_unknown_gender_returns_422(self, client: TestClient, dispatcher) -> None:
        headers = register_and_login(client, dispatcher)

        response = client.put(
            "/v1/users/me", json={"name": "Alice", "gender": "OTHER"}, headers=headers
        )

        assert response.status_code == 422

    def test_get_by_id_and_list(self, client: TestClient, dispatcher) -> None:
        headers = register_and_login(client, dispatcher)
        user_id = client.get("/v1/users/me", headers=headers).json()["id"]

        by_id = client.get(f"/v1/users/{user_id}", headers=headers)
        listing = client.get("/v1/users", params={"limit": 10}, headers=headers)

        assert by_id.json()["id"] == user_id
        assert [user["id"] for user in listing.json()] == [user_id]

    def test_unknown_user_returns_404(self, client: TestClient, dispatcher) -> None:
        headers = register_and_login(client, dispatcher)

        assert client.get("/v1/users/999999", headers=headers).status_code == 404

    def test_delete_me(self, client: TestClient, dispatcher) -> None:
        headers = register_and_login(client, dispatcher)

        assert client.delete("/v1/users/me", headers=headers).status_code == 204
        assert client.get("/v1/users/me", headers=headers).status_code == 404

    def test_join_and_leave_company(self, client: TestClient, dispatcher) -> None:
        headers = register_and_login(client, dispatcher)
        company_id = client.post(
            "/v1/companies", json={"name": "Acme", "code": "ACME"}, headers=headers
        ).json()["id"]

        joined = client.post(f"/v1/users/companies/{company_id}/join", headers=headers)
        again = client.post(f"/v1/users/companies/{company_id}/join", headers=headers)
        mine = client.get("/v1/users/me/companies", headers=headers)
        left = client.delete(f"/v1/users/companies/{company_id}/leave", headers=headers)
        left_again = client.delete(f"/v1/users/companies/{company_id}/leave", headers=headers)

        assert joined.status_code == 204
        assert again.status_code == 409
        assert [company["code"] for company in mine.json()] == ["ACME"]
        assert left.status_code == 204
        assert left_again.status_code == 404


class TestCompanyEndpoints:
    def test_crud(self, client: TestClient, dispatcher) -> None:
        headers = register_and_login(client, dispatcher)

        created = client.post(
            "/v1/companies",
            json={"name": "Acme", "code": "ACME", "address": "1 Main St"},
            headers=headers,
        )
        company_id = created.json()["id"]
        by_code = client.get("/v1/companies/code/ACME", headers=headers)
        updated = client.put(
            f"/v1/companies/{company_id}",
            json={"name": "Acme Corp", "address": "2 Main St"},
            headers=headers,
        )
        deleted = client.delete(f"/v1/companies/{company_id}", headers=headers)
        gone = client.get(f"/v1/companies/{company_id}", headers=headers)

        assert created.status_code == 201
        assert by_code.json()["id"] == company_id
        assert updated.json()["name"] == "Acme Corp"
        assert deleted.status_code == 204
        assert gone.status_code == 404
        assert gone.json()["code"] == "COMPANY_NOT_FOUND"

    def test_duplicate_code_returns_409(self, client: TestClient, dispatcher) -> None:
        headers = register_and_login(client, dispatcher)
        client.post("/v1/companies", json={"name": "Acme", "code": "ACME"}, headers=headers)

        response = client.post(
            "/v1/companies", json={"name": "Other", "code": "ACME"}, headers=headers
        )

        assert response.status_code == 409
        assert response.json()["code"] == "COMPANY_CODE_ALREADY_EXISTS"

    def test_invalid_code_returns_422(self, client: TestClient, dispatcher) -> None:
        headers = register_and_login(client, dispatcher)

        response = client.post(
            "/v1/companies", json={"name": "Acme", "code": "has space"}, headers=headers
        )

        assert response.status_code == 422


class TestInternalErrors:
    def test_internal_error_returns_500_without_detail(
        self, app: FastAPI, engine
    ) -> None:
        """Infrastructure failures surface as a generic 500."""

        class BrokenAccounts:
            def find_by_email(self, email: str):
                raise ConnectionError("password=hunter2 host=db")

        engine.accounts = BrokenAccounts()
        client = TestClient(app)

        response = client.post(
            "/v1/auth/register",
            json={"email": "a@x.io", "password": "password123", "name": "Alice"},
        )

        assert response.status_code == 500
        assert response.json() == {
            "detail": PersistenceFailed.message,
            "code": PersistenceFailed.code,
        }
        assert "hunter2" not in response.text

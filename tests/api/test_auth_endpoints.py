# tests/api/test_auth_endpoints.py
"""Tests for the wallet authentication endpoints."""

from __future__ import annotations

from fastapi import status
from fastapi.testclient import TestClient

from dob_auth.services.errors import StoreUnavailable

CHALLENGE_URL = "/api/auth/challenge"
VERIFY_URL = "/api/auth/verify"
SESSION_URL = "/api/auth/session"
LOGOUT_URL = "/api/auth/logout"


def _request_challenge(client, address: str) -> str:
    response = client.post(CHALLENGE_URL, json={"walletAddress": address})
    assert response.status_code == status.HTTP_200_OK
    return response.json()["challenge"]


def _login(client, wallet) -> dict:
    challenge = _request_challenge(client, wallet.address)
    response = client.post(
        VERIFY_URL,
        json={
            "walletAddress": wallet.address,
            "signature": wallet.sign(challenge),
            "challenge": challenge,
        },
    )
    assert response.status_code == status.HTTP_200_OK
    return response.json()


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TestChallengeEndpoint:
    def test_issues_challenge(self, client, wallet) -> None:
        response = client.post(CHALLENGE_URL, json={"walletAddress": wallet.address})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["success"] is True
        assert data["challenge"].startswith("DOB_VALIDATOR_AUTH_")
        assert data["message"] == "Please sign this challenge with your wallet to authenticate"

    def test_missing_wallet_address(self, client) -> None:
        response = client.post(CHALLENGE_URL, json={})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["success"] is False
        assert "walletAddress" in response.json()["error"]

    def test_empty_wallet_address(self, client) -> None:
        response = client.post(CHALLENGE_URL, json={"walletAddress": ""})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_malformed_wallet_address(self, client) -> None:
        response = client.post(CHALLENGE_URL, json={"walletAddress": "GABC"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {
            "success": False,
            "error": "walletAddress is not a valid Stellar account address",
        }

    def test_store_unavailable_maps_to_503(self, client, challenge_store, mocker, wallet) -> None:
        mocker.patch.object(challenge_store, "put", side_effect=StoreUnavailable("lock timeout"))

        response = client.post(CHALLENGE_URL, json={"walletAddress": wallet.address})

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.headers["Retry-After"] == "5"
        assert response.json() == {"success": False, "error": "Service temporarily unavailable"}


class TestVerifyEndpoint:
    def test_login_returns_token_and_user(self, client, wallet, token_issuer) -> None:
        data = _login(client, wallet)

        assert data["success"] is True
        assert data["expiresIn"] == "604800"
        assert data["user"]["walletAddress"] == wallet.address
        assert {"id", "createdAt", "updatedAt"} <= set(data["user"])
        claims = token_issuer.decode(data["token"])
        assert claims.wallet_address == wallet.address
        assert claims.user_id == data["user"]["id"]

    def test_replay_is_rejected(self, client, wallet) -> None:
        challenge = _request_challenge(client, wallet.address)
        payload = {
            "walletAddress": wallet.address,
            "signature": wallet.sign(challenge),
            "challenge": challenge,
        }

        assert client.post(VERIFY_URL, json=payload).status_code == status.HTTP_200_OK
        response = client.post(VERIFY_URL, json=payload)
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json() == {"success": False, "error": "Invalid or expired challenge"}

    def test_expired_challenge(self, client, wallet, clock) -> None:
        challenge = _request_challenge(client, wallet.address)
        clock.advance(minutes=5, seconds=1)

        response = client.post(
            VERIFY_URL,
            json={
                "walletAddress": wallet.address,
                "signature": wallet.sign(challenge),
                "challenge": challenge,
            },
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"] == "Invalid or expired challenge"

    def test_superseded_challenge(self, client, wallet, clock) -> None:
        first = _request_challenge(client, wallet.address)
        clock.advance(seconds=1)
        _request_challenge(client, wallet.address)

        response = client.post(
            VERIFY_URL,
            json={"walletAddress": wallet.address, "signature": wallet.sign(first), "challenge": first},
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_invalid_signature(self, client, wallet, other_wallet) -> None:
        challenge = _request_challenge(client, wallet.address)

        response = client.post(
            VERIFY_URL,
            json={
                "walletAddress": wallet.address,
                "signature": other_wallet.sign(challenge),
                "challenge": challenge,
            },
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json() == {"success": False, "error": "Invalid signature"}

    def test_missing_fields(self, client, wallet) -> None:
        response = client.post(VERIFY_URL, json={"walletAddress": wallet.address})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        error = response.json()["error"]
        assert "signature" in error
        assert "challenge" in error


class TestAuthenticatedEndpoints:
    def test_session_returns_identity(self, client, wallet) -> None:
        login = _login(client, wallet)

        response = client.get(SESSION_URL, headers=_bearer(login["token"]))

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["walletAddress"] == wallet.address
        assert data["userId"] == login["user"]["id"]
        assert "expiresAt" in data

    def test_missing_bearer_header(self, client) -> None:
        response = client.get(SESSION_URL)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json() == {"success": False, "error": "Could not validate credentials"}

    def test_non_bearer_scheme(self, client) -> None:
        response = client.get(SESSION_URL, headers={"Authorization": "Basic dXNlcjpwYXNz"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_garbage_token(self, client) -> None:
        response = client.get(SESSION_URL, headers=_bearer("garbage"))
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_expired_token(self, client, wallet, clock) -> None:
        login = _login(client, wallet)
        clock.advance(days=7, seconds=1)

        response = client.get(SESSION_URL, headers=_bearer(login["token"]))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"] == "Token expired"

    def test_logout_revokes_token(self, client, wallet) -> None:
        login = _login(client, wallet)
        headers = _bearer(login["token"])

        response = client.post(LOGOUT_URL, headers=headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"success": True}

        response = client.get(SESSION_URL, headers=headers)
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_second_login_revokes_first_token(self, client, wallet, clock) -> None:
        first = _login(client, wallet)
        clock.advance(seconds=1)
        second = _login(client, wallet)

        assert client.get(SESSION_URL, headers=_bearer(first["token"])).status_code == 401
        assert client.get(SESSION_URL, headers=_bearer(second["token"])).status_code == 200


def test_unhandled_errors_return_generic_500(app, auth_service, mocker, wallet) -> None:
    mocker.patch.object(auth_service, "issue_challenge", side_effect=RuntimeError("secret detail"))

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.post(CHALLENGE_URL, json={"walletAddress": wallet.address})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"success": False, "error": "Internal server error"}

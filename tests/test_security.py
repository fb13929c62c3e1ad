"""Tests for bearer token handling and admin gating."""
from datetime import timedelta

import pytest
from jose import JWTError

from medicare_api.security import decode_token, issue_token


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def test_issued_token_carries_email():
    decoded = decode_token(issue_token("ann@example.com"))

    assert decoded["email"] == "ann@example.com"
    assert decoded["exp"] > decoded["iat"]


def test_expired_token_is_rejected():
    token = issue_token("ann@example.com", expires_delta=timedelta(seconds=-10))

    with pytest.raises(JWTError):
        decode_token(token)


def test_missing_header_is_unauthorized(client):
    response = client.get("/booking", params={"email": "patient@example.com"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Unauthorized access"


def test_invalid_token_is_forbidden(client):
    response = client.get("/booking", params={"email": "patient@example.com"}, headers=auth("garbage"))

    assert response.status_code == 403
    assert response.json()["detail"] == "Forbidden Access"


def test_token_for_another_email_is_forbidden(client, patient_token):
    response = client.get("/booking", params={"email": "someone@example.com"}, headers=auth(patient_token))

    assert response.status_code == 403


def test_non_admin_cannot_reach_admin_endpoints(client, patient_token):
    response = client.get("/doctors", headers=auth(patient_token))

    assert response.status_code == 403


def test_admin_status(client, admin_token, patient_token):
    admin = client.get("/users/admin/admin@example.com", headers=auth(patient_token)).json()
    patient = client.get("/users/admin/patient@example.com", headers=auth(patient_token)).json()

    assert admin == {"success": True, "isAdmin": True}
    assert patient["isAdmin"] is False


def test_non_bearer_scheme_is_forbidden(client, patient_token):
    response = client.get(
        "/booking",
        params={"email": "patient@example.com"},
        headers={"Authorization": f"Basic {patient_token}"},
    )

    assert response.status_code == 403
    assert response.json()["detail"] == "Forbidden Access"

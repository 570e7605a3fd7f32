from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from barbershop.auth import decode_access_token, get_current_user
from barbershop.config import JWT_ALGORITHM, SECRET_KEY
from barbershop.errors import AuthenticationError
from barbershop.main import app


def make_token(sub, expires_in=timedelta(hours=1), key=SECRET_KEY):
    claims = {"sub": str(sub), "exp": datetime.now(timezone.utc) + expires_in}
    return jwt.encode(claims, key, algorithm=JWT_ALGORITHM)


@pytest.fixture
def real_auth(client):
    app.dependency_overrides.pop(get_current_user, None)
    return client


def test_decode_valid_token():
    assert decode_access_token(make_token(7))["sub"] == "7"


def test_expired_token_is_rejected():
    with pytest.raises(AuthenticationError):
        decode_access_token(make_token(7, expires_in=timedelta(minutes=-5)))


def test_token_signed_with_other_key_is_rejected():
    with pytest.raises(AuthenticationError):
        decode_access_token(make_token(7, key="other-key"))


def test_bearer_token_resolves_user(real_auth, customer):
    response = real_auth.get(
        "/appointments", headers={"Authorization": f"Bearer {make_token(customer.id)}"}
    )
    assert response.status_code == 200


def test_missing_header_is_401(real_auth):
    response = real_auth.get("/appointments")

    assert response.status_code == 401
    assert response.json()["code"] == "not_authenticated"


def test_unknown_subject_is_401(real_auth, customer):
    response = real_auth.get(
        "/appointments", headers={"Authorization": f"Bearer {make_token(customer.id + 100)}"}
    )
    assert response.status_code == 401


def test_role_guard_is_403(real_auth, customer):
    response = real_auth.post(
        "/cashier/open",
        json={"initialValue": 0},
        headers={"Authorization": f"Bearer {make_token(customer.id)}"},
    )
    assert response.status_code == 403

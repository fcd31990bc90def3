from datetime import timedelta

import jwt
import pytest
from fastapi import HTTPException

from coursepath.config import SECRET_KEY, ALGORITHM
from coursepath.security import CurrentUser, create_access_token, decode_token


def test_decode_round_trip_with_role() -> None:
    token = create_access_token({"user_id": 5, "role": "admin"})
    user = decode_token(f"Bearer {token}")
    assert user == CurrentUser(user_id=5, role="admin")
    assert user.is_admin is True


def test_role_defaults_to_student() -> None:
    token = create_access_token({"user_id": 5})
    user = decode_token(f"bearer {token}")
    assert user.role == "student"
    assert user.is_admin is False


def test_missing_header() -> None:
    with pytest.raises(HTTPException) as exc:
        decode_token(None)
    assert exc.value.status_code == 401
    assert exc.value.detail == "Authorization required"


def test_expired_token() -> None:
    token = create_access_token({"user_id": 5}, expires_delta=timedelta(minutes=-5))
    with pytest.raises(HTTPException) as exc:
        decode_token(f"Bearer {token}")
    assert exc.value.detail == "Token has expired"


def test_token_without_user_id() -> None:
    token = create_access_token({"role": "admin"})
    with pytest.raises(HTTPException) as exc:
        decode_token(f"Bearer {token}")
    assert exc.value.status_code == 401


def test_token_signed_with_other_key() -> None:
    token = jwt.encode({"user_id": 5}, SECRET_KEY + "-other", algorithm=ALGORITHM)
    with pytest.raises(HTTPException) as exc:
        decode_token(f"Bearer {token}")
    assert exc.value.detail == "Invalid authentication token"

from datetime import timedelta

import pytest

from passport_tracker.core.security import (
    create_access_token,
    decode_token,
    get_password_hash,
    verify_password,
)


def test_password_hash_round_trip():
    hashed = get_password_hash("correct-horse")
    assert hashed != "correct-horse"
    assert verify_password("correct-horse", hashed)
    assert not verify_password("wrong-horse", hashed)


def test_password_minimum_length():
    with pytest.raises(ValueError):
        get_password_hash("short")


def test_jwt_rs256_round_trip(patch_jwt_keys):
    token = create_access_token("user-123", "approval")
    decoded = decode_token(token, expected_type="access")
    assert decoded["sub"] == "user-123"
    assert decoded["role"] == "approval"


def test_expired_token_is_rejected(patch_jwt_keys):
    token = create_access_token("user-123", "user", expires_delta=timedelta(seconds=-5))
    with pytest.raises(ValueError):
        decode_token(token)


def test_unexpected_token_type(patch_jwt_keys):
    token = create_access_token("user-123", "user")
    with pytest.raises(ValueError):
        decode_token(token, expected_type="refresh")

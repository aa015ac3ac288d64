from datetime import timedelta

from jose import jwt

from rls_api.core.security import (
    REFRESH_TOKEN_TYPE,
    _create_token,
    create_access_token,
    create_refresh_token,
    decode_token,
    get_password_hash,
    get_token_user_id,
    verify_password,
)


def test_password_hash_roundtrip():
    hashed = get_password_hash("password123")

    assert hashed != "password123"
    assert verify_password("password123", hashed)
    assert not verify_password("password124", hashed)


def test_access_token_carries_user_id():
    token = create_access_token(42)

    assert decode_token(token)["sub"] == "42"
    assert get_token_user_id(token) == 42


def test_refresh_token_only_valid_as_refresh():
    token = create_refresh_token(42)

    assert get_token_user_id(token) is None
    assert get_token_user_id(token, token_type=REFRESH_TOKEN_TYPE) == 42


def test_expired_token_is_rejected():
    token = _create_token({"sub": "42"}, timedelta(minutes=-5), token_type="access")

    assert get_token_user_id(token) is None


def test_foreign_signature_is_rejected():
    token = jwt.encode({"sub": "42", "type": "access"}, "other-secret", algorithm="HS256")

    assert get_token_user_id(token) is None


def test_non_integer_subject_is_rejected():
    token = create_access_token("alice")

    assert get_token_user_id(token) is None


def test_garbage_is_rejected():
    assert get_token_user_id("not-a-jwt") is None


def test_subject_outside_bigint_range_is_rejected():
    assert get_token_user_id(create_access_token(2**63)) is None
    assert get_token_user_id(create_access_token(0)) is None
    assert get_token_user_id(create_access_token(2**63 - 1)) == 2**63 - 1

# =============================================================================
# tests/test_security.py - Password, Token and Secret Helper Tests
# =============================================================================

import pytest
from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError

from intellecta.core.security import (
    hash_password, verify_password, password_strength_errors, create_access_token,
    decode_access_token, hash_secret, secret_matches, generate_verification_code,
    generate_refresh_token,
)
from intellecta.core.serialization import js_round, pagination, serialize_user


class TestPasswords:

    def test_hash_and_verify(self):
        hashed = hash_password("Password123")
        assert hashed != "Password123"
        assert verify_password("Password123", hashed) is True
        assert verify_password("password123", hashed) is False

    @pytest.mark.parametrize("password,missing", [
        ("Sh0rt", "8 characters"),
        ("ALLUPPER123", "lowercase"),
        ("alllower123", "uppercase"),
        ("NoDigitsHere", "number"),
    ])
    def test_strength_rules(self, password, missing):
        errors = password_strength_errors(password)
        assert any(missing in e for e in errors)

    def test_strong_password_passes(self):
        assert password_strength_errors("Password123") == []


class TestAccessTokens:

    def test_round_trip(self):
        payload = decode_access_token(create_access_token("USER_ABC"))
        assert payload["sub"] == "USER_ABC"
        assert payload["type"] == "access"

    def test_expired(self):
        token = create_access_token("USER_ABC", expires_minutes=-1)
        with pytest.raises(ExpiredSignatureError):
            decode_access_token(token)

    def test_foreign_secret(self):
        token = jwt.encode({"sub": "USER_ABC", "type": "access"}, "some-other-secret", algorithm="HS256")
        with pytest.raises(JWTError):
            decode_access_token(token)


class TestSecrets:

    def test_secret_matches_only_original(self):
        token = generate_refresh_token()
        stored = hash_secret(token)
        assert stored != token
        assert secret_matches(token, stored) is True
        assert secret_matches(token + "x", stored) is False
        assert secret_matches(token, None) is False

    def test_verification_code_shape(self):
        for _ in range(20):
            code = generate_verification_code()
            assert len(code) == 6
            assert code.isdigit()


class TestSerialization:

    def test_js_round_is_half_up(self):
        assert js_round(62.5) == 63
        assert js_round(33.3333) == 33
        assert js_round(66.6667) == 67
        assert js_round(0.5) == 1

    def test_pagination(self):
        assert pagination(2, 10, 25) == {
            "current_page": 2,
            "total_pages": 3,
            "total": 25,
            "limit": 10,
            "has_next_page": True,
            "has_prev_page": True,
        }

    def test_serialize_user_strips_secrets(self):
        user = serialize_user({
            "_id": "x",
            "user_id": "USER_1",
            "password_hash": "h",
            "refresh_token_hash": "r",
            "verification_code_hash": "v",
        })
        assert user == {"user_id": "USER_1"}

"""
Unit Tests for Security Module
Tests for: password hashing, session tokens
"""
import pytest
from datetime import timedelta
from jose import jwt

from app.core.config import settings
from app.core.exceptions import AuthenticationError
from app.core.security import (
    verify_password,
    get_password_hash,
    create_access_token,
    decode_token,
)


class TestPasswordHashing:
    """Test password hashing functions"""

    def test_hash_password_returns_different_value(self):
        password = "testpassword123"
        hashed = get_password_hash(password)

        assert hashed != password
        assert hashed.startswith("$2")

    def test_hash_password_different_each_time(self):
        # Bcrypt generates different salts
        assert get_password_hash("samepassword") != get_password_hash("samepassword")

    def test_verify_password_correct(self):
        hashed = get_password_hash("testpassword123")
        assert verify_password("testpassword123", hashed) is True

    def test_verify_password_incorrect(self):
        hashed = get_password_hash("testpassword123")
        assert verify_password("wrongpassword", hashed) is False

    def test_verify_password_without_hash(self):
        assert verify_password("anything", None) is False
        assert verify_password("anything", "") is False

    def test_verify_password_malformed_hash(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False

    def test_long_password_truncated_to_72_bytes(self):
        long_password = "a" * 100
        hashed = get_password_hash(long_password)

        assert verify_password("a" * 72, hashed) is True


class TestSessionTokens:
    """Test session token creation and decoding"""

    def test_token_carries_claims_and_type(self):
        token = create_access_token({"sub": "user-1", "email": "a@b.co", "role": "student"})
        payload = decode_token(token)

        assert payload["sub"] == "user-1"
        assert payload["email"] == "a@b.co"
        assert payload["role"] == "student"
        assert payload["type"] == "access"
        assert "exp" in payload

    def test_expired_token_rejected(self):
        token = create_access_token({"sub": "user-1"}, expires_delta=timedelta(seconds=-10))

        with pytest.raises(AuthenticationError):
            decode_token(token)

    def test_token_signed_with_other_secret_rejected(self):
        token = jwt.encode({"sub": "user-1", "type": "access"}, "another-secret", algorithm=settings.JWT_ALGORITHM)

        with pytest.raises(AuthenticationError) as exc_info:
            decode_token(token)
        assert exc_info.value.status_code == 401

    def test_garbage_token_rejected(self):
        with pytest.raises(AuthenticationError):
            decode_token("not.a.token")

"""
tests/test_jwt_startup — JWT Secret Validation at Startup
===========================================================
The API must refuse to start when JWT_SECRET is missing, blank, too
short, or a known weak default.
"""

from __future__ import annotations

import jwt
import pytest

from slrp_economy.api import deps
from slrp_economy.errors import AuthError


class TestJWTSecretValidation:
    """Prove that _load_jwt_secret() rejects bad secrets and accepts good ones."""

    def test_rejects_missing_secret(self, monkeypatch):
        monkeypatch.delenv("JWT_SECRET", raising=False)
        with pytest.raises(RuntimeError, match="JWT_SECRET environment variable is not set"):
            deps._load_jwt_secret()

    def test_rejects_empty_secret(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", "")
        with pytest.raises(RuntimeError, match="JWT_SECRET environment variable is not set"):
            deps._load_jwt_secret()

    @pytest.mark.parametrize("weak", ["slrp-dev-secret-change-me", "change-me", "secret"])
    def test_rejects_known_weak_default(self, monkeypatch, weak):
        monkeypatch.setenv("JWT_SECRET", weak)
        with pytest.raises(RuntimeError, match="known weak default"):
            deps._load_jwt_secret()

    def test_rejects_short_secret(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", "tooshort")
        with pytest.raises(RuntimeError, match="too short"):
            deps._load_jwt_secret()

    def test_accepts_strong_secret(self, monkeypatch):
        good_secret = "a" * 64
        monkeypatch.setenv("JWT_SECRET", good_secret)
        assert deps._load_jwt_secret() == good_secret


class TestDecodeToken:
    def _token(self, **claims) -> str:
        return jwt.encode(claims, deps.JWT_SECRET, algorithm=deps.JWT_ALGORITHM)

    def test_returns_claims(self):
        assert deps.decode_token(self._token(sub="user-1"))["sub"] == "user-1"

    def test_audience_enforced_when_configured(self, monkeypatch):
        monkeypatch.setattr(deps, "JWT_AUDIENCE", "authenticated")
        assert deps.decode_token(self._token(sub="u", aud="authenticated"))["sub"] == "u"
        with pytest.raises(AuthError):
            deps.decode_token(self._token(sub="u", aud="someone-else"))

    def test_rejects_none_algorithm(self):
        unsigned = jwt.encode({"sub": "u"}, None, algorithm="none")
        with pytest.raises(AuthError):
            deps.decode_token(unsigned)

    def test_rejects_garbage(self):
        with pytest.raises(AuthError, match="Unauthorized"):
            deps.decode_token("not.a.jwt")

"""
Tests for staff token signing, verification and role checks.
"""

import jwt
import pytest
from fastapi import HTTPException

from shared.config.constants import Roles
from shared.config.settings import JWT_AUDIENCE, JWT_ISSUER, JWT_SECRET
from shared.security.auth import (
    get_bearer_token,
    require_roles,
    sign_jwt,
    sign_staff_token,
    verify_jwt,
)
from shared.utils.exceptions import InsufficientRoleError


class TestTokens:
    """Signing and verifying staff tokens."""

    def test_round_trip_claims(self):
        token = sign_staff_token("42", [Roles.WAITER], name="Marta")

        payload = verify_jwt(token)

        assert payload["sub"] == "42"
        assert payload["roles"] == [Roles.WAITER]
        assert payload["name"] == "Marta"
        assert payload["type"] == "access"
        assert payload["iss"] == JWT_ISSUER
        assert payload["aud"] == JWT_AUDIENCE

    def test_unknown_role_rejected(self):
        with pytest.raises(ValueError, match="Unknown roles"):
            sign_staff_token("1", ["CHEF"])

    def test_expired_token(self):
        token = sign_jwt({"sub": "1", "roles": [Roles.ADMIN]}, ttl_seconds=-10)

        with pytest.raises(HTTPException) as exc:
            verify_jwt(token)

        assert exc.value.status_code == 401
        assert exc.value.detail == "Token has expired"

    def test_wrong_secret(self):
        token = jwt.encode(
            {"sub": "1", "roles": [Roles.ADMIN], "type": "access", "iss": JWT_ISSUER, "aud": JWT_AUDIENCE},
            "not-the-secret",
            algorithm="HS256",
        )
        with pytest.raises(HTTPException) as exc:
            verify_jwt(token)
        assert exc.value.status_code == 401

    @pytest.mark.parametrize(
        "payload",
        [
            {"roles": [Roles.ADMIN]},
            {"sub": "1"},
            {"sub": "1", "roles": []},
        ],
    )
    def test_missing_claims(self, payload):
        with pytest.raises(HTTPException) as exc:
            verify_jwt(sign_jwt(payload))
        assert exc.value.status_code == 401

    def test_refresh_type_rejected(self):
        token = jwt.encode(
            {
                "sub": "1",
                "roles": [Roles.ADMIN],
                "type": "refresh",
                "iss": JWT_ISSUER,
                "aud": JWT_AUDIENCE,
            },
            JWT_SECRET,
            algorithm="HS256",
        )
        with pytest.raises(HTTPException):
            verify_jwt(token)


class TestBearerHeader:
    def test_extracts_token(self):
        assert get_bearer_token("Bearer abc.def") == "abc.def"

    @pytest.mark.parametrize("header", [None, "", "Token abc", "bearer abc"])
    def test_rejects_malformed(self, header):
        with pytest.raises(HTTPException) as exc:
            get_bearer_token(header)
        assert exc.value.status_code == 401


class TestRoles:
    def test_allowed_role(self):
        require_roles({"sub": "1", "roles": [Roles.KITCHEN]}, [Roles.KITCHEN, Roles.ADMIN])

    def test_denied_role(self):
        with pytest.raises(InsufficientRoleError) as exc:
            require_roles({"sub": "1", "roles": [Roles.KITCHEN]}, [Roles.MANAGER])
        assert exc.value.status_code == 403

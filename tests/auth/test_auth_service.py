from __future__ import annotations

import dataclasses
from datetime import timedelta

import jwt
import pytest

from src.school_attendance.school_attendance.auth.service import AuthService
from src.school_attendance.school_attendance.auth.tokens import TokenService
from src.school_attendance.school_attendance.core.enums import RoleName
from src.school_attendance.school_attendance.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ValidationError,
)

from tests.support import JWT_SECRET, FakeCredentials, make_actor


@pytest.fixture
def tokens():
    return TokenService(JWT_SECRET, timedelta(hours=1))


@pytest.fixture
def svc(world, tokens):
    return AuthService(FakeCredentials(world), tokens)


def test_login_issues_token_with_scope_claims(world, svc, tokens):
    world.add_user("dir7", "secret1", RoleName.INSTITUTION_ADMIN, institution_id=7, district_id=1)

    result = svc.login("dir7", "secret1")

    actor = tokens.verify(result.token)
    assert actor.role_name == "AdminInstitucion"
    assert actor.institution_id == 7
    assert actor.district_id == 1
    assert result.user_payload()["role"] == "AdminInstitucion"
    assert "passwordHash" not in result.user_payload()

    claims = jwt.decode(result.token, JWT_SECRET, algorithms=["HS256"])
    assert claims["exp"] - claims["iat"] == 3600


def test_login_failures(world, svc):
    world.add_user("p7", "secret1", RoleName.TEACHER, institution_id=7)
    world.add_user("old", "secret1", RoleName.TEACHER, institution_id=7, is_active=False)

    with pytest.raises(ValidationError):
        svc.login("", "secret1")
    with pytest.raises(AuthenticationError):
        svc.login("nobody", "secret1")
    with pytest.raises(AuthenticationError):
        svc.login("p7", "wrong")
    # wrong password on an inactive account stays a plain 401
    with pytest.raises(AuthenticationError):
        svc.login("old", "wrong")
    with pytest.raises(AuthorizationError):
        svc.login("old", "secret1")


def test_corrupted_hash_is_just_invalid_credentials(world, svc):
    user = world.add_user("p7", "secret1", RoleName.TEACHER, institution_id=7)
    world.password_hashes[user.user_id] = "not-a-hash"

    with pytest.raises(AuthenticationError):
        svc.login("p7", "secret1")


def test_refresh_reloads_current_user(world, svc, tokens):
    user = world.add_user("p7", "secret1", RoleName.TEACHER, institution_id=7)
    token = svc.login("p7", "secret1").token

    # institution moved after the token was issued
    world.users[user.user_id] = dataclasses.replace(world.users[user.user_id], institution_id=8)
    refreshed = tokens.verify(svc.refresh(token))
    assert refreshed.institution_id == 8

    with pytest.raises(ValidationError):
        svc.refresh("")
    with pytest.raises(AuthenticationError):
        svc.refresh("garbage")


def test_refresh_rejects_deactivated_user(world, svc):
    user = world.add_user("p7", "secret1", RoleName.TEACHER, institution_id=7)
    token = svc.login("p7", "secret1").token
    world.users[user.user_id] = dataclasses.replace(world.users[user.user_id], is_active=False)

    with pytest.raises(AuthenticationError):
        svc.refresh(token)


def test_expired_and_foreign_tokens(tokens):
    actor = make_actor(RoleName.TEACHER, institution_id=7)
    expired = TokenService(JWT_SECRET, timedelta(seconds=-10)).issue(actor)
    foreign = TokenService("other-secret", timedelta(hours=1)).issue(actor)

    with pytest.raises(AuthenticationError) as exc:
        tokens.verify(expired)
    assert str(exc.value) == "Token expirado."
    with pytest.raises(AuthenticationError):
        tokens.verify(foreign)


def test_token_service_requires_secret():
    with pytest.raises(ValueError):
        TokenService("", timedelta(hours=1))

from __future__ import annotations

import logging
from dataclasses import dataclass

from werkzeug.security import check_password_hash

from ..core.exceptions import AuthenticationError, AuthorizationError, ValidationError
from .model import Credentials
from .repository import CredentialsRepository
from .tokens import TokenService

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Credenciales inválidas."


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: Credentials

    def user_payload(self) -> dict:
        u = self.user
        return {
            "userId": u.user_id,
            "username": u.username,
            "firstName": u.first_name,
            "lastName": u.last_name,
            "email": u.email,
            "role": u.role_name,
            "institutionId": u.institution_id,
            "districtId": u.district_id,
            "isMinistryUser": u.is_ministry_user,
        }


class AuthService:
    """Use case: login and token refresh."""

    def __init__(self, credentials: CredentialsRepository, tokens: TokenService):
        self._credentials = credentials
        self._tokens = tokens

    def login(self, username: str, password: str) -> LoginResult:
        if not username or not password:
            raise ValidationError("Nombre de usuario y contraseña son requeridos.")

        user = self._credentials.get_by_username(str(username))
        if not user:
            logger.info("Login failed: unknown user %r", username)
            raise AuthenticationError(INVALID_CREDENTIALS)

        try:
            ok = check_password_hash(user.password_hash, str(password))
        except (TypeError, ValueError):
            # unsupported or corrupted hash format
            ok = False
        if not ok:
            logger.info("Login failed: wrong password for %r", username)
            raise AuthenticationError(INVALID_CREDENTIALS)

        # checked after the password so inactive accounts are not enumerable
        if not user.is_active:
            logger.info("Login refused: inactive account %r", username)
            raise AuthorizationError("La cuenta de usuario está inactiva.")

        logger.info("Login ok for %r (userId=%s)", username, user.user_id)
        return LoginResult(token=self._tokens.issue(user.to_actor()), user=user)

    def refresh(self, token: str) -> str:
        if not token:
            raise ValidationError("Token requerido.")

        try:
            actor = self._tokens.verify(str(token))
        except AuthenticationError:
            raise AuthenticationError("Token inválido o expirado.")

        user = self._credentials.get_by_id(actor.user_id)
        if not user or not user.is_active:
            raise AuthenticationError("Token inválido o expirado.")
        return self._tokens.issue(user.to_actor())

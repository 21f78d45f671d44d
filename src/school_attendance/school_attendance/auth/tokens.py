from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt

from ..core.exceptions import AuthenticationError
from .model import Actor

ALGORITHM = "HS256"


class TokenService:
    """Issue / verify signed bearer tokens (HS256)."""

    def __init__(self, secret: str, ttl: timedelta):
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self._secret = secret
        self._ttl = ttl

    def issue(self, actor: Actor) -> str:
        now = datetime.now(timezone.utc)
        payload: Dict[str, Any] = dict(actor.to_claims())
        payload["iat"] = now
        payload["exp"] = now + self._ttl
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def decode(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(token, self._secret, algorithms=[ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token expirado.")
        except jwt.InvalidTokenError:
            raise AuthenticationError("Token inválido.")

    def verify(self, token: str) -> Actor:
        claims = self.decode(token)
        try:
            return Actor.from_claims(claims)
        except (KeyError, TypeError, ValueError):
            raise AuthenticationError("Token inválido.")

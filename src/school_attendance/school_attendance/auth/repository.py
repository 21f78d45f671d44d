from __future__ import annotations

from typing import Optional, Protocol

from .model import Credentials


class CredentialsRepository(Protocol):
    def get_by_username(self, username: str) -> Optional[Credentials]:
        raise NotImplementedError

    def get_by_id(self, user_id: int) -> Optional[Credentials]:
        raise NotImplementedError

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol

from ..common.pagination import Page, PageRequest
from .model import NewUser, User, UserFilter
from .policy import UserVisibility


class UserRepository(Protocol):
    def create(self, user: NewUser) -> int:
        raise NotImplementedError

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def list(self, *, visibility: UserVisibility, filters: UserFilter, page: PageRequest) -> Page[User]:
        raise NotImplementedError

    def update(self, user_id: int, changes: Mapping[str, Any]) -> bool:
        """`changes` is keyed by User field name, plus `password_hash`."""

        raise NotImplementedError

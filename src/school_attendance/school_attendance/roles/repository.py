from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol

from ..common.pagination import Page, PageRequest
from .model import Role


class RoleRepository(Protocol):
    def create(self, *, role_name: str, description: Optional[str], is_active: bool) -> int:
        raise NotImplementedError

    def get_by_id(self, role_id: int) -> Optional[Role]:
        raise NotImplementedError

    def get_by_name(self, role_name: str) -> Optional[Role]:
        raise NotImplementedError

    def list(self, *, page: PageRequest) -> Page[Role]:
        raise NotImplementedError

    def update(self, role_id: int, changes: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def delete(self, role_id: int) -> bool:
        raise NotImplementedError

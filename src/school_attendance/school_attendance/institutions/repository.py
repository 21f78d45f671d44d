from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol

from ..common.pagination import Page, PageRequest
from .model import Institution, InstitutionFilter


class InstitutionRepository(Protocol):
    def create(
        self,
        *,
        name: str,
        district_id: int,
        address: Optional[str],
        subscription_status: str,
        configuration_data: Optional[str],
    ) -> int:
        raise NotImplementedError

    def get_by_id(self, institution_id: int) -> Optional[Institution]:
        raise NotImplementedError

    def list(self, *, filters: InstitutionFilter, page: PageRequest) -> Page[Institution]:
        raise NotImplementedError

    def update(self, institution_id: int, changes: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def delete(self, institution_id: int) -> bool:
        raise NotImplementedError

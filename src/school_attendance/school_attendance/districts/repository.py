from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol

from ..common.pagination import Page, PageRequest
from .model import District, DistrictFilter


class DistrictRepository(Protocol):
    def create(self, *, name: str, regional_district_code: str, contact_info: Optional[str], is_active: bool) -> int:
        raise NotImplementedError

    def get_by_id(self, district_id: int) -> Optional[District]:
        raise NotImplementedError

    def get_by_code(self, regional_district_code: str) -> Optional[District]:
        raise NotImplementedError

    def list(self, *, filters: DistrictFilter, page: PageRequest) -> Page[District]:
        raise NotImplementedError

    def update(self, district_id: int, changes: Mapping[str, Any]) -> bool:
        """`changes` is keyed by District field name."""

        raise NotImplementedError

    def delete(self, district_id: int) -> bool:
        raise NotImplementedError

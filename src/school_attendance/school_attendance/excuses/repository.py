from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional, Protocol

from ..common.pagination import Page, PageRequest
from ..scope.filters import ScopeFilter
from .model import DailyExcuse, ExcuseFilter, NewExcuse


class ExcuseRepository(Protocol):
    def create(self, excuse: NewExcuse) -> int:
        raise NotImplementedError

    def get_by_id(self, excuse_id: int) -> Optional[DailyExcuse]:
        raise NotImplementedError

    def exists_for_date(self, *, student_id: int, excuse_date: date) -> bool:
        raise NotImplementedError

    def list(self, *, scope: ScopeFilter, filters: ExcuseFilter, page: PageRequest) -> Page[DailyExcuse]:
        raise NotImplementedError

    def update(self, excuse_id: int, changes: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def delete(self, excuse_id: int) -> bool:
        raise NotImplementedError

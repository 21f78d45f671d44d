from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from ..common.pagination import Page, PageRequest
from ..scope.filters import ScopeFilter
from .model import NewStudent, Student, StudentFilter, StudentWithGroup


class StudentRepository(Protocol):
    def create(self, student: NewStudent) -> int:
        raise NotImplementedError

    def get_by_id(self, student_id: int) -> Optional[Student]:
        raise NotImplementedError

    def get_by_unique_id(self, *, institution_id: int, student_unique_id: str) -> Optional[Student]:
        raise NotImplementedError

    def list(self, *, scope: ScopeFilter, filters: StudentFilter, page: PageRequest) -> Page[Student]:
        raise NotImplementedError

    def list_with_groups(self, *, institution_id: int) -> Sequence[StudentWithGroup]:
        """Students of one institution, each with its inferred group."""

        raise NotImplementedError

    def update(self, student_id: int, changes: Mapping[str, Any]) -> bool:
        raise NotImplementedError

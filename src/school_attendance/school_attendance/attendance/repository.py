from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional, Protocol

from ..common.pagination import Page, PageRequest
from ..scope.filters import ScopeFilter
from .model import AttendanceFilter, AttendanceRecord, NewAttendanceRecord


class AttendanceRepository(Protocol):
    def create(self, record: NewAttendanceRecord) -> int:
        """Insert the record; GroupID is inferred from the student's memberships."""

        raise NotImplementedError

    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def exists_for_day(self, *, student_id: int, attendance_date: date) -> bool:
        raise NotImplementedError

    def list(self, *, scope: ScopeFilter, filters: AttendanceFilter, page: PageRequest) -> Page[AttendanceRecord]:
        raise NotImplementedError

    def update(self, record_id: int, changes: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def delete(self, record_id: int) -> bool:
        raise NotImplementedError

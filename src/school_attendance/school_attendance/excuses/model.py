from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import to_json_value


@dataclass(frozen=True)
class DailyExcuse:
    excuse_id: int
    student_id: int
    group_id: Optional[int]
    institution_id: int
    excuse_date: date
    marked_by_user_id: Optional[int]
    notes: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    student_unique_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "excuseId": self.excuse_id,
            "studentId": self.student_id,
            "groupId": self.group_id,
            "institutionId": self.institution_id,
            "excuseDate": to_json_value(self.excuse_date),
            "markedByUserId": self.marked_by_user_id,
            "notes": self.notes,
            "isActive": self.is_active,
            "createdAt": to_json_value(self.created_at),
            "updatedAt": to_json_value(self.updated_at),
        }
        if self.student_unique_id is not None:
            data["studentUniqueId"] = self.student_unique_id
            data["firstName"] = self.first_name
            data["lastName"] = self.last_name
        return data


@dataclass(frozen=True)
class NewExcuse:
    student_id: int
    institution_id: int
    excuse_date: date
    marked_by_user_id: int
    notes: Optional[str] = None


@dataclass(frozen=True)
class ExcuseFilter:
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    student_id: Optional[int] = None
    is_active: Optional[bool] = None

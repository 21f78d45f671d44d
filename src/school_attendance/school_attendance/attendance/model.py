from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import to_json_value


@dataclass(frozen=True)
class AttendanceRecord:
    """One attendance mark for a student on a calendar day."""

    record_id: int
    student_id: int
    institution_id: int
    group_id: Optional[int]
    attendance_timestamp: datetime
    attendance_date: date
    recorded_by_user_id: Optional[int]
    attendance_type: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # joined from Students on list queries
    student_unique_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "recordId": self.record_id,
            "studentId": self.student_id,
            "institutionId": self.institution_id,
            "groupId": self.group_id,
            "attendanceTimestamp": to_json_value(self.attendance_timestamp),
            "attendanceDate": to_json_value(self.attendance_date),
            "recordedByUserId": self.recorded_by_user_id,
            "attendanceType": self.attendance_type,
            "notes": self.notes,
            "createdAt": to_json_value(self.created_at),
            "updatedAt": to_json_value(self.updated_at),
        }
        if self.student_unique_id is not None:
            data["studentUniqueId"] = self.student_unique_id
            data["firstName"] = self.first_name
            data["lastName"] = self.last_name
        return data


@dataclass(frozen=True)
class NewAttendanceRecord:
    student_id: int
    institution_id: int
    attendance_timestamp: datetime
    attendance_date: date
    recorded_by_user_id: int
    attendance_type: str
    notes: Optional[str] = None


@dataclass(frozen=True)
class AttendanceFilter:
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    student_id: Optional[int] = None
    group_id: Optional[int] = None

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import to_json_value
from ..core.enums import Gender, StudentStatus


@dataclass(frozen=True)
class Student:
    student_id: int
    institution_id: int
    student_unique_id: str
    first_name: str
    last_name: str
    gender: Gender = Gender.OTHER
    date_of_birth: Optional[date] = None
    enrollment_date: Optional[date] = None
    status: StudentStatus = StudentStatus.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "studentId": self.student_id,
            "institutionId": self.institution_id,
            "studentUniqueId": self.student_unique_id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "gender": self.gender.value,
            "dateOfBirth": to_json_value(self.date_of_birth),
            "enrollmentDate": to_json_value(self.enrollment_date),
            "status": self.status.value,
            "createdAt": to_json_value(self.created_at),
            "updatedAt": to_json_value(self.updated_at),
        }


@dataclass(frozen=True)
class StudentWithGroup:
    student: Student
    group_id: Optional[int]
    group_name: Optional[str]

    def to_dict(self) -> dict:
        data = self.student.to_dict()
        data["groupId"] = self.group_id
        data["groupName"] = self.group_name
        return data


@dataclass(frozen=True)
class NewStudent:
    institution_id: int
    student_unique_id: str
    first_name: str
    last_name: str
    gender: Gender
    date_of_birth: Optional[date]
    status: StudentStatus


@dataclass(frozen=True)
class StudentFilter:
    institution_id: Optional[int] = None
    status: Optional[StudentStatus] = None
    search: Optional[str] = None

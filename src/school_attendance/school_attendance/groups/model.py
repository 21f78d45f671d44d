from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from ..common.datetime_utils import to_json_value
from ..students.model import Student


@dataclass(frozen=True)
class StudentGroup:
    group_id: int
    institution_id: int
    group_name: str
    academic_year: str
    description: Optional[str]
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "groupId": self.group_id,
            "institutionId": self.institution_id,
            "groupName": self.group_name,
            "academicYear": self.academic_year,
            "description": self.description,
            "isActive": self.is_active,
            "createdAt": to_json_value(self.created_at),
            "updatedAt": to_json_value(self.updated_at),
        }


@dataclass(frozen=True)
class GroupMember:
    student: Student
    assignment_date: Optional[datetime] = None

    def to_dict(self) -> dict:
        data = self.student.to_dict()
        data["assignmentDate"] = to_json_value(self.assignment_date)
        return data


@dataclass(frozen=True)
class AssignmentResult:
    group_id: int
    assigned: List[int] = field(default_factory=list)
    already_members: List[int] = field(default_factory=list)


@dataclass(frozen=True)
class GroupFilter:
    academic_year: Optional[str] = None
    is_active: Optional[bool] = None

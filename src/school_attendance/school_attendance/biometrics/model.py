from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import to_json_value


@dataclass(frozen=True)
class BiometricTemplate:
    """Opaque fingerprint template; at most one per student."""

    template_id: int
    student_id: int
    template_data: bytes
    finger_index: Optional[int]
    enrolled_by_user_id: Optional[int]
    enrollment_timestamp: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def template_text(self) -> str:
        return bytes(self.template_data).decode("utf-8", errors="replace")

    def to_dict(self) -> dict:
        return {
            "templateId": self.template_id,
            "studentId": self.student_id,
            "templateData": self.template_text,
            "fingerIndex": self.finger_index,
            "enrollmentDate": to_json_value(self.enrollment_timestamp),
            "enrolledByUserId": self.enrolled_by_user_id,
            "updatedAt": to_json_value(self.updated_at),
        }


@dataclass(frozen=True)
class TemplateEnrollment:
    student_id: int
    template_data: bytes
    finger_index: Optional[int]
    enrolled_by_user_id: int

from __future__ import annotations

from typing import Optional, Protocol, Tuple

from .model import BiometricTemplate, TemplateEnrollment


class BiometricRepository(Protocol):
    def upsert(self, enrollment: TemplateEnrollment) -> Tuple[int, bool]:
        """Insert or replace the student's template.

        Returns (template_id, created).
        """

        raise NotImplementedError

    def get_by_student(self, student_id: int) -> Optional[BiometricTemplate]:
        raise NotImplementedError

    def delete(self, template_id: int) -> bool:
        raise NotImplementedError

from __future__ import annotations

from typing import Optional, Tuple

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, db_transaction, fetchone
from .model import BiometricTemplate, TemplateEnrollment
from .repository import BiometricRepository


def _map(r: dict) -> BiometricTemplate:
    return BiometricTemplate(
        template_id=int(r["TemplateID"]),
        student_id=int(r["StudentID"]),
        template_data=bytes(r["TemplateData"] or b""),
        finger_index=int(r["FingerIndex"]) if r.get("FingerIndex") is not None else None,
        enrolled_by_user_id=r.get("EnrolledByUserID"),
        enrollment_timestamp=r.get("EnrollmentTimestamp"),
        updated_at=r.get("UpdatedAt"),
    )


class MySQLBiometricRepository(BiometricRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def upsert(self, enrollment: TemplateEnrollment) -> Tuple[int, bool]:
        # rowcount cannot tell insert from update under the FOUND_ROWS client flag,
        # so the existing row is read (and locked) first.
        # LAST_INSERT_ID(TemplateID) makes lastrowid point at the existing row.
        with db_transaction(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT TemplateID FROM BiometricTemplates WHERE StudentID=%s FOR UPDATE",
                (int(enrollment.student_id),),
            )
            existing = fetchone(cur)
            cur.execute(
                """
                INSERT INTO BiometricTemplates (StudentID, TemplateData, FingerIndex, EnrolledByUserID)
                VALUES (%s, %s, %s, %s)
                ON DUPLICATE KEY UPDATE
                    TemplateID = LAST_INSERT_ID(TemplateID),
                    TemplateData = VALUES(TemplateData),
                    FingerIndex = VALUES(FingerIndex),
                    EnrolledByUserID = VALUES(EnrolledByUserID),
                    EnrollmentTimestamp = CURRENT_TIMESTAMP
                """,
                (
                    int(enrollment.student_id),
                    enrollment.template_data,
                    enrollment.finger_index,
                    int(enrollment.enrolled_by_user_id),
                ),
            )
            return int(cur.lastrowid), existing is None

    def get_by_student(self, student_id: int) -> Optional[BiometricTemplate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT TemplateID, StudentID, TemplateData, FingerIndex, EnrolledByUserID,
                       EnrollmentTimestamp, UpdatedAt
                FROM BiometricTemplates
                WHERE StudentID=%s
                """,
                (int(student_id),),
            )
            r = fetchone(cur)
            return _map(r) if r else None

    def delete(self, template_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM BiometricTemplates WHERE TemplateID=%s", (int(template_id),))
            return cur.rowcount > 0

from __future__ import annotations

from src.school_attendance.school_attendance.biometrics.model import TemplateEnrollment
from src.school_attendance.school_attendance.biometrics.mysql_biometric_repository import MySQLBiometricRepository

from tests.support import ScriptedConnection, ScriptedConnFactory

ENROLLMENT = TemplateEnrollment(student_id=5, template_data=b"Rk1SACAyMAA=", finger_index=1, enrolled_by_user_id=11)


def test_first_enrollment_is_created():
    factory = ScriptedConnFactory(ScriptedConnection(rows=[None], lastrowid=40))

    assert MySQLBiometricRepository(factory).upsert(ENROLLMENT) == (40, True)
    assert factory.conn.events[0] == "start_transaction"
    assert "commit" in factory.conn.events
    assert factory.released == 1


def test_identical_reenrollment_is_an_update():
    # FOUND_ROWS reports 1 affected row for an unchanged duplicate
    factory = ScriptedConnFactory(ScriptedConnection(rows=[{"TemplateID": 40}], lastrowid=40))
    factory.conn.cur.rowcount = 1

    assert MySQLBiometricRepository(factory).upsert(ENROLLMENT) == (40, False)
    select_sql, params = factory.conn.cur.executed[0]
    assert select_sql.endswith("FOR UPDATE")
    assert params == (5,)

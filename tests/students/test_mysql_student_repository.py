from __future__ import annotations

from src.school_attendance.school_attendance.common.pagination import PageRequest
from src.school_attendance.school_attendance.scope.filters import ScopeFilter
from src.school_attendance.school_attendance.students.model import StudentFilter
from src.school_attendance.school_attendance.students.mysql_student_repository import MySQLStudentRepository

from tests.support import ScriptedConnection, ScriptedConnFactory


def test_search_wildcards_are_literal():
    factory = ScriptedConnFactory(ScriptedConnection(rows=[{"total": 0}]))
    page = PageRequest.from_args({}, sort_columns={"lastName": "s.LastName"}, default_sort="lastName")

    result = MySQLStudentRepository(factory).list(
        scope=ScopeFilter(institution_id=7), filters=StudentFilter(search="_"), page=page
    )

    assert result.total == 0
    count_sql, params = factory.conn.cur.executed[0]
    assert count_sql.count("ESCAPE '\\\\'") == 3
    assert params == (7, "%\\_%", "%\\_%", "%\\_%")

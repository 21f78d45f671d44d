from __future__ import annotations


def inferred_group_id(student_column: str) -> str:
    """Correlated subquery yielding a student's group.

    Students may belong to several groups; the one with the lowest GroupID wins.
    """
    return f"(SELECT MIN(gm.GroupID) FROM StudentGroupMembers gm WHERE gm.StudentID = {student_column})"

from __future__ import annotations

from datetime import date

import pytest

from src.school_attendance.school_attendance.core.constants import EXCUSE_EXISTS_FOR_DATE
from src.school_attendance.school_attendance.core.enums import RoleName
from src.school_attendance.school_attendance.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.school_attendance.school_attendance.excuses.service import ExcuseService

from tests.support import FakeExcuses, make_actor


@pytest.fixture
def svc(world):
    return ExcuseService(FakeExcuses(world), world.scope_authorizer())


@pytest.fixture
def admin():
    return make_actor(RoleName.INSTITUTION_ADMIN, user_id=11, institution_id=7)


def test_create_one_excuse_per_student_and_date(world, svc, admin):
    student = world.add_student(7, "S-1")
    group = world.add_group(7, "1ro A")
    world.add_member(group.group_id, student.student_id)

    excuse = svc.create(
        actor=admin, payload={"studentId": student.student_id, "excuseDate": "2026-03-02", "notes": "Cita médica"}
    )
    assert excuse.excuse_date == date(2026, 3, 2)
    assert excuse.group_id == group.group_id
    assert excuse.institution_id == 7
    assert excuse.marked_by_user_id == 11
    assert excuse.is_active is True

    with pytest.raises(ValidationError) as exc:
        svc.create(actor=admin, payload={"studentId": student.student_id, "excuseDate": "2026-03-02"})
    assert str(exc.value) == EXCUSE_EXISTS_FOR_DATE

    svc.create(actor=admin, payload={"studentId": student.student_id, "excuseDate": "2026-03-03"})


@pytest.mark.parametrize("excuse_date", [None, "", "02/03/2026", "2026-02-30"])
def test_create_requires_valid_date(world, svc, admin, excuse_date):
    student = world.add_student(7, "S-1")
    with pytest.raises(ValidationError):
        svc.create(actor=admin, payload={"studentId": student.student_id, "excuseDate": excuse_date})


def test_create_for_foreign_student_is_forbidden(world, svc, admin):
    foreign = world.add_student(8, "S-9")
    with pytest.raises(AuthorizationError):
        svc.create(actor=admin, payload={"studentId": foreign.student_id, "excuseDate": "2026-03-02"})
    assert world.excuses == {}


def test_district_admin_reads_excuses_of_district(world, svc, admin):
    student = world.add_student(7, "S-1")
    svc.create(actor=admin, payload={"studentId": student.student_id, "excuseDate": "2026-03-02"})

    own = svc.list(actor=make_actor(RoleName.DISTRICT_ADMIN, district_id=1), args={})
    other = svc.list(actor=make_actor(RoleName.DISTRICT_ADMIN, district_id=2), args={})
    assert own.total == 1
    assert other.total == 0


def test_deactivate_then_filter(world, svc, admin):
    student = world.add_student(7, "S-1")
    excuse = svc.create(actor=admin, payload={"studentId": student.student_id, "excuseDate": "2026-03-02"})

    updated = svc.update(actor=admin, excuse_id=excuse.excuse_id, payload={"isActive": False})
    assert updated.is_active is False

    assert svc.list(actor=admin, args={"isActive": "true"}).total == 0
    assert svc.list_for_student(actor=admin, student_id=student.student_id, args={}).total == 1


def test_delete_missing_excuse(world, svc, admin):
    with pytest.raises(NotFoundError):
        svc.delete(actor=admin, excuse_id=55)

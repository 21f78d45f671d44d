from __future__ import annotations

import pytest

from src.school_attendance.school_attendance.core.enums import RoleName
from src.school_attendance.school_attendance.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from src.school_attendance.school_attendance.groups.model import AssignmentResult
from src.school_attendance.school_attendance.groups.service import GroupService, assignment_message

from tests.support import FakeGroups, make_actor


@pytest.fixture
def groups(world):
    return FakeGroups(world)


@pytest.fixture
def svc(world, groups):
    return GroupService(groups, world.scope_authorizer())


@pytest.fixture
def admin():
    return make_actor(RoleName.INSTITUTION_ADMIN, institution_id=7)


def test_create_and_duplicate_name_per_year(svc, admin):
    group = svc.create(actor=admin, payload={"groupName": "1ro A", "academicYear": "2025-2026"})
    assert group.institution_id == 7
    assert group.is_active is True

    with pytest.raises(ConflictError):
        svc.create(actor=admin, payload={"groupName": "1ro A", "academicYear": "2025-2026"})

    # same name, different academic year
    svc.create(actor=admin, payload={"groupName": "1ro A", "academicYear": "2026-2027"})


def test_create_requires_name_and_year(svc, admin):
    with pytest.raises(ValidationError):
        svc.create(actor=admin, payload={"groupName": "1ro A"})


def test_assign_is_idempotent(world, svc, admin):
    group = world.add_group(7, "1ro A")
    a = world.add_student(7, "S-1")
    b = world.add_student(7, "S-2")
    world.add_member(group.group_id, a.student_id)

    result = svc.assign_members(
        actor=admin, group_id=group.group_id, payload={"studentIds": [a.student_id, b.student_id, b.student_id]}
    )

    assert result.assigned == [b.student_id]
    assert result.already_members == [a.student_id]
    assert (group.group_id, b.student_id) in world.members

    again = svc.assign_members(actor=admin, group_id=group.group_id, payload={"studentIds": [b.student_id]})
    assert again.assigned == []
    assert again.already_members == [b.student_id]


def test_assign_rolls_back_when_any_student_is_foreign(world, groups, svc, admin):
    group = world.add_group(7, "1ro A")
    own = world.add_student(7, "S-1")
    foreign = world.add_student(8, "S-9")

    with pytest.raises(AuthorizationError):
        svc.assign_members(
            actor=admin, group_id=group.group_id, payload={"studentIds": [own.student_id, foreign.student_id]}
        )

    assert world.members == {}
    assert groups.rollbacks == 1


def test_assign_unknown_student_is_validation_error(world, svc, admin):
    group = world.add_group(7, "1ro A")
    own = world.add_student(7, "S-1")

    with pytest.raises(ValidationError):
        svc.assign_members(actor=admin, group_id=group.group_id, payload={"studentIds": [own.student_id, 999]})
    assert world.members == {}


@pytest.mark.parametrize("student_ids", [None, [], "1,2", [1, "x"], [0], [True], ["²"], ["١٢"]])
def test_assign_rejects_malformed_student_ids(world, svc, admin, student_ids):
    group = world.add_group(7, "1ro A")
    with pytest.raises(ValidationError):
        svc.assign_members(actor=admin, group_id=group.group_id, payload={"studentIds": student_ids})


def test_assign_to_foreign_group_is_forbidden(world, svc, admin):
    group = world.add_group(8, "1ro A")
    with pytest.raises(AuthorizationError):
        svc.assign_members(actor=admin, group_id=group.group_id, payload={"studentIds": [1]})


def test_reading_foreign_group_looks_missing(world, svc):
    group = world.add_group(8, "1ro A")
    for actor in (
        make_actor(RoleName.INSTITUTION_ADMIN, institution_id=7),
        make_actor(RoleName.DISTRICT_ADMIN, district_id=1),
    ):
        with pytest.raises(NotFoundError):
            svc.get(actor=actor, group_id=group.group_id)
        with pytest.raises(NotFoundError):
            svc.list_members(actor=actor, group_id=group.group_id, args={})


def test_remove_member(world, svc, admin):
    group = world.add_group(7, "1ro A")
    student = world.add_student(7, "S-1")
    world.add_member(group.group_id, student.student_id)

    svc.remove_member(actor=admin, group_id=group.group_id, student_id=student.student_id)
    assert world.members == {}

    with pytest.raises(NotFoundError):
        svc.remove_member(actor=admin, group_id=group.group_id, student_id=student.student_id)


def test_group_of_student_picks_lowest_group_id(world, svc):
    student = world.add_student(7, "S-1")
    first = world.add_group(7, "1ro A")
    second = world.add_group(7, "Coro")
    world.add_member(second.group_id, student.student_id)
    world.add_member(first.group_id, student.student_id)

    teacher = make_actor(RoleName.TEACHER, institution_id=7)
    assert svc.group_of_student(actor=teacher, student_id=student.student_id).group_id == first.group_id

    loner = world.add_student(7, "S-2")
    with pytest.raises(NotFoundError):
        svc.group_of_student(actor=teacher, student_id=loner.student_id)


def test_update_rename_conflict(world, svc, admin):
    a = world.add_group(7, "1ro A")
    world.add_group(7, "1ro B")

    with pytest.raises(ConflictError):
        svc.update(actor=admin, group_id=a.group_id, payload={"groupName": "1ro B"})

    renamed = svc.update(actor=admin, group_id=a.group_id, payload={"groupName": "1ro C", "isActive": "false"})
    assert renamed.group_name == "1ro C"
    assert renamed.is_active is False


def test_assignment_message():
    assert assignment_message(AssignmentResult(group_id=1, assigned=[1, 2])) == "2 estudiante(s) asignado(s) al grupo."
    assert assignment_message(AssignmentResult(group_id=1, assigned=[], already_members=[3])) == (
        "0 estudiante(s) asignado(s) al grupo. 1 ya pertenecían al grupo."
    )

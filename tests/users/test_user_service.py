from __future__ import annotations

import pytest
from werkzeug.security import check_password_hash

from src.school_attendance.school_attendance.core.enums import RoleName
from src.school_attendance.school_attendance.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from src.school_attendance.school_attendance.users.policy import can_create, visibility_for
from src.school_attendance.school_attendance.users.service import UserService

from tests.support import FakeDistricts, FakeInstitutions, FakeRoles, FakeUsers, make_actor


def _service(world) -> UserService:
    return UserService(
        FakeUsers(world),
        FakeRoles(world),
        FakeInstitutions(world),
        FakeDistricts(world),
        world.scope_authorizer(),
    )


def test_institution_admin_cannot_create_district_admin(world):
    svc = _service(world)
    actor = make_actor(RoleName.INSTITUTION_ADMIN, institution_id=7)

    with pytest.raises(AuthorizationError):
        svc.create(
            actor=actor,
            payload={"username": "dist", "password": "secret1", "roleName": "AdminDistrito", "districtId": 1},
        )
    assert not any(u.username == "dist" for u in world.users.values())


def test_institution_admin_creates_teacher_bound_to_own_institution(world):
    svc = _service(world)
    actor = make_actor(RoleName.INSTITUTION_ADMIN, institution_id=7)

    # a foreign institutionId in the payload is ignored
    user = svc.create(
        actor=actor,
        payload={"username": "prof", "password": "secret1", "roleName": "Profesor", "institutionId": 8},
    )

    assert user.role_name == "Profesor"
    assert user.institution_id == 7
    assert user.district_id == 1
    assert check_password_hash(world.password_hashes[user.user_id], "secret1")


def test_district_admin_limited_to_institutions_of_own_district(world):
    svc = _service(world)
    actor = make_actor(RoleName.DISTRICT_ADMIN, district_id=1)

    user = svc.create(
        actor=actor,
        payload={"username": "dir7", "password": "secret1", "roleName": "AdminInstitucion", "institutionId": 7},
    )
    assert user.institution_id == 7

    with pytest.raises(AuthorizationError):
        svc.create(
            actor=actor,
            payload={"username": "dir8", "password": "secret1", "roleName": "AdminInstitucion", "institutionId": 8},
        )


def test_ministry_admin_creates_ministry_user_flagged(world):
    svc = _service(world)
    actor = make_actor(RoleName.MINISTRY_ADMIN, is_ministry_user=True)

    user = svc.create(actor=actor, payload={"username": "min2", "password": "secret1", "roleName": "AdminMinisterio"})
    assert user.is_ministry_user is True

    with pytest.raises(AuthorizationError):
        svc.create(actor=actor, payload={"username": "t", "password": "secret1", "roleName": "Profesor"})


def test_district_admin_requires_district_id(world):
    svc = _service(world)
    with pytest.raises(ValidationError):
        svc.create(
            actor=make_actor(RoleName.APP_ADMIN),
            payload={"username": "dist", "password": "secret1", "roleName": "AdminDistrito"},
        )


def test_create_validates_required_fields_and_password_length(world):
    svc = _service(world)
    actor = make_actor(RoleName.APP_ADMIN)

    with pytest.raises(ValidationError):
        svc.create(actor=actor, payload={"username": "x", "roleName": "AdminApp"})
    with pytest.raises(ValidationError):
        svc.create(actor=actor, payload={"username": "x", "password": "123", "roleName": "AdminApp"})
    with pytest.raises(ValidationError):
        svc.create(actor=actor, payload={"username": "x", "password": "secret1", "roleName": "NoExiste"})


def test_duplicate_username_or_email_is_conflict(world):
    world.add_user("taken", "secret1", RoleName.TEACHER, institution_id=7)
    svc = _service(world)
    actor = make_actor(RoleName.INSTITUTION_ADMIN, institution_id=7)

    with pytest.raises(ConflictError):
        svc.create(actor=actor, payload={"username": "taken", "password": "secret1", "roleName": "Profesor"})
    with pytest.raises(ConflictError):
        svc.create(
            actor=actor,
            payload={"username": "fresh", "password": "secret1", "roleName": "Profesor", "email": "taken@example.org"},
        )


def test_get_masks_users_outside_visibility(world):
    teacher_7 = world.add_user("p7", "secret1", RoleName.TEACHER, institution_id=7)
    teacher_8 = world.add_user("p8", "secret1", RoleName.TEACHER, institution_id=8)
    svc = _service(world)
    actor = make_actor(RoleName.INSTITUTION_ADMIN, institution_id=7)

    assert svc.get(actor=actor, user_id=teacher_7.user_id).username == "p7"
    with pytest.raises(NotFoundError):
        svc.get(actor=actor, user_id=teacher_8.user_id)


def test_list_applies_role_visibility(world):
    world.add_user("root", "secret1", RoleName.APP_ADMIN)
    world.add_user("dir", "secret1", RoleName.INSTITUTION_ADMIN, institution_id=7, district_id=1)
    world.add_user("p7", "secret1", RoleName.TEACHER, institution_id=7)
    svc = _service(world)

    ministry = svc.list(actor=make_actor(RoleName.MINISTRY_ADMIN, is_ministry_user=True), args={})
    assert {u.username for u in ministry.items} == {"dir", "p7"}

    district = svc.list(actor=make_actor(RoleName.DISTRICT_ADMIN, district_id=1), args={})
    assert [u.username for u in district.items] == ["dir"]

    with pytest.raises(AuthorizationError):
        svc.list(actor=make_actor(RoleName.TEACHER, institution_id=7), args={})


def test_ministry_admin_cannot_touch_app_admin(world):
    root = world.add_user("root", "secret1", RoleName.APP_ADMIN)
    svc = _service(world)

    with pytest.raises(AuthorizationError):
        svc.update(
            actor=make_actor(RoleName.MINISTRY_ADMIN, is_ministry_user=True),
            user_id=root.user_id,
            payload={"firstName": "X"},
        )


def test_institution_admin_cannot_change_role_or_ministry_flag(world):
    teacher = world.add_user("p7", "secret1", RoleName.TEACHER, institution_id=7)
    svc = _service(world)
    actor = make_actor(RoleName.INSTITUTION_ADMIN, institution_id=7)

    with pytest.raises(AuthorizationError):
        svc.update(actor=actor, user_id=teacher.user_id, payload={"roleId": 1})
    with pytest.raises(AuthorizationError):
        svc.update(actor=actor, user_id=teacher.user_id, payload={"isMinistryUser": True})
    with pytest.raises(AuthorizationError):
        svc.update(actor=actor, user_id=teacher.user_id, payload={"institutionId": 8})

    updated = svc.update(actor=actor, user_id=teacher.user_id, payload={"lastName": "Gómez", "password": "newpass1"})
    assert updated.last_name == "Gómez"
    assert check_password_hash(world.password_hashes[teacher.user_id], "newpass1")


def test_update_without_changes_is_rejected(world):
    teacher = world.add_user("p7", "secret1", RoleName.TEACHER, institution_id=7)
    with pytest.raises(ValidationError):
        _service(world).update(actor=make_actor(RoleName.APP_ADMIN), user_id=teacher.user_id, payload={})


@pytest.mark.parametrize(
    "creator,target,allowed",
    [
        (RoleName.APP_ADMIN, RoleName.APP_ADMIN, True),
        (RoleName.MINISTRY_ADMIN, RoleName.DISTRICT_ADMIN, True),
        (RoleName.MINISTRY_ADMIN, RoleName.INSTITUTION_ADMIN, False),
        (RoleName.DISTRICT_ADMIN, RoleName.INSTITUTION_ADMIN, True),
        (RoleName.DISTRICT_ADMIN, RoleName.TEACHER, False),
        (RoleName.INSTITUTION_ADMIN, RoleName.SUPPORT_STAFF, True),
        (RoleName.TEACHER, RoleName.TEACHER, False),
        (RoleName.APP_ADMIN, None, True),
        (RoleName.MINISTRY_ADMIN, None, False),
    ],
)
def test_creation_matrix(creator, target, allowed):
    assert can_create(make_actor(creator), target) is allowed


def test_visibility_denies_roles_without_user_admin():
    assert visibility_for(make_actor(RoleName.SUPPORT_STAFF, institution_id=7)).deny
    assert visibility_for(make_actor(RoleName.INSTITUTION_ADMIN)).deny

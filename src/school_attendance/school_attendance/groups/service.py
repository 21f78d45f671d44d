from __future__ import annotations

import logging
from typing import Any, Mapping

from ..auth.model import Actor
from ..common.pagination import Page, PageRequest
from ..common.validators import is_digits, optional_bool, optional_text, parse_bool, require_any_field
from ..core.enums import RoleName
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..scope.authorizer import ResourceKind, ScopeAuthorizer
from ..scope.filters import scope_filter_for
from .model import AssignmentResult, GroupFilter, GroupMember, StudentGroup
from .repository import GroupRepository

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "groupName": "g.GroupName",
    "academicYear": "g.AcademicYear",
    "createdAt": "g.CreatedAt",
    "updatedAt": "g.UpdatedAt",
}

MEMBER_SORT_COLUMNS = {
    "lastName": "s.LastName",
    "firstName": "s.FirstName",
    "studentUniqueId": "s.StudentUniqueID",
    "status": "s.Status",
    "assignmentDate": "gm.AssignmentDate",
}

UPDATABLE_FIELDS = ("groupName", "academicYear", "description", "isActive")

# reading a group out of scope looks the same as reading one that does not exist
_MASK_ALL = tuple(RoleName)
_GROUP_HIDDEN = "Grupo no encontrado o sin permiso para verlo."
_DUPLICATE = "Ya existe un grupo con ese nombre y año académico en su institución."


def _student_ids(raw: Any) -> list[int]:
    if not isinstance(raw, list) or not raw:
        raise ValidationError("Se requiere un array `studentIds` con al menos un ID de estudiante.")

    ids: list[int] = []
    for value in raw:
        if isinstance(value, bool):
            raise ValidationError("Todos los studentIds deben ser números válidos.")
        if isinstance(value, int):
            parsed = value
        elif isinstance(value, str) and is_digits(value.strip()):
            parsed = int(value.strip())
        else:
            raise ValidationError("Todos los studentIds deben ser números válidos.")
        if parsed <= 0:
            raise ValidationError("Todos los studentIds deben ser números válidos.")
        if parsed not in ids:
            ids.append(parsed)
    return ids


class GroupService:
    def __init__(self, groups: GroupRepository, scope: ScopeAuthorizer):
        self._groups = groups
        self._scope = scope

    def create(self, *, actor: Actor, payload: Mapping[str, Any]) -> StudentGroup:
        if actor.institution_id is None:
            raise AuthorizationError("No tiene permiso para crear grupos.")

        group_name = optional_text(payload.get("groupName"))
        academic_year = optional_text(payload.get("academicYear"))
        if not group_name or not academic_year:
            raise ValidationError("Se requieren los campos groupName y academicYear.")

        if self._groups.find_by_name(
            institution_id=actor.institution_id, group_name=group_name, academic_year=academic_year
        ):
            raise ConflictError(_DUPLICATE)

        is_active = parse_bool(payload["isActive"], "isActive") if payload.get("isActive") is not None else True
        group_id = self._groups.create(
            institution_id=actor.institution_id,
            group_name=group_name,
            academic_year=academic_year,
            description=optional_text(payload.get("description")),
            is_active=is_active,
        )
        logger.info("Group %s (%s %s) created by userId=%s", group_id, group_name, academic_year, actor.user_id)
        return self._get(group_id)

    def list(self, *, actor: Actor, args: Mapping[str, Any]) -> Page[StudentGroup]:
        page = PageRequest.from_args(args, sort_columns=SORT_COLUMNS, default_sort="groupName")
        filters = GroupFilter(
            academic_year=optional_text(args.get("academicYear")),
            is_active=optional_bool(args.get("isActive"), "isActive"),
        )
        return self._groups.list(scope=scope_filter_for(actor), filters=filters, page=page)

    def _get(self, group_id: int) -> StudentGroup:
        group = self._groups.get_by_id(int(group_id))
        if not group:
            raise NotFoundError("Grupo no encontrado.")
        return group

    def get(self, *, actor: Actor, group_id: int) -> StudentGroup:
        self._scope.require(actor, ResourceKind.GROUP, group_id, mask_for=_MASK_ALL, not_found_message=_GROUP_HIDDEN)
        return self._get(group_id)

    def update(self, *, actor: Actor, group_id: int, payload: Mapping[str, Any]) -> StudentGroup:
        require_any_field(payload, UPDATABLE_FIELDS)
        self._scope.require(
            actor, ResourceKind.GROUP, group_id, forbidden_message="No tiene permiso para modificar este grupo."
        )
        current = self._get(group_id)

        changes: dict[str, Any] = {}
        for key, field in (("groupName", "group_name"), ("academicYear", "academic_year")):
            if payload.get(key) is not None:
                value = optional_text(payload.get(key))
                if not value:
                    raise ValidationError("groupName y academicYear no pueden estar vacíos.")
                changes[field] = value
        if "description" in payload:
            changes["description"] = optional_text(payload.get("description"))
        if payload.get("isActive") is not None:
            changes["is_active"] = parse_bool(payload["isActive"], "isActive")

        if not changes:
            raise ValidationError("No se proporcionaron campos válidos para actualizar.")

        if "group_name" in changes or "academic_year" in changes:
            other = self._groups.find_by_name(
                institution_id=current.institution_id,
                group_name=changes.get("group_name", current.group_name),
                academic_year=changes.get("academic_year", current.academic_year),
            )
            if other and other.group_id != current.group_id:
                raise ConflictError(_DUPLICATE)

        self._groups.update(current.group_id, changes)
        logger.info("Group %s updated by userId=%s (%s)", current.group_id, actor.user_id, ", ".join(changes))
        return self._get(current.group_id)

    def assign_members(self, *, actor: Actor, group_id: int, payload: Mapping[str, Any]) -> AssignmentResult:
        institution_id = self._scope.require(
            actor,
            ResourceKind.GROUP,
            group_id,
            forbidden_message="No tiene permiso para modificar los miembros de este grupo.",
        )
        student_ids = _student_ids(payload.get("studentIds"))

        with self._groups.membership_transaction() as tx:
            owners = tx.student_institutions(student_ids)
            missing = [s for s in student_ids if s not in owners]
            if missing:
                raise ValidationError("Uno o más IDs de estudiante no fueron encontrados.")
            if any(owners[s] != institution_id for s in student_ids):
                raise AuthorizationError("Uno o más estudiantes no pertenecen a su institución.")

            already = tx.existing_members(group_id, student_ids)
            to_add = [s for s in student_ids if s not in already]
            tx.add_members(group_id, to_add)

        logger.info(
            "Group %s: %d students assigned, %d already members (userId=%s)",
            group_id,
            len(to_add),
            len(already),
            actor.user_id,
        )
        return AssignmentResult(
            group_id=int(group_id),
            assigned=to_add,
            already_members=[s for s in student_ids if s in already],
        )

    def remove_member(self, *, actor: Actor, group_id: int, student_id: int) -> None:
        self._scope.require(
            actor,
            ResourceKind.GROUP,
            group_id,
            forbidden_message="No tiene permiso para modificar los miembros de este grupo.",
        )
        if not self._groups.remove_member(group_id=int(group_id), student_id=int(student_id)):
            raise NotFoundError("El estudiante no es miembro de este grupo.")
        logger.info("Student %s removed from group %s by userId=%s", student_id, group_id, actor.user_id)

    def list_members(self, *, actor: Actor, group_id: int, args: Mapping[str, Any]) -> Page[GroupMember]:
        self._scope.require(actor, ResourceKind.GROUP, group_id, mask_for=_MASK_ALL, not_found_message=_GROUP_HIDDEN)
        page = PageRequest.from_args(args, sort_columns=MEMBER_SORT_COLUMNS, default_sort="lastName")
        return self._groups.list_members(group_id=int(group_id), page=page)

    def group_of_student(self, *, actor: Actor, student_id: int) -> StudentGroup:
        self._scope.require(actor, ResourceKind.STUDENT, student_id)
        group = self._groups.group_of_student(int(student_id))
        if not group:
            raise NotFoundError("El estudiante no está asignado a ningún grupo.")
        return group


def assignment_message(result: AssignmentResult) -> str:
    message = f"{len(result.assigned)} estudiante(s) asignado(s) al grupo."
    if result.already_members:
        message += f" {len(result.already_members)} ya pertenecían al grupo."
    return message

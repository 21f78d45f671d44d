from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from ..auth.model import Actor
from ..common.datetime_utils import optional_iso_date
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_id, optional_text, require_any_field, require_choice
from ..core.enums import Gender, StudentStatus
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..scope.authorizer import ResourceKind, ScopeAuthorizer
from ..scope.filters import scope_filter_for
from .model import NewStudent, Student, StudentFilter, StudentWithGroup
from .repository import StudentRepository

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "lastName": "s.LastName",
    "firstName": "s.FirstName",
    "studentUniqueId": "s.StudentUniqueID",
    "status": "s.Status",
    "createdAt": "s.CreatedAt",
}

UPDATABLE_FIELDS = ("studentUniqueId", "firstName", "lastName", "gender", "dateOfBirth", "status")

_BAD_GENDER = 'Género inválido. Usar "M", "F", u "O".'
_BAD_STATUS = "Estado inválido."


def _gender(value: Any) -> Gender:
    return require_choice(str(value).strip().upper(), Gender, _BAD_GENDER)


def _status(value: Any) -> StudentStatus:
    text = str(value).strip().capitalize()
    return require_choice(text, StudentStatus, _BAD_STATUS)


def _own_institution(actor: Actor) -> int:
    if actor.institution_id is None:
        raise AuthorizationError("No tiene una institución asignada.")
    return actor.institution_id


class StudentService:
    def __init__(self, students: StudentRepository, scope: ScopeAuthorizer):
        self._students = students
        self._scope = scope

    def create(self, *, actor: Actor, payload: Mapping[str, Any]) -> Student:
        institution_id = _own_institution(actor)

        unique_id = optional_text(payload.get("studentUniqueId"))
        first_name = optional_text(payload.get("firstName"))
        last_name = optional_text(payload.get("lastName"))
        if not unique_id or not first_name or not last_name:
            raise ValidationError("ID Único, Nombre y Apellido son requeridos.")

        gender = _gender(payload["gender"]) if payload.get("gender") is not None else Gender.OTHER
        status = _status(payload["status"]) if payload.get("status") is not None else StudentStatus.ACTIVE
        date_of_birth = optional_iso_date(payload.get("dateOfBirth"), "fecha de nacimiento")

        if self._students.get_by_unique_id(institution_id=institution_id, student_unique_id=unique_id):
            raise ConflictError("Conflicto: Ya existe un estudiante con ese ID Único en esta institución.")

        student_id = self._students.create(
            NewStudent(
                institution_id=institution_id,
                student_unique_id=unique_id,
                first_name=first_name,
                last_name=last_name,
                gender=gender,
                date_of_birth=date_of_birth,
                status=status,
            )
        )
        logger.info("Student %s (%s) created in institution %s by userId=%s", student_id, unique_id, institution_id, actor.user_id)
        return self._get(student_id)

    def list(self, *, actor: Actor, args: Mapping[str, Any]) -> Page[Student]:
        page = PageRequest.from_args(args, sort_columns=SORT_COLUMNS, default_sort="lastName")
        filters = StudentFilter(
            institution_id=optional_id(args.get("institutionId"), "institutionId"),
            status=_status(args["status"]) if args.get("status") else None,
            search=optional_text(args.get("search")),
        )
        return self._students.list(scope=scope_filter_for(actor), filters=filters, page=page)

    def list_with_groups(self, *, actor: Actor) -> Sequence[StudentWithGroup]:
        return self._students.list_with_groups(institution_id=_own_institution(actor))

    def _get(self, student_id: int) -> Student:
        student = self._students.get_by_id(int(student_id))
        if not student:
            raise NotFoundError("Estudiante no encontrado.")
        return student

    def get(self, *, actor: Actor, student_id: int) -> Student:
        self._scope.require(
            actor, ResourceKind.STUDENT, student_id, forbidden_message="No tiene permiso para ver este estudiante."
        )
        return self._get(student_id)

    def update(self, *, actor: Actor, student_id: int, payload: Mapping[str, Any]) -> Student:
        require_any_field(payload, UPDATABLE_FIELDS)
        self._scope.require(
            actor,
            ResourceKind.STUDENT,
            student_id,
            forbidden_message="No tiene permiso para actualizar este estudiante.",
        )
        current = self._get(student_id)

        changes: dict[str, Any] = {}
        if payload.get("studentUniqueId") is not None:
            unique_id = optional_text(payload.get("studentUniqueId"))
            if not unique_id:
                raise ValidationError("El ID Único no puede estar vacío.")
            other = self._students.get_by_unique_id(institution_id=current.institution_id, student_unique_id=unique_id)
            if other and other.student_id != current.student_id:
                raise ConflictError("Conflicto: Ya existe otro estudiante con ese ID Único en esta institución.")
            changes["student_unique_id"] = unique_id
        for key, field in (("firstName", "first_name"), ("lastName", "last_name")):
            if payload.get(key) is not None:
                value = optional_text(payload.get(key))
                if not value:
                    raise ValidationError("Nombre y Apellido no pueden estar vacíos.")
                changes[field] = value
        if payload.get("gender") is not None:
            changes["gender"] = _gender(payload["gender"])
        if payload.get("status") is not None:
            changes["status"] = _status(payload["status"])
        if payload.get("dateOfBirth") is not None:
            changes["date_of_birth"] = optional_iso_date(payload.get("dateOfBirth"), "fecha de nacimiento")

        if not changes:
            raise ValidationError("No se proporcionaron campos válidos para actualizar.")

        self._students.update(current.student_id, changes)
        logger.info("Student %s updated by userId=%s (%s)", current.student_id, actor.user_id, ", ".join(changes))
        return self._get(current.student_id)

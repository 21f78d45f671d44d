from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from ..auth.model import Actor
from ..common.datetime_utils import now_local, optional_iso_date, today_local
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_id, optional_text, parse_id, require_any_field
from ..core.constants import ATTENDANCE_EXISTS_TODAY, DEFAULT_ATTENDANCE_TYPE, MAX_ATTENDANCE_TYPE_LENGTH
from ..core.enums import SortOrder
from ..core.exceptions import NotFoundError, ValidationError
from ..scope.authorizer import ResourceKind, ScopeAuthorizer
from ..scope.filters import ScopeFilter, scope_filter_for
from .model import AttendanceFilter, AttendanceRecord, NewAttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "recordId": "ar.RecordID",
    "attendanceTimestamp": "ar.AttendanceTimestamp",
    "attendanceDate": "ar.AttendanceDate",
    "studentId": "ar.StudentID",
}

UPDATABLE_FIELDS = ("attendanceType", "notes")

_RECORD_MISSING = "Registro no encontrado."


def _attendance_type(value: Any) -> str:
    text = optional_text(value) or DEFAULT_ATTENDANCE_TYPE
    if len(text) > MAX_ATTENDANCE_TYPE_LENGTH:
        raise ValidationError(f"attendanceType no puede exceder {MAX_ATTENDANCE_TYPE_LENGTH} caracteres.")
    return text


def date_range(args: Mapping[str, Any]):
    start = optional_iso_date(args.get("startDate"), "fecha de inicio")
    end = optional_iso_date(args.get("endDate"), "fecha de fin")
    if start and end and start > end:
        raise ValidationError("La fecha de inicio no puede ser posterior a la fecha de fin.")
    return start, end


class AttendanceService:
    def __init__(self, records: AttendanceRepository, scope: ScopeAuthorizer):
        self._records = records
        self._scope = scope

    def create(self, *, actor: Actor, payload: Mapping[str, Any]) -> AttendanceRecord:
        student_id = parse_id(payload.get("studentId"), "studentId")
        institution_id = self._scope.require(
            actor,
            ResourceKind.STUDENT,
            student_id,
            not_found_message="Estudiante no encontrado en la institución.",
            forbidden_message="No tiene permiso para registrar asistencia.",
        )

        attendance_type = _attendance_type(payload.get("attendanceType"))
        day = today_local()
        if self._records.exists_for_day(student_id=student_id, attendance_date=day):
            raise ValidationError(ATTENDANCE_EXISTS_TODAY)

        record_id = self._records.create(
            NewAttendanceRecord(
                student_id=student_id,
                institution_id=institution_id,
                attendance_timestamp=now_local(),
                attendance_date=day,
                recorded_by_user_id=actor.user_id,
                attendance_type=attendance_type,
                notes=optional_text(payload.get("notes")),
            )
        )
        logger.info(
            "Attendance %s (%s) recorded for student %s by userId=%s", record_id, attendance_type, student_id, actor.user_id
        )
        return self._get(record_id)

    def _page(self, args: Mapping[str, Any]) -> PageRequest:
        return PageRequest.from_args(
            args, sort_columns=SORT_COLUMNS, default_sort="attendanceTimestamp", default_order=SortOrder.DESC
        )

    def list(self, *, actor: Actor, args: Mapping[str, Any]) -> Page[AttendanceRecord]:
        page = self._page(args)
        start, end = date_range(args)
        filters = AttendanceFilter(
            start_date=start,
            end_date=end,
            student_id=optional_id(args.get("studentId"), "studentId"),
            group_id=optional_id(args.get("groupId"), "groupId"),
        )
        return self._records.list(scope=scope_filter_for(actor), filters=filters, page=page)

    def list_for_student(self, *, actor: Actor, student_id: int, args: Mapping[str, Any]) -> Page[AttendanceRecord]:
        institution_id = self._scope.require(
            actor, ResourceKind.STUDENT, student_id, forbidden_message="No tiene permiso para ver estos registros."
        )
        page = self._page(args)
        start, end = date_range(args)
        filters = AttendanceFilter(start_date=start, end_date=end, student_id=int(student_id))
        return self._records.list(scope=ScopeFilter(institution_id=institution_id), filters=filters, page=page)

    def _get(self, record_id: int) -> AttendanceRecord:
        record = self._records.get_by_id(int(record_id))
        if not record:
            raise NotFoundError(_RECORD_MISSING)
        return record

    def _require_record(self, actor: Actor, record_id: int, forbidden_message: str) -> None:
        self._scope.require(
            actor,
            ResourceKind.ATTENDANCE_RECORD,
            record_id,
            not_found_message=_RECORD_MISSING,
            forbidden_message=forbidden_message,
        )

    def update(self, *, actor: Actor, record_id: int, payload: Mapping[str, Any]) -> AttendanceRecord:
        require_any_field(payload, UPDATABLE_FIELDS)
        self._require_record(actor, record_id, "No tiene permiso para modificar este registro.")

        changes: dict[str, Optional[str]] = {}
        if payload.get("attendanceType") is not None:
            changes["attendance_type"] = _attendance_type(payload.get("attendanceType"))
        if "notes" in payload:
            changes["notes"] = optional_text(payload.get("notes"))

        self._records.update(int(record_id), changes)
        logger.info("Attendance %s updated by userId=%s (%s)", record_id, actor.user_id, ", ".join(changes))
        return self._get(record_id)

    def delete(self, *, actor: Actor, record_id: int) -> None:
        self._require_record(actor, record_id, "No tiene permiso para eliminar este registro.")
        if not self._records.delete(int(record_id)):
            raise NotFoundError(_RECORD_MISSING)
        logger.info("Attendance %s deleted by userId=%s", record_id, actor.user_id)

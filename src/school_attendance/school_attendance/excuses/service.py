from __future__ import annotations

import logging
from typing import Any, Mapping

from ..attendance.service import date_range
from ..auth.model import Actor
from ..common.datetime_utils import parse_iso_date
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_bool, optional_id, optional_text, parse_bool, parse_id, require_any_field
from ..core.constants import EXCUSE_EXISTS_FOR_DATE
from ..core.enums import SortOrder
from ..core.exceptions import NotFoundError, ValidationError
from ..scope.authorizer import ResourceKind, ScopeAuthorizer
from ..scope.filters import ScopeFilter, scope_filter_for
from .model import DailyExcuse, ExcuseFilter, NewExcuse
from .repository import ExcuseRepository

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "excuseId": "de.ExcuseID",
    "excuseDate": "de.ExcuseDate",
    "studentId": "de.StudentID",
}

UPDATABLE_FIELDS = ("isActive", "notes")


class ExcuseService:
    def __init__(self, excuses: ExcuseRepository, scope: ScopeAuthorizer):
        self._excuses = excuses
        self._scope = scope

    def create(self, *, actor: Actor, payload: Mapping[str, Any]) -> DailyExcuse:
        student_id = parse_id(payload.get("studentId"), "studentId")
        institution_id = self._scope.require(
            actor,
            ResourceKind.STUDENT,
            student_id,
            forbidden_message="No tiene permiso para registrar una excusa.",
        )
        excuse_date = parse_iso_date(payload.get("excuseDate"), "fecha de excusa")

        if self._excuses.exists_for_date(student_id=student_id, excuse_date=excuse_date):
            raise ValidationError(EXCUSE_EXISTS_FOR_DATE)

        excuse_id = self._excuses.create(
            NewExcuse(
                student_id=student_id,
                institution_id=institution_id,
                excuse_date=excuse_date,
                marked_by_user_id=actor.user_id,
                notes=optional_text(payload.get("notes")),
            )
        )
        logger.info("Excuse %s for student %s on %s by userId=%s", excuse_id, student_id, excuse_date, actor.user_id)
        return self._get(excuse_id)

    def _page(self, args: Mapping[str, Any]) -> PageRequest:
        return PageRequest.from_args(
            args, sort_columns=SORT_COLUMNS, default_sort="excuseDate", default_order=SortOrder.DESC
        )

    def list(self, *, actor: Actor, args: Mapping[str, Any]) -> Page[DailyExcuse]:
        page = self._page(args)
        start, end = date_range(args)
        filters = ExcuseFilter(
            start_date=start,
            end_date=end,
            student_id=optional_id(args.get("studentId"), "studentId"),
            is_active=optional_bool(args.get("isActive"), "isActive"),
        )
        return self._excuses.list(scope=scope_filter_for(actor), filters=filters, page=page)

    def list_for_student(self, *, actor: Actor, student_id: int, args: Mapping[str, Any]) -> Page[DailyExcuse]:
        institution_id = self._scope.require(
            actor,
            ResourceKind.STUDENT,
            student_id,
            forbidden_message="No tiene permiso para ver estas excusas o el estudiante no pertenece a su institución.",
        )
        page = self._page(args)
        start, end = date_range(args)
        filters = ExcuseFilter(start_date=start, end_date=end, student_id=int(student_id))
        return self._excuses.list(scope=ScopeFilter(institution_id=institution_id), filters=filters, page=page)

    def _get(self, excuse_id: int) -> DailyExcuse:
        excuse = self._excuses.get_by_id(int(excuse_id))
        if not excuse:
            raise NotFoundError("Excusa no encontrada.")
        return excuse

    def update(self, *, actor: Actor, excuse_id: int, payload: Mapping[str, Any]) -> DailyExcuse:
        require_any_field(payload, UPDATABLE_FIELDS)
        self._scope.require(
            actor, ResourceKind.EXCUSE, excuse_id, forbidden_message="No tiene permiso para modificar esta excusa."
        )

        changes: dict[str, Any] = {}
        if payload.get("isActive") is not None:
            changes["is_active"] = parse_bool(payload["isActive"], "isActive")
        if "notes" in payload:
            changes["notes"] = optional_text(payload.get("notes"))

        self._excuses.update(int(excuse_id), changes)
        logger.info("Excuse %s updated by userId=%s (%s)", excuse_id, actor.user_id, ", ".join(changes))
        return self._get(excuse_id)

    def delete(self, *, actor: Actor, excuse_id: int) -> None:
        self._scope.require(
            actor, ResourceKind.EXCUSE, excuse_id, forbidden_message="No tiene permiso para eliminar esta excusa."
        )
        if not self._excuses.delete(int(excuse_id)):
            raise NotFoundError("Excusa no encontrada.")
        logger.info("Excuse %s deleted by userId=%s", excuse_id, actor.user_id)

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Tuple

from ..auth.model import Actor
from ..common.validators import parse_id
from ..core.exceptions import NotFoundError, ValidationError
from ..scope.authorizer import ResourceKind, ScopeAuthorizer
from .model import BiometricTemplate, TemplateEnrollment
from .repository import BiometricRepository

logger = logging.getLogger(__name__)


def _finger_index(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError("fingerIndex debe ser un número entero.")
    try:
        index = int(value)
    except (TypeError, ValueError):
        raise ValidationError("fingerIndex debe ser un número entero.")
    if index < 0:
        raise ValidationError("fingerIndex debe ser un número entero.")
    return index


class BiometricService:
    """Enrollment and retrieval of opaque fingerprint templates.

    Matching is done by the capture devices; the API only stores the bytes.
    """

    def __init__(self, templates: BiometricRepository, scope: ScopeAuthorizer):
        self._templates = templates
        self._scope = scope

    def enroll(self, *, actor: Actor, payload: Mapping[str, Any]) -> Tuple[int, bool]:
        template_data = payload.get("templateData")
        if payload.get("studentId") in (None, "") or not isinstance(template_data, str) or not template_data:
            raise ValidationError("studentId y templateData son requeridos.")
        student_id = parse_id(payload.get("studentId"), "studentId")

        self._scope.require(
            actor,
            ResourceKind.STUDENT,
            student_id,
            forbidden_message="No tiene permiso para registrar huellas de este estudiante.",
        )

        template_id, created = self._templates.upsert(
            TemplateEnrollment(
                student_id=student_id,
                template_data=template_data.encode("utf-8"),
                finger_index=_finger_index(payload.get("fingerIndex")),
                enrolled_by_user_id=actor.user_id,
            )
        )
        logger.info(
            "Biometric template %s %s for student %s by userId=%s",
            template_id,
            "created" if created else "replaced",
            student_id,
            actor.user_id,
        )
        return template_id, created

    def get_for_student(self, *, actor: Actor, student_id: int) -> BiometricTemplate:
        self._scope.require(
            actor,
            ResourceKind.STUDENT,
            student_id,
            forbidden_message="No tiene permiso para ver huellas de este estudiante.",
        )
        template = self._templates.get_by_student(int(student_id))
        if not template:
            raise NotFoundError("No se encontró plantilla biométrica para este estudiante.")
        return template

    def delete(self, *, actor: Actor, template_id: int) -> None:
        self._scope.require(
            actor,
            ResourceKind.BIOMETRIC_TEMPLATE,
            template_id,
            forbidden_message="No tiene permiso para eliminar esta huella.",
        )
        if not self._templates.delete(int(template_id)):
            raise NotFoundError("Plantilla biométrica no encontrada.")
        logger.info("Biometric template %s deleted by userId=%s", template_id, actor.user_id)

from __future__ import annotations

from flask import Flask

from ..common.validators import parse_id
from ..common.web import current_actor, json_body, json_response, role_guard
from ..container import Container
from ..core.enums import RoleName


def register(app: Flask, container: Container) -> None:
    roles_required = role_guard(container.token_service)
    service = container.biometric_service

    @app.route("/api/biometrics", methods=["POST"], endpoint="enroll_biometric")
    @roles_required(RoleName.INSTITUTION_ADMIN)
    def enroll_biometric():
        template_id, created = service.enroll(actor=current_actor(), payload=json_body())
        if created:
            return json_response({"message": "Plantilla biométrica creada exitosamente.", "templateId": template_id}, 201)
        return json_response({"message": "Plantilla biométrica actualizada exitosamente.", "templateId": template_id})

    @app.route("/api/biometrics/student/<student_id>", methods=["GET"], endpoint="student_biometric")
    @roles_required(RoleName.INSTITUTION_ADMIN, RoleName.TEACHER)
    def student_biometric(student_id: str):
        template = service.get_for_student(actor=current_actor(), student_id=parse_id(student_id, "ID del estudiante"))
        return json_response(template.to_dict())

    @app.route("/api/biometrics/<template_id>", methods=["DELETE"], endpoint="delete_biometric")
    @roles_required(RoleName.INSTITUTION_ADMIN)
    def delete_biometric(template_id: str):
        service.delete(actor=current_actor(), template_id=parse_id(template_id, "ID de la plantilla"))
        return json_response({"message": "Plantilla biométrica eliminada exitosamente."})

from __future__ import annotations

from flask import Flask

from ..common.validators import parse_id
from ..common.web import current_actor, json_body, json_response, query_args, role_guard
from ..container import Container
from ..core.enums import RoleName


def register(app: Flask, container: Container) -> None:
    roles_required = role_guard(container.token_service)
    writers = (RoleName.INSTITUTION_ADMIN, RoleName.TEACHER)
    readers = (
        RoleName.APP_ADMIN,
        RoleName.INSTITUTION_ADMIN,
        RoleName.TEACHER,
        RoleName.DISTRICT_ADMIN,
        RoleName.MINISTRY_ADMIN,
    )
    service = container.attendance_service

    def page_payload(page):
        return {"attendanceRecords": [r.to_dict() for r in page.items], "pagination": page.pagination()}

    @app.route("/api/attendances", methods=["POST"], endpoint="create_attendance")
    @roles_required(*writers)
    def create_attendance():
        record = service.create(actor=current_actor(), payload=json_body())
        return json_response(
            {"message": "Registro de asistencia creado exitosamente.", "attendanceRecord": record.to_dict()}, 201
        )

    @app.route("/api/attendances", methods=["GET"], endpoint="list_attendances")
    @roles_required(*readers)
    def list_attendances():
        return json_response(page_payload(service.list(actor=current_actor(), args=query_args())))

    @app.route("/api/attendances/<student_id>", methods=["GET"], endpoint="student_attendances")
    @roles_required(*readers)
    def student_attendances(student_id: str):
        page = service.list_for_student(
            actor=current_actor(), student_id=parse_id(student_id, "ID del estudiante"), args=query_args()
        )
        return json_response(page_payload(page))

    @app.route("/api/attendances/<record_id>", methods=["PUT"], endpoint="update_attendance")
    @roles_required(*writers)
    def update_attendance(record_id: str):
        record = service.update(actor=current_actor(), record_id=parse_id(record_id, "ID del registro"), payload=json_body())
        return json_response(
            {"message": "Registro de asistencia actualizado exitosamente.", "attendanceRecord": record.to_dict()}
        )

    @app.route("/api/attendances/<record_id>", methods=["DELETE"], endpoint="delete_attendance")
    @roles_required(*writers)
    def delete_attendance(record_id: str):
        service.delete(actor=current_actor(), record_id=parse_id(record_id, "ID del registro"))
        return json_response({"message": "Registro de asistencia eliminado exitosamente."})

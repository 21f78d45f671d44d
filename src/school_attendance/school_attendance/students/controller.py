from __future__ import annotations

from flask import Flask

from ..common.validators import parse_id
from ..common.web import current_actor, json_body, json_response, query_args, role_guard
from ..container import Container
from ..core.enums import RoleName


def register(app: Flask, container: Container) -> None:
    roles_required = role_guard(container.token_service)
    readers = (RoleName.INSTITUTION_ADMIN, RoleName.TEACHER, RoleName.DISTRICT_ADMIN, RoleName.MINISTRY_ADMIN)
    service = container.student_service

    @app.route("/api/students", methods=["POST"], endpoint="create_student")
    @roles_required(RoleName.INSTITUTION_ADMIN)
    def create_student():
        student = service.create(actor=current_actor(), payload=json_body())
        return json_response({"message": "Estudiante creado exitosamente.", "student": student.to_dict()}, 201)

    @app.route("/api/students", methods=["GET"], endpoint="list_students")
    @roles_required(*readers)
    def list_students():
        page = service.list(actor=current_actor(), args=query_args())
        return json_response({"students": [s.to_dict() for s in page.items], "pagination": page.pagination()})

    @app.route("/api/students/students-with-groups", methods=["GET"], endpoint="students_with_groups")
    @roles_required(RoleName.INSTITUTION_ADMIN, RoleName.TEACHER, RoleName.SUPPORT_STAFF)
    def students_with_groups():
        rows = service.list_with_groups(actor=current_actor())
        return json_response({"students": [r.to_dict() for r in rows]})

    @app.route("/api/students/<student_id>", methods=["GET"], endpoint="get_student")
    @roles_required(*readers)
    def get_student(student_id: str):
        student = service.get(actor=current_actor(), student_id=parse_id(student_id, "ID del estudiante"))
        return json_response({"student": student.to_dict()})

    @app.route("/api/students/<student_id>", methods=["PUT"], endpoint="update_student")
    @roles_required(RoleName.INSTITUTION_ADMIN)
    def update_student(student_id: str):
        student = service.update(
            actor=current_actor(), student_id=parse_id(student_id, "ID del estudiante"), payload=json_body()
        )
        return json_response({"message": "Estudiante actualizado exitosamente.", "student": student.to_dict()})

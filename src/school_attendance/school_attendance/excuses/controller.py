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
    service = container.excuse_service

    def page_payload(page):
        return {"excuseRecords": [e.to_dict() for e in page.items], "pagination": page.pagination()}

    @app.route("/api/excuses", methods=["POST"], endpoint="create_excuse")
    @roles_required(*writers)
    def create_excuse():
        excuse = service.create(actor=current_actor(), payload=json_body())
        return json_response({"message": "Excusa registrada exitosamente.", "excuseRecord": excuse.to_dict()}, 201)

    @app.route("/api/excuses", methods=["GET"], endpoint="list_excuses")
    @roles_required(*readers)
    def list_excuses():
        return json_response(page_payload(service.list(actor=current_actor(), args=query_args())))

    @app.route("/api/excuses/<student_id>", methods=["GET"], endpoint="student_excuses")
    @roles_required(*readers)
    def student_excuses(student_id: str):
        page = service.list_for_student(
            actor=current_actor(), student_id=parse_id(student_id, "ID del estudiante"), args=query_args()
        )
        return json_response(page_payload(page))

    @app.route("/api/excuses/<excuse_id>", methods=["PUT"], endpoint="update_excuse")
    @roles_required(*writers)
    def update_excuse(excuse_id: str):
        excuse = service.update(actor=current_actor(), excuse_id=parse_id(excuse_id, "ID de la excusa"), payload=json_body())
        return json_response({"message": "Excusa actualizada exitosamente.", "excuseRecord": excuse.to_dict()})

    @app.route("/api/excuses/<excuse_id>", methods=["DELETE"], endpoint="delete_excuse")
    @roles_required(*writers)
    def delete_excuse(excuse_id: str):
        service.delete(actor=current_actor(), excuse_id=parse_id(excuse_id, "ID de la excusa"))
        return json_response({"message": "Excusa eliminada exitosamente."})

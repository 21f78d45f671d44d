from __future__ import annotations

from flask import Flask

from ..common.validators import parse_id
from ..common.web import current_actor, json_body, json_response, query_args, role_guard
from ..container import Container
from ..core.enums import RoleName
from .service import sees_configuration


def register(app: Flask, container: Container) -> None:
    roles_required = role_guard(container.token_service)
    managers = (RoleName.APP_ADMIN, RoleName.MINISTRY_ADMIN, RoleName.DISTRICT_ADMIN)
    service = container.institution_service

    @app.route("/api/institutions", methods=["POST"], endpoint="create_institution")
    @roles_required(*managers)
    def create_institution():
        actor = current_actor()
        institution = service.create(actor=actor, payload=json_body())
        return json_response(
            {
                "message": "Institución creada exitosamente.",
                "institution": institution.to_dict(include_configuration=sees_configuration(actor)),
            },
            201,
        )

    @app.route("/api/institutions", methods=["GET"], endpoint="list_institutions")
    @roles_required(*managers)
    def list_institutions():
        page = service.list(actor=current_actor(), args=query_args())
        return json_response({"institutions": [i.to_dict() for i in page.items], "pagination": page.pagination()})

    @app.route("/api/institutions/<institution_id>", methods=["GET"], endpoint="get_institution")
    @roles_required(*managers, RoleName.INSTITUTION_ADMIN)
    def get_institution(institution_id: str):
        data = service.get(actor=current_actor(), institution_id=parse_id(institution_id, "ID de la institución"))
        return json_response({"institution": data})

    @app.route("/api/institutions/<institution_id>", methods=["PUT"], endpoint="update_institution")
    @roles_required(*managers)
    def update_institution(institution_id: str):
        actor = current_actor()
        institution = service.update(
            actor=actor,
            institution_id=parse_id(institution_id, "ID de la institución"),
            payload=json_body(),
        )
        return json_response(
            {
                "message": "Institución actualizada exitosamente.",
                "institution": institution.to_dict(include_configuration=sees_configuration(actor)),
            }
        )

    @app.route("/api/institutions/<institution_id>", methods=["DELETE"], endpoint="delete_institution")
    @roles_required(*managers)
    def delete_institution(institution_id: str):
        service.delete(actor=current_actor(), institution_id=parse_id(institution_id, "ID de la institución"))
        return json_response({"message": "Institución eliminada exitosamente."})

from __future__ import annotations

from flask import Flask

from ..common.validators import parse_id
from ..common.web import current_actor, json_body, json_response, query_args, role_guard
from ..container import Container
from ..core.enums import RoleName


def register(app: Flask, container: Container) -> None:
    roles_required = role_guard(container.token_service)
    admins = (RoleName.APP_ADMIN, RoleName.MINISTRY_ADMIN)

    @app.route("/api/districts", methods=["POST"], endpoint="create_district")
    @roles_required(*admins)
    def create_district():
        district = container.district_service.create(actor=current_actor(), payload=json_body())
        return json_response({"message": "Distrito creado exitosamente.", "district": district.to_dict()}, 201)

    @app.route("/api/districts", methods=["GET"], endpoint="list_districts")
    @roles_required(*admins)
    def list_districts():
        page = container.district_service.list(args=query_args())
        return json_response(
            {
                "message": "Distritos obtenidos exitosamente.",
                "districts": [d.to_dict() for d in page.items],
                "pagination": page.pagination(),
            }
        )

    @app.route("/api/districts/<district_id>", methods=["GET"], endpoint="get_district")
    @roles_required(*admins)
    def get_district(district_id: str):
        district = container.district_service.get(parse_id(district_id, "ID del distrito"))
        return json_response({"message": "Distrito obtenido exitosamente.", "district": district.to_dict()})

    @app.route("/api/districts/<district_id>", methods=["PUT"], endpoint="update_district")
    @roles_required(*admins)
    def update_district(district_id: str):
        district = container.district_service.update(
            actor=current_actor(),
            district_id=parse_id(district_id, "ID del distrito"),
            payload=json_body(),
        )
        return json_response({"message": "Distrito actualizado exitosamente.", "district": district.to_dict()})

    @app.route("/api/districts/<district_id>", methods=["DELETE"], endpoint="delete_district")
    @roles_required(*admins)
    def delete_district(district_id: str):
        container.district_service.delete(actor=current_actor(), district_id=parse_id(district_id, "ID del distrito"))
        return json_response({"message": "Distrito eliminado exitosamente."})

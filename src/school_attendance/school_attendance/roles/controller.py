from __future__ import annotations

from flask import Flask

from ..common.validators import parse_id
from ..common.web import current_actor, json_body, json_response, query_args, role_guard
from ..container import Container
from ..core.enums import RoleName


def register(app: Flask, container: Container) -> None:
    roles_required = role_guard(container.token_service)
    service = container.role_service

    @app.route("/api/roles", methods=["POST"], endpoint="create_role")
    @roles_required(RoleName.APP_ADMIN)
    def create_role():
        role = service.create(actor=current_actor(), payload=json_body())
        return json_response({"message": "Rol creado exitosamente.", "role": role.to_dict()}, 201)

    @app.route("/api/roles", methods=["GET"], endpoint="list_roles")
    @roles_required(RoleName.APP_ADMIN)
    def list_roles():
        page = service.list(args=query_args())
        return json_response(
            {
                "message": "Roles obtenidos exitosamente.",
                "roles": [r.to_dict() for r in page.items],
                "pagination": page.pagination(),
            }
        )

    @app.route("/api/roles/<role_id>", methods=["GET"], endpoint="get_role")
    @roles_required(RoleName.APP_ADMIN)
    def get_role(role_id: str):
        role = service.get(parse_id(role_id, "ID del rol"))
        return json_response({"message": "Rol obtenido exitosamente.", "role": role.to_dict()})

    @app.route("/api/roles/<role_id>", methods=["PUT"], endpoint="update_role")
    @roles_required(RoleName.APP_ADMIN)
    def update_role(role_id: str):
        role = service.update(actor=current_actor(), role_id=parse_id(role_id, "ID del rol"), payload=json_body())
        return json_response({"message": "Rol actualizado exitosamente.", "role": role.to_dict()})

    @app.route("/api/roles/<role_id>", methods=["DELETE"], endpoint="delete_role")
    @roles_required(RoleName.APP_ADMIN)
    def delete_role(role_id: str):
        service.delete(actor=current_actor(), role_id=parse_id(role_id, "ID del rol"))
        return json_response({"message": "Rol eliminado exitosamente."})

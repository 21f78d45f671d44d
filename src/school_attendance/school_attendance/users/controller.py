from __future__ import annotations

from flask import Flask

from ..common.validators import parse_id
from ..common.web import current_actor, json_body, json_response, query_args, role_guard
from ..container import Container
from ..core.enums import RoleName


def register(app: Flask, container: Container) -> None:
    roles_required = role_guard(container.token_service)
    admins = (RoleName.APP_ADMIN, RoleName.MINISTRY_ADMIN, RoleName.DISTRICT_ADMIN, RoleName.INSTITUTION_ADMIN)
    service = container.user_service

    def _listing():
        page = service.list(actor=current_actor(), args=query_args())
        return json_response(
            {
                "message": "Usuarios obtenidos exitosamente.",
                "users": [u.to_dict() for u in page.items],
                "pagination": page.pagination(),
            }
        )

    @app.route("/api/users", methods=["POST"], endpoint="create_user")
    @roles_required(*admins)
    def create_user():
        user = service.create(actor=current_actor(), payload=json_body())
        return json_response({"message": "Usuario creado exitosamente.", "user": user.to_dict()}, 201)

    @app.route("/api/users", methods=["GET"], endpoint="list_users")
    @roles_required(*admins)
    def list_users():
        return _listing()

    @app.route("/api/users/filter", methods=["GET"], endpoint="filter_users")
    @roles_required(*admins)
    def filter_users():
        return _listing()

    @app.route("/api/users/<user_id>", methods=["GET"], endpoint="get_user")
    @roles_required(*admins)
    def get_user(user_id: str):
        user = service.get(actor=current_actor(), user_id=parse_id(user_id, "ID de usuario"))
        return json_response({"user": user.to_dict()})

    @app.route("/api/users/<user_id>", methods=["PUT"], endpoint="update_user")
    @roles_required(*admins)
    def update_user(user_id: str):
        user = service.update(actor=current_actor(), user_id=parse_id(user_id, "ID de usuario"), payload=json_body())
        return json_response({"message": "Usuario actualizado exitosamente.", "user": user.to_dict()})

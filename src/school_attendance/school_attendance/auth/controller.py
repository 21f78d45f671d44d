from __future__ import annotations

from flask import Flask

from ..common.web import json_body, json_response
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.auth_service

    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        data = json_body()
        result = service.login(data.get("username") or "", data.get("password") or "")
        return json_response(
            {"message": "Inicio de sesión exitoso.", "token": result.token, "user": result.user_payload()}
        )

    @app.route("/api/auth/refresh-token", methods=["POST"], endpoint="refresh_token")
    def refresh_token():
        token = service.refresh(json_body().get("token") or "")
        return json_response({"message": "Token renovado exitosamente.", "token": token})

from __future__ import annotations

import logging
from typing import Any, Mapping

from ..auth.model import Actor
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_text, parse_bool, require_pattern
from ..core.constants import ROLE_NAME_PATTERN
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from .model import Role
from .repository import RoleRepository

logger = logging.getLogger(__name__)

SORT_COLUMNS = {"roleName": "RoleName", "roleId": "RoleID"}


class RoleService:
    def __init__(self, roles: RoleRepository):
        self._roles = roles

    def create(self, *, actor: Actor, payload: Mapping[str, Any]) -> Role:
        role_name = require_pattern(
            str(payload.get("roleName") or "").strip(),
            ROLE_NAME_PATTERN,
            "El nombre del rol debe ser alfanumérico y único.",
        )
        if self._roles.get_by_name(role_name):
            raise ConflictError("El nombre del rol ya está en uso.")

        is_active = parse_bool(payload["isActive"], "isActive") if payload.get("isActive") is not None else True
        role_id = self._roles.create(
            role_name=role_name,
            description=optional_text(payload.get("description")),
            is_active=is_active,
        )
        logger.info("Role %s (%s) created by userId=%s", role_id, role_name, actor.user_id)
        return self.get(role_id)

    def list(self, *, args: Mapping[str, Any]) -> Page[Role]:
        page = PageRequest.from_args(args, sort_columns=SORT_COLUMNS, default_sort="roleName")
        return self._roles.list(page=page)

    def get(self, role_id: int) -> Role:
        role = self._roles.get_by_id(int(role_id))
        if not role:
            raise NotFoundError("Rol no encontrado.")
        return role

    def update(self, *, actor: Actor, role_id: int, payload: Mapping[str, Any]) -> Role:
        current = self.get(role_id)

        changes: dict[str, Any] = {}
        if payload.get("roleName") is not None:
            role_name = require_pattern(
                str(payload["roleName"]).strip(), ROLE_NAME_PATTERN, "El nombre del rol debe ser alfanumérico."
            )
            other = self._roles.get_by_name(role_name)
            if other and other.role_id != current.role_id:
                raise ConflictError("El nombre del rol ya está en uso.")
            changes["role_name"] = role_name
        if "description" in payload:
            changes["description"] = optional_text(payload.get("description"))
        if payload.get("isActive") is not None:
            changes["is_active"] = parse_bool(payload["isActive"], "isActive")

        if not changes:
            raise ValidationError("No se han proporcionado cambios para aplicar.")

        self._roles.update(current.role_id, changes)
        logger.info("Role %s updated by userId=%s", current.role_id, actor.user_id)
        return self.get(current.role_id)

    def delete(self, *, actor: Actor, role_id: int) -> None:
        current = self.get(role_id)
        if not self._roles.delete(current.role_id):
            raise NotFoundError("Rol no encontrado.")
        logger.info("Role %s deleted by userId=%s", current.role_id, actor.user_id)

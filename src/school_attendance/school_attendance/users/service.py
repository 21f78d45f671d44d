from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from werkzeug.security import generate_password_hash

from ..auth.model import Actor
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_bool, optional_id, optional_text, parse_bool, parse_id, require_min_length
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import RoleName
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..districts.repository import DistrictRepository
from ..institutions.model import Institution
from ..institutions.repository import InstitutionRepository
from ..roles.model import Role
from ..roles.repository import RoleRepository
from ..scope.authorizer import ScopeAuthorizer
from .model import NewUser, User, UserFilter
from .policy import Binding, ScopeRule, binding_for, can_create, can_see, creation_rule_for, visibility_for
from .repository import UserRepository

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "username": "u.Username",
    "lastName": "u.LastName",
    "createdAt": "u.CreatedAt",
    "userId": "u.UserID",
}

_PASSWORD_TOO_SHORT = f"La contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres."


class UserService:
    def __init__(
        self,
        users: UserRepository,
        roles: RoleRepository,
        institutions: InstitutionRepository,
        districts: DistrictRepository,
        scope: ScopeAuthorizer,
    ):
        self._users = users
        self._roles = roles
        self._institutions = institutions
        self._districts = districts
        self._scope = scope

    # ---- lookups ----
    def _resolve_role(self, payload: Mapping[str, Any]) -> Role:
        if payload.get("roleId") not in (None, ""):
            role_id = parse_id(payload.get("roleId"), "roleId")
            role = self._roles.get_by_id(role_id)
            if not role:
                raise ValidationError(f"Rol con ID {role_id} no encontrado.")
            return role

        role_name = optional_text(payload.get("roleName"))
        role = self._roles.get_by_name(role_name) if role_name else None
        if not role:
            raise ValidationError(f"Rol '{role_name}' no encontrado.")
        return role

    def _require_institution(self, institution_id: int) -> Institution:
        institution = self._institutions.get_by_id(institution_id)
        if not institution:
            raise ValidationError(f"Institución con ID {institution_id} no encontrada.")
        return institution

    def _require_district(self, district_id: int) -> None:
        if not self._districts.get_by_id(district_id):
            raise ValidationError(f"Distrito con ID {district_id} no encontrado.")

    def _check_unique(self, *, username: Optional[str], email: Optional[str], exclude_user_id: Optional[int] = None) -> None:
        if username:
            other = self._users.get_by_username(username)
            if other and other.user_id != exclude_user_id:
                raise ConflictError("El nombre de usuario ya está en uso.")
        if email:
            other = self._users.get_by_email(email)
            if other and other.user_id != exclude_user_id:
                raise ConflictError("El email ya está en uso.")

    # ---- use cases ----
    def create(self, *, actor: Actor, payload: Mapping[str, Any]) -> User:
        username = optional_text(payload.get("username"))
        password = payload.get("password")
        has_role = payload.get("roleId") not in (None, "") or optional_text(payload.get("roleName"))
        if not username or not password or not has_role:
            raise ValidationError("Nombre de usuario, contraseña y rol son requeridos.")
        require_min_length(str(password), "La contraseña", MIN_PASSWORD_LENGTH)

        role = self._resolve_role(payload)
        target = RoleName.parse(role.role_name)

        # the matrix decides before any id is looked at
        if not can_create(actor, target):
            logger.info("userId=%s (%s) may not create %s users", actor.user_id, actor.role_name, role.role_name)
            raise AuthorizationError(f"{actor.role_name} no puede crear usuarios con el rol {role.role_name}.")
        rule = creation_rule_for(actor)

        institution_id: Optional[int] = None
        district_id: Optional[int] = None
        is_ministry = False

        binding = binding_for(target)
        if binding == Binding.MINISTRY:
            is_ministry = True
        elif binding == Binding.DISTRICT:
            if payload.get("districtId") in (None, ""):
                raise ValidationError(f"Se requiere districtId para crear un {role.role_name}.")
            district_id = parse_id(payload.get("districtId"), "districtId")
            self._require_district(district_id)
        elif binding == Binding.INSTITUTION:
            if rule.scope_rule == ScopeRule.OWN_INSTITUTION:
                if actor.institution_id is None:
                    raise AuthorizationError("No tiene una institución asignada.")
                institution_id = actor.institution_id
            else:
                if payload.get("institutionId") in (None, ""):
                    raise ValidationError(f"Se requiere institutionId para crear un {role.role_name}.")
                institution_id = parse_id(payload.get("institutionId"), "institutionId")
            institution = self._require_institution(institution_id)
            if rule.scope_rule == ScopeRule.OWN_DISTRICT and institution.district_id != actor.district_id:
                raise AuthorizationError("No tiene permiso para crear usuarios para esta institución.")
            district_id = institution.district_id

        email = optional_text(payload.get("email"))
        self._check_unique(username=username, email=email)

        user_id = self._users.create(
            NewUser(
                username=username,
                password_hash=generate_password_hash(str(password)),
                first_name=optional_text(payload.get("firstName")),
                last_name=optional_text(payload.get("lastName")),
                email=email,
                role_id=role.role_id,
                institution_id=institution_id,
                district_id=district_id,
                is_ministry_user=is_ministry,
            )
        )
        logger.info("User %s (%s, %s) created by userId=%s", user_id, username, role.role_name, actor.user_id)
        return self._get(user_id)

    def list(self, *, actor: Actor, args: Mapping[str, Any]) -> Page[User]:
        page = PageRequest.from_args(args, sort_columns=SORT_COLUMNS, default_sort="username")
        visibility = visibility_for(actor)
        if visibility.deny:
            raise AuthorizationError("No tiene permiso para ver usuarios.")

        filters = UserFilter(
            user_id=optional_id(args.get("userId"), "userId"),
            role_id=optional_id(args.get("roleId"), "roleId"),
            institution_id=optional_id(args.get("institutionId"), "institutionId"),
            district_id=optional_id(args.get("districtId"), "districtId"),
            is_active=optional_bool(args.get("isActive"), "isActive"),
            first_name=optional_text(args.get("firstName")),
            last_name=optional_text(args.get("lastName")),
            email=optional_text(args.get("email")),
        )
        return self._users.list(visibility=visibility, filters=filters, page=page)

    def _get(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("Usuario no encontrado.")
        return user

    def get(self, *, actor: Actor, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user or not can_see(actor, user):
            raise NotFoundError("Usuario no encontrado.")
        return user

    def _authorize_update(self, actor: Actor, target: User, payload: Mapping[str, Any]) -> None:
        role = actor.role
        if role == RoleName.APP_ADMIN:
            return

        if role == RoleName.MINISTRY_ADMIN:
            if target.role == RoleName.APP_ADMIN:
                raise AuthorizationError("No tiene permiso para actualizar este usuario.")
            if payload.get("roleId") is not None or payload.get("isMinistryUser") is not None:
                raise AuthorizationError("No tiene permiso para actualizar rol o estatus de ministerio.")
            return

        if role in (RoleName.DISTRICT_ADMIN, RoleName.INSTITUTION_ADMIN):
            if not can_see(actor, target):
                raise AuthorizationError("No tiene permiso para actualizar este usuario.")
            if payload.get("roleId") is not None:
                raise AuthorizationError("No tiene permiso para actualizar el rol.")
            if payload.get("isMinistryUser") is not None:
                raise AuthorizationError("No tiene permiso para actualizar el estatus de ministerio.")
            return

        raise AuthorizationError("No tiene permiso para actualizar usuarios.")

    def update(self, *, actor: Actor, user_id: int, payload: Mapping[str, Any]) -> User:
        target = self._get(user_id)
        self._authorize_update(actor, target, payload)
        is_global = actor.has_role(RoleName.APP_ADMIN, RoleName.MINISTRY_ADMIN)

        changes: dict[str, Any] = {}
        if payload.get("password"):
            password = require_min_length(str(payload["password"]), "La contraseña", MIN_PASSWORD_LENGTH)
            changes["password_hash"] = generate_password_hash(password)
        for key, field in (("username", "username"), ("firstName", "first_name"), ("lastName", "last_name"), ("email", "email")):
            value = optional_text(payload.get(key))
            if value:
                changes[field] = value

        if payload.get("roleId") is not None:
            role_id = parse_id(payload.get("roleId"), "roleId")
            if not self._roles.get_by_id(role_id):
                raise ValidationError("Rol no encontrado.")
            changes["role_id"] = role_id

        if "institutionId" in payload:
            institution_id = optional_id(payload.get("institutionId"), "institutionId")
            if institution_id is not None:
                self._require_institution(institution_id)
                if not is_global:
                    self._scope.require_institution(
                        actor, institution_id, message="No tiene permiso para asignar esta institución."
                    )
            elif not is_global:
                raise AuthorizationError("No tiene permiso para quitar la institución del usuario.")
            changes["institution_id"] = institution_id

        if "districtId" in payload:
            district_id = optional_id(payload.get("districtId"), "districtId")
            if district_id is not None:
                self._require_district(district_id)
            if not is_global and district_id != actor.district_id:
                raise AuthorizationError("No tiene permiso para asignar este distrito.")
            changes["district_id"] = district_id

        if payload.get("isMinistryUser") is not None:
            changes["is_ministry_user"] = parse_bool(payload["isMinistryUser"], "isMinistryUser")
        if payload.get("isActive") is not None:
            changes["is_active"] = parse_bool(payload["isActive"], "isActive")

        if not changes:
            raise ValidationError("No se han proporcionado cambios para aplicar.")

        self._check_unique(
            username=changes.get("username"), email=changes.get("email"), exclude_user_id=target.user_id
        )
        self._users.update(target.user_id, changes)
        logger.info(
            "User %s updated by userId=%s (%s)",
            target.user_id,
            actor.user_id,
            ", ".join(k for k in changes if k != "password_hash") or "password",
        )
        return self._get(target.user_id)

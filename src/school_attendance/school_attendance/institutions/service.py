from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional

from ..auth.model import Actor
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_id, optional_text, parse_id, require_any_field
from ..core.constants import DEFAULT_SUBSCRIPTION_STATUS
from ..core.enums import RoleName
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..districts.repository import DistrictRepository
from ..scope.authorizer import ResourceKind, ScopeAuthorizer
from .model import Institution, InstitutionFilter
from .repository import InstitutionRepository

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "name": "i.Name",
    "createdAt": "i.CreatedAt",
    "institutionId": "i.InstitutionID",
}

UPDATABLE_FIELDS = ("name", "address", "subscriptionStatus", "configurationData", "districtId")


def _configuration_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def sees_configuration(actor: Actor) -> bool:
    return actor.is_ministry_user or actor.has_role(
        RoleName.APP_ADMIN, RoleName.MINISTRY_ADMIN, RoleName.INSTITUTION_ADMIN
    )


def _is_global(actor: Actor) -> bool:
    return actor.is_ministry_user or actor.has_role(RoleName.APP_ADMIN, RoleName.MINISTRY_ADMIN)


class InstitutionService:
    def __init__(self, institutions: InstitutionRepository, districts: DistrictRepository, scope: ScopeAuthorizer):
        self._institutions = institutions
        self._districts = districts
        self._scope = scope

    def _require_district(self, district_id: int) -> None:
        if not self._districts.get_by_id(district_id):
            raise ValidationError(f"Distrito con ID {district_id} no encontrado.")

    def create(self, *, actor: Actor, payload: Mapping[str, Any]) -> Institution:
        name = optional_text(payload.get("name"))
        if not name or payload.get("districtId") in (None, ""):
            raise ValidationError("Nombre y DistrictID son requeridos.")
        district_id = parse_id(payload.get("districtId"), "DistrictID")

        if actor.role == RoleName.DISTRICT_ADMIN and not actor.is_ministry_user and district_id != actor.district_id:
            raise AuthorizationError("AdminDistrito solo puede crear instituciones en su propio distrito.")

        self._require_district(district_id)

        institution_id = self._institutions.create(
            name=name,
            district_id=district_id,
            address=optional_text(payload.get("address")),
            subscription_status=optional_text(payload.get("subscriptionStatus")) or DEFAULT_SUBSCRIPTION_STATUS,
            configuration_data=_configuration_text(payload.get("configurationData")),
        )
        logger.info("Institution %s created in district %s by userId=%s", institution_id, district_id, actor.user_id)
        return self._get(institution_id)

    def list(self, *, actor: Actor, args: Mapping[str, Any]) -> Page[Institution]:
        page = PageRequest.from_args(args, sort_columns=SORT_COLUMNS, default_sort="name")

        if _is_global(actor):
            district_id = optional_id(args.get("districtId"), "districtId")
        elif actor.role == RoleName.DISTRICT_ADMIN and actor.district_id is not None:
            district_id = actor.district_id
        else:
            raise AuthorizationError("Acceso prohibido: No tiene los permisos necesarios para realizar esta acción.")

        filters = InstitutionFilter(
            district_id=district_id,
            name=optional_text(args.get("name")),
            subscription_status=optional_text(args.get("subscriptionStatus")),
        )
        return self._institutions.list(filters=filters, page=page)

    def _get(self, institution_id: int) -> Institution:
        institution = self._institutions.get_by_id(int(institution_id))
        if not institution:
            raise NotFoundError("Institución no encontrada.")
        return institution

    def get(self, *, actor: Actor, institution_id: int) -> dict:
        self._scope.require(
            actor,
            ResourceKind.INSTITUTION,
            institution_id,
            mask_for=(RoleName.INSTITUTION_ADMIN,),
            forbidden_message="No tiene permiso para ver esta institución.",
        )
        return self._get(institution_id).to_dict(include_configuration=sees_configuration(actor))

    def update(self, *, actor: Actor, institution_id: int, payload: Mapping[str, Any]) -> Institution:
        require_any_field(payload, UPDATABLE_FIELDS)
        self._scope.require(
            actor,
            ResourceKind.INSTITUTION,
            institution_id,
            forbidden_message="No tiene permiso para actualizar esta institución.",
        )
        current = self._get(institution_id)

        changes: dict[str, Any] = {}
        if payload.get("districtId") is not None:
            district_id = parse_id(payload.get("districtId"), "DistrictID")
            if district_id != current.district_id:
                if not _is_global(actor):
                    raise AuthorizationError("AdminDistrito no puede cambiar el distrito de una institución.")
                self._require_district(district_id)
                changes["district_id"] = district_id

        if payload.get("name") is not None:
            name = optional_text(payload.get("name"))
            if not name:
                raise ValidationError("El nombre de la institución no puede estar vacío.")
            changes["name"] = name
        if payload.get("address") is not None:
            changes["address"] = optional_text(payload.get("address"))
        if payload.get("subscriptionStatus") is not None:
            status = optional_text(payload.get("subscriptionStatus"))
            if not status:
                raise ValidationError("El estado de suscripción no puede estar vacío.")
            changes["subscription_status"] = status
        if payload.get("configurationData") is not None:
            changes["configuration_data"] = _configuration_text(payload.get("configurationData"))

        if not changes:
            raise ValidationError("No hay campos válidos para actualizar o no tiene permiso para modificarlos.")

        self._institutions.update(current.institution_id, changes)
        logger.info(
            "Institution %s updated by userId=%s (%s)", current.institution_id, actor.user_id, ", ".join(changes)
        )
        return self._get(current.institution_id)

    def delete(self, *, actor: Actor, institution_id: int) -> None:
        self._scope.require(
            actor,
            ResourceKind.INSTITUTION,
            institution_id,
            forbidden_message="No tiene permiso para eliminar esta institución.",
        )
        if not self._institutions.delete(int(institution_id)):
            raise NotFoundError("Institución no encontrada.")
        logger.info("Institution %s deleted by userId=%s", institution_id, actor.user_id)

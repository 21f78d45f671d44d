from __future__ import annotations

import logging
from typing import Any, Mapping

from ..auth.model import Actor
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_bool, optional_text, parse_bool, require_pattern
from ..core.constants import DISTRICT_CODE_PATTERN
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from .model import District, DistrictFilter
from .repository import DistrictRepository

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "name": "Name",
    "regionalDistrictCode": "`Regional-District_Code`",
    "createdAt": "CreatedAt",
    "districtId": "DistrictID",
}

_BAD_CODE = "El código regional-distrito debe tener formato XX-XX (Ej: 10-06)."
_CODE_IN_USE = "El código regional-distrito ya está en uso."


class DistrictService:
    def __init__(self, districts: DistrictRepository):
        self._districts = districts

    def create(self, *, actor: Actor, payload: Mapping[str, Any]) -> District:
        name = optional_text(payload.get("name"))
        code = optional_text(payload.get("regionalDistrictCode"))
        if not name or not code:
            raise ValidationError("El nombre del distrito y el código regional-distrito son requeridos.")
        require_pattern(code, DISTRICT_CODE_PATTERN, _BAD_CODE)

        if self._districts.get_by_code(code):
            raise ConflictError(_CODE_IN_USE)

        is_active = parse_bool(payload["isActive"], "isActive") if payload.get("isActive") is not None else True
        district_id = self._districts.create(
            name=name,
            regional_district_code=code,
            contact_info=optional_text(payload.get("contactInfo")),
            is_active=is_active,
        )
        logger.info("District %s (%s) created by userId=%s", district_id, code, actor.user_id)
        return self.get(district_id)

    def list(self, *, args: Mapping[str, Any]) -> Page[District]:
        page = PageRequest.from_args(args, sort_columns=SORT_COLUMNS, default_sort="name")
        filters = DistrictFilter(
            name=optional_text(args.get("name")),
            is_active=optional_bool(args.get("isActive"), "isActive"),
        )
        return self._districts.list(filters=filters, page=page)

    def get(self, district_id: int) -> District:
        district = self._districts.get_by_id(int(district_id))
        if not district:
            raise NotFoundError("Distrito no encontrado.")
        return district

    def update(self, *, actor: Actor, district_id: int, payload: Mapping[str, Any]) -> District:
        current = self.get(district_id)

        changes: dict[str, Any] = {}
        if payload.get("name") is not None:
            name = optional_text(payload.get("name"))
            if not name:
                raise ValidationError("El nombre del distrito no puede estar vacío.")
            changes["name"] = name
        if payload.get("regionalDistrictCode") is not None:
            code = require_pattern(str(payload["regionalDistrictCode"]).strip(), DISTRICT_CODE_PATTERN, _BAD_CODE)
            other = self._districts.get_by_code(code)
            if other and other.district_id != current.district_id:
                raise ConflictError(_CODE_IN_USE)
            changes["regional_district_code"] = code
        if "contactInfo" in payload:
            changes["contact_info"] = optional_text(payload.get("contactInfo"))
        if payload.get("isActive") is not None:
            changes["is_active"] = parse_bool(payload["isActive"], "isActive")

        if not changes:
            raise ValidationError("No se han proporcionado cambios para aplicar.")

        self._districts.update(current.district_id, changes)
        logger.info("District %s updated by userId=%s (%s)", current.district_id, actor.user_id, ", ".join(changes))
        return self.get(current.district_id)

    def delete(self, *, actor: Actor, district_id: int) -> None:
        current = self.get(district_id)
        if not self._districts.delete(current.district_id):
            raise NotFoundError("Distrito no encontrado.")
        logger.info("District %s deleted by userId=%s", current.district_id, actor.user_id)

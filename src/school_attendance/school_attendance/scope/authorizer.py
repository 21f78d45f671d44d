from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Mapping, Optional

from ..auth.model import Actor
from ..core.enums import INSTITUTION_ROLES, RoleName
from ..core.exceptions import AuthorizationError, NotFoundError

logger = logging.getLogger(__name__)

# resource id -> owning InstitutionID (None when the resource does not exist)
Resolver = Callable[[int], Optional[int]]
# institution id -> DistrictID
DistrictLookup = Callable[[int], Optional[int]]


class ResourceKind(str, Enum):
    INSTITUTION = "institution"
    STUDENT = "student"
    GROUP = "group"
    ATTENDANCE_RECORD = "attendance_record"
    EXCUSE = "excuse"
    BIOMETRIC_TEMPLATE = "biometric_template"


class ScopeOutcome(str, Enum):
    ALLOWED = "allowed"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class ScopeDecision:
    outcome: ScopeOutcome
    institution_id: Optional[int] = None

    @property
    def allowed(self) -> bool:
        return self.outcome == ScopeOutcome.ALLOWED


_NOT_FOUND_MESSAGES = {
    ResourceKind.INSTITUTION: "Institución no encontrada.",
    ResourceKind.STUDENT: "Estudiante no encontrado.",
    ResourceKind.GROUP: "Grupo no encontrado.",
    ResourceKind.ATTENDANCE_RECORD: "Registro de asistencia no encontrado.",
    ResourceKind.EXCUSE: "Excusa no encontrada.",
    ResourceKind.BIOMETRIC_TEMPLATE: "Plantilla biométrica no encontrada.",
}

_FORBIDDEN_MESSAGES = {
    ResourceKind.INSTITUTION: "No tiene permiso para acceder a esta institución.",
    ResourceKind.STUDENT: "No tiene permiso para acceder a este estudiante.",
    ResourceKind.GROUP: "No tiene permiso para acceder a este grupo.",
    ResourceKind.ATTENDANCE_RECORD: "No tiene permiso para acceder a este registro de asistencia.",
    ResourceKind.EXCUSE: "No tiene permiso para acceder a esta excusa.",
    ResourceKind.BIOMETRIC_TEMPLATE: "No tiene permiso para acceder a esta plantilla biométrica.",
}


class ScopeAuthorizer:
    """Decides whether an actor may touch a resource owned by an institution.

    Every resource kind is reduced to its owning InstitutionID by a resolver,
    then one rule applies:

    - ministry users and AdminApp: everything
    - AdminDistrito: institutions of their district
    - AdminInstitucion / Profesor / PersonalApoyo: their own institution
    - anyone else: nothing
    """

    def __init__(self, *, resolvers: Mapping[ResourceKind, Resolver], district_of: DistrictLookup):
        self._resolvers = dict(resolvers)
        self._district_of = district_of

    def authorize(self, actor: Actor, institution_id: int) -> ScopeDecision:
        if actor.is_ministry_user or actor.role == RoleName.APP_ADMIN:
            return ScopeDecision(ScopeOutcome.ALLOWED, institution_id)

        if actor.role == RoleName.DISTRICT_ADMIN:
            district_id = self._district_of(int(institution_id))
            if actor.district_id is not None and district_id == actor.district_id:
                return ScopeDecision(ScopeOutcome.ALLOWED, institution_id)
            return ScopeDecision(ScopeOutcome.FORBIDDEN, institution_id)

        if actor.role in INSTITUTION_ROLES:
            if actor.institution_id is not None and int(institution_id) == actor.institution_id:
                return ScopeDecision(ScopeOutcome.ALLOWED, institution_id)
            return ScopeDecision(ScopeOutcome.FORBIDDEN, institution_id)

        return ScopeDecision(ScopeOutcome.FORBIDDEN, institution_id)

    def check(self, actor: Actor, kind: ResourceKind, resource_id: int) -> ScopeDecision:
        resolver = self._resolvers.get(kind)
        if resolver is None:
            raise KeyError(f"No resolver registered for {kind!r}")

        institution_id = resolver(int(resource_id))
        if institution_id is None:
            return ScopeDecision(ScopeOutcome.NOT_FOUND)
        return self.authorize(actor, int(institution_id))

    def require(
        self,
        actor: Actor,
        kind: ResourceKind,
        resource_id: int,
        *,
        mask_for: Iterable[RoleName] = (),
        not_found_message: Optional[str] = None,
        forbidden_message: Optional[str] = None,
    ) -> int:
        """Like check(), but raise on anything except ALLOWED.

        Returns the owning institution id. Actors whose role is in `mask_for`
        get a 404 instead of a 403 so out-of-scope resources look absent.
        """
        decision = self.check(actor, kind, resource_id)
        not_found = not_found_message or _NOT_FOUND_MESSAGES[kind]

        if decision.outcome == ScopeOutcome.NOT_FOUND:
            raise NotFoundError(not_found)

        if decision.outcome == ScopeOutcome.FORBIDDEN:
            logger.info(
                "Scope denied: userId=%s role=%s %s=%s institution=%s",
                actor.user_id,
                actor.role_name,
                kind.value,
                resource_id,
                decision.institution_id,
            )
            if actor.role in set(mask_for):
                raise NotFoundError(not_found)
            raise AuthorizationError(forbidden_message or _FORBIDDEN_MESSAGES[kind])

        return int(decision.institution_id)

    def require_institution(self, actor: Actor, institution_id: int, *, message: Optional[str] = None) -> None:
        """Authorize against an institution id that is already known to exist."""
        if not self.authorize(actor, institution_id).allowed:
            logger.info("Scope denied: userId=%s role=%s institution=%s", actor.user_id, actor.role_name, institution_id)
            raise AuthorizationError(message or _FORBIDDEN_MESSAGES[ResourceKind.INSTITUTION])

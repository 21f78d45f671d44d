"""Who may create and see which users.

The creation matrix is plain data so it can be read, tested and changed
without touching the service code.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional

from ..auth.model import Actor
from ..core.enums import RoleName
from .model import User


class ScopeRule(str, Enum):
    ANY = "any"
    OWN_DISTRICT = "own_district"
    OWN_INSTITUTION = "own_institution"


class Binding(str, Enum):
    """What a new user of a given role must be attached to."""

    NONE = "none"
    MINISTRY = "ministry"
    DISTRICT = "district"
    INSTITUTION = "institution"


@dataclass(frozen=True)
class CreationRule:
    allowed_targets: FrozenSet[RoleName]
    scope_rule: ScopeRule


CREATION_MATRIX: dict[RoleName, CreationRule] = {
    RoleName.APP_ADMIN: CreationRule(frozenset(RoleName), ScopeRule.ANY),
    RoleName.MINISTRY_ADMIN: CreationRule(
        frozenset({RoleName.DISTRICT_ADMIN, RoleName.MINISTRY_ADMIN}), ScopeRule.ANY
    ),
    RoleName.DISTRICT_ADMIN: CreationRule(frozenset({RoleName.INSTITUTION_ADMIN}), ScopeRule.OWN_DISTRICT),
    RoleName.INSTITUTION_ADMIN: CreationRule(
        frozenset({RoleName.TEACHER, RoleName.SUPPORT_STAFF}), ScopeRule.OWN_INSTITUTION
    ),
}

TARGET_BINDING: dict[RoleName, Binding] = {
    RoleName.APP_ADMIN: Binding.NONE,
    RoleName.MINISTRY_ADMIN: Binding.MINISTRY,
    RoleName.DISTRICT_ADMIN: Binding.DISTRICT,
    RoleName.INSTITUTION_ADMIN: Binding.INSTITUTION,
    RoleName.TEACHER: Binding.INSTITUTION,
    RoleName.SUPPORT_STAFF: Binding.INSTITUTION,
}


def creation_rule_for(actor: Actor) -> Optional[CreationRule]:
    role = actor.role
    return CREATION_MATRIX.get(role) if role else None


def can_create(actor: Actor, target: Optional[RoleName]) -> bool:
    rule = creation_rule_for(actor)
    if rule is None:
        return False
    if target is None:
        # custom roles outside the fixed vocabulary: AdminApp only
        return actor.role == RoleName.APP_ADMIN
    return target in rule.allowed_targets


def binding_for(target: Optional[RoleName]) -> Binding:
    return TARGET_BINDING.get(target, Binding.NONE) if target else Binding.NONE


@dataclass(frozen=True)
class UserVisibility:
    """Row filter for user listings.

    `roles` limits the visible roles (None: any), `excluded_roles` hides some.
    """

    roles: Optional[FrozenSet[str]] = None
    excluded_roles: FrozenSet[str] = frozenset()
    institution_id: Optional[int] = None
    district_id: Optional[int] = None
    deny: bool = False


def visibility_for(actor: Actor) -> UserVisibility:
    role = actor.role
    if role == RoleName.APP_ADMIN:
        return UserVisibility()
    if role == RoleName.MINISTRY_ADMIN:
        return UserVisibility(excluded_roles=frozenset({RoleName.APP_ADMIN.value}))
    if role == RoleName.DISTRICT_ADMIN and actor.district_id is not None:
        return UserVisibility(roles=frozenset({RoleName.INSTITUTION_ADMIN.value}), district_id=actor.district_id)
    if role == RoleName.INSTITUTION_ADMIN and actor.institution_id is not None:
        return UserVisibility(
            roles=frozenset({RoleName.TEACHER.value, RoleName.SUPPORT_STAFF.value}),
            institution_id=actor.institution_id,
        )
    return UserVisibility(deny=True)


def can_see(actor: Actor, user: User) -> bool:
    v = visibility_for(actor)
    if v.deny:
        return False
    if v.roles is not None and user.role_name not in v.roles:
        return False
    if user.role_name in v.excluded_roles:
        return False
    if v.institution_id is not None and user.institution_id != v.institution_id:
        return False
    if v.district_id is not None and v.district_id not in (user.district_id, user.institution_district_id):
        return False
    return True

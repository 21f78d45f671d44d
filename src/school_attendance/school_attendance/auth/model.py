from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..core.enums import RoleName


@dataclass(frozen=True)
class Actor:
    """The authenticated caller, rebuilt from token claims on every request."""

    user_id: int
    role_id: int
    role_name: str
    institution_id: Optional[int] = None
    district_id: Optional[int] = None
    is_ministry_user: bool = False

    @property
    def role(self) -> Optional[RoleName]:
        return RoleName.parse(self.role_name)

    def has_role(self, *roles: RoleName) -> bool:
        return self.role in roles

    def to_claims(self) -> dict:
        return {
            "userId": self.user_id,
            "roleId": self.role_id,
            "roleName": self.role_name,
            "institutionId": self.institution_id,
            "districtId": self.district_id,
            "isMinistryUser": self.is_ministry_user,
        }

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> "Actor":
        def _opt_int(v: Any) -> Optional[int]:
            return int(v) if v is not None else None

        return cls(
            user_id=int(claims["userId"]),
            role_id=int(claims["roleId"]),
            role_name=str(claims["roleName"]),
            institution_id=_opt_int(claims.get("institutionId")),
            district_id=_opt_int(claims.get("districtId")),
            is_ministry_user=bool(claims.get("isMinistryUser")),
        )


@dataclass(frozen=True)
class Credentials:
    """Login row: user + role name + password hash."""

    user_id: int
    username: str
    password_hash: str
    role_id: int
    role_name: str
    first_name: Optional[str]
    last_name: Optional[str]
    email: Optional[str]
    institution_id: Optional[int]
    district_id: Optional[int]
    is_ministry_user: bool
    is_active: bool

    def to_actor(self) -> Actor:
        return Actor(
            user_id=self.user_id,
            role_id=self.role_id,
            role_name=self.role_name,
            institution_id=self.institution_id,
            district_id=self.district_id,
            is_ministry_user=self.is_ministry_user,
        )

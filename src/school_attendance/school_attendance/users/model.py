from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import to_json_value
from ..core.enums import RoleName


@dataclass(frozen=True)
class User:
    user_id: int
    username: str
    first_name: Optional[str]
    last_name: Optional[str]
    email: Optional[str]
    role_id: int
    role_name: str
    institution_id: Optional[int]
    district_id: Optional[int]
    is_ministry_user: bool
    is_active: bool
    # district of the user's institution (join), used for district-level visibility
    institution_district_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def role(self) -> Optional[RoleName]:
        return RoleName.parse(self.role_name)

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "username": self.username,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "roleId": self.role_id,
            "roleName": self.role_name,
            "institutionId": self.institution_id,
            "districtId": self.district_id,
            "isMinistryUser": self.is_ministry_user,
            "isActive": self.is_active,
            "createdAt": to_json_value(self.created_at),
            "updatedAt": to_json_value(self.updated_at),
        }


@dataclass(frozen=True)
class NewUser:
    username: str
    password_hash: str
    first_name: Optional[str]
    last_name: Optional[str]
    email: Optional[str]
    role_id: int
    institution_id: Optional[int]
    district_id: Optional[int]
    is_ministry_user: bool
    is_active: bool = True


@dataclass(frozen=True)
class UserFilter:
    user_id: Optional[int] = None
    role_id: Optional[int] = None
    institution_id: Optional[int] = None
    district_id: Optional[int] = None
    is_active: Optional[bool] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None

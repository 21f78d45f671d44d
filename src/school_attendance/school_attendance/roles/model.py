from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import to_json_value


@dataclass(frozen=True)
class Role:
    role_id: int
    role_name: str
    description: Optional[str]
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "roleId": self.role_id,
            "roleName": self.role_name,
            "description": self.description,
            "isActive": self.is_active,
            "createdAt": to_json_value(self.created_at),
            "updatedAt": to_json_value(self.updated_at),
        }

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import to_json_value


@dataclass(frozen=True)
class District:
    district_id: int
    name: str
    regional_district_code: str
    contact_info: Optional[str]
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "districtId": self.district_id,
            "name": self.name,
            "regionalDistrictCode": self.regional_district_code,
            "contactInfo": self.contact_info,
            "isActive": self.is_active,
            "createdAt": to_json_value(self.created_at),
            "updatedAt": to_json_value(self.updated_at),
        }


@dataclass(frozen=True)
class DistrictFilter:
    name: Optional[str] = None
    is_active: Optional[bool] = None

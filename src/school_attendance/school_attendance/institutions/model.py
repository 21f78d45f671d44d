from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import to_json_value


@dataclass(frozen=True)
class Institution:
    institution_id: int
    name: str
    district_id: int
    address: Optional[str]
    subscription_status: str
    configuration_data: Optional[str]
    district_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self, *, include_configuration: bool = False) -> dict:
        data = {
            "institutionId": self.institution_id,
            "name": self.name,
            "districtId": self.district_id,
            "districtName": self.district_name,
            "address": self.address,
            "subscriptionStatus": self.subscription_status,
            "createdAt": to_json_value(self.created_at),
            "updatedAt": to_json_value(self.updated_at),
        }
        if include_configuration:
            data["configurationData"] = self.configuration_data
        return data


@dataclass(frozen=True)
class InstitutionFilter:
    district_id: Optional[int] = None
    name: Optional[str] = None
    subscription_status: Optional[str] = None

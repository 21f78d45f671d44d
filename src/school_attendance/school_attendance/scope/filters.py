from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from ..auth.model import Actor
from ..core.enums import INSTITUTION_ROLES, RoleName


@dataclass(frozen=True)
class ScopeFilter:
    """Row-level visibility for list queries.

    No institution and no district means unrestricted; `deny` means no rows.
    """

    institution_id: Optional[int] = None
    district_id: Optional[int] = None
    deny: bool = False

    @property
    def unrestricted(self) -> bool:
        return not self.deny and self.institution_id is None and self.district_id is None

    def sql(self, institution_column: str) -> Tuple[str, list]:
        if self.deny:
            return "1=0", []
        if self.institution_id is not None:
            return f"{institution_column}=%s", [int(self.institution_id)]
        if self.district_id is not None:
            return (
                f"{institution_column} IN (SELECT InstitutionID FROM Institutions WHERE DistrictID=%s)",
                [int(self.district_id)],
            )
        return "1=1", []

    def admits(self, institution_id: Optional[int], district_of_institution: Optional[int]) -> bool:
        if self.deny:
            return False
        if self.institution_id is not None:
            return institution_id == self.institution_id
        if self.district_id is not None:
            return district_of_institution == self.district_id
        return True


def scope_filter_for(actor: Actor) -> ScopeFilter:
    if actor.is_ministry_user or actor.role == RoleName.APP_ADMIN:
        return ScopeFilter()
    if actor.role == RoleName.DISTRICT_ADMIN:
        if actor.district_id is None:
            return ScopeFilter(deny=True)
        return ScopeFilter(district_id=actor.district_id)
    if actor.role in INSTITUTION_ROLES:
        if actor.institution_id is None:
            return ScopeFilter(deny=True)
        return ScopeFilter(institution_id=actor.institution_id)
    return ScopeFilter(deny=True)

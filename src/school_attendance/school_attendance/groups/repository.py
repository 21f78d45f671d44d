from __future__ import annotations

from typing import Any, ContextManager, Dict, Mapping, Optional, Protocol, Sequence, Set

from ..common.pagination import Page, PageRequest
from ..scope.filters import ScopeFilter
from .model import GroupFilter, GroupMember, StudentGroup


class MembershipTransaction(Protocol):
    """Statements that must commit or roll back together."""

    def student_institutions(self, student_ids: Sequence[int]) -> Dict[int, int]:
        """Map each existing student id to its InstitutionID; unknown ids are absent."""

        raise NotImplementedError

    def existing_members(self, group_id: int, student_ids: Sequence[int]) -> Set[int]:
        raise NotImplementedError

    def add_members(self, group_id: int, student_ids: Sequence[int]) -> None:
        """Insert memberships, silently skipping pairs that already exist."""

        raise NotImplementedError


class GroupRepository(Protocol):
    def create(
        self,
        *,
        institution_id: int,
        group_name: str,
        academic_year: str,
        description: Optional[str],
        is_active: bool,
    ) -> int:
        raise NotImplementedError

    def get_by_id(self, group_id: int) -> Optional[StudentGroup]:
        raise NotImplementedError

    def find_by_name(self, *, institution_id: int, group_name: str, academic_year: str) -> Optional[StudentGroup]:
        raise NotImplementedError

    def list(self, *, scope: ScopeFilter, filters: GroupFilter, page: PageRequest) -> Page[StudentGroup]:
        raise NotImplementedError

    def update(self, group_id: int, changes: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def membership_transaction(self) -> ContextManager[MembershipTransaction]:
        raise NotImplementedError

    def remove_member(self, *, group_id: int, student_id: int) -> bool:
        raise NotImplementedError

    def list_members(self, *, group_id: int, page: PageRequest) -> Page[GroupMember]:
        raise NotImplementedError

    def group_of_student(self, student_id: int) -> Optional[StudentGroup]:
        """The student's inferred group (lowest GroupID), if any."""

        raise NotImplementedError

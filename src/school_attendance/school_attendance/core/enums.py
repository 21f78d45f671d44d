from __future__ import annotations

from enum import Enum


class RoleName(str, Enum):
    """Vocabulario fijo de roles usado para la autorización."""

    APP_ADMIN = "AdminApp"
    MINISTRY_ADMIN = "AdminMinisterio"
    DISTRICT_ADMIN = "AdminDistrito"
    INSTITUTION_ADMIN = "AdminInstitucion"
    TEACHER = "Profesor"
    SUPPORT_STAFF = "PersonalApoyo"

    @classmethod
    def parse(cls, value: object) -> "RoleName | None":
        try:
            return cls(value)
        except ValueError:
            return None


# Roles whose scope binding is a single institution.
INSTITUTION_ROLES = frozenset({RoleName.INSTITUTION_ADMIN, RoleName.TEACHER, RoleName.SUPPORT_STAFF})


class Gender(str, Enum):
    MALE = "M"
    FEMALE = "F"
    OTHER = "O"


class StudentStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    GRADUATED = "Graduated"


class SortOrder(str, Enum):
    ASC = "ASC"
    DESC = "DESC"

from __future__ import annotations

from typing import Any, Mapping, Optional

from ..common.pagination import Page, PageRequest
from ..core.exceptions import ConflictError, ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    LIKE_ESCAPE,
    db_cursor,
    fetch_count,
    fetchall,
    fetchone,
    integrity_errors,
    like_pattern,
    placeholders,
)
from .model import NewUser, User, UserFilter
from .policy import UserVisibility
from .repository import UserRepository

_COLUMNS = {
    "username": "Username",
    "password_hash": "PasswordHash",
    "first_name": "FirstName",
    "last_name": "LastName",
    "email": "Email",
    "role_id": "RoleID",
    "institution_id": "InstitutionID",
    "district_id": "DistrictID",
    "is_ministry_user": "IsMinistryUser",
    "is_active": "IsActive",
}

_FROM = """
    FROM Users u
    JOIN Roles r ON r.RoleID = u.RoleID
    LEFT JOIN Institutions i ON i.InstitutionID = u.InstitutionID
"""

_SELECT = (
    """
    SELECT u.UserID, u.Username, u.FirstName, u.LastName, u.Email, u.RoleID, r.RoleName,
           u.InstitutionID, u.DistrictID, u.IsMinistryUser, u.IsActive,
           i.DistrictID AS InstitutionDistrictID, u.CreatedAt, u.UpdatedAt
    """
    + _FROM
)

_DUPLICATE = "El nombre de usuario o email ya está en uso."


def _missing_parent() -> ValidationError:
    return ValidationError("El Rol, Institución o Distrito especificado no existe.")


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _map(r: dict) -> User:
        return User(
            user_id=int(r["UserID"]),
            username=r["Username"],
            first_name=r.get("FirstName"),
            last_name=r.get("LastName"),
            email=r.get("Email"),
            role_id=int(r["RoleID"]),
            role_name=r["RoleName"],
            institution_id=r.get("InstitutionID"),
            district_id=r.get("DistrictID"),
            is_ministry_user=bool(r.get("IsMinistryUser")),
            is_active=bool(r.get("IsActive")),
            institution_district_id=r.get("InstitutionDistrictID"),
            created_at=r.get("CreatedAt"),
            updated_at=r.get("UpdatedAt"),
        )

    def create(self, user: NewUser) -> int:
        with integrity_errors(duplicate=lambda: ConflictError(_DUPLICATE), missing_parent=_missing_parent):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO Users (Username, PasswordHash, FirstName, LastName, Email, RoleID,
                                       InstitutionID, DistrictID, IsMinistryUser, IsActive)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                    """,
                    (
                        user.username,
                        user.password_hash,
                        user.first_name,
                        user.last_name,
                        user.email,
                        int(user.role_id),
                        user.institution_id,
                        user.district_id,
                        1 if user.is_ministry_user else 0,
                        1 if user.is_active else 0,
                    ),
                )
                return int(cur.lastrowid)

    def _get_where(self, clause: str, value: Any) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE {clause}", (value,))
            r = fetchone(cur)
            return self._map(r) if r else None

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._get_where("u.UserID=%s", int(user_id))

    def get_by_username(self, username: str) -> Optional[User]:
        return self._get_where("u.Username=%s", username)

    def get_by_email(self, email: str) -> Optional[User]:
        return self._get_where("u.Email=%s", email)

    @staticmethod
    def _visibility_sql(v: UserVisibility) -> tuple[list[str], list[object]]:
        if v.deny:
            return ["1=0"], []

        clauses: list[str] = []
        params: list[object] = []
        if v.roles is not None:
            roles = sorted(v.roles)
            clauses.append(f"r.RoleName IN ({placeholders(roles)})")
            params.extend(roles)
        if v.excluded_roles:
            excluded = sorted(v.excluded_roles)
            clauses.append(f"r.RoleName NOT IN ({placeholders(excluded)})")
            params.extend(excluded)
        if v.institution_id is not None:
            clauses.append("u.InstitutionID=%s")
            params.append(int(v.institution_id))
        if v.district_id is not None:
            clauses.append("(u.DistrictID=%s OR i.DistrictID=%s)")
            params.extend([int(v.district_id), int(v.district_id)])
        return clauses, params

    def list(self, *, visibility: UserVisibility, filters: UserFilter, page: PageRequest) -> Page[User]:
        clauses, params = self._visibility_sql(visibility)
        clauses.insert(0, "1=1")

        exact = (
            ("u.UserID", filters.user_id),
            ("u.RoleID", filters.role_id),
            ("u.InstitutionID", filters.institution_id),
            ("u.DistrictID", filters.district_id),
        )
        for column, value in exact:
            if value is not None:
                clauses.append(f"{column}=%s")
                params.append(int(value))
        if filters.is_active is not None:
            clauses.append("u.IsActive=%s")
            params.append(1 if filters.is_active else 0)
        for column, value in (("u.FirstName", filters.first_name), ("u.LastName", filters.last_name), ("u.Email", filters.email)):
            if value:
                clauses.append(f"{column} LIKE %s {LIKE_ESCAPE}")
                params.append(like_pattern(value))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total {_FROM} WHERE {where}", tuple(params))
            total = fetch_count(cur)

            cur.execute(
                f"{_SELECT} WHERE {where} ORDER BY {page.order_by} LIMIT %s OFFSET %s",
                tuple(params + [page.limit, page.offset]),
            )
            items = [self._map(r) for r in fetchall(cur)]

        return Page(items=items, total=total, request=page)

    def update(self, user_id: int, changes: Mapping[str, Any]) -> bool:
        sets = []
        params: list[object] = []
        for field, value in changes.items():
            sets.append(f"{_COLUMNS[field]}=%s")
            if field in ("is_active", "is_ministry_user"):
                value = 1 if value else 0
            params.append(value)
        if not sets:
            return False

        with integrity_errors(duplicate=lambda: ConflictError(_DUPLICATE), missing_parent=_missing_parent):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(f"UPDATE Users SET {', '.join(sets)} WHERE UserID=%s", tuple(params + [int(user_id)]))
                return cur.rowcount > 0

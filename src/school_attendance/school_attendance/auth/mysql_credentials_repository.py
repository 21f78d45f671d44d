from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Credentials
from .repository import CredentialsRepository

_SELECT = """
    SELECT u.UserID, u.Username, u.PasswordHash, u.RoleID, r.RoleName,
           u.FirstName, u.LastName, u.Email, u.InstitutionID, u.DistrictID,
           u.IsMinistryUser, u.IsActive
    FROM Users u
    JOIN Roles r ON r.RoleID = u.RoleID
"""


class MySQLCredentialsRepository(CredentialsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _map(r: dict) -> Credentials:
        return Credentials(
            user_id=int(r["UserID"]),
            username=r["Username"],
            password_hash=r["PasswordHash"],
            role_id=int(r["RoleID"]),
            role_name=r["RoleName"],
            first_name=r.get("FirstName"),
            last_name=r.get("LastName"),
            email=r.get("Email"),
            institution_id=r.get("InstitutionID"),
            district_id=r.get("DistrictID"),
            is_ministry_user=bool(r.get("IsMinistryUser")),
            is_active=bool(r.get("IsActive")),
        )

    def get_by_username(self, username: str) -> Optional[Credentials]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE u.Username=%s", (username,))
            r = fetchone(cur)
            return self._map(r) if r else None

    def get_by_id(self, user_id: int) -> Optional[Credentials]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE u.UserID=%s", (int(user_id),))
            r = fetchone(cur)
            return self._map(r) if r else None

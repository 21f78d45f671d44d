from __future__ import annotations

from typing import Any, Mapping, Optional

from ..common.pagination import Page, PageRequest
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetch_count, fetchall, fetchone, integrity_errors
from .model import Role
from .repository import RoleRepository

_COLUMNS = {"role_name": "RoleName", "description": "Description", "is_active": "IsActive"}

_SELECT = "SELECT RoleID, RoleName, Description, IsActive, CreatedAt, UpdatedAt FROM Roles"


class MySQLRoleRepository(RoleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _map(r: dict) -> Role:
        return Role(
            role_id=int(r["RoleID"]),
            role_name=r["RoleName"],
            description=r.get("Description"),
            is_active=bool(r.get("IsActive")),
            created_at=r.get("CreatedAt"),
            updated_at=r.get("UpdatedAt"),
        )

    def create(self, *, role_name: str, description: Optional[str], is_active: bool) -> int:
        with integrity_errors(duplicate=lambda: ConflictError("El nombre del rol ya está en uso.")):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO Roles (RoleName, Description, IsActive) VALUES (%s, %s, %s)",
                    (role_name, description, 1 if is_active else 0),
                )
                return int(cur.lastrowid)

    def get_by_id(self, role_id: int) -> Optional[Role]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE RoleID=%s", (int(role_id),))
            r = fetchone(cur)
            return self._map(r) if r else None

    def get_by_name(self, role_name: str) -> Optional[Role]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE RoleName=%s", (role_name,))
            r = fetchone(cur)
            return self._map(r) if r else None

    def list(self, *, page: PageRequest) -> Page[Role]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS total FROM Roles")
            total = fetch_count(cur)
            cur.execute(f"{_SELECT} ORDER BY {page.order_by} LIMIT %s OFFSET %s", (page.limit, page.offset))
            items = [self._map(r) for r in fetchall(cur)]
        return Page(items=items, total=total, request=page)

    def update(self, role_id: int, changes: Mapping[str, Any]) -> bool:
        sets = []
        params: list[object] = []
        for field, value in changes.items():
            sets.append(f"{_COLUMNS[field]}=%s")
            params.append((1 if value else 0) if field == "is_active" else value)
        if not sets:
            return False

        with integrity_errors(duplicate=lambda: ConflictError("El nombre del rol ya está en uso.")):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(f"UPDATE Roles SET {', '.join(sets)} WHERE RoleID=%s", tuple(params + [int(role_id)]))
                return cur.rowcount > 0

    def delete(self, role_id: int) -> bool:
        with integrity_errors(
            referenced=lambda: ConflictError("No se puede eliminar el rol porque está asignado a uno o más usuarios.")
        ):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute("DELETE FROM Roles WHERE RoleID=%s", (int(role_id),))
                return cur.rowcount > 0

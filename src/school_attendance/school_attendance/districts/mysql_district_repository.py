from __future__ import annotations

from typing import Any, Mapping, Optional

from ..common.pagination import Page, PageRequest
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    LIKE_ESCAPE,
    db_cursor,
    fetch_count,
    fetchall,
    fetchone,
    integrity_errors,
    like_pattern,
)
from .model import District, DistrictFilter
from .repository import DistrictRepository

_COLUMNS = {
    "name": "Name",
    "regional_district_code": "`Regional-District_Code`",
    "contact_info": "ContactInfo",
    "is_active": "IsActive",
}

_SELECT = """
    SELECT DistrictID, Name, `Regional-District_Code` AS RegionalDistrictCode,
           ContactInfo, IsActive, CreatedAt, UpdatedAt
    FROM Districts
"""

_DUPLICATE_CODE = "El código regional-distrito ya está en uso."


class MySQLDistrictRepository(DistrictRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _map(r: dict) -> District:
        return District(
            district_id=int(r["DistrictID"]),
            name=r["Name"],
            regional_district_code=r["RegionalDistrictCode"],
            contact_info=r.get("ContactInfo"),
            is_active=bool(r.get("IsActive")),
            created_at=r.get("CreatedAt"),
            updated_at=r.get("UpdatedAt"),
        )

    def create(self, *, name: str, regional_district_code: str, contact_info: Optional[str], is_active: bool) -> int:
        with integrity_errors(duplicate=lambda: ConflictError(_DUPLICATE_CODE)):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO Districts (Name, `Regional-District_Code`, ContactInfo, IsActive)
                    VALUES (%s, %s, %s, %s)
                    """,
                    (name, regional_district_code, contact_info, 1 if is_active else 0),
                )
                return int(cur.lastrowid)

    def get_by_id(self, district_id: int) -> Optional[District]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE DistrictID=%s", (int(district_id),))
            r = fetchone(cur)
            return self._map(r) if r else None

    def get_by_code(self, regional_district_code: str) -> Optional[District]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE `Regional-District_Code`=%s", (regional_district_code,))
            r = fetchone(cur)
            return self._map(r) if r else None

    def list(self, *, filters: DistrictFilter, page: PageRequest) -> Page[District]:
        clauses = ["1=1"]
        params: list[object] = []

        if filters.name:
            clauses.append(f"Name LIKE %s {LIKE_ESCAPE}")
            params.append(like_pattern(filters.name))
        if filters.is_active is not None:
            clauses.append("IsActive=%s")
            params.append(1 if filters.is_active else 0)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM Districts WHERE {where}", tuple(params))
            total = fetch_count(cur)

            cur.execute(
                f"{_SELECT} WHERE {where} ORDER BY {page.order_by} LIMIT %s OFFSET %s",
                tuple(params + [page.limit, page.offset]),
            )
            items = [self._map(r) for r in fetchall(cur)]

        return Page(items=items, total=total, request=page)

    def update(self, district_id: int, changes: Mapping[str, Any]) -> bool:
        sets = []
        params: list[object] = []
        for field, value in changes.items():
            sets.append(f"{_COLUMNS[field]}=%s")
            params.append((1 if value else 0) if field == "is_active" else value)
        if not sets:
            return False

        with integrity_errors(duplicate=lambda: ConflictError(_DUPLICATE_CODE)):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"UPDATE Districts SET {', '.join(sets)} WHERE DistrictID=%s",
                    tuple(params + [int(district_id)]),
                )
                return cur.rowcount > 0

    def delete(self, district_id: int) -> bool:
        with integrity_errors(
            referenced=lambda: ConflictError(
                "No se puede eliminar el distrito porque tiene instituciones u otros registros asociados."
            )
        ):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute("DELETE FROM Districts WHERE DistrictID=%s", (int(district_id),))
                return cur.rowcount > 0

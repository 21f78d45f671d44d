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
)
from .model import Institution, InstitutionFilter
from .repository import InstitutionRepository

_COLUMNS = {
    "name": "Name",
    "district_id": "DistrictID",
    "address": "Address",
    "subscription_status": "SubscriptionStatus",
    "configuration_data": "ConfigurationData",
}

_SELECT = """
    SELECT i.InstitutionID, i.Name, i.DistrictID, d.Name AS DistrictName, i.Address,
           i.SubscriptionStatus, i.ConfigurationData, i.CreatedAt, i.UpdatedAt
    FROM Institutions i
    LEFT JOIN Districts d ON d.DistrictID = i.DistrictID
"""


class MySQLInstitutionRepository(InstitutionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _map(r: dict) -> Institution:
        return Institution(
            institution_id=int(r["InstitutionID"]),
            name=r["Name"],
            district_id=int(r["DistrictID"]),
            district_name=r.get("DistrictName"),
            address=r.get("Address"),
            subscription_status=r.get("SubscriptionStatus") or "Active",
            configuration_data=r.get("ConfigurationData"),
            created_at=r.get("CreatedAt"),
            updated_at=r.get("UpdatedAt"),
        )

    def create(
        self,
        *,
        name: str,
        district_id: int,
        address: Optional[str],
        subscription_status: str,
        configuration_data: Optional[str],
    ) -> int:
        with integrity_errors(
            duplicate=lambda: ConflictError("Conflicto: Posible institución duplicada."),
            missing_parent=lambda: ValidationError(f"Distrito con ID {district_id} no encontrado."),
        ):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO Institutions (Name, DistrictID, Address, SubscriptionStatus, ConfigurationData)
                    VALUES (%s, %s, %s, %s, %s)
                    """,
                    (name, int(district_id), address, subscription_status, configuration_data),
                )
                return int(cur.lastrowid)

    def get_by_id(self, institution_id: int) -> Optional[Institution]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE i.InstitutionID=%s", (int(institution_id),))
            r = fetchone(cur)
            return self._map(r) if r else None

    def list(self, *, filters: InstitutionFilter, page: PageRequest) -> Page[Institution]:
        clauses = ["1=1"]
        params: list[object] = []

        if filters.district_id is not None:
            clauses.append("i.DistrictID=%s")
            params.append(int(filters.district_id))
        if filters.name:
            clauses.append(f"i.Name LIKE %s {LIKE_ESCAPE}")
            params.append(like_pattern(filters.name))
        if filters.subscription_status:
            clauses.append("i.SubscriptionStatus=%s")
            params.append(filters.subscription_status)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM Institutions i WHERE {where}", tuple(params))
            total = fetch_count(cur)

            cur.execute(
                f"{_SELECT} WHERE {where} ORDER BY {page.order_by} LIMIT %s OFFSET %s",
                tuple(params + [page.limit, page.offset]),
            )
            items = [self._map(r) for r in fetchall(cur)]

        return Page(items=items, total=total, request=page)

    def update(self, institution_id: int, changes: Mapping[str, Any]) -> bool:
        sets = [f"{_COLUMNS[field]}=%s" for field in changes]
        if not sets:
            return False

        with integrity_errors(
            duplicate=lambda: ConflictError("Conflicto: Posible nombre duplicado."),
            missing_parent=lambda: ValidationError("Distrito no encontrado."),
        ):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"UPDATE Institutions SET {', '.join(sets)} WHERE InstitutionID=%s",
                    tuple(list(changes.values()) + [int(institution_id)]),
                )
                return cur.rowcount > 0

    def delete(self, institution_id: int) -> bool:
        with integrity_errors(
            referenced=lambda: ConflictError(
                "No se puede eliminar la institución porque tiene registros asociados "
                "(grupos, asistencia, etc.). Elimine primero los registros dependientes."
            )
        ):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute("DELETE FROM Institutions WHERE InstitutionID=%s", (int(institution_id),))
                return cur.rowcount > 0

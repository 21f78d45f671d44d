from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Generic, Mapping, Sequence, TypeVar

from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..core.enums import SortOrder
from ..core.exceptions import ValidationError
from .validators import is_digits

T = TypeVar("T")


def _positive_int(value: Any, field_name: str, default: int) -> int:
    if value is None or value == "":
        return default
    text = str(value).strip()
    if not is_digits(text[1:] if text.startswith("-") else text):
        raise ValidationError(f"El parámetro {field_name} debe ser numérico.")
    return int(text)


@dataclass(frozen=True)
class PageRequest:
    """Pagination + ordering requested by the caller.

    `sort_column` is always a value taken from a resource's allow-list, never
    the raw query string, so it is safe to format into ORDER BY.
    """

    page: int
    limit: int
    sort_column: str
    sort_order: SortOrder

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def order_by(self) -> str:
        return f"{self.sort_column} {self.sort_order.value}"

    @classmethod
    def from_args(
        cls,
        args: Mapping[str, Any],
        *,
        sort_columns: Mapping[str, str],
        default_sort: str,
        default_order: SortOrder = SortOrder.ASC,
    ) -> "PageRequest":
        page = max(1, _positive_int(args.get("page"), "page", 1))
        raw_limit = args.get("limit") if args.get("limit") not in (None, "") else args.get("pageSize")
        limit = min(MAX_PAGE_SIZE, max(1, _positive_int(raw_limit, "limit", DEFAULT_PAGE_SIZE)))

        lookup = {key.lower(): column for key, column in sort_columns.items()}
        requested = str(args.get("sortBy") or "").strip().lower()
        sort_column = lookup.get(requested) or sort_columns[default_sort]

        raw_order = str(args.get("sortOrder") or "").strip().upper()
        sort_order = SortOrder(raw_order) if raw_order in SortOrder.__members__ else default_order

        return cls(page=page, limit=limit, sort_column=sort_column, sort_order=sort_order)


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Sequence[T]
    total: int
    request: PageRequest

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.request.limit) if self.total else 0

    def pagination(self) -> dict:
        return {
            "currentPage": self.request.page,
            "limit": self.request.limit,
            "totalRecords": self.total,
            "totalPages": self.total_pages,
        }

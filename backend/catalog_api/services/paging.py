from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence

from sqlalchemy.sql import ColumnElement, Select

from ..core.errors import InvalidParameterError


@dataclass(slots=True, frozen=True)
class Page:
    limit: int
    offset: int = 0


def resolve_page(limit: int, *, page: Optional[int] = None, offset: Optional[int] = None) -> Page:
    """Turn the ``limit``/``page``/``offset`` query trio into a concrete window.

    ``page`` wins over ``offset`` when both are present. No upper bound is put
    on ``limit``.
    """
    if limit < 1:
        raise InvalidParameterError("limit must be a positive integer")
    if page is not None:
        if page < 1:
            raise InvalidParameterError("page must be >= 1")
        return Page(limit=limit, offset=(page - 1) * limit)
    if offset is not None and offset < 0:
        raise InvalidParameterError("offset must be >= 0")
    return Page(limit=limit, offset=offset or 0)


class SortColumns:
    """Allow-list of sortable fields for one endpoint.

    Maps the names accepted in ``sort_by`` to column expressions. Ordering is
    always descending, followed by ascending tie-break columns so that adjacent
    pages never share a row.
    """

    def __init__(
        self,
        columns: Mapping[str, Any],
        *,
        default: str,
        tie_break: Sequence[ColumnElement[Any]] = (),
    ) -> None:
        if default not in columns:
            raise ValueError(f"default sort column {default!r} is not sortable")
        self.columns: Dict[str, Any] = dict(columns)
        self.default = default
        self.tie_break = tuple(tie_break)

    @property
    def names(self) -> list[str]:
        return sorted(self.columns)

    def resolve(self, sort_by: Optional[str]) -> Any:
        name = sort_by or self.default
        try:
            return self.columns[name]
        except KeyError:
            raise InvalidParameterError(
                f"sort_by must be one of: {', '.join(self.names)}"
            ) from None

    def apply(self, stmt: Select, sort_by: Optional[str], page: Page) -> Select:
        column = self.resolve(sort_by)
        return (
            stmt.order_by(column.desc().nulls_last(), *self.tie_break)
            .limit(page.limit)
            .offset(page.offset)
        )

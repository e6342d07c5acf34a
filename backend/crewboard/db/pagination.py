"""Limit/offset pagination over `crud.list_records` for list endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from fastapi_pagination import create_page
from fastapi_pagination.api import resolve_params

from crewboard.db import crud

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from sqlalchemy.sql.elements import ColumnElement
    from sqlmodel import SQLModel
    from sqlmodel.ext.asyncio.session import AsyncSession

ModelT = TypeVar("ModelT", bound="SQLModel")


async def paginate(
    session: AsyncSession,
    model: type[ModelT],
    filters: Mapping[str, object] | None = None,
    *,
    sort: Mapping[str, crud.SortDirection] | None = None,
    where: Sequence[ColumnElement[bool]] = (),
    transformer: Callable[[Sequence[ModelT]], Sequence[Any]] | None = None,
) -> Any:
    """Return a page for the current request's limit/offset parameters."""
    params = resolve_params()
    raw_params = params.to_raw_params().as_limit_offset()
    result = await crud.list_records(
        session,
        model,
        filters,
        limit=raw_params.limit,
        offset=raw_params.offset,
        sort=sort,
        where=where,
    )
    items = transformer(result.records) if transformer is not None else result.records
    return create_page(items, total=result.total, params=params)

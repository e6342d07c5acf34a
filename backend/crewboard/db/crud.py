"""Generic create/get/update/delete/list helpers over SQLModel tables.

Filters passed to `list_records` map column names to either a scalar value
(equality) or a list/tuple/set/frozenset ("any of"). `None` values are ignored,
so optional query parameters can be forwarded without pre-filtering.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, Literal, TypeVar

from sqlalchemy import delete as sa_delete
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import SQLModel, col, select

from crewboard.core.time import utcnow

if TYPE_CHECKING:
    from sqlalchemy.sql.elements import ColumnElement
    from sqlmodel.ext.asyncio.session import AsyncSession

ModelT = TypeVar("ModelT", bound=SQLModel)
SortDirection = Literal["asc", "desc"]

_MULTI_VALUE_TYPES = (list, tuple, set, frozenset)


@dataclass(frozen=True)
class ListResult(Generic[ModelT]):
    """A page of records plus the total count matching the filter."""

    records: list[ModelT]
    total: int


def _column(model: type[SQLModel], name: str) -> Any:
    try:
        return col(getattr(model, name))
    except AttributeError as exc:
        msg = f"{model.__name__} has no column '{name}'"
        raise ValueError(msg) from exc


def filter_criteria(
    model: type[SQLModel],
    filters: Mapping[str, object] | None,
) -> list[ColumnElement[bool]]:
    """Translate a filter mapping into SQL criteria."""
    criteria: list[ColumnElement[bool]] = []
    for name, value in (filters or {}).items():
        if value is None:
            continue
        column = _column(model, name)
        if isinstance(value, _MULTI_VALUE_TYPES):
            criteria.append(column.in_(list(value)))
        else:
            criteria.append(column == value)
    return criteria


async def create(
    session: AsyncSession,
    model: type[ModelT],
    *,
    commit: bool = True,
    **fields: object,
) -> ModelT:
    """Insert a record; ids and timestamps come from model defaults."""
    now = utcnow()
    fields.setdefault("created_at", now)
    fields.setdefault("updated_at", now)
    record = model(**fields)
    session.add(record)
    if commit:
        await session.commit()
        await session.refresh(record)
    else:
        await session.flush()
    return record


async def get(session: AsyncSession, model: type[ModelT], record_id: object) -> ModelT | None:
    """Fetch a record by primary key."""
    return await session.get(model, record_id)


async def update(
    session: AsyncSession,
    record: ModelT,
    *,
    commit: bool = True,
    **fields: object,
) -> ModelT:
    """Apply a partial update and bump `updated_at`."""
    for name, value in fields.items():
        setattr(record, name, value)
    if hasattr(record, "updated_at"):
        record.updated_at = utcnow()  # type: ignore[attr-defined]
    session.add(record)
    if commit:
        await session.commit()
        await session.refresh(record)
    return record


async def delete(session: AsyncSession, record: SQLModel, *, commit: bool = True) -> None:
    """Delete a single record."""
    await session.delete(record)
    if commit:
        await session.commit()


async def delete_where(
    session: AsyncSession,
    model: type[SQLModel],
    *criteria: ColumnElement[bool],
    commit: bool = True,
) -> None:
    """Bulk delete rows matching all criteria."""
    statement = sa_delete(model)
    if criteria:
        statement = statement.where(*criteria)
    await session.exec(statement)  # type: ignore[call-overload]
    if commit:
        await session.commit()


async def list_records(
    session: AsyncSession,
    model: type[ModelT],
    filters: Mapping[str, object] | None = None,
    *,
    limit: int | None = None,
    offset: int | None = None,
    sort: Mapping[str, SortDirection] | None = None,
    where: Sequence[ColumnElement[bool]] = (),
) -> ListResult[ModelT]:
    """List records matching `filters`, newest first unless `sort` says otherwise.

    `where` adds raw criteria for conditions a filter mapping cannot express.
    """
    criteria = [*filter_criteria(model, filters), *where]
    statement = select(model)
    count_statement = select(func.count()).select_from(model)
    if criteria:
        statement = statement.where(*criteria)
        count_statement = count_statement.where(*criteria)

    if sort:
        for name, direction in sort.items():
            column = _column(model, name)
            statement = statement.order_by(column.desc() if direction == "desc" else column.asc())
    elif hasattr(model, "created_at"):
        statement = statement.order_by(_column(model, "created_at").desc())

    if offset:
        statement = statement.offset(offset)
    if limit:
        statement = statement.limit(limit)

    records = list(await session.exec(statement))
    total = int((await session.exec(count_statement)).one())
    return ListResult(records=records, total=total)


async def get_or_create(
    session: AsyncSession,
    model: type[ModelT],
    *,
    defaults: Mapping[str, object] | None = None,
    **lookup: object,
) -> tuple[ModelT, bool]:
    """Return an existing record matching `lookup`, creating it if missing."""
    statement = select(model).where(*filter_criteria(model, lookup))
    existing = (await session.exec(statement)).first()
    if existing is not None:
        return existing, False
    record = model(**lookup, **dict(defaults or {}))
    session.add(record)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        existing = (await session.exec(statement)).first()
        if existing is None:
            raise
        return existing, False
    await session.refresh(record)
    return record, True

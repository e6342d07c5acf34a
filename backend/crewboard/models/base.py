"""Base model with a chainable `.objects` query helper."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from sqlalchemy import func
from sqlmodel import SQLModel, col, select

if TYPE_CHECKING:
    from sqlalchemy.sql.elements import ColumnElement
    from sqlmodel.ext.asyncio.session import AsyncSession
    from sqlmodel.sql.expression import SelectOfScalar

ModelT = TypeVar("ModelT", bound="QueryModel")


class ModelQuery(Generic[ModelT]):
    """Immutable query builder bound to one model class."""

    def __init__(self, model: type[ModelT], statement: SelectOfScalar[ModelT] | None = None) -> None:
        self.model = model
        self.statement = statement if statement is not None else select(model)

    def _with(self, statement: SelectOfScalar[ModelT]) -> ModelQuery[ModelT]:
        return ModelQuery(self.model, statement)

    def by_id(self, record_id: object) -> ModelQuery[ModelT]:
        return self._with(self.statement.where(col(self.model.id) == record_id))  # type: ignore[attr-defined]

    def filter_by(self, **values: object) -> ModelQuery[ModelT]:
        return self._with(self.statement.filter_by(**values))

    def filter(self, *criteria: ColumnElement[bool]) -> ModelQuery[ModelT]:
        return self._with(self.statement.where(*criteria))

    def order_by(self, *ordering: Any) -> ModelQuery[ModelT]:
        return self._with(self.statement.order_by(*ordering))

    async def first(self, session: AsyncSession) -> ModelT | None:
        return (await session.exec(self.statement)).first()

    async def all(self, session: AsyncSession) -> list[ModelT]:
        return list(await session.exec(self.statement))

    async def count(self, session: AsyncSession) -> int:
        statement = select(func.count()).select_from(self.statement.subquery())
        return int((await session.exec(statement)).one())


class _ObjectsDescriptor:
    def __get__(self, instance: object, owner: type[ModelT]) -> ModelQuery[ModelT]:
        return ModelQuery(owner)


class QueryModel(SQLModel):
    """SQLModel base exposing `Model.objects` query helpers."""

    objects: ClassVar[_ObjectsDescriptor] = _ObjectsDescriptor()

"""Generic async repository over a single SQLModel table."""

from typing import Any, ClassVar

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select


class BaseRepository[ModelT: SQLModel]:
    """Common reads and writes for ``model``.

    Subclasses set ``model``. Every write commits immediately and rolls the
    session back if the commit fails.
    """

    model: ClassVar[type[Any]]

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _column(self, field: str) -> Any:
        if field not in self.model.model_fields:
            raise AttributeError(f"{self.model.__name__} has no field {field!r}")
        return getattr(self.model, field)

    async def get_optional(self, id: Any) -> ModelT | None:
        return await self.session.get(self.model, id)

    async def get_by(self, **filters: Any) -> ModelT | None:
        """First row whose fields equal ``filters``."""
        statement = select(self.model).where(*(self._column(f) == v for f, v in filters.items()))
        result = await self.session.execute(statement)
        return result.scalars().first()

    async def count(self, **filters: Any) -> int:
        statement = select(func.count()).select_from(self.model)
        statement = statement.where(*(self._column(f) == v for f, v in filters.items()))
        result = await self.session.execute(statement)
        return result.scalar_one()

    async def _commit(self) -> None:
        # A failed commit leaves the session unusable until it is rolled back
        try:
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise

    async def _save(self, entity: ModelT) -> ModelT:
        self.session.add(entity)
        await self._commit()
        await self.session.refresh(entity)
        return entity

    async def create(self, entity: ModelT) -> ModelT:
        return await self._save(entity)

    async def update(self, entity: ModelT, values: dict[str, Any]) -> ModelT:
        """Assign ``values`` to ``entity`` and commit.

        ``None`` is written as-is, so this can clear nullable fields.
        """
        for field, value in values.items():
            self._column(field)
            setattr(entity, field, value)
        return await self._save(entity)

from typing import Any, Generic, TypeVar

from sqlalchemy import exists, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from loggers import get_logger
from src.core.database.base import Base

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """
    Stateless query helpers bound to one mapped class.

    Callers own the session; ``create`` only commits when asked to.
    """

    model: type[ModelT]

    def __init__(self) -> None:
        if getattr(self, "model", None) is None:
            raise NotImplementedError(f"{type(self).__name__} must set 'model'")

    async def create(
        self, session: AsyncSession, data: dict[str, Any], commit: bool = False
    ) -> ModelT:
        instance = self.model(**data)
        session.add(instance)
        if not commit:
            await session.flush()
            return instance

        try:
            await session.commit()
        except SQLAlchemyError:
            await session.rollback()
            logger.warning("Rolled back insert of %s", self.model.__name__)
            raise
        await session.refresh(instance)
        logger.info("%s %s committed", self.model.__name__, getattr(instance, "id", ""))
        return instance

    async def exists(self, session: AsyncSession, **filters: Any) -> bool:
        query = select(exists().where(*self._conditions(filters)))
        return bool(await session.scalar(query))

    async def get_single(self, session: AsyncSession, **filters: Any) -> ModelT | None:
        query = select(self.model).where(*self._conditions(filters)).limit(1)
        return (await session.scalars(query)).first()

    def _conditions(self, filters: dict[str, Any]) -> list[Any]:
        return [getattr(self.model, name) == value for name, value in filters.items()]

"""
Shared repository plumbing: soft-delete aware lookups, counting and LIKE escaping.

Both users and properties are soft-deleted, so every lookup here can hide rows
with ``is_deleted`` set.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func
from house_hunt.database import Base
from typing import TypeVar, Generic, Optional, Dict, Any, Type
import uuid
import logging

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so user input is matched literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def contains_pattern(term: str) -> str:
    return f"%{escape_like(term)}%"


class BaseRepository(Generic[ModelType]):
    """Generic access for a soft-deletable model bound to one async session."""

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    @property
    def not_deleted(self):
        """SQL condition selecting rows that have not been soft-deleted."""
        return self.model.is_deleted.is_(False)

    async def create(self, values: Dict[str, Any]) -> ModelType:
        """
        Insert a row and commit.

        Args:
            values: Column values for the new row

        Returns:
            The persisted instance, refreshed from the database

        Raises:
            SQLAlchemyError: If the insert fails; the session is rolled back
        """
        instance = self.model(**values)
        self.db.add(instance)
        try:
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Insert into {self.model.__tablename__} failed: {e}")
            raise

        await self.db.refresh(instance)
        logger.debug(f"Inserted {self.model.__name__} {instance.id}")
        return instance

    async def get_by_id(self, id: uuid.UUID, include_deleted: bool = True) -> Optional[ModelType]:
        """
        Load one row by primary key.

        The identity map copy is overwritten so bulk moderation updates made
        earlier in the session are visible.

        Args:
            id: Primary key
            include_deleted: When False, soft-deleted rows are reported as missing

        Returns:
            The instance or None
        """
        query = (
            select(self.model)
            .where(self.model.id == id)
            .execution_options(populate_existing=True)
        )
        if not include_deleted:
            query = query.where(self.not_deleted)

        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def update(self, id: uuid.UUID, values: Dict[str, Any]) -> Optional[ModelType]:
        """
        Apply column changes to a non-deleted row and commit.

        None values are skipped. Returns the reloaded row, or None when the row
        is missing or soft-deleted.
        """
        changes = {key: value for key, value in values.items() if value is not None}
        if not changes:
            return await self.get_by_id(id, include_deleted=False)

        stmt = (
            update(self.model)
            .where(self.model.id == id, self.not_deleted)
            .values(**changes)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db.execute(stmt)
            if result.rowcount == 0:
                await self.db.rollback()
                return None
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Update of {self.model.__name__} {id} failed: {e}")
            raise

        logger.debug(f"Updated {self.model.__name__} {id}: {sorted(changes)}")
        return await self.get_by_id(id)

    async def count(self, *conditions) -> int:
        """Count rows matching all ``conditions``."""
        query = select(func.count(self.model.id))
        if conditions:
            query = query.where(*conditions)

        result = await self.db.execute(query)
        return result.scalar() or 0

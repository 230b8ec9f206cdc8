"""Unit of work over an async SQLAlchemy session."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from outlook_sync.utils.errors import PersistenceError

logger = logging.getLogger(__name__)


class SqlAlchemyUnitOfWork:
    """Commits the changes staged by repositories sharing one session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def save_changes(self) -> None:
        """
        Commit pending changes.

        Raises:
            PersistenceError: If the commit fails; the session is rolled back
        """
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Database commit failed: {e}")
            await self.session.rollback()
            raise PersistenceError(f"Failed to save changes: {e}") from e

    async def begin_transaction(self) -> None:
        if not self.session.in_transaction():
            await self.session.begin()

    async def commit_transaction(self) -> None:
        await self.save_changes()

    async def rollback_transaction(self) -> None:
        await self.session.rollback()

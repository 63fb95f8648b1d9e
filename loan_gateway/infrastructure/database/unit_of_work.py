"""SQLAlchemy implementation of UnitOfWork."""

from sqlalchemy.ext.asyncio import AsyncSession

from loan_gateway.domain.interfaces import UnitOfWork


class SqlAlchemyUnitOfWork(UnitOfWork):
    """
    Unit of work over the request's AsyncSession.

    Repositories built on the same session flush into one transaction, so
    committing here commits all of their writes together.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()

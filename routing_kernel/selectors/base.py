"""
Module: routing_kernel.selectors.base
Responsibility: Abstract base class for read-only SQLAlchemy selectors.
    Selectors back the Directory and History Store protocols consumed by
    the route resolver.
Architecture position: Kernel > Selectors.  May import from db/, models/,
    domain/ and exceptions.py.  MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Read-only access: selectors never call session.add(), delete(),
      commit(), or flush().
    - DTO return convention: selectors return frozen domain dataclasses,
      never ORM instances.
    - Session ownership: the caller owns the AsyncSession and its
      transaction.  Queries are awaited, so a directory lookup never blocks
      the event loop.

Failure modes:
    - SQLAlchemyError is wrapped as CollaboratorUnavailableError.
    - Rows that cannot be converted to DTOs raise MalformedDataError.
"""

from abc import ABC
from typing import Any

from sqlalchemy import Select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from routing_kernel.exceptions import CollaboratorUnavailableError


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept an AsyncSession from the caller, perform read-only
        queries, and return DTOs.  They MUST NOT mutate any data.
    """

    collaborator_name: str = "selector"

    def __init__(self, session: AsyncSession):
        """
        Args:
            session: Async SQLAlchemy session owned by the caller.
        """
        self.session = session

    async def _scalars(self, operation: str, stmt: Select) -> list[Any]:
        """All scalar rows of ``stmt``, driver faults wrapped."""
        try:
            result = await self.session.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as exc:
            raise self._unavailable(operation, exc) from exc

    async def _scalar_one_or_none(self, operation: str, stmt: Select) -> Any:
        try:
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise self._unavailable(operation, exc) from exc

    def _unavailable(
        self, operation: str, exc: SQLAlchemyError,
    ) -> CollaboratorUnavailableError:
        return CollaboratorUnavailableError(self.collaborator_name, operation, str(exc))

"""
Restock API Dependencies
"""

from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from db.session import AsyncSessionLocal


async def get_db() -> AsyncIterator[AsyncSession]:
    """One catalog session per request, closed by the context manager."""
    async with AsyncSessionLocal() as session:
        yield session

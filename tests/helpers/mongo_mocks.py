"""Helpers for mocking Motor cursors and sessions."""

from unittest.mock import AsyncMock, MagicMock


def make_cursor(documents):
    """Cursor mock whose ``to_list`` returns ``documents``."""
    cursor = MagicMock()
    cursor.to_list = AsyncMock(return_value=list(documents))
    return cursor


def make_session():
    """Client session mock usable as ``async with``; commits by running the callback."""
    session = MagicMock()
    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock(return_value=False)

    async def run_callback(callback, **kwargs):
        return await callback(session)

    session.with_transaction = AsyncMock(side_effect=run_callback)
    return session

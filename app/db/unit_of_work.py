# app/db/unit_of_work.py
from contextlib import asynccontextmanager
from typing import AsyncIterator
import logging
import traceback

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import DatabaseError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def unit_of_work(db: AsyncSession, operation: str) -> AsyncIterator[AsyncSession]:
    """
    Run a block of reads and writes as one atomic transaction.

    Everything executed on ``db`` inside the block is committed together when
    the block exits normally (including an early ``return`` of a refusal
    result, which has written nothing). Any storage failure rolls the whole
    block back and surfaces as ``DatabaseError``; other exceptions roll back
    and propagate unchanged.

    Usage:
        async with unit_of_work(db, "create sale"):
            ...
    """
    try:
        yield db
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Database error during %s: %s\n%s", operation, e, traceback.format_exc())
        raise DatabaseError(f"Database error during {operation}") from e
    except Exception:
        await db.rollback()
        raise

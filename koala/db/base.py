# =============================================================================
# KOALA WEB TOOLKIT - DATABASE CONNECTION
# =============================================================================
# File: koala/db/base.py
# Description: Async engine creation from the database settings
# =============================================================================

import logging
from typing import Any, Dict

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from koala.core.config import DBConfig
from koala.core.exceptions import DatabaseError


logger = logging.getLogger(__name__)

DEFAULT_MAX_OPEN_CONNS = 20


def engine_options(config: DBConfig) -> Dict[str, Any]:
    """
    Engine options for the connection settings.

    Pool limits only apply to pooled dialects: SQLite engines keep the
    SQLAlchemy defaults.

    Returns:
        Dict[str, Any]: Keyword arguments for ``create_async_engine``
    """
    options: Dict[str, Any] = {"pool_pre_ping": True}

    if make_url(config.dsn).get_backend_name() == "sqlite":
        return options

    max_open = config.max_open_conns or DEFAULT_MAX_OPEN_CONNS
    pool_size = config.max_idle_conns if config.max_idle_conns > 0 else max_open
    pool_size = min(pool_size, max_open)

    options["pool_size"] = pool_size
    options["max_overflow"] = max_open - pool_size
    return options


async def connect(config: DBConfig) -> AsyncEngine:
    """
    Create an engine and check the database is reachable.

    Args:
        config: Database settings

    Returns:
        AsyncEngine: Connected engine

    Raises:
        DatabaseError: If the engine can not be created or connected
    """
    try:
        engine = create_async_engine(config.dsn, **engine_options(config))
    except (SQLAlchemyError, ImportError, ValueError) as e:
        raise DatabaseError(f"Database Error - Connect: {e}") from e

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        await engine.dispose()
        raise DatabaseError(f"Database Error - Connect: {e}") from e

    logger.info(f"Connected to {make_url(config.dsn).render_as_string(hide_password=True)}")
    return engine

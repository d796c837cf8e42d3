# =============================================================================
# KOALA WEB TOOLKIT - TEST DATABASE SETUP
# =============================================================================
# File: koala/db/testing.py
# Description: Creates, migrates and drops the test database of a project
# =============================================================================

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from koala.core.config import DBConfig
from koala.core.exceptions import DatabaseError, IllegalArgumentError
from koala.db.base import connect
from koala.db.migration import MIGRATIONS_DIR, Migration


logger = logging.getLogger(__name__)

TEST_DATABASE_SUFFIX = "_test"
SUPPORTED_DRIVERS = ("postgres", "postgresql")


def get_database_name_from_dsn(dsn: str) -> str:
    """
    Get the database name of a connection URL.

    Raises:
        IllegalArgumentError: If the URL is malformed or has no database name
    """
    try:
        name = make_url(dsn).database
    except ArgumentError as e:
        raise IllegalArgumentError(f"Invalid dsn: {e}") from e

    if not name:
        raise IllegalArgumentError("The database name is empty in the dsn.")
    return name


class DatabaseFixture(ABC):
    """Creates and drops the test database for a driver."""

    def __init__(self, config: DBConfig):
        self.config = config

    @abstractmethod
    async def create_database(self) -> None:
        """Create the test database."""

    @abstractmethod
    async def drop_database(self) -> None:
        """Drop the test database if it exists."""

    @abstractmethod
    async def connect_database(self) -> AsyncEngine:
        """Connect to the test database."""


class PostgresDatabaseFixture(DatabaseFixture):
    """
    Test database next to the configured PostgreSQL database.

    The test database name is the configured one with a ``_test`` suffix.
    DDL statements run on the configured database in autocommit mode.
    """

    def get_database_name(self) -> str:
        return get_database_name_from_dsn(self.config.dsn) + TEST_DATABASE_SUFFIX

    def get_dsn(self) -> str:
        url = make_url(self.config.dsn).set(database=self.get_database_name())
        return url.render_as_string(hide_password=False)

    async def _execute_ddl(self, statement: str) -> None:
        engine = create_async_engine(self.config.dsn, isolation_level="AUTOCOMMIT")
        try:
            async with engine.connect() as conn:
                await conn.execute(text(statement))
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database Error - {statement}: {e}") from e
        finally:
            await engine.dispose()

    async def create_database(self) -> None:
        await self._execute_ddl(f'CREATE DATABASE "{self.get_database_name()}"')

    async def drop_database(self) -> None:
        await self._execute_ddl(f'DROP DATABASE IF EXISTS "{self.get_database_name()}"')

    async def connect_database(self) -> AsyncEngine:
        config = self.config.model_copy(update={"dsn": self.get_dsn()})
        return await connect(config)


def get_database_setter(config: DBConfig) -> DatabaseFixture:
    """
    Get the database fixture for the configured driver.

    Raises:
        IllegalArgumentError: If the driver is not supported
    """
    if config.driver in SUPPORTED_DRIVERS:
        return PostgresDatabaseFixture(config)
    raise IllegalArgumentError("Driver not supported.")


class Setup:
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    TEST DATABASE SETUP                                   │
    │  Drops, creates and migrates the test database                          │
    └─────────────────────────────────────────────────────────────────────────┘

    Usage (conftest.py):
        @pytest_asyncio.fixture(scope="session")
        async def test_db():
            setup = Setup(load_config().db)
            await setup.run()
            yield setup.engine
            await setup.destroy()
    """

    def __init__(
        self,
        config: DBConfig,
        migrations_dir: Union[str, Path] = MIGRATIONS_DIR,
        setter: Optional[DatabaseFixture] = None,
    ):
        self.config = config
        self.migrations_dir = migrations_dir
        self.setter = setter or get_database_setter(config)
        self.engine: Optional[AsyncEngine] = None

    async def run(self) -> int:
        """
        Recreate the test database and apply the migrations.

        Returns:
            int: Number of migrations applied
        """
        await self.destroy()

        logger.info("Creating the test database...")
        await self.setter.create_database()

        self.engine = await self.setter.connect_database()

        logger.info("Applying migrations...")
        applied = await Migration(self.engine, self.migrations_dir).up()

        logger.info(f"Number of migrations applied: {applied}.")
        return applied

    async def destroy(self) -> None:
        """Drop the test database."""
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None

        logger.info("Destroying test database...")
        await self.setter.drop_database()

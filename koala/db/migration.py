# =============================================================================
# KOALA WEB TOOLKIT - MIGRATIONS
# =============================================================================
# File: koala/db/migration.py
# Description: Alembic migration runner without an alembic.ini/env.py pair
# =============================================================================

import logging
from pathlib import Path
from typing import Any, Callable, List, Optional, Union

from alembic.config import Config as AlembicConfig
from alembic.runtime.environment import EnvironmentContext
from alembic.script import ScriptDirectory
from alembic.util import CommandError
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from koala.core.exceptions import DatabaseError


logger = logging.getLogger(__name__)

DEFAULT_TABLE = "sql_migrations"
DEFAULT_POSTGRES_SCHEMA = "public"
MIGRATIONS_DIR = "migrations"


class Migration:
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    MIGRATION RUNNER                                      │
    │  Applies or reverts the alembic revisions of a directory                │
    └─────────────────────────────────────────────────────────────────────────┘

    The directory holds a ``versions/`` folder of alembic revision files:

        migrations/
            versions/
                0001_create_users.py

    Usage:
        migration = Migration(engine, "migrations")
        applied = await migration.up()
    """

    def __init__(self, engine: AsyncEngine, directory: Union[str, Path] = MIGRATIONS_DIR):
        self.engine = engine
        self.directory = Path(directory)
        self._schema: Optional[str] = None
        self._table: Optional[str] = None

    def set_schema(self, schema: str) -> None:
        """Set the schema of the migrations table."""
        self._schema = schema

    def set_table(self, table: str) -> None:
        """Set the migrations table name."""
        self._table = table

    @property
    def table(self) -> str:
        return self._table or DEFAULT_TABLE

    @property
    def schema(self) -> Optional[str]:
        """Migrations table schema, ``public`` by default on PostgreSQL."""
        if self._schema:
            return self._schema
        if self.engine.dialect.name == "postgresql":
            return DEFAULT_POSTGRES_SCHEMA
        return None

    # -------------------------------------------------------------------------
    # RUNNING
    # -------------------------------------------------------------------------

    # Revision steps are listed the way alembic.command.upgrade and
    # alembic.command.downgrade list them.

    async def up(self) -> int:
        """
        Apply every pending migration.

        Returns:
            int: Number of migrations applied

        Raises:
            DatabaseError: If a migration fails
        """
        return await self._run("heads", lambda script, rev: script._upgrade_revs("heads", rev))

    async def down(self) -> int:
        """
        Revert every applied migration.

        Returns:
            int: Number of migrations reverted
        """
        return await self._run("base", lambda script, rev: script._downgrade_revs("base", rev))

    async def _run(self, destination: str, revisions: Callable[[ScriptDirectory, Any], List[Any]]) -> int:
        try:
            script = ScriptDirectory(str(self.directory))
        except CommandError as e:
            raise DatabaseError(f"Database Error - Migrations: {e}") from e

        try:
            async with self.engine.connect() as conn:
                count = await conn.run_sync(self._run_sync, script, destination, revisions)
        except (SQLAlchemyError, CommandError) as e:
            raise DatabaseError(f"Database Error - Migrations: {e}") from e

        logger.info(f"Migrations to {destination}: {count} applied")
        return count

    def _run_sync(
        self,
        connection: Connection,
        script: ScriptDirectory,
        destination: str,
        revisions: Callable[[ScriptDirectory, Any], List[Any]],
    ) -> int:
        steps: List[Any] = []

        def migrations_fn(rev, context):
            found = revisions(script, rev)
            steps.extend(found)
            return found

        with EnvironmentContext(
            AlembicConfig(),
            script,
            fn=migrations_fn,
            destination_rev=destination,
        ) as env:
            env.configure(
                connection=connection,
                version_table=self.table,
                version_table_schema=self.schema,
            )
            with env.begin_transaction():
                env.run_migrations()

        return len(steps)

# =============================================================================
# DATABASE MODULE INITIALIZATION
# =============================================================================
# File: koala/db/__init__.py
# Description: SQL helper exports
# =============================================================================

from koala.db.base import connect, engine_options
from koala.db.template import (
    SqlTemplate,
    TransactedSql,
    begin,
    commit,
    rollback,
    named_params,
)
from koala.db.criteria import Criteria, PostgresCriteria
from koala.db.migration import Migration
from koala.db.testing import (
    DatabaseFixture,
    PostgresDatabaseFixture,
    Setup,
    get_database_setter,
    get_database_name_from_dsn,
)

__all__ = [
    # Connection
    "connect",
    "engine_options",

    # Template
    "SqlTemplate",
    "TransactedSql",
    "begin",
    "commit",
    "rollback",
    "named_params",

    # Criteria
    "Criteria",
    "PostgresCriteria",

    # Migrations
    "Migration",

    # Test database
    "DatabaseFixture",
    "PostgresDatabaseFixture",
    "Setup",
    "get_database_setter",
    "get_database_name_from_dsn",
]

# =============================================================================
# KOALA WEB TOOLKIT - SQL TEMPLATE
# =============================================================================
# File: koala/db/template.py
# Description: Named parameter SQL helpers with shared transactions
# =============================================================================

import asyncio
import dataclasses
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, TypeVar, Union

from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from koala.core.exceptions import DatabaseError


logger = logging.getLogger(__name__)

T = TypeVar("T")

TxCallback = Callable[[AsyncConnection], Union[T, Awaitable[T]]]


def named_params(arg: Any) -> Dict[str, Any]:
    """
    Query parameters of an argument.

    Accepts mappings, pydantic models, dataclasses and None.
    """
    if arg is None:
        return {}
    if isinstance(arg, BaseModel):
        return arg.model_dump()
    if dataclasses.is_dataclass(arg) and not isinstance(arg, type):
        return dataclasses.asdict(arg)
    if isinstance(arg, Mapping):
        return dict(arg)
    raise DatabaseError(f"Database Error - Unsupported query argument {type(arg).__name__}.")


# =============================================================================
# TRANSACTIONS
# =============================================================================

async def begin(engine: AsyncEngine) -> AsyncConnection:
    """
    Open a connection with a started transaction.

    Raises:
        DatabaseError: If the transaction can not be started
    """
    try:
        conn = await engine.connect()
    except SQLAlchemyError as e:
        raise DatabaseError(f"Database Error - Begin Tx: {e}") from e

    try:
        await conn.begin()
    except BaseException as e:
        await conn.close()
        if isinstance(e, SQLAlchemyError):
            raise DatabaseError(f"Database Error - Begin Tx: {e}") from e
        raise
    return conn


async def rollback(tx: Optional[AsyncConnection]) -> None:
    """Undo the queries of the transaction and release its connection."""
    if tx is None:
        return

    try:
        await tx.rollback()
    except SQLAlchemyError as e:
        raise DatabaseError(f"Database Error - Can`t Rollback: {e}") from e
    finally:
        await tx.close()


async def commit(tx: Optional[AsyncConnection]) -> None:
    """Apply the queries of the transaction and release its connection."""
    if tx is None:
        return

    try:
        await tx.commit()
    except SQLAlchemyError as e:
        raise DatabaseError(f"Database Error - Can`t Commit: {e}") from e
    finally:
        await tx.close()


class TransactedSql:
    """
    Holds a shared transaction.

    Repositories extend it so a service can run their queries inside
    one transaction.
    """

    def __init__(self):
        self._tx: Optional[AsyncConnection] = None

    def set_tx(self, tx: Optional[AsyncConnection]) -> None:
        self._tx = tx

    def tx(self) -> Optional[AsyncConnection]:
        return self._tx


# =============================================================================
# SQL TEMPLATE
# =============================================================================

class SqlTemplate(TransactedSql):
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    SQL TEMPLATE                                          │
    │  Runs named parameter queries on an engine or a bound transaction       │
    └─────────────────────────────────────────────────────────────────────────┘

    Usage:
        tpl = SqlTemplate(engine)
        await tpl.named_exec(
            "INSERT INTO users (name) VALUES (:name)", {"name": "koala"}
        )
        rows = await tpl.named_query("SELECT * FROM users WHERE name = :name", user)
    """

    def __init__(self, engine: AsyncEngine):
        super().__init__()
        self.engine = engine

    async def tx_do(self, do: TxCallback) -> Any:
        """
        Run a callback inside a transaction.

        The transaction is committed when the callback returns and rolled
        back when it raises.

        Args:
            do: Callback receiving the transaction, sync or async

        Returns:
            The callback result

        Raises:
            DatabaseError: If the transaction fails or the callback raises
        """
        tx = await begin(self.engine)

        try:
            result = do(tx)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.debug(f"Rolling back transaction: {e}")
            try:
                await rollback(tx)
            except DatabaseError as errback:
                raise DatabaseError(f"Database Error - Rollback: {errback.message}") from e
            raise DatabaseError(f"Database Error - TxDo Callback: {e}") from e
        except BaseException:
            # Cancellation and exit: release the connection and propagate
            logger.debug("Rolling back cancelled transaction")
            await asyncio.shield(rollback(tx))
            raise

        await commit(tx)
        return result

    async def named_exec(self, query: str, arg: Any = None) -> CursorResult:
        """
        Execute a statement with named parameters.

        The statement runs over the bound transaction when one is set,
        otherwise in its own transaction.

        Raises:
            DatabaseError: If the statement fails
        """
        params = named_params(arg)
        tx = self.tx()

        try:
            if tx is not None:
                return await tx.execute(text(query), params)

            async with self.engine.begin() as conn:
                return await conn.execute(text(query), params)
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database Error - NamedExec: {e}") from e

    async def tx_named_exec(
        self,
        tx: Optional[AsyncConnection],
        query: str,
        arg: Any = None,
    ) -> CursorResult:
        """
        Execute a statement with named parameters over a transaction.

        Raises:
            DatabaseError: If tx is None or the statement fails
        """
        if tx is None:
            raise DatabaseError("Database Error - Tx is not a valid instance.")

        try:
            return await tx.execute(text(query), named_params(arg))
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database Error - NamedExec: {e}") from e

    async def named_query(self, query: str, arg: Any = None) -> List[Dict[str, Any]]:
        """
        Run a query with named parameters.

        Returns:
            List[Dict[str, Any]]: One dictionary per row
        """
        params = named_params(arg)
        tx = self.tx()

        try:
            if tx is not None:
                result = await tx.execute(text(query), params)
                return [dict(row) for row in result.mappings().all()]

            async with self.engine.connect() as conn:
                result = await conn.execute(text(query), params)
                return [dict(row) for row in result.mappings().all()]
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database Error - NamedQuery: {e}") from e

# =============================================================================
# KOALA WEB TOOLKIT - SQL CRITERIA
# =============================================================================
# File: koala/db/criteria.py
# Description: WHERE clause builder with named bind variables
# =============================================================================

from typing import Any, Callable, Dict, List, Tuple


NamedBindVars = Dict[str, Any]
Handler = Callable[[], Tuple[str, NamedBindVars]]


class Criteria:
    """
    Conditions joined with AND in a WHERE clause.

    Usage:
        c = Criteria()
        c.add(c.both_like("name", "koa"))
        sql = c.merge_sql("SELECT * FROM users")
        # SELECT * FROM users WHERE name LIKE :name
        rows = await tpl.named_query(sql, c.named_bind_vars())
    """

    LIKE_OPERATOR = "LIKE"

    def __init__(self):
        self._query: List[str] = []
        self._named_bind_vars: NamedBindVars = {}

    def _like(self, field: str, v: Any, operator: str) -> Handler:
        def handler() -> Tuple[str, NamedBindVars]:
            return f"{field} {operator} :{field}", {field: f"%{v}%"}

        return handler

    def both_like(self, field: str, v: Any) -> Handler:
        """Match columns containing v (``%v%``)."""
        return self._like(field, v, self.LIKE_OPERATOR)

    def add(self, handler: Handler) -> None:
        query, named_vars = handler()
        self._query.append(query)
        self._named_bind_vars.update(named_vars)

    def bind_vars(self) -> NamedBindVars:
        return self._named_bind_vars

    def named_bind_vars(self) -> NamedBindVars:
        return self._named_bind_vars

    def merge_sql(self, s: str) -> str:
        """Append the WHERE clause to another query."""
        return s + " " + self.to_sql()

    def is_empty(self) -> bool:
        return len(self._query) == 0

    def to_sql(self) -> str:
        if not self._query:
            return ""
        return "WHERE " + " AND ".join(self._query)


class PostgresCriteria(Criteria):
    """Criteria with PostgreSQL case insensitive matching."""

    def ilike_both(self, field: str, v: Any) -> Handler:
        """Match columns containing v, ignoring case (``ILIKE %v%``)."""
        return self._like(field, v, "ILIKE")

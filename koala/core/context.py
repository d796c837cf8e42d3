# =============================================================================
# KOALA WEB TOOLKIT - REQUEST CONTEXT
# =============================================================================
# File: koala/core/context.py
# Description: Request scoped key/value storage
# =============================================================================

from typing import Any, Dict, MutableMapping, Union

from starlette.requests import HTTPConnection

from koala.core.exceptions import IllegalStateError


SCOPE_KEY = "koala.context"

# Router suppress error setting, read by middlewares rendering errors
SUPPRESS_ERROR_SCOPE_KEY = "koala.suppress_error"

# Token of the matched route
ROUTE_SCOPE_KEY = "koala.route"

ContextHolder = Union[HTTPConnection, MutableMapping[str, Any]]


def _values(holder: ContextHolder) -> Dict[Any, Any]:
    """
    Values dictionary of a request.

    Values live in the ASGI scope, so middlewares and the handler of the
    same request share them and they go away with the request.
    """
    scope = holder.scope if isinstance(holder, HTTPConnection) else holder
    return scope.setdefault(SCOPE_KEY, {})


def add(holder: ContextHolder, key: Any, value: Any) -> None:
    """Add a value to the request context."""
    _values(holder)[key] = value


def get(holder: ContextHolder, key: Any) -> Any:
    """
    Get a value from the request context.

    Raises:
        IllegalStateError: If the key is not in the context
    """
    values = _values(holder)
    if values.get(key) is None:
        raise IllegalStateError(f"Key {key} is not in the context.")
    return values[key]


def has(holder: ContextHolder, key: Any) -> bool:
    return _values(holder).get(key) is not None


def delete(holder: ContextHolder, key: Any) -> None:
    _values(holder).pop(key, None)

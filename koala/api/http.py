# =============================================================================
# KOALA WEB TOOLKIT - HTTP REQUEST/RESPONSE WRAPPERS
# =============================================================================
# File: koala/api/http.py
# Description: Request, response and JSON helpers handed to route handlers
# =============================================================================

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar, Union

from fastapi import status
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ValidationError
from starlette.requests import Request as StarletteRequest
from starlette.responses import Response as StarletteResponse

from koala.core.exceptions import UnmarshalError


M = TypeVar("M", bound=BaseModel)


# =============================================================================
# JSON HELPERS
# =============================================================================

def unmarshal_json(data: Union[str, bytes], model: Optional[Type[M]] = None) -> Any:
    """
    Parse JSON-encoded data.

    Args:
        data: JSON document
        model: Optional pydantic model the document is validated into

    Returns:
        The model instance, or plain Python data when no model is given

    Raises:
        UnmarshalError: If the document can not be decoded
    """
    try:
        if model is not None:
            return model.model_validate_json(data)
        return json.loads(data)
    except (ValueError, ValidationError) as e:
        raise UnmarshalError(f"It was not possible to decode json. Origin - {e}") from e


def marshal_json(value: Any) -> bytes:
    """Return the JSON encoding of a value (pydantic models included)."""
    return json.dumps(jsonable_encoder(value), separators=(",", ":")).encode("utf-8")


# =============================================================================
# REQUEST
# =============================================================================

class RouteParams:
    """Path parameters of the matched route."""

    def __init__(self, params: Optional[Mapping[str, Any]] = None):
        self.params = dict(params or {})

    def as_string(self, name: str) -> str:
        value = self.params.get(name)
        return "" if value is None else str(value)

    def as_int(self, name: str) -> int:
        """Get the param as an int, 0 if it is missing or not a number."""
        try:
            return int(self.params.get(name))
        except (TypeError, ValueError):
            return 0


class Body:
    """Request body reader."""

    def __init__(self, source: Union[StarletteRequest, bytes, str]):
        self._source = source

    async def read(self) -> bytes:
        if isinstance(self._source, StarletteRequest):
            try:
                return await self._source.body()
            except Exception as e:
                raise UnmarshalError(
                    f"It was not possible to read body json. Origin - {e}"
                ) from e
        if isinstance(self._source, str):
            return self._source.encode("utf-8")
        return self._source

    async def unmarshal_json(self, model: Optional[Type[M]] = None) -> Any:
        """Parse the body JSON, optionally into a pydantic model."""
        return unmarshal_json(await self.read(), model)


class Request(StarletteRequest):
    """
    Server request handed to route handlers.

    It is a Starlette request, so headers, cookies, query params and
    the ASGI scope are all available.
    """

    def get_body(self) -> Body:
        return Body(self)

    def params(self) -> RouteParams:
        return RouteParams(self.path_params)

    @property
    def http_request(self) -> StarletteRequest:
        return self


# =============================================================================
# RESPONSE
# =============================================================================

@dataclass
class Response:
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    SERVER RESPONSE                                       │
    │  Built by route handlers, rendered by the router                        │
    └─────────────────────────────────────────────────────────────────────────┘

    A status of 0 means "not set": it becomes 200, or 500 when the handler
    failed. Builder methods mutate and return the same response.
    """

    content_type: str = "text/html"
    status: int = 0
    body: bytes = b""
    error: Optional[BaseException] = None
    headers: Dict[str, str] = field(default_factory=dict)
    _cookies: List[Dict[str, Any]] = field(default_factory=list, repr=False)

    # -------------------------------------------------------------------------
    # ACCESSORS
    # -------------------------------------------------------------------------

    def set_content_type(self, content_type: str) -> None:
        self.content_type = content_type

    def set_bytes(self, body: bytes) -> None:
        self.body = body

    def set_status(self, status_code: int) -> None:
        self.status = status_code

    def set_header(self, name: str, value: str) -> None:
        self.headers[name] = value

    def set_cookie(
        self,
        key: str,
        value: str = "",
        max_age: Optional[int] = None,
        expires: Optional[int] = None,
        path: str = "/",
        domain: Optional[str] = None,
        secure: bool = False,
        httponly: bool = False,
        samesite: Optional[str] = "lax",
    ) -> None:
        """Same signature as Starlette's ``Response.set_cookie``."""
        self._cookies.append({
            "key": key,
            "value": value,
            "max_age": max_age,
            "expires": expires,
            "path": path,
            "domain": domain,
            "secure": secure,
            "httponly": httponly,
            "samesite": samesite,
        })

    def delete_cookie(
        self,
        key: str,
        path: str = "/",
        domain: Optional[str] = None,
        secure: bool = False,
        httponly: bool = False,
        samesite: Optional[str] = "lax",
    ) -> None:
        self.set_cookie(
            key,
            max_age=0,
            expires=0,
            path=path,
            domain=domain,
            secure=secure,
            httponly=httponly,
            samesite=samesite,
        )

    # -------------------------------------------------------------------------
    # BUILDERS
    # -------------------------------------------------------------------------

    def ok(self, body: bytes) -> "Response":
        self.set_bytes(body)
        return self

    def json(self, value: Any) -> "Response":
        """Create a JSON response from a value."""
        body = marshal_json(value)
        self.set_content_type("application/json")
        return self.ok(body)

    def no_content(self) -> "Response":
        self.set_status(status.HTTP_204_NO_CONTENT)
        return self

    def not_found(self) -> "Response":
        self.set_status(status.HTTP_404_NOT_FOUND)
        return self

    def server_error(self, err: BaseException) -> "Response":
        self.set_status(status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.error = err
        return self

    def bad_request(self, err: BaseException) -> "Response":
        self.set_status(status.HTTP_400_BAD_REQUEST)
        self.error = err
        return self

    # -------------------------------------------------------------------------
    # RENDERING
    # -------------------------------------------------------------------------

    def render(self, suppress_error: bool = False) -> StarletteResponse:
        """
        Build the Starlette response sent to the client.

        Internal Server Error can be defined without a response body: the
        error message is used as body unless errors are suppressed.
        """
        status_code = self.status
        body = self.body

        if (status_code == 0 and self.error is not None) or (
            status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        ):
            status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
            if self.error is not None and not suppress_error:
                body = str(self.error).encode("utf-8")
        elif status_code == 0:
            status_code = status.HTTP_200_OK

        response = StarletteResponse(content=body, status_code=status_code, headers=self.headers)
        response.headers["content-type"] = self.content_type

        for cookie in self._cookies:
            response.set_cookie(**cookie)

        return response


def new_response() -> Response:
    return Response()


def bad_request(err: BaseException) -> Response:
    """Create a BadRequest response."""
    return Response().bad_request(err)

# =============================================================================
# KOALA WEB TOOLKIT - ROUTER
# =============================================================================
# File: koala/api/router.py
# Description: Token based routes, route groups and per-route middleware
#              chains on top of Starlette routing
# =============================================================================

import inspect
import logging
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from fastapi import FastAPI, Request as FastAPIRequest
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from koala.api.http import Request, Response
from koala.core.context import ROUTE_SCOPE_KEY, SUPPRESS_ERROR_SCOPE_KEY
from koala.core.exceptions import IllegalArgumentError, IllegalStateError, KoalaError


logger = logging.getLogger(__name__)


# =============================================================================
# TYPE DEFINITIONS
# =============================================================================

HandlerResult = Union[Response, None, Awaitable[Optional[Response]]]
HandlerFunc = Callable[[Response, Request], HandlerResult]
ErrorHandler = Callable[[HandlerFunc], HandlerFunc]
MiddlewareConstructor = Callable[[ASGIApp], ASGIApp]
MiddlewaresMap = Dict[str, List[str]]

HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD")

GROUP_PATTERN = r"^[\w-]+$"

# httprouter style segments: /users/:id and /static/*filepath
_PATH_SEGMENT = re.compile(r"\*(\w+)$|:(\w+)")


def _segment_param(match: "re.Match[str]") -> str:
    catch_all, named = match.groups()
    if catch_all is not None:
        return f"{{{catch_all}:path}}"
    return f"{{{named}}}"


def convert_path(path: str) -> str:
    """Map ``:name`` and ``*name`` segments to Starlette path params."""
    return _PATH_SEGMENT.sub(_segment_param, path)


async def call_handler(handler: HandlerFunc, response: Response, request: Request) -> Response:
    """
    Call a sync or async handler.

    Handlers returning None are considered to have built ``response``.
    """
    result = handler(response, request)
    if inspect.isawaitable(result):
        result = await result
    return response if result is None else result


# =============================================================================
# ROUTES
# =============================================================================

@dataclass
class Route:
    """
    A route: token, HTTP method, path and handler.

    The handler is a callable ``(response, request) -> Response`` or an
    object with a ``serve_http(response, request)`` method.
    """
    token: str
    method: str
    path: str
    handler: Any

    def __post_init__(self):
        self.method = self.method.upper()
        if self.method not in HTTP_METHODS:
            raise IllegalArgumentError(f"knife: unsupported http method {self.method}.")

        serve_http = getattr(self.handler, "serve_http", None)
        if serve_http is not None:
            self.handler = serve_http
        elif not callable(self.handler):
            raise IllegalArgumentError(f"knife: handler of route '{self.token}' is not callable.")


@dataclass
class Middleware:
    """A middleware constructor registered under a token."""
    token: str
    constructor: MiddlewareConstructor
    silent: bool = False


class MiddlewareManager:
    """
    Stores built-in or external middlewares.

    Silent middlewares are only chained for routes that ask for them in
    the middlewares map.
    """

    def __init__(self):
        self.middlewares: List[Middleware] = []

    def add(self, token: str, constructor: MiddlewareConstructor) -> None:
        self.middlewares.append(Middleware(token, constructor, False))

    def add_silent(self, token: str, constructor: MiddlewareConstructor) -> None:
        self.middlewares.append(Middleware(token, constructor, True))


class MiddlewareMapper:
    """Maps route tokens to the tokens of the middlewares they use."""

    def __init__(self):
        self.middlewares_map: MiddlewaresMap = {}

    def map(self, route_token: str, *middleware_tokens: str) -> None:
        """
        Map middlewares to a route.

        A mapped route only uses its own middlewares, not the global ones.
        """
        self.middlewares_map[route_token] = list(middleware_tokens)


# =============================================================================
# ROUTE ENDPOINT
# =============================================================================

class RouteEndpoint:
    """
    ASGI app running a route handler and rendering its response.

    Errors raised by the handler are kept on the response, so the
    rendering turns them into a 500 response.
    """

    def __init__(self, route: Route, handler: HandlerFunc, suppress_error: bool = False):
        self.route = route
        self.handler = handler
        self.suppress_error = suppress_error

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        response = Response()

        try:
            response = await call_handler(self.handler, response, request)
        except Exception as e:
            logger.error(f"{self.route.token} - {request.method} {request.url.path} - {e}")
            response.error = e

        await response.render(self.suppress_error)(scope, receive, send)


class RouteApp:
    """
    Outermost ASGI app of a route.

    Puts the route token and the router suppress error setting in the
    scope, so middlewares log and render errors like the route endpoint.
    """

    def __init__(self, app: ASGIApp, route: Route, suppress_error: bool = False):
        self.app = app
        self.route = route
        self.suppress_error = suppress_error

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        scope[ROUTE_SCOPE_KEY] = self.route.token
        scope[SUPPRESS_ERROR_SCOPE_KEY] = self.suppress_error
        await self.app(scope, receive, send)


# =============================================================================
# ROUTER
# =============================================================================

class Router:
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    KNIFE ROUTER                                          │
    │  Label based routes grouped under path prefixes                         │
    │  Builds one middleware chain per route                                  │
    └─────────────────────────────────────────────────────────────────────────┘

    Usage:
        router = Router()
        router.add_routes("users",
            router.get("list", "/", list_users),
            router.get("detail", "/:id", get_user),
        )
        app = router.start()
    """

    def __init__(self):
        self.routes: Dict[str, List[Route]] = {}
        self.middlewares: List[Middleware] = []
        self.middlewares_map: MiddlewaresMap = {}
        self.error_handler: Optional[ErrorHandler] = None
        self.suppress_error = False
        self.debug = False
        self.cors = False

    # -------------------------------------------------------------------------
    # CONFIGURATION
    # -------------------------------------------------------------------------

    def set_error_handler(self, error_handler: Optional[ErrorHandler]) -> None:
        self.error_handler = error_handler

    def set_middlewares(self, middlewares: Union[List[Middleware], MiddlewareManager]) -> None:
        if isinstance(middlewares, MiddlewareManager):
            middlewares = middlewares.middlewares
        self.middlewares = list(middlewares)

    def set_middlewares_map(self, middlewares_map: Union[MiddlewaresMap, MiddlewareMapper]) -> None:
        if isinstance(middlewares_map, MiddlewareMapper):
            middlewares_map = middlewares_map.middlewares_map
        self.middlewares_map = dict(middlewares_map)

    def set_suppress_error(self, suppress: bool) -> None:
        """Hide error messages from 500 response bodies."""
        self.suppress_error = suppress

    def set_debug(self, debug: bool) -> None:
        self.debug = debug

    def set_cors(self, enabled: bool) -> None:
        self.cors = enabled

    # -------------------------------------------------------------------------
    # ROUTES
    # -------------------------------------------------------------------------

    def add_routes(self, group: str, *new_routes: Route) -> None:
        """
        Add routes to a group.

        Route tokens become ``group.token`` and paths are prefixed with
        ``/group``.

        Raises:
            IllegalArgumentError: If the group name is not a word
            IllegalStateError: If a route token is registered twice in the group
        """
        if not re.match(GROUP_PATTERN, group):
            raise IllegalArgumentError(
                f"knife: group {group} does not match to the {GROUP_PATTERN} regex."
            )

        old_routes = self.routes.get(group, [])
        tokens = {r.token for r in old_routes}

        for route in new_routes:
            token = f"{group}.{route.token}"
            if token in tokens:
                raise IllegalStateError(
                    f"knife: many registrations for route '{route.token}' on group '{group}'."
                )
            tokens.add(token)

            sep = "" if route.path.startswith("/") else "/"
            route.token = token
            route.path = f"/{group}{sep}{route.path}"

        self.routes[group] = old_routes + list(new_routes)

    def get(self, token: str, path: str, handler: Any) -> Route:
        return Route(token, "GET", path, handler)

    def post(self, token: str, path: str, handler: Any) -> Route:
        return Route(token, "POST", path, handler)

    def put(self, token: str, path: str, handler: Any) -> Route:
        return Route(token, "PUT", path, handler)

    def patch(self, token: str, path: str, handler: Any) -> Route:
        return Route(token, "PATCH", path, handler)

    def delete(self, token: str, path: str, handler: Any) -> Route:
        return Route(token, "DELETE", path, handler)

    def options(self, token: str, path: str, handler: Any) -> Route:
        return Route(token, "OPTIONS", path, handler)

    def head(self, token: str, path: str, handler: Any) -> Route:
        return Route(token, "HEAD", path, handler)

    def all_routes(self) -> List[Route]:
        return [route for routes in self.routes.values() for route in routes]

    # -------------------------------------------------------------------------
    # STARTUP
    # -------------------------------------------------------------------------

    def middlewares_for(self, route: Route) -> List[Middleware]:
        """
        Middlewares chained for a route.

        Mapped routes get their mapped middlewares in the mapped order,
        other routes get every non silent middleware.
        """
        tokens = self.middlewares_map.get(route.token)

        if tokens is None:
            return [m for m in self.middlewares if not m.silent]

        chain = []
        for token in tokens:
            chain.extend(m for m in self.middlewares if m.token == token)
        return chain

    def build_route_app(self, route: Route) -> ASGIApp:
        handler = route.handler
        if self.error_handler is not None:
            handler = self.error_handler(handler)

        app: ASGIApp = RouteEndpoint(route, handler, self.suppress_error)

        # First middleware is the outermost one
        for middleware in reversed(self.middlewares_for(route)):
            app = middleware.constructor(app)

        return RouteApp(app, route, self.suppress_error)

    def start(self) -> FastAPI:
        """
        Build the ASGI application serving every route.

        Each route gets its own middleware chain; the error handler wraps
        the route handler, at the end of the chain.
        """
        app = FastAPI(
            debug=self.debug,
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
        )

        if self.cors:
            app.add_middleware(
                CORSMiddleware,
                allow_origins=["*"],
                allow_methods=["*"],
                allow_headers=["*"],
            )

        @app.exception_handler(KoalaError)
        async def koala_exception_handler(
            request: FastAPIRequest,
            exc: KoalaError,
        ) -> JSONResponse:
            """Handle Koala errors raised by middlewares."""
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_dict(),
            )

        for route in self.all_routes():
            app.add_route(
                convert_path(route.path),
                self.build_route_app(route),
                methods=[route.method],
                name=route.token,
                include_in_schema=False,
            )
            logger.debug(f"Route {route.token}: {route.method} {route.path}")

        return app

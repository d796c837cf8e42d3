# =============================================================================
# KOALA WEB TOOLKIT - APPLICATION
# =============================================================================
# File: koala/app.py
# Description: Application entry point wiring config, modules and router
# =============================================================================

import argparse
import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Sequence, Tuple

import uvicorn

from koala.api.router import Router
from koala.core.config import Config, KoalaEnv, load_config
from koala.core.exceptions import IllegalArgumentError, IllegalStateError


logger = logging.getLogger(__name__)

DEFAULT_SERVER_PORT = ":9003"
DEFAULT_HOST = "0.0.0.0"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Module(ABC):
    """Application module, started by ``App.run`` before serving."""

    @abstractmethod
    def up(self) -> None:
        """Start the module: register routes, open connections..."""


def parse_flags(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parse the Koala command line flags.

    Unknown arguments are ignored so applications can add their own.
    """
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument("--koala_server_port", default=None, help="server port, e.g. :9003")
    parser.add_argument("--koala_config_filename", default=None, help="settings file in config/")
    parser.add_argument(
        "--koala_knife_supress_error",
        action="store_true",
        help="hide error messages from 500 responses",
    )

    flags, _ = parser.parse_known_args(argv)
    return flags


def normalize_port(port: str) -> str:
    """A bare port number becomes ``:<port>``."""
    port = port.strip()
    return f":{port}" if port.isdigit() else port


def split_address(address: str) -> Tuple[str, int]:
    """
    Split a ``host:port`` address, an empty host means every interface.

    Raises:
        IllegalArgumentError: If the port is not a number
    """
    host, _, port = normalize_port(address).rpartition(":")
    try:
        return host or DEFAULT_HOST, int(port)
    except ValueError as e:
        raise IllegalArgumentError(f"Invalid server port {address}.") from e


class App:
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    KOALA APPLICATION                                     │
    │  Loads settings, starts modules and serves the router with uvicorn      │
    └─────────────────────────────────────────────────────────────────────────┘

    Usage:
        router = Router()
        router.add_routes("users", router.get("list", "/", list_users))

        app = App(router)
        app.add_module(UsersModule())
        app.run()
    """

    def __init__(
        self,
        router: Optional[Router] = None,
        config: Optional[Config] = None,
        server_port: Optional[str] = None,
    ):
        self.router = router
        self.config = config
        self.server_port = server_port
        self.modules: List[Module] = []

    def set_router(self, router: Router) -> None:
        self.router = router

    def add_module(self, module: Module) -> None:
        self.modules.append(module)

    def add_modules(self, modules: Iterable[Module]) -> None:
        for module in modules:
            self.add_module(module)

    def resolve_server_port(self, flags: argparse.Namespace, env: KoalaEnv) -> str:
        """Server port from the flag, the app, the PORT variable or ``:9003``."""
        for port in (flags.koala_server_port, self.server_port, env.port):
            if port:
                return normalize_port(port)
        return DEFAULT_SERVER_PORT

    def run(self, argv: Optional[Sequence[str]] = None) -> None:
        """
        Start the application.

        Args:
            argv: Command line arguments, ``sys.argv`` when None

        Raises:
            IllegalStateError: If no router is set
            ConfigurationError: If the settings file can not be loaded
        """
        if self.router is None:
            raise IllegalStateError("Set a not nil router to run.")

        flags = parse_flags(argv)
        env = KoalaEnv()

        if self.config is None:
            self.config = load_config(flags.koala_config_filename or env.config_filename)

        logging.basicConfig(level=self.config.log_level, format=LOG_FORMAT)

        logger.info("Starting app...")

        self.router.set_debug(self.config.debug)
        if self.config.cors:
            self.router.set_cors(True)
        if flags.koala_knife_supress_error:
            self.router.set_suppress_error(True)

        for module in self.modules:
            module.up()

        self.server_port = self.resolve_server_port(flags, env)
        host, port = split_address(self.server_port)

        logger.info(f"Debug: {self.config.debug}")
        logger.info(f"Port: {self.server_port}")
        logger.info(f"On http://localhost:{port}")

        uvicorn.run(
            self.router.start(),
            host=host,
            port=port,
            log_level=self.config.log_level.lower(),
        )


def new_application(router: Optional[Router] = None) -> App:
    return App(router)

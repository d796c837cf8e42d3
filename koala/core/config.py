# =============================================================================
# KOALA WEB TOOLKIT - CORE CONFIGURATION MODULE
# =============================================================================
# File: koala/core/config.py
# Description: Settings file loading with environment variable templating
#              Typed settings models validated by Pydantic
# =============================================================================

import logging
import os
import re
import sys
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Union

import yaml
from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url

from koala.core.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


DEFAULT_JWT_EXP = 72  # hours
DEFAULT_MAX_OPEN_CONNS = 32
DEFAULT_API_CLIENT_TIMEOUT = 35
SETTINGS_FILENAME = "settings.yaml"
CONFIG_FOLDER = "config"


# =============================================================================
# SETTINGS MODELS
# =============================================================================

class JwtConfig(BaseModel):
    """
    JWT token settings.

    Attributes:
        exp: Token lifetime in hours (0 falls back to 72 hours)
        secret: HMAC signing secret
    """
    exp: int = DEFAULT_JWT_EXP
    secret: str = ""

    @field_validator("exp")
    @classmethod
    def default_exp(cls, v: int) -> int:
        return v or DEFAULT_JWT_EXP


class SessionConfig(BaseModel):
    """Session cookie settings."""
    secret: str = ""


class DBConfig(BaseModel):
    """
    Database connection parameters.

    Attributes:
        driver: Driver label (postgres, sqlite, ...)
        dsn: SQLAlchemy connection URL
        max_open_conns: Upper bound of pooled connections (0 = default)
        max_idle_conns: Connections kept open in the pool (0 = same as open)
    """
    driver: str = ""
    dsn: str = ""
    max_open_conns: int = 0
    max_idle_conns: int = 0

    @property
    def sync_dsn(self) -> str:
        """
        Synchronous connection URL, used by alembic and DDL helpers.

        Example:
            "postgresql+asyncpg://u:p@h/db" -> "postgresql://u:p@h/db"
        """
        url = make_url(self.dsn)
        return url.set(drivername=url.get_backend_name()).render_as_string(hide_password=False)


class ApiClientConfig(BaseModel):
    """External/internal API information used by API client adapters."""
    host: str = ""
    timeout: int = DEFAULT_API_CLIENT_TIMEOUT


class GlobalConfig(BaseModel):
    """Built-in general settings."""
    enabled_cors: bool = False


class Config(BaseModel):
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    APPLICATION SETTINGS                                  │
    │  Loaded from config/app.yml, values may come from the environment       │
    └─────────────────────────────────────────────────────────────────────────┘

    Example file:
        cors: true
        debug: {{ env "APP_DEBUG" "false" }}
        session:
          secret: {{ env "SESSION_SECRET" "change-me" }}
        jwt:
          secret: {{ env "JWT_SECRET" "change-me" }}
          exp: 24
        db:
          driver: postgres
          dsn: {{ env "DATABASE_URL" "postgresql+asyncpg://localhost/koala" }}
    """
    cors: bool = False
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    session: SessionConfig = Field(default_factory=SessionConfig)
    jwt: JwtConfig = Field(default_factory=JwtConfig)
    db: DBConfig = Field(default_factory=DBConfig)

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


class KoalaEnv(BaseSettings):
    """
    Environment variables read by Koala.

    Attributes:
        port: Server port (PORT)
        config_filename: Settings file name inside config/ (CONFIG_FILENAME)
        target_env: Section of settings.yaml to use (APP_TARGETENV)
    """
    port: Optional[str] = None
    config_filename: str = "app.yml"
    target_env: str = Field(
        default="development",
        validation_alias=AliasChoices("APP_TARGETENV", "APP_TARGET_ENV"),
    )

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
    )


# =============================================================================
# SETTINGS FILE LOADING
# =============================================================================

_ENV_ACTION = re.compile(r'\{\{-?\s*env\s+"([^"]*)"\s+"([^"]*)"\s*-?\}\}')
_ANY_ACTION = re.compile(r"\{\{.*?\}\}", re.DOTALL)


def get_env_var(name: str, default: str) -> str:
    """Get an environment variable, or the default when unset or empty."""
    return os.environ.get(name) or default


def parse_settings_file(text: str) -> bytes:
    """
    Render the settings file template.

    Only the ``{{ env "NAME" "default" }}`` action is supported, so values
    can be overridden by environment variables.

    Raises:
        ConfigurationError: If the template holds any other action
    """
    rendered = _ENV_ACTION.sub(lambda m: get_env_var(m.group(1), m.group(2)), text)

    unknown = _ANY_ACTION.search(rendered)
    if unknown:
        raise ConfigurationError(f"Unsupported settings template action: {unknown.group(0)}")

    return rendered.encode("utf-8")


def _parse_yaml(data: Union[str, bytes], source: str) -> Dict[str, Any]:
    try:
        content = yaml.safe_load(data) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse {source}: {e}") from e

    if not isinstance(content, dict):
        raise ConfigurationError(f"{source} must hold a mapping at the top level")

    return content


def load_config_from_bytes(data: bytes) -> Config:
    """
    Load the application settings from bytes.

    Allows settings embedded in the program to be used.
    """
    content = _parse_yaml(data, "settings")
    try:
        return Config.model_validate(content)
    except ValueError as e:
        raise ConfigurationError(f"Invalid settings: {e}") from e


def read_config_file(filename: Optional[str] = None, base_dir: Union[str, Path] = ".") -> bytes:
    """
    Read the settings file per convention.

    The file is stored inside the config folder in the project root.
    """
    if filename is None:
        filename = KoalaEnv().config_filename

    path = Path(base_dir) / CONFIG_FOLDER / filename
    try:
        return path.read_bytes()
    except OSError as e:
        raise ConfigurationError(f"Can not read settings file {path}: {e}") from e


def load_config(filename: Optional[str] = None, base_dir: Union[str, Path] = ".") -> Config:
    """
    Load the application settings.

    Args:
        filename: File inside config/ (defaults to CONFIG_FILENAME or app.yml)
        base_dir: Project root folder

    Returns:
        Config: Validated settings

    Raises:
        ConfigurationError: If the file is missing or invalid
    """
    data = read_config_file(filename, base_dir)
    config = load_config_from_bytes(parse_settings_file(data.decode("utf-8")))
    logger.debug("Loaded settings from %s", filename or "default settings file")
    return config


# =============================================================================
# ENVIRONMENT SECTIONED SETTINGS (settings.yaml)
# =============================================================================

def executable_folder() -> Path:
    """Folder of the running program."""
    return Path(sys.argv[0]).resolve().parent


def load_config_from_folder(folder: Union[str, Path]) -> Dict[str, Any]:
    """Load the settings.yaml file from a folder."""
    path = Path(folder) / SETTINGS_FILENAME
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Can not read settings file {path}: {e}") from e

    return _parse_yaml(text, str(path))


def load_environment_config(
    target_env: Optional[str] = None,
    folder: Optional[Union[str, Path]] = None,
) -> Dict[str, Any]:
    """
    Load the settings section of an environment.

    In development the file is read from the current folder, otherwise
    from the folder of the running program.

    Args:
        target_env: Section name (defaults to APP_TARGETENV or development)
        folder: Overrides the folder lookup

    Raises:
        ConfigurationError: If the file or the section is missing
    """
    if target_env is None:
        target_env = KoalaEnv().target_env

    if folder is None:
        folder = Path(".") if target_env == "development" else executable_folder()

    content = load_config_from_folder(folder)
    section = content.get(target_env)

    if not isinstance(section, dict):
        raise ConfigurationError(f"Settings for environment '{target_env}' not found")

    return section


def _section(c: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = c.get(key)
    if not isinstance(value, dict):
        raise ConfigurationError(f"Missing settings section: {key}")
    return value


def _required(c: Dict[str, Any], section: str, key: str) -> Any:
    value = c.get(key)
    if value is None:
        raise ConfigurationError(f"Missing setting: {section}.{key}")
    return value


def _int_setting(c: Dict[str, Any], key: str, default: int) -> int:
    """Integer setting, the default when it is missing, zero or not a number."""
    value = c.get(key)
    if isinstance(value, bool):
        return default
    try:
        return int(value) or default
    except (TypeError, ValueError):
        return default


def get_jwt_config(c: Dict[str, Any]) -> JwtConfig:
    """JWT settings from the ``jwt`` section (``expire`` defaults to 72)."""
    jwt = _section(c, "jwt")
    secret = _required(jwt, "jwt", "secret")
    return JwtConfig(exp=_int_setting(jwt, "expire", DEFAULT_JWT_EXP), secret=str(secret))


def get_session_config(c: Dict[str, Any]) -> SessionConfig:
    session = _section(c, "session")
    return SessionConfig(secret=str(_required(session, "session", "secret")))


def get_db_config(c: Dict[str, Any]) -> DBConfig:
    """Database settings from the ``database`` section."""
    database = _section(c, "database")
    return DBConfig(
        driver=str(_required(database, "database", "driver")),
        dsn=str(_required(database, "database", "datasource")),
        max_open_conns=_int_setting(database, "maxOpenConns", DEFAULT_MAX_OPEN_CONNS),
    )


def get_api_client_config(c: Dict[str, Any]) -> ApiClientConfig:
    """API client settings; the whole section is optional."""
    api_client = c.get("apiClient")
    if not isinstance(api_client, dict):
        return ApiClientConfig()

    config = ApiClientConfig()
    if isinstance(api_client.get("host"), str):
        config.host = api_client["host"]
    if isinstance(api_client.get("timeout"), int):
        config.timeout = api_client["timeout"]
    return config


def get_global_config(c: Dict[str, Any]) -> GlobalConfig:
    return GlobalConfig(enabled_cors=c.get("enabledCors") is True)

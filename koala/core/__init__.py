# =============================================================================
# CORE MODULE INITIALIZATION
# =============================================================================
# File: koala/core/__init__.py
# Description: Core module exports for centralized access
# =============================================================================

from koala.core.config import (
    Config,
    KoalaEnv,
    JwtConfig,
    SessionConfig,
    DBConfig,
    ApiClientConfig,
    GlobalConfig,
    load_config,
    load_config_from_bytes,
    parse_settings_file,
    read_config_file,
    load_environment_config,
)
from koala.core.exceptions import (
    # Base
    KoalaError,

    # Generic
    NotFoundError,
    IllegalStateError,
    IllegalArgumentError,
    RelationshipError,
    ConfigurationError,
    UnmarshalError,

    # Authentication
    NotAuthorizedError,
    UsernameExistsError,
    UsernameNotFoundError,

    # Database
    DatabaseError,
)
from koala.core.security import (
    PasswordStrategy,
    Sha256PasswordStrategy,
    Argon2PasswordStrategy,
    sha256_password,
)

__all__ = [
    # Config
    "Config",
    "KoalaEnv",
    "JwtConfig",
    "SessionConfig",
    "DBConfig",
    "ApiClientConfig",
    "GlobalConfig",
    "load_config",
    "load_config_from_bytes",
    "parse_settings_file",
    "read_config_file",
    "load_environment_config",

    # Exceptions
    "KoalaError",
    "NotFoundError",
    "IllegalStateError",
    "IllegalArgumentError",
    "RelationshipError",
    "ConfigurationError",
    "UnmarshalError",
    "NotAuthorizedError",
    "UsernameExistsError",
    "UsernameNotFoundError",
    "DatabaseError",

    # Security
    "PasswordStrategy",
    "Sha256PasswordStrategy",
    "Argon2PasswordStrategy",
    "sha256_password",
]

# =============================================================================
# KOALA WEB TOOLKIT
# =============================================================================
# File: koala/__init__.py
# Description: Web application scaffolding over FastAPI, SQLAlchemy and jose
# =============================================================================

from koala.app import App, Module, new_application
from koala.api.router import Router
from koala.core.config import Config, load_config

__version__ = "0.1.0"

__all__ = [
    "App",
    "Module",
    "new_application",
    "Router",
    "Config",
    "load_config",
]

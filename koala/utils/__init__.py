# =============================================================================
# UTILS MODULE INITIALIZATION
# =============================================================================
# File: koala/utils/__init__.py
# Description: Utils module exports
# =============================================================================

from koala.utils.validate import (
    ArgumentError,
    PropertyError,
    ContextValidationError,
    Context,
    new_context,
    is_argument_error,
    is_validation_context_error,
    eq_choice_int,
    eq_choice_str,
    not_zero_string,
    not_zero,
    is_email,
    is_json,
    min_str_length,
)

__all__ = [
    "ArgumentError",
    "PropertyError",
    "ContextValidationError",
    "Context",
    "new_context",
    "is_argument_error",
    "is_validation_context_error",
    "eq_choice_int",
    "eq_choice_str",
    "not_zero_string",
    "not_zero",
    "is_email",
    "is_json",
    "min_str_length",
]

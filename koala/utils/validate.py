# =============================================================================
# KOALA WEB TOOLKIT - VALIDATORS
# =============================================================================
# File: koala/utils/validate.py
# Description: Argument validators and the context grouping their errors
# =============================================================================

import json
from typing import Any, Iterable, List, Optional

from pydantic import EmailStr, TypeAdapter, ValidationError

from koala.core.exceptions import IllegalArgumentError


_email_adapter = TypeAdapter(EmailStr)


# =============================================================================
# ERRORS
# =============================================================================

class ArgumentError(IllegalArgumentError):
    """Error returned by validators for an invalid argument."""

    error_code = "ARGUMENT_ERROR"


class PropertyError(ArgumentError):
    """
    Argument error tied to a property.

    Example:
        >>> str(PropertyError("email", "Non zero string required."))
        'email: Non zero string required.'
    """

    def __init__(self, prop: str, message: str):
        self.prop = prop
        super().__init__(f"{prop}: {message}", details={"property": prop})


class ContextValidationError(IllegalArgumentError):
    """Groups the argument errors found by a validation context."""

    error_code = "VALIDATION_ERROR"

    def __init__(self, errors: List[ArgumentError]):
        self.errors = list(errors)
        super().__init__("; ".join(e.message for e in self.errors))

    def messages(self) -> List[str]:
        return [e.message for e in self.errors]


def is_argument_error(err: BaseException) -> bool:
    return isinstance(err, ArgumentError)


def is_validation_context_error(err: BaseException) -> bool:
    return isinstance(err, ContextValidationError)


class Context:
    """
    Collects validator results.

    Usage:
        Context().validate(
            not_zero_string(user.name),
            is_email(user.email),
            eq_choice_int(user.role, [1, 2, 3]),
        )
    """

    def do(self, *errors: Optional[BaseException]) -> Optional[ContextValidationError]:
        """
        Group the argument errors of validator results.

        Returns:
            ContextValidationError if any result is an ArgumentError, None otherwise
        """
        arg_errors = [e for e in errors if isinstance(e, ArgumentError)]
        if arg_errors:
            return ContextValidationError(arg_errors)
        return None

    def validate(self, *errors: Optional[BaseException]) -> None:
        """
        Raises:
            ContextValidationError: If any result is an ArgumentError
        """
        err = self.do(*errors)
        if err is not None:
            raise err


def new_context() -> Context:
    return Context()


# =============================================================================
# VALIDATORS
# =============================================================================

def _not_validate_msg(v: Any, validator_name: str) -> str:
    return f"{v} does not validate as {validator_name}."


def _eq_choice(v: Any, choices: Iterable[Any], kind: str) -> Optional[ArgumentError]:
    choices = sorted(choices)
    if not v or not choices:
        return None

    if v in choices:
        return None

    options = ",".join(str(c) for c in choices)
    return ArgumentError(_not_validate_msg(v, f"option({kind}:{options})"))


def eq_choice_int(v: int, choices: Iterable[int]) -> Optional[ArgumentError]:
    """
    Verify that v is one of the choices.

    Zero values pass: use ``not_zero`` when the value is required.
    """
    return _eq_choice(v, choices, "int")


def eq_choice_str(v: str, choices: Iterable[str]) -> Optional[ArgumentError]:
    """
    Verify that v is one of the choices.

    Empty strings pass: use ``not_zero_string`` when the value is required.
    """
    return _eq_choice(v, choices, "str")


def not_zero_string(s: str) -> Optional[ArgumentError]:
    if not s:
        return ArgumentError("Non zero string required.")
    return None


def not_zero(v: Any) -> Optional[ArgumentError]:
    """
    Verify that v is not a zero value.

    None, empty strings and collections, zero numbers and False are zero
    values. Other objects are always valid, callables are not supported.
    """
    if v is None:
        valid = False
    elif isinstance(v, (str, bytes, list, tuple, dict, set, frozenset)):
        valid = len(v) != 0
    elif isinstance(v, (bool, int, float)):
        valid = bool(v)
    elif callable(v):
        return ArgumentError("Unsupported type.")
    else:
        valid = True

    if not valid:
        return ArgumentError("Non zero value required.")
    return None


def is_email(v: str) -> Optional[ArgumentError]:
    try:
        _email_adapter.validate_python(v)
    except ValidationError:
        return ArgumentError(_not_validate_msg(v, "email"))
    return None


def is_json(v: str) -> Optional[ArgumentError]:
    try:
        json.loads(v)
    except (TypeError, ValueError):
        return ArgumentError(_not_validate_msg(v, "json"))
    return None


def min_str_length(v: str, m: int) -> Optional[ArgumentError]:
    if len(v) < m:
        return ArgumentError(_not_validate_msg(v, f"length(min:{m})"))
    return None

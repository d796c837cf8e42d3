# =============================================================================
# KOALA WEB TOOLKIT - VALIDATOR TESTS
# =============================================================================
# File: tests/test_validate.py
# Description: Argument validators and the validation context
# =============================================================================

import pytest

from koala.core.exceptions import IllegalArgumentError
from koala.utils import validate
from koala.utils.validate import (
    ArgumentError,
    ContextValidationError,
    PropertyError,
    eq_choice_int,
    eq_choice_str,
    is_email,
    is_json,
    min_str_length,
    new_context,
    not_zero,
    not_zero_string,
)


class TestValidators:
    """Test suite for the validator functions."""

    def test_eq_choice_int(self):
        assert eq_choice_int(2, [3, 1, 2]) is None
        assert eq_choice_int(0, [1, 2]) is None

        err = eq_choice_int(5, [3, 1, 2])
        assert isinstance(err, ArgumentError)
        assert err.message == "5 does not validate as option(int:1,2,3)."

    def test_eq_choice_str(self):
        assert eq_choice_str("gum", ["gum", "wattle"]) is None
        assert eq_choice_str("", ["gum"]) is None
        assert eq_choice_str("pine", ["wattle", "gum"]).message == (
            "pine does not validate as option(str:gum,wattle)."
        )

    def test_eq_choice_without_choices(self):
        assert eq_choice_int(5, []) is None

    def test_not_zero_string(self):
        assert not_zero_string("koala") is None
        assert not_zero_string("").message == "Non zero string required."

    @pytest.mark.parametrize("value", [None, "", 0, 0.0, False, [], {}, ()])
    def test_not_zero_rejects_zero_values(self, value):
        assert not_zero(value).message == "Non zero value required."

    @pytest.mark.parametrize("value", ["koala", 1, 0.5, True, [0], {"a": 1}, object()])
    def test_not_zero_accepts(self, value):
        assert not_zero(value) is None

    def test_not_zero_callable(self):
        assert not_zero(lambda: None).message == "Unsupported type."

    def test_is_email(self):
        assert is_email("koala@koala.io") is None
        assert is_email("koala").message == "koala does not validate as email."

    def test_is_json(self):
        assert is_json('{"name": "koala"}') is None
        assert is_json("{name").message == "{name does not validate as json."

    def test_min_str_length(self):
        assert min_str_length("koala", 5) is None
        assert min_str_length("koa", 5).message == "koa does not validate as length(min:5)."


class TestErrors:
    """Test suite for the argument error types."""

    def test_property_error(self):
        err = PropertyError("email", "Non zero string required.")

        assert str(err) == "email: Non zero string required."
        assert err.prop == "email"
        assert validate.is_argument_error(err)

    def test_argument_error_is_illegal_argument(self):
        assert isinstance(ArgumentError("bad"), IllegalArgumentError)
        assert not validate.is_argument_error(ValueError("bad"))


class TestContext:
    """Test suite for the validation context."""

    def test_do_without_errors(self):
        assert new_context().do(not_zero_string("koala"), None) is None

    def test_do_groups_argument_errors(self):
        err = new_context().do(
            not_zero_string(""),
            ValueError("not an argument error"),
            eq_choice_int(4, [1, 2]),
        )

        assert validate.is_validation_context_error(err)
        assert err.messages() == [
            "Non zero string required.",
            "4 does not validate as option(int:1,2).",
        ]

    def test_validate_raises(self):
        with pytest.raises(ContextValidationError) as exc_info:
            new_context().validate(
                PropertyError("name", "Non zero string required."),
                is_email("koala@koala.io"),
            )

        assert exc_info.value.messages() == ["name: Non zero string required."]
        assert exc_info.value.status_code == 400

    def test_validate_passes(self):
        new_context().validate(not_zero("koala"), min_str_length("koala", 1))

"""
Parley faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue.
  Codes are grouped by domain so logs and searches stay predictable.
- CommandException / CommandWarning: base types that carry a message plus
  read-only options and know how to render themselves with rich.
- trigger(): library-level entry point (raise errors, warn warnings).

Two lifecycles
- Schema faults (MalformedSchemaError) are raised while a command tree is being
  declared; they are programming errors and abort construction.
- Parse faults (unknown option, missing argument, ...) never cross the
  Command.parse() boundary: they are collected while a line is parsed and
  delivered as text through the configured send callback. Their str() is the
  exact message users see, e.g. "  error: unknown option --bogus".
"""
import inspect
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.text import Text

from .utils import Unset


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - schema (2110x): MALFORMED_SCHEMA
    - options (2111x): OPTION_ARGUMENT_MISSING, UNKNOWN_OPTION, INVALID_OPTION_VALUE
    - arguments (2112x): MISSING_ARGUMENT, UNEXPECTED_ARGUMENT
    - warnings (2211x): HANDLER_OVERRIDE
    """
    # --- schema errors (21xxx) ---
    MALFORMED_SCHEMA            = 21101

    # --- option errors (21xxx) ---
    OPTION_ARGUMENT_MISSING     = 21111
    UNKNOWN_OPTION              = 21112
    INVALID_OPTION_VALUE        = 21113

    # --- positional errors (21xxx) ---
    MISSING_ARGUMENT            = 21121
    UNEXPECTED_ARGUMENT         = 21122

    # --- warnings (22xxx) ---
    HANDLER_OVERRIDE            = 22111

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__ to
        override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _styles(defaults):
    return defaultdict(str, defaults | getattr(__import__("__main__"), "__styles__", {}))


class CommandException(Exception):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message or ""

    @property
    def code(self):
        return self.options.get("code")

    def __rich__(self):
        styles = _styles({
            "error-message": "bold #FF4DA6",
            "code": "dim #00E5FF",
        })
        text = Text(str(self), styles["error-message"])
        if self.code is not None:
            text.append(" [%s]" % self.code.normalize(), styles["code"])
        return text

    def __trigger__(self) -> None:
        raise self from None

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class MalformedSchemaError(CommandException, ValueError): ...
class OptionArgumentMissingError(CommandException): ...
class UnknownOptionError(CommandException): ...
class InvalidOptionValueError(CommandException): ...
class MissingArgumentError(CommandException): ...
class UnexpectedArgumentError(CommandException): ...


class CommandWarning(Warning):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message or ""

    @property
    def code(self):
        return self.options.get("code")

    def __rich__(self):
        styles = _styles({
            "warning-message": "#FFC2E0",
            "code": "dim #FFB400",
        })
        text = Text(str(self), styles["warning-message"])
        if self.code is not None:
            text.append(" [%s]" % self.code.normalize(), styles["code"])
        return text

    def __trigger__(self) -> None:
        warnings.warn(self, stacklevel=len(inspect.stack()))

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class HandlerOverrideWarning(CommandWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with extra runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via __replace__(**options) first.
    - exceptions are raised, warnings are emitted through the warnings module.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


__all__ = (
    "CommandException",
    "MalformedSchemaError",
    "OptionArgumentMissingError",
    "UnknownOptionError",
    "InvalidOptionValueError",
    "MissingArgumentError",
    "UnexpectedArgumentError",
    "CommandWarning",
    "HandlerOverrideWarning",
    "FaultCode",
    "trigger",
)

# Parlance Command Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Defines all custom exception classes used in the Parlance command framework.

These exceptions provide structured error handling for grammar definition
mistakes, user input that does not match a grammar, context lookups and
command dispatch failures.

All exceptions inherit from `ParlanceError`, the base exception for the framework.

Exception Hierarchy:
- ParlanceError
    ├── ParameterSpecError
    ├── ArgumentParseError
    │   ├── OutOfTokensError
    │   ├── TokenizeError
    │   ├── NoMatchingChoiceError
    │   ├── AmbiguousResultError
    │   └── UnknownFlagError
    ├── NoValueBoundError
    ├── TooManyValuesError
    ├── PermissionDeniedError
    └── CommandExecutionError

`ArgumentParseError` and its subclasses carry the raw input and the offset at
which parsing stopped so callers can point at the offending token.
"""
from __future__ import annotations


class ParlanceError(Exception):
    """Base exception for the Parlance framework."""


class ParameterSpecError(ParlanceError):
    """Exception raised when a parameter, flag or command is defined incorrectly."""


class ArgumentParseError(ParlanceError):
    """
    Exception raised when user input cannot be parsed by a grammar.

    Attributes:
        message (str): User-facing description of the failure.
        raw (str): The raw input that was being parsed.
        position (int): Offset into `raw` at which parsing stopped.
    """

    def __init__(self, message: str, raw: str = "", position: int = 0) -> None:
        super().__init__(message)
        self.message = message
        self.raw = raw
        self.position = position

    def caret_message(self) -> str:
        """Render the message, the raw input and a caret under the failing offset."""
        if not self.raw:
            return self.message
        return f"{self.message}\n{self.raw}\n{' ' * self.position}^"

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, "
            f"position={self.position})"
        )


class OutOfTokensError(ArgumentParseError):
    """Exception raised when a token is requested but the stream is exhausted."""


class TokenizeError(ArgumentParseError):
    """Exception raised when the raw input has malformed quoting."""


class NoMatchingChoiceError(ArgumentParseError):
    """Exception raised when a token matches none of the available choices."""


class AmbiguousResultError(ArgumentParseError):
    """Exception raised when a parameter produced more than one value but only one is allowed."""


class UnknownFlagError(ArgumentParseError):
    """Exception raised when a token looks like a flag but is not a recognized flag."""


class NoValueBoundError(ParlanceError):
    """Exception raised when a required key has no value in the parsing context."""


class TooManyValuesError(ParlanceError):
    """Exception raised when a single value is requested but several are bound."""


class PermissionDeniedError(ParlanceError):
    """Exception raised when a command source lacks the permission a command requires."""

    def __init__(self, permission: str, message: str | None = None) -> None:
        super().__init__(
            message or "You do not have permission to use this command."
        )
        self.permission = permission


class CommandExecutionError(ParlanceError):
    """Exception raised when a command executor fails."""

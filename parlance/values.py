# Parlance Command Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Leaf value parsers: the grammar nodes that turn raw tokens into typed values.

Every leaf implements the `ValueParameter` contract:

- `parse_value(source, stream, context)` consumes tokens and returns the
  produced value, a `MultiValue` when several logical items were produced, or
  `None` when nothing should be bound. Leaves never mutate the context; the
  owning `Parameter` binds the result under its key. Failures raise
  `ArgumentParseError` created through `stream.create_error`.
- `complete(source, stream, context)` reads the partial token under the cursor
  and returns candidate completions. It never raises for ambiguity.
- `usage(key, source)` renders the leaf for help text, `<key>` by default.

Built-in leaves:
- StringValue, IntegerValue, DoubleValue, BooleanValue
- NoneValue (consumes nothing, binds nothing)
- RemainingJoinedStrings, RemainingRawJoinedStrings
- DurationValue (`90`, `1:30`, `0:01:00:00`, `1w2d3h4m5s6ms`)
- DateTimeValue (parsed with python-dateutil)
- LiteralValue (fixed token sequence)
"""
from __future__ import annotations

import re
from datetime import datetime, timedelta
from typing import Any

from dateutil import parser as date_parser

from parlance.context import ParsingContext
from parlance.exceptions import ParameterSpecError
from parlance.tokens import TokenStream

TRUE_WORDS = frozenset({"true", "t", "yes", "y", "on", "1", "veryyesmuchso"})
FALSE_WORDS = frozenset({"false", "f", "no", "n", "off", "0", "notatall"})

_DURATION_UNITS = re.compile(r"(\d+)(ms|w|d|h|m|s)", re.IGNORECASE)
_DURATION_UNIT_ARGS = {
    "w": "weeks",
    "d": "days",
    "h": "hours",
    "m": "minutes",
    "s": "seconds",
    "ms": "milliseconds",
}


class MultiValue(tuple):
    """
    Several logical values produced by one leaf invocation.

    The owning `Parameter` binds each item as its own context entry.
    """

    def __repr__(self) -> str:
        return f"MultiValue({tuple(self)!r})"


def read_token(stream: TokenStream) -> tuple[str, int]:
    """Consume the next token, returning it with the raw offset it started at."""
    position = stream.get_raw_position()
    return stream.next(), position


def partial_token(stream: TokenStream) -> str:
    """Consume the partial token being completed, or return `""` when none is left."""
    token = stream.next_if_present()
    return token if token is not None else ""


class ValueParameter:
    """Base class for leaf parsers."""

    def parse_value(
        self, source: Any, stream: TokenStream, context: ParsingContext
    ) -> Any:
        raise NotImplementedError

    def complete(
        self, source: Any, stream: TokenStream, context: ParsingContext
    ) -> list[str]:
        partial_token(stream)
        return []

    def usage(self, key: str, source: Any) -> str:
        return f"<{key}>" if key else ""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class StringValue(ValueParameter):
    def parse_value(self, source, stream, context) -> str:
        return stream.next()


class IntegerValue(ValueParameter):
    def parse_value(self, source, stream, context) -> int:
        token, position = read_token(stream)
        try:
            return int(token)
        except ValueError:
            raise stream.create_error(
                f"Expected an integer, but input '{token}' was not.", position
            ) from None


class DoubleValue(ValueParameter):
    def parse_value(self, source, stream, context) -> float:
        token, position = read_token(stream)
        try:
            return float(token)
        except ValueError:
            raise stream.create_error(
                f"Expected a number, but input '{token}' was not.", position
            ) from None


class BooleanValue(ValueParameter):
    def parse_value(self, source, stream, context) -> bool:
        token, position = read_token(stream)
        lowered = token.lower()
        if lowered in TRUE_WORDS:
            return True
        if lowered in FALSE_WORDS:
            return False
        raise stream.create_error(
            f"Invalid boolean '{token}'. Expected true or false.", position
        )

    def complete(self, source, stream, context) -> list[str]:
        prefix = partial_token(stream).lower()
        return [word for word in ("true", "false") if word.startswith(prefix)]


class NoneValue(ValueParameter):
    """Consumes nothing and produces nothing."""

    def parse_value(self, source, stream, context) -> None:
        return None

    def complete(self, source, stream, context) -> list[str]:
        return []

    def usage(self, key, source) -> str:
        return ""


class RemainingJoinedStrings(ValueParameter):
    """Join every remaining token with single spaces. At least one token is required."""

    def parse_value(self, source, stream, context) -> str:
        parts = [stream.next()]
        while stream.has_next():
            parts.append(stream.next())
        return " ".join(parts)

    def usage(self, key, source) -> str:
        return f"<{key}...>"


class RemainingRawJoinedStrings(ValueParameter):
    """Return the raw input from the current token to the end, quotes preserved."""

    def parse_value(self, source, stream, context) -> str:
        position = stream.get_raw_position()
        stream.next()
        while stream.has_next():
            stream.next()
        return stream.get_raw()[position:]

    def usage(self, key, source) -> str:
        return f"<{key}...>"


class DurationValue(ValueParameter):
    """
    Parses a duration into a `timedelta`.

    Accepted forms:
        - Plain seconds: `90`, `1.5`
        - Clock form: `SS`, `MM:SS`, `HH:MM:SS` or `D:HH:MM:SS`
        - Unit form: any of `w d h m s ms` in sequence, e.g. `1w2d3h4m5s6ms`
    """

    def parse_value(self, source, stream, context) -> timedelta:
        token, position = read_token(stream)
        try:
            return parse_duration(token)
        except (ValueError, OverflowError):
            raise stream.create_error(
                f"Invalid duration '{token}'. Use seconds, D:HH:MM:SS or 1d2h3m4s.",
                position,
            ) from None


def parse_duration(text: str) -> timedelta:
    """Parse `text` into a `timedelta`, raising `ValueError` when it is not one."""
    text = text.strip()
    if not text:
        raise ValueError("empty duration")
    if ":" in text:
        parts = text.split(":")
        if len(parts) > 4 or not all(part.isdigit() for part in parts):
            raise ValueError(f"invalid clock duration {text!r}")
        numbers = [int(part) for part in parts]
        numbers = [0] * (4 - len(numbers)) + numbers
        days, hours, minutes, seconds = numbers
        return timedelta(days=days, hours=hours, minutes=minutes, seconds=seconds)
    try:
        seconds = float(text)
    except ValueError:
        seconds = None
    if seconds is not None:
        if seconds < 0:
            raise ValueError("negative duration")
        return timedelta(seconds=seconds)
    matches = list(_DURATION_UNITS.finditer(text))
    if not matches or "".join(match.group(0) for match in matches) != text:
        raise ValueError(f"invalid unit duration {text!r}")
    kwargs: dict[str, int] = {}
    for match in matches:
        unit = _DURATION_UNIT_ARGS[match.group(2).lower()]
        kwargs[unit] = kwargs.get(unit, 0) + int(match.group(1))
    return timedelta(**kwargs)


class DateTimeValue(ValueParameter):
    """Parses a date and/or time with `dateutil`. The word `now` is the current time."""

    def parse_value(self, source, stream, context) -> datetime:
        token, position = read_token(stream)
        if token.lower() == "now":
            return datetime.now()
        try:
            return date_parser.parse(token)
        except (ValueError, OverflowError):
            raise stream.create_error(
                f"Invalid date/time '{token}'.", position
            ) from None

    def complete(self, source, stream, context) -> list[str]:
        prefix = partial_token(stream).lower()
        return ["now"] if "now".startswith(prefix) else []


class LiteralValue(ValueParameter):
    """Matches a fixed sequence of tokens case-insensitively and produces `returned_value`."""

    def __init__(self, returned_value: Any, *literals: str) -> None:
        if not literals:
            raise ParameterSpecError("A literal requires at least one token to match.")
        self.returned_value = returned_value
        self.literals: tuple[str, ...] = tuple(literals)

    def parse_value(self, source, stream, context) -> Any:
        for literal in self.literals:
            token, position = read_token(stream)
            if token.lower() != literal.lower():
                raise stream.create_error(
                    f"Expected '{literal}' but got '{token}'.", position
                )
        return self.returned_value

    def complete(self, source, stream, context) -> list[str]:
        for literal in self.literals:
            token = stream.next_if_present()
            if token is None:
                return []
            if not stream.has_next():
                return [literal] if literal.lower().startswith(token.lower()) else []
            if token.lower() != literal.lower():
                return []
        return []

    def usage(self, key, source) -> str:
        return " ".join(self.literals)

    def __repr__(self) -> str:
        return f"LiteralValue({self.returned_value!r}, {', '.join(self.literals)})"


def ensure_value_parameter(parser: Any) -> ValueParameter:
    if not isinstance(parser, ValueParameter):
        raise ParameterSpecError(
            f"Expected a ValueParameter, got {type(parser).__name__}."
        )
    return parser

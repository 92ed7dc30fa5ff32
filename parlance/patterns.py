# Parlance Command Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Pattern-matching leaves: resolve one token against a dynamic candidate set.

The next token is compiled into a case-insensitive regular expression anchored
at the start of the candidate, so a token acts as a prefix (`fo` matches `foo`
and `foobar`). Tokens that are not valid regular expressions are matched
literally. If any candidate equals the token case-insensitively, that candidate
alone is selected; otherwise every match is produced as a `MultiValue` and the
caller (usually through `OnlyOne`) decides whether multiplicity is acceptable.
No match at all raises `NoMatchingChoiceError`.

Candidates always come from an injected `(prefix) -> Iterable[str]` supplier so
grammar objects never depend on a global registry.

Leaves:
- PatternMatchingValueParameter: the shared strategy.
- ChoicesValue: candidates from a mapping or a key supplier plus value function.
- EnumValue: candidates are the member names of an `Enum`.
- SelectorValueParameter: `@`-prefixed tokens go to an injected resolver.
"""
from __future__ import annotations

import re
from enum import Enum
from typing import Any, Callable, Iterable, Mapping

from parlance.exceptions import ArgumentParseError, NoMatchingChoiceError
from parlance.logger import logger
from parlance.protocols import ChoicesSupplier, SelectorResolver
from parlance.values import MultiValue, ValueParameter, partial_token, read_token

USAGE_CHOICES_LIMIT = 5


def compile_pattern(token: str) -> re.Pattern[str]:
    """Compile `token` into a case-insensitive pattern anchored at the start."""
    pattern = token if token.startswith("^") else f"^{token}"
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error:
        logger.debug("Token %r is not a valid pattern, matching literally.", token)
        return re.compile(f"^{re.escape(token)}", re.IGNORECASE)


def _identity(value: str) -> Any:
    return value


class PatternMatchingValueParameter(ValueParameter):
    """
    Resolves the next token against the candidates returned by `choices(prefix)`.

    Args:
        choices (ChoicesSupplier): Returns the candidate keys for a prefix.
        value_function (Callable[[str], Any] | None): Maps a matched key to the
            produced value. Defaults to the key itself.
        show_usage (bool): Render up to five candidates in usage as `{a|b}`.
    """

    def __init__(
        self,
        choices: ChoicesSupplier,
        value_function: Callable[[str], Any] | None = None,
        show_usage: bool = True,
    ) -> None:
        self.choices = choices
        self.value_function = value_function or _identity
        self.show_usage = show_usage

    def get_choices(self, prefix: str) -> list[str]:
        return list(self.choices(prefix))

    def match(self, token: str) -> list[str]:
        """Return the candidates selected by `token` after exact-match disambiguation."""
        candidates = self.get_choices(token)
        lowered = token.lower()
        for candidate in candidates:
            if candidate.lower() == lowered:
                return [candidate]
        pattern = compile_pattern(token)
        return [candidate for candidate in candidates if pattern.match(candidate)]

    def parse_value(self, source, stream, context) -> Any:
        token, position = read_token(stream)
        matches = self.match(token)
        if not matches:
            raise stream.create_error(
                f"No values matching pattern '{token}' present.",
                position,
                NoMatchingChoiceError,
            )
        values = []
        for key in matches:
            try:
                values.append(self.value_function(key))
            except (KeyError, ValueError) as error:
                raise stream.create_error(
                    f"Invalid value '{key}': {error}", position
                ) from error
        if len(values) == 1:
            return values[0]
        return MultiValue(values)

    def complete(self, source, stream, context) -> list[str]:
        prefix = partial_token(stream)
        pattern = compile_pattern(prefix)
        return [choice for choice in self.get_choices(prefix) if pattern.match(choice)]

    def usage(self, key, source) -> str:
        if self.show_usage:
            choices = self.get_choices("")
            if 0 < len(choices) <= USAGE_CHOICES_LIMIT:
                return "{" + "|".join(choices) + "}"
        return super().usage(key, source)


class ChoicesValue(PatternMatchingValueParameter):
    """Pattern matching over a fixed mapping of key → value."""

    def __init__(self, choices: Mapping[str, Any], show_usage: bool = True) -> None:
        self.mapping = dict(choices)
        super().__init__(
            lambda prefix: self.mapping.keys(), self.mapping.__getitem__, show_usage
        )

    def __repr__(self) -> str:
        return f"ChoicesValue({list(self.mapping)!r})"


class EnumValue(PatternMatchingValueParameter):
    """Pattern matching over the member names of an `Enum`."""

    def __init__(self, enum_type: type[Enum], show_usage: bool = True) -> None:
        self.enum_type = enum_type
        super().__init__(
            lambda prefix: [member.name for member in enum_type],
            enum_type.__getitem__,
            show_usage,
        )

    def __repr__(self) -> str:
        return f"EnumValue({self.enum_type.__name__})"


class SelectorValueParameter(PatternMatchingValueParameter):
    """
    Resolves `@`-prefixed selector tokens through an injected resolver.

    Every entity the resolver returns must be an instance of `entity_type`.
    Tokens without the sigil fall back to pattern matching against `choices`
    when a supplier was given.
    """

    def __init__(
        self,
        entity_type: type,
        resolver: SelectorResolver,
        choices: ChoicesSupplier | None = None,
        value_function: Callable[[str], Any] | None = None,
        sigil: str = "@",
        show_usage: bool = False,
    ) -> None:
        super().__init__(choices or (lambda prefix: ()), value_function, show_usage)
        self.entity_type = entity_type
        self.resolver = resolver
        self.sigil = sigil

    def parse_value(self, source, stream, context) -> Any:
        if not stream.peek().startswith(self.sigil):
            return super().parse_value(source, stream, context)
        token, position = read_token(stream)
        try:
            entities = list(self.resolver(token, source))
        except ValueError as error:
            raise stream.create_error(
                f"Invalid selector '{token}': {error}", position
            ) from error
        if not entities:
            raise stream.create_error(
                f"Selector '{token}' did not match anything.",
                position,
                NoMatchingChoiceError,
            )
        for entity in entities:
            if not isinstance(entity, self.entity_type):
                raise stream.create_error(
                    f"Selector '{token}' resolved to {type(entity).__name__}, "
                    f"expected {self.entity_type.__name__}.",
                    position,
                    ArgumentParseError,
                )
        return MultiValue(entities)

    def complete(self, source, stream, context) -> list[str]:
        if stream.has_next() and stream.peek().startswith(self.sigil):
            stream.next()
            return []
        return super().complete(source, stream, context)

    def __repr__(self) -> str:
        return f"SelectorValueParameter({self.entity_type.__name__})"


def choices_of(
    keys: Callable[[], Iterable[str]],
    value_function: Callable[[str], Any],
    show_usage: bool = True,
) -> PatternMatchingValueParameter:
    """Pattern matching over a live key supplier, resolving matches with `value_function`."""
    return PatternMatchingValueParameter(
        lambda prefix: keys(), value_function, show_usage
    )

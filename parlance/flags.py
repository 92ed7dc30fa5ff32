# Parlance Command Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Defines `Flags`, the side-channel grammar that recognizes `-x` / `--name` tokens
before positional parameters are parsed, and `FlagsBuilder`, which produces it.

Recognized syntax:
    --name            boolean long flag
    --name=value      value flag, inline value
    --name value      value flag, separate token(s)
    -x                boolean short flag
    -xvalue           value flag, attached value
    -x value          value flag, separate token(s)
    -abc              bundle of short flags; a value flag inside a bundle takes
                      the rest of the token as its value

Tokens that are numbers (`-5`, `-2.5`) are never flags.

Boolean flags bind `True` once under their first alias. Value flags delegate
to their `Parameter`, which binds under its own key; repeating a value flag
accumulates values. Flags gated by a permission the source lacks, and tokens
that match no flag at all, are handed to the configured `UnknownFlagBehavior`.

In anchored mode flags are only recognized at the head of the input and the
same stream is returned, advanced past them. Otherwise flags are recognized
anywhere and a new stream of the remaining non-flag tokens is returned.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from parlance.config import DEFAULT_SETTINGS, ParlanceSettings
from parlance.context import ParsingContext
from parlance.exceptions import ArgumentParseError, ParameterSpecError
from parlance.logger import logger
from parlance.parameter import Parameter, ParameterBuilder
from parlance.policies import FlagSnapshot, UnknownFlagBehavior
from parlance.protocols import has_permission
from parlance.tokens import Token, TokenStream
from parlance.utils import CaseInsensitiveDict

_NUMBER = re.compile(r"^-(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?$")


def is_number(token: str) -> bool:
    return bool(_NUMBER.match(token))


def looks_like_flag(token: str) -> bool:
    """Whether `token` has flag syntax: a dash, something after it, and not a number."""
    if len(token) < 2 or not token.startswith("-") or token == "--":
        return False
    return not is_number(token)


def _raw_offset(stream: TokenStream, token: Token, text_index: int) -> int:
    """Position in the raw input where `token.text[text_index:]` begins."""
    raw = stream.get_raw()
    if raw[token.start : token.end] == token.text:
        return token.start + text_index
    suffix = token.text[text_index:]
    if not suffix:
        return token.end
    position = raw.rfind(suffix, token.start, token.end)
    return position if position >= 0 else token.start


def _dashed(alias: str) -> str:
    return f"-{alias}" if len(alias) == 1 else f"--{alias}"


@dataclass(frozen=True)
class FlagSpec:
    """
    One flag: its aliases (first alias is canonical), an optional value
    parameter, and an optional permission.
    """

    aliases: tuple[str, ...]
    parameter: Parameter | None = None
    permission: str | None = None

    @property
    def key(self) -> str:
        return self.aliases[0]

    @property
    def long_name(self) -> str | None:
        for alias in self.aliases:
            if len(alias) > 1:
                return alias
        return None

    @property
    def short_names(self) -> tuple[str, ...]:
        return tuple(alias for alias in self.aliases if len(alias) == 1)

    @property
    def takes_value(self) -> bool:
        return self.parameter is not None

    def can_use(self, source: Any) -> bool:
        if not has_permission(source, self.permission):
            return False
        return self.parameter is None or self.parameter.can_use(source)

    def usage(self, source: Any) -> str:
        name = _dashed(self.key)
        if self.parameter is None:
            return f"[{name}]"
        value_usage = self.parameter.usage(source)
        return f"[{name} {value_usage}]" if value_usage else f"[{name}]"


class Flags:
    """
    Immutable flag grammar. Build instances with `FlagsBuilder`.

    Attributes:
        flags (tuple[FlagSpec, ...]): Flags in definition order.
        unknown_short_flag_behavior (UnknownFlagBehavior): For unknown `-x` tokens.
        unknown_long_flag_behavior (UnknownFlagBehavior): For unknown `--name` tokens.
        anchored (bool): Only recognize flags at the head of the input.
    """

    def __init__(
        self,
        flags: Iterable[FlagSpec] = (),
        unknown_short_flag_behavior: UnknownFlagBehavior = UnknownFlagBehavior.ERROR,
        unknown_long_flag_behavior: UnknownFlagBehavior = UnknownFlagBehavior.ERROR,
        anchored: bool = False,
    ) -> None:
        self.flags: tuple[FlagSpec, ...] = tuple(flags)
        self.unknown_short_flag_behavior = unknown_short_flag_behavior
        self.unknown_long_flag_behavior = unknown_long_flag_behavior
        self.anchored = anchored
        self._short: dict[str, FlagSpec] = {}
        self._long: CaseInsensitiveDict = CaseInsensitiveDict()
        for flag in self.flags:
            for alias in flag.aliases:
                if len(alias) == 1:
                    self._short[alias] = flag
                else:
                    self._long[alias] = flag

    def get_short(self, letter: str) -> FlagSpec | None:
        return self._short.get(letter)

    def get_long(self, name: str) -> FlagSpec | None:
        return self._long.get(name)

    def parse(
        self,
        source: Any,
        stream: TokenStream,
        context: ParsingContext,
        stop_at: Callable[[str], bool] | None = None,
    ) -> TokenStream:
        """
        Bind every flag in `stream` into `context`.

        Args:
            stop_at (Callable[[str], bool] | None): Stop recognizing flags when
                the first non-flag token satisfies this predicate. Command
                dispatch uses it so a child command sees its own flags.

        Returns:
            TokenStream: The stream positional parsing continues with.
        """
        if self.anchored:
            while stream.remaining_tokens():
                if not self._parse_flag(source, stream, context):
                    break
            return stream

        non_flags: list[Token] = []
        while stream.remaining_tokens():
            token = stream.remaining_tokens()[0]
            if stop_at is not None and not non_flags and stop_at(token.text):
                logger.debug("Stopping flag parse at '%s'.", token.text)
                non_flags.extend(stream.remaining_tokens())
                stream.skip_remaining()
                break
            if self._parse_flag(source, stream, context):
                continue
            non_flags.append(token)
            stream.next()
        return TokenStream.from_tokens(stream.get_raw(), non_flags, stream.deferred_error)

    def _parse_flag(
        self, source: Any, stream: TokenStream, context: ParsingContext
    ) -> bool:
        """Parse the flag at the cursor. Returns False if the token is not a flag."""
        token = stream.remaining_tokens()[0]
        if not looks_like_flag(token.text):
            return False
        before = FlagSnapshot.capture(stream, context)
        stream.next()
        if token.text.startswith("--"):
            return self._parse_long(source, stream, context, token, before)
        return self._parse_short(source, stream, context, token, before)

    def _parse_long(
        self,
        source: Any,
        stream: TokenStream,
        context: ParsingContext,
        token: Token,
        before: FlagSnapshot,
    ) -> bool:
        name, separator, inline = token.text[2:].partition("=")
        flag = self.get_long(name)
        if flag is None or not flag.can_use(source):
            after = FlagSnapshot.capture(stream, context)
            return self.unknown_long_flag_behavior.handle(
                name, token.text, token.start, stream, context, before, after
            )
        if flag.parameter is None:
            if separator:
                raise stream.create_error(
                    f"Flag '--{name}' does not take a value.", token.start
                )
            self._bind_boolean(flag, context)
            return True
        if separator:
            offset = _raw_offset(stream, token, 3 + len(name))
            self._parse_inline_value(
                source, stream, context, flag, Token(inline, offset, token.end)
            )
        else:
            flag.parameter.parse(source, stream, context)
        return True

    def _parse_short(
        self,
        source: Any,
        stream: TokenStream,
        context: ParsingContext,
        token: Token,
        before: FlagSnapshot,
    ) -> bool:
        letters = token.text[1:]
        for index, letter in enumerate(letters):
            flag = self.get_short(letter)
            if flag is None or not flag.can_use(source):
                after = FlagSnapshot.capture(stream, context)
                handled = self.unknown_short_flag_behavior.handle(
                    letter, token.text, token.start, stream, context, before, after
                )
                if not handled:
                    return False
                continue
            if flag.parameter is None:
                self._bind_boolean(flag, context)
                continue
            rest = letters[index + 1 :]
            if rest:
                offset = _raw_offset(stream, token, 2 + index)
                self._parse_inline_value(
                    source, stream, context, flag, Token(rest, offset, token.end)
                )
            else:
                flag.parameter.parse(source, stream, context)
            break
        return True

    def _parse_inline_value(
        self,
        source: Any,
        stream: TokenStream,
        context: ParsingContext,
        flag: FlagSpec,
        value: Token,
    ) -> None:
        assert flag.parameter is not None
        value_stream = TokenStream.from_tokens(stream.get_raw(), [value])
        flag.parameter.parse(source, value_stream, context)
        if value_stream.has_next():
            raise value_stream.create_error(
                f"Unexpected value '{value_stream.peek()}' for flag "
                f"'{_dashed(flag.key)}'."
            )

    @staticmethod
    def _bind_boolean(flag: FlagSpec, context: ParsingContext) -> None:
        if not context.has_any(flag.key):
            context.put_entry(flag.key, True)

    def _value_flag_before_partial(self, source: Any, text: str) -> FlagSpec | None:
        """The value flag `text` names when its value would be the next token."""
        if text.startswith("--"):
            flag = self.get_long(text[2:])
        else:
            flag = self.get_short(text[-1])
            for letter in text[1:-1]:
                spec = self.get_short(letter)
                if spec is None or spec.takes_value:
                    return None
        if flag is None or not flag.takes_value or not flag.can_use(source):
            return None
        return flag

    def complete(
        self,
        source: Any,
        stream: TokenStream,
        context: ParsingContext,
        stop_at: Callable[[str], bool] | None = None,
    ) -> tuple[TokenStream, list[str] | None]:
        """
        Walk the flags of a completion stream whose last token is the partial token.

        Returns:
            tuple[TokenStream, list[str] | None]: The stream positional completion
            continues with, and the flag completions when the partial token
            belongs to the flag grammar (otherwise `None`).
        """
        non_flags: list[Token] = []
        positional_started = False
        while stream.remaining() > 1:
            token = stream.remaining_tokens()[0]
            if stop_at is not None and not non_flags and stop_at(token.text):
                non_flags.extend(stream.remaining_tokens())
                return TokenStream.from_tokens(stream.get_raw(), non_flags), None
            if looks_like_flag(token.text):
                flag = self._value_flag_before_partial(source, token.text)
                if flag is not None and stream.remaining() == 2:
                    stream.next()
                    assert flag.parameter is not None
                    return stream, flag.parameter.complete(source, stream, context)
                before = FlagSnapshot.capture(stream, context)
                try:
                    if self._parse_flag(source, stream, context):
                        continue
                except ArgumentParseError as error:
                    logger.debug("Ignoring flag error while completing: %s", error)
                    before.restore(stream, context)
            positional_started = True
            if self.anchored:
                break
            non_flags.append(token)
            stream.next()

        if not positional_started or not self.anchored:
            partial = stream.remaining_tokens()[-1] if stream.remaining_tokens() else None
            if partial is not None and partial.text.startswith("-") and not is_number(
                partial.text
            ):
                return stream, self._complete_flag_token(source, stream, context, partial)

        if self.anchored:
            return stream, None
        non_flags.extend(stream.remaining_tokens())
        return TokenStream.from_tokens(stream.get_raw(), non_flags), None

    def _complete_flag_token(
        self, source: Any, stream: TokenStream, context: ParsingContext, partial: Token
    ) -> list[str]:
        text = partial.text
        if text.startswith("--") and "=" in text:
            name, _, inline = text[2:].partition("=")
            flag = self.get_long(name)
            if flag is None or not flag.takes_value or not flag.can_use(source):
                return []
            assert flag.parameter is not None
            value_stream = TokenStream.from_tokens(
                stream.get_raw(), [Token(inline, partial.end - len(inline), partial.end)]
            )
            return [
                f"--{name}={value}"
                for value in flag.parameter.complete(source, value_stream, context)
            ]
        return self.suggest(source, text)

    def suggest(self, source: Any, prefix: str) -> list[str]:
        """Return flag names starting with `prefix` that `source` may use."""
        suggestions: list[str] = []
        for flag in self.flags:
            if not flag.can_use(source):
                continue
            for alias in flag.aliases:
                dashed = _dashed(alias)
                if dashed.startswith(prefix):
                    suggestions.append(dashed)
        return suggestions

    def usage(self, source: Any) -> str:
        return " ".join(flag.usage(source) for flag in self.flags if flag.can_use(source))

    def __bool__(self) -> bool:
        return bool(self.flags)

    def __repr__(self) -> str:
        names = ", ".join(_dashed(flag.key) for flag in self.flags)
        return f"Flags([{names}], anchored={self.anchored})"


EMPTY_FLAGS = Flags()


class FlagsBuilder:
    """
    Accumulates flag definitions and produces an immutable `Flags`.

    Spec strings may be given with or without leading dashes. Single characters
    are short aliases; anything longer is the long alias (at most one per flag).

    Example:
        flags = (
            FlagsBuilder()
            .flag("q", "quiet")
            .value_flag(ParameterBuilder("count").integer().build(), "-c", "--count")
            .build()
        )
    """

    def __init__(self, settings: ParlanceSettings | None = None) -> None:
        settings = settings or DEFAULT_SETTINGS
        self._flags: list[FlagSpec] = []
        self._seen: set[str] = set()
        self._unknown_short = settings.unknown_short_flag_behavior
        self._unknown_long = settings.unknown_long_flag_behavior
        self._anchored = settings.anchor_flags

    def _aliases(self, specs: tuple[str, ...]) -> tuple[str, ...]:
        if not specs:
            raise ParameterSpecError("A flag requires at least one alias.")
        aliases: list[str] = []
        long_count = 0
        for spec in specs:
            if not isinstance(spec, str):
                raise ParameterSpecError(f"Flag aliases must be strings, got {spec!r}.")
            alias = spec.lstrip("-")
            if not alias or any(char.isspace() for char in alias) or "=" in alias:
                raise ParameterSpecError(f"Invalid flag alias '{spec}'.")
            if len(alias) > 1:
                long_count += 1
            normalized = alias.lower() if len(alias) > 1 else alias
            if normalized in self._seen or alias in aliases:
                raise ParameterSpecError(f"Duplicate flag alias '{_dashed(alias)}'.")
            aliases.append(alias)
        if long_count > 1:
            raise ParameterSpecError(
                f"A flag may have at most one long alias, got {list(specs)}."
            )
        for alias in aliases:
            self._seen.add(alias.lower() if len(alias) > 1 else alias)
        return tuple(aliases)

    def flag(self, *specs: str) -> FlagsBuilder:
        self._flags.append(FlagSpec(self._aliases(specs)))
        return self

    def permission_flag(self, permission: str, *specs: str) -> FlagsBuilder:
        self._flags.append(FlagSpec(self._aliases(specs), permission=permission))
        return self

    def value_flag(self, parameter: Parameter | ParameterBuilder, *specs: str) -> FlagsBuilder:
        if isinstance(parameter, ParameterBuilder):
            parameter = parameter.build()
        if not isinstance(parameter, Parameter):
            raise ParameterSpecError(
                f"A value flag requires a Parameter, got {type(parameter).__name__}."
            )
        self._flags.append(FlagSpec(self._aliases(specs), parameter=parameter))
        return self

    def unknown_short_flag_behavior(self, behavior: UnknownFlagBehavior | str) -> FlagsBuilder:
        self._unknown_short = UnknownFlagBehavior(behavior)
        return self

    def unknown_long_flag_behavior(self, behavior: UnknownFlagBehavior | str) -> FlagsBuilder:
        self._unknown_long = UnknownFlagBehavior(behavior)
        return self

    def anchor_flags(self, anchor: bool = True) -> FlagsBuilder:
        self._anchored = anchor
        return self

    def build(self) -> Flags:
        return Flags(
            self._flags,
            unknown_short_flag_behavior=self._unknown_short,
            unknown_long_flag_behavior=self._unknown_long,
            anchored=self._anchored,
        )

# Parlance Command Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Tokenization and the bidirectional token cursor used by every grammar element.

`InputTokenizer` splits a raw command line into `Token`s, remembering the raw
offsets each token came from. `TokenStream` walks those tokens with a cursor
that can move forwards and backwards and be snapshotted and restored through
`TokenStreamState` values.

Quoting rules for `InputTokenizer.QUOTED_STRINGS` (the default):
- Whitespace separates tokens.
- `"..."` and `'...'` group text (including whitespace) into one token.
- A backslash escapes the next character.
- An unterminated quote is reported lazily: tokens before it can still be
  read, and the `next()` or `peek()` that reaches it raises `TokenizeError`.

Example:
    stream = InputTokenizer.QUOTED_STRINGS.tokenize('say "hello world" -q')
    stream.next()     # 'say'
    stream.peek()     # 'hello world'
    state = stream.get_state()
    stream.next()
    stream.set_state(state)
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from parlance.exceptions import ArgumentParseError, OutOfTokensError, TokenizeError

_NON_WHITESPACE = re.compile(r"\S+")
_QUOTES = "\"'"


@dataclass(frozen=True)
class Token:
    """A single token and the span of raw input it was read from."""

    text: str
    start: int
    end: int


@dataclass(frozen=True)
class TokenStreamState:
    """Snapshot of a `TokenStream` cursor."""

    cursor: int


def _tokenize_quoted(raw: str, lenient: bool) -> tuple[list[Token], TokenizeError | None]:
    tokens: list[Token] = []
    index = 0
    length = len(raw)
    while index < length:
        if raw[index].isspace():
            index += 1
            continue
        start = index
        chars: list[str] = []
        while index < length and not raw[index].isspace():
            char = raw[index]
            if char == "\\" and index + 1 < length:
                chars.append(raw[index + 1])
                index += 2
            elif char in _QUOTES:
                quote_start = index
                index += 1
                closed = False
                while index < length:
                    char = raw[index]
                    if char == "\\" and index + 1 < length:
                        chars.append(raw[index + 1])
                        index += 2
                        continue
                    if char == raw[quote_start]:
                        closed = True
                        index += 1
                        break
                    chars.append(char)
                    index += 1
                if not closed and not lenient:
                    return tokens, TokenizeError(
                        f"Unterminated quoted string starting at position {quote_start}",
                        raw,
                        start,
                    )
            else:
                chars.append(char)
                index += 1
        tokens.append(Token("".join(chars), start, index))
    return tokens, None


class InputTokenizer(Enum):
    """
    Defines how a raw argument string is split into tokens.

    Members:
        QUOTED_STRINGS: Split on whitespace, honoring quotes and backslash escapes.
        SPACE_SPLIT: Split on whitespace only; quotes are ordinary characters.
        RAW_INPUT: The entire input is a single token.

    Aliases:
        - "quoted" → "quoted_strings"
        - "space" → "space_split"
        - "raw" → "raw_input"
    """

    QUOTED_STRINGS = "quoted_strings"
    SPACE_SPLIT = "space_split"
    RAW_INPUT = "raw_input"

    @classmethod
    def _get_alias(cls, value: str) -> str:
        aliases = {
            "quoted": "quoted_strings",
            "space": "space_split",
            "raw": "raw_input",
        }
        return aliases.get(value, value)

    @classmethod
    def _missing_(cls, value: object) -> InputTokenizer:
        if not isinstance(value, str):
            raise ValueError(f"Invalid {cls.__name__}: {value!r}")
        normalized = value.strip().lower().replace("-", "_")
        alias = cls._get_alias(normalized)
        for member in cls:
            if member.value == alias:
                return member
        valid = ", ".join(member.value for member in cls)
        raise ValueError(f"Invalid {cls.__name__}: '{value}'. Must be one of: {valid}")

    def split(self, raw: str, lenient: bool = False) -> tuple[list[Token], TokenizeError | None]:
        """Split `raw` into tokens, returning any deferred tokenization error."""
        if self is InputTokenizer.RAW_INPUT:
            return ([Token(raw, 0, len(raw))] if raw else []), None
        if self is InputTokenizer.SPACE_SPLIT:
            return [
                Token(match.group(), match.start(), match.end())
                for match in _NON_WHITESPACE.finditer(raw)
            ], None
        return _tokenize_quoted(raw, lenient)

    def tokenize(self, raw: str) -> TokenStream:
        """Create a `TokenStream` over `raw`."""
        tokens, error = self.split(raw)
        return TokenStream(raw, tokens, error)

    def tokenize_for_completion(self, raw: str) -> TokenStream:
        """
        Create a `TokenStream` whose last token is the partial token under the cursor.

        Unterminated quotes are closed at the end of input, and an empty token is
        appended when the input is empty or ends in whitespace outside any token.
        Whitespace inside an open quote or escaped by a backslash belongs to the
        partial token.
        """
        tokens, _ = self.split(raw, lenient=True)
        if not tokens or tokens[-1].end < len(raw):
            tokens.append(Token("", len(raw), len(raw)))
        return TokenStream(raw, tokens)

    def __str__(self) -> str:
        return self.value


class TokenStream:
    """
    A bidirectional cursor over the tokens of one raw input string.

    The cursor always lies within `[0, len(tokens)]`. Streams are owned by a
    single parse invocation and are not safe to share between threads.
    """

    def __init__(
        self,
        raw: str,
        tokens: Sequence[Token],
        deferred_error: TokenizeError | None = None,
    ) -> None:
        self._raw = raw
        self._tokens: tuple[Token, ...] = tuple(tokens)
        self._cursor = 0
        self._deferred_error = deferred_error

    @classmethod
    def from_tokens(
        cls,
        raw: str,
        tokens: Sequence[Token],
        deferred_error: TokenizeError | None = None,
    ) -> TokenStream:
        """Build a stream over a subset of tokens, keeping their raw offsets."""
        return cls(raw, tokens, deferred_error)

    @property
    def deferred_error(self) -> TokenizeError | None:
        return self._deferred_error

    def _raise_deferred(self) -> None:
        assert self._deferred_error is not None
        error = self._deferred_error
        raise TokenizeError(error.message, error.raw, error.position)

    def has_next(self) -> bool:
        """Whether another token (or a deferred tokenization error) is ahead."""
        return self._cursor < len(self._tokens) or self._deferred_error is not None

    def next(self) -> str:
        """Return the next token and advance the cursor."""
        if self._cursor < len(self._tokens):
            token = self._tokens[self._cursor]
            self._cursor += 1
            return token.text
        if self._deferred_error is not None:
            self._raise_deferred()
        raise OutOfTokensError("Not enough arguments.", self._raw, len(self._raw))

    def next_if_present(self) -> str | None:
        """Return the next token and advance, or `None` when exhausted."""
        if self._cursor < len(self._tokens):
            return self.next()
        return None

    def peek(self) -> str:
        """Return the next token without advancing the cursor."""
        if self._cursor < len(self._tokens):
            return self._tokens[self._cursor].text
        if self._deferred_error is not None:
            self._raise_deferred()
        raise OutOfTokensError("Not enough arguments.", self._raw, len(self._raw))

    def has_previous(self) -> bool:
        return self._cursor > 0

    def previous(self) -> str:
        """Move the cursor back one token and return that token."""
        if self._cursor == 0:
            raise OutOfTokensError("No previous argument.", self._raw, 0)
        self._cursor -= 1
        return self._tokens[self._cursor].text

    def remaining(self) -> int:
        """Number of unread tokens, counting a deferred tokenization error as one."""
        pending = 1 if self._deferred_error is not None else 0
        return len(self._tokens) - self._cursor + pending

    def remaining_tokens(self) -> tuple[Token, ...]:
        return self._tokens[self._cursor :]

    def skip_remaining(self) -> None:
        """Move the cursor past every token. A deferred error stays pending."""
        self._cursor = len(self._tokens)

    def get_all(self) -> list[str]:
        """All tokens of the stream, regardless of the cursor."""
        return [token.text for token in self._tokens]

    def get_raw_position(self) -> int:
        """Raw offset of the token `peek()` would return, or the input length."""
        if self._cursor < len(self._tokens):
            return self._tokens[self._cursor].start
        if self._deferred_error is not None:
            return self._deferred_error.position
        return len(self._raw)

    def get_raw(self) -> str:
        return self._raw

    def get_state(self) -> TokenStreamState:
        return TokenStreamState(self._cursor)

    def set_state(self, state: TokenStreamState) -> None:
        if not isinstance(state, TokenStreamState):
            raise TypeError(f"Expected TokenStreamState, got {type(state).__name__}")
        if not 0 <= state.cursor <= len(self._tokens):
            raise ValueError(f"State cursor {state.cursor} is outside this stream")
        self._cursor = state.cursor

    def create_error(
        self,
        message: str,
        position: int | None = None,
        error_type: type[ArgumentParseError] = ArgumentParseError,
    ) -> ArgumentParseError:
        """
        Create a parse error located at the current raw position.

        Args:
            message (str): User-facing message.
            position (int | None): Override for the raw offset to report.
            error_type (type[ArgumentParseError]): Subclass to instantiate.
        """
        if position is None:
            position = self.get_raw_position()
        return error_type(message, self._raw, position)

    def __len__(self) -> int:
        return len(self._tokens)

    def __repr__(self) -> str:
        return (
            f"TokenStream(raw={self._raw!r}, tokens={self.get_all()!r}, "
            f"cursor={self._cursor})"
        )

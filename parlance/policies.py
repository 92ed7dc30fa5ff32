# Parlance Command Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Defines the policy enums that configure flag recognition and command dispatch.

- `UnknownFlagBehavior` decides what happens to a token that looks like a flag
  but matches no known (or permitted) flag.
- `ChildExceptionBehavior` decides what a command does when dispatching to a
  child command fails.

Both support alias coercion so they can be read from configuration files.

Example:
    UnknownFlagBehavior("positional") → UnknownFlagBehavior.ACCEPT_AS_NON_FLAG
    ChildExceptionBehavior("fallback") → ChildExceptionBehavior.CONTINUE
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from parlance.context import ContextState, ParsingContext
from parlance.exceptions import UnknownFlagError
from parlance.logger import logger
from parlance.tokens import TokenStream, TokenStreamState


@dataclass(frozen=True)
class FlagSnapshot:
    """Stream and context state captured around one flag token."""

    stream: TokenStreamState
    context: ContextState

    @classmethod
    def capture(cls, stream: TokenStream, context: ParsingContext) -> FlagSnapshot:
        return cls(stream.get_state(), context.get_state())

    def restore(self, stream: TokenStream, context: ParsingContext) -> None:
        stream.set_state(self.stream)
        context.set_state(self.context)


class _AliasedEnum(Enum):
    @classmethod
    def _get_alias(cls, value: str) -> str:
        return value

    @classmethod
    def _missing_(cls, value: object) -> Any:
        if not isinstance(value, str):
            raise ValueError(f"Invalid {cls.__name__}: {value!r}")
        normalized = value.strip().lower().replace("-", "_")
        alias = cls._get_alias(normalized)
        for member in cls:
            if member.value == alias:
                return member
        valid = ", ".join(member.value for member in cls)
        raise ValueError(f"Invalid {cls.__name__}: '{value}'. Must be one of: {valid}")

    def __str__(self) -> str:
        return self.value


class UnknownFlagBehavior(_AliasedEnum):
    """
    Handling for tokens that look like flags but are not recognized.

    Members:
        ERROR: Raise `UnknownFlagError`.
        ACCEPT_AS_NON_FLAG: Rewind; the token is parsed as a positional argument.
        IGNORE: Consume the token and drop it.
        ACCEPT_NONVALUE: Bind `True` under the unknown flag's name.

    Aliases:
        - "positional", "accept" → "accept_as_non_flag"
        - "skip", "drop" → "ignore"
        - "accept_value", "bind" → "accept_nonvalue"
    """

    ERROR = "error"
    ACCEPT_AS_NON_FLAG = "accept_as_non_flag"
    IGNORE = "ignore"
    ACCEPT_NONVALUE = "accept_nonvalue"

    @classmethod
    def _get_alias(cls, value: str) -> str:
        aliases = {
            "positional": "accept_as_non_flag",
            "accept": "accept_as_non_flag",
            "skip": "ignore",
            "drop": "ignore",
            "accept_value": "accept_nonvalue",
            "bind": "accept_nonvalue",
        }
        return aliases.get(value, value)

    def handle(
        self,
        name: str,
        token: str,
        position: int,
        stream: TokenStream,
        context: ParsingContext,
        before: FlagSnapshot,
        after: FlagSnapshot,
    ) -> bool:
        """
        Apply this behavior to the unknown flag `name` read from `token`.

        Args:
            before (FlagSnapshot): State before the token was read.
            after (FlagSnapshot): State after the token was read.

        Returns:
            bool: True if the token was handled as a flag, False if it was rewound
            and should be treated as an ordinary argument.

        Raises:
            UnknownFlagError: For `ERROR`.
        """
        if self is UnknownFlagBehavior.ERROR:
            raise stream.create_error(
                f"Unknown flag '{name}' in '{token}'.", position, UnknownFlagError
            )
        if self is UnknownFlagBehavior.ACCEPT_AS_NON_FLAG:
            logger.debug("Treating '%s' as a positional argument.", token)
            before.restore(stream, context)
            return False
        if self is UnknownFlagBehavior.IGNORE:
            logger.debug("Ignoring unknown flag '%s'.", name)
            after.restore(stream, context)
            return True
        logger.debug("Accepting unknown flag '%s' without a value.", name)
        after.restore(stream, context)
        if not context.has_any(name):
            context.put_entry(name, True)
        return True


class ChildExceptionBehavior(_AliasedEnum):
    """
    What a command does when dispatching to a matched child fails.

    Members:
        RETHROW: Propagate the child's failure unchanged.
        CONTINUE: Roll back and parse the tokens as this command's own arguments.

    Aliases:
        - "raise", "propagate" → "rethrow"
        - "fallback", "delegate" → "continue"
    """

    RETHROW = "rethrow"
    CONTINUE = "continue"

    @classmethod
    def _get_alias(cls, value: str) -> str:
        aliases = {
            "raise": "rethrow",
            "propagate": "rethrow",
            "fallback": "continue",
            "delegate": "continue",
        }
        return aliases.get(value, value)

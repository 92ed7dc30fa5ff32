# Parlance Command Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Defines `ParsingContext`, the accumulator of key → value bindings produced while
a command line is parsed, and `Transaction`, the scoped snapshot/rollback
discipline every speculative parse branch goes through.

Bindings are ordered lists per key. The first value bound under a key is "the"
value when single-valued access is requested. Keys are case-sensitive.

Example:
    context = ParsingContext()
    with Transaction(stream, context) as tx:
        parameter.parse(source, stream, context)
        tx.commit()
    # On any exception (or without commit) both stream and context are restored.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from parlance.exceptions import NoValueBoundError, TooManyValuesError
from parlance.logger import logger
from parlance.tokens import TokenStream, TokenStreamState


@dataclass(frozen=True)
class ContextState:
    """Snapshot of every binding in a `ParsingContext` plus its ambient metadata."""

    entries: tuple[tuple[str, tuple[Any, ...]], ...]
    is_completion: bool = False
    target_block: Any = None


class ParsingContext:
    """
    Ordered key → values accumulator threaded through one parse invocation.

    Attributes:
        is_completion (bool): Whether this parse is serving a completion request.
        target_block (Any): Optional location hint supplied by the caller that
            leaves may consult for contextual defaults.
    """

    def __init__(self, is_completion: bool = False, target_block: Any = None) -> None:
        self._entries: dict[str, list[Any]] = {}
        self._is_completion = is_completion
        self._target_block = target_block

    @property
    def is_completion(self) -> bool:
        return self._is_completion

    @property
    def target_block(self) -> Any:
        return self._target_block

    def has_any(self, key: str) -> bool:
        return bool(self._entries.get(key))

    def get_one(self, key: str, default: Any = None) -> Any:
        """Return the first value bound under `key`, or `default`."""
        values = self._entries.get(key)
        if not values:
            return default
        return values[0]

    def get_one_or_fail(self, key: str) -> Any:
        """
        Return the single value bound under `key`.

        Raises:
            NoValueBoundError: If nothing is bound under `key`.
            TooManyValuesError: If more than one value is bound under `key`.
        """
        values = self._entries.get(key)
        if not values:
            raise NoValueBoundError(f"No value was bound for '{key}'.")
        if len(values) > 1:
            raise TooManyValuesError(
                f"Expected a single value for '{key}' but {len(values)} were bound."
            )
        return values[0]

    def get_all(self, key: str) -> list[Any]:
        """Return a copy of every value bound under `key`, in binding order."""
        return list(self._entries.get(key, ()))

    def put_entry(self, key: str, value: Any) -> None:
        self._entries.setdefault(key, []).append(value)

    def keys(self) -> list[str]:
        return [key for key, values in self._entries.items() if values]

    def as_dict(self) -> dict[str, list[Any]]:
        return {key: list(values) for key, values in self._entries.items() if values}

    def get_state(self) -> ContextState:
        return ContextState(
            entries=tuple(
                (key, tuple(values)) for key, values in self._entries.items()
            ),
            is_completion=self._is_completion,
            target_block=self._target_block,
        )

    def set_state(self, state: ContextState) -> None:
        if not isinstance(state, ContextState):
            raise TypeError(f"Expected ContextState, got {type(state).__name__}")
        self._entries = {key: list(values) for key, values in state.entries}
        self._is_completion = state.is_completion
        self._target_block = state.target_block

    def __contains__(self, key: str) -> bool:
        return self.has_any(key)

    def __repr__(self) -> str:
        return f"ParsingContext({self.as_dict()!r})"


class Transaction:
    """
    Snapshot of a stream and context that is restored when the scope exits
    without `commit()`, including when it exits through an exception.
    """

    def __init__(self, stream: TokenStream, context: ParsingContext) -> None:
        self.stream = stream
        self.context = context
        self.stream_state: TokenStreamState = stream.get_state()
        self.context_state: ContextState = context.get_state()
        self.committed = False

    def commit(self) -> None:
        self.committed = True

    def rollback(self) -> None:
        self.stream.set_state(self.stream_state)
        self.context.set_state(self.context_state)

    def __enter__(self) -> Transaction:
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if not self.committed:
            if exc is not None:
                logger.debug("Rolling back after %s: %s", type(exc).__name__, exc)
            self.rollback()
        return False


def transaction(stream: TokenStream, context: ParsingContext) -> Transaction:
    return Transaction(stream, context)

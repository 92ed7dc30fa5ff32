# Parlance Command Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Explicit success/failure result passed between the steps of a modifier chain.

Leaf parsers signal failure by raising `ArgumentParseError`. The innermost step
of every `Parameter` converts that into a `ParseOutcome`, so each modifier
decides to swallow, roll back, or propagate by inspecting a value instead of
catching an exception. `Parameter.parse` raises the carried error again at the
boundary.
"""
from __future__ import annotations

from dataclasses import dataclass

from parlance.exceptions import ArgumentParseError


@dataclass(frozen=True)
class ParseOutcome:
    """Result of one grammar step: success, or failure carrying its diagnostic."""

    error: ArgumentParseError | None = None

    @classmethod
    def ok(cls) -> ParseOutcome:
        return _OK

    @classmethod
    def failed(cls, error: ArgumentParseError) -> ParseOutcome:
        return cls(error)

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def position(self) -> int:
        return self.error.position if self.error is not None else -1

    def raise_for_failure(self) -> None:
        if self.error is not None:
            raise self.error

    def __bool__(self) -> bool:
        return self.succeeded


_OK = ParseOutcome()

# Parlance Command Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Modifiers change the cardinality or failure tolerance of a `Parameter` without
changing what values it produces.

A parameter's modifiers form a chain around its innermost step (the leaf parse
or the composite of its children). The first modifier in the chain is the
outermost wrapper: it runs first and decides whether and how often to call the
step it wraps. Every step returns a `ParseOutcome`, so swallowing, rolling back
and propagating a failure are explicit decisions made on a value.

Modifiers:
- OnlyOne: fail with `AmbiguousResultError` when more than one value is bound.
- AllOf: repeat until the stream is exhausted or an attempt fails.
- Repeated(n): run exactly `n` times.
- Optional: succeed without binding when there was nothing left to parse.
- OptionalWeak: swallow any failure and roll back.
- DefaultValue / DefaultValueSupplier: bind a default when nothing was bound.

Usage rendering:
    Optional, OptionalWeak → `[x]`
    AllOf                  → `x [x ...]`
    Repeated(3)            → `x x x`
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from parlance.context import ParsingContext, Transaction
from parlance.exceptions import (
    AmbiguousResultError,
    OutOfTokensError,
    ParameterSpecError,
)
from parlance.logger import logger
from parlance.outcome import ParseOutcome
from parlance.tokens import TokenStream

Step = Callable[[Any, TokenStream, ParsingContext], ParseOutcome]


class ValueParameterModifier:
    """Base modifier: delegates to the wrapped step unchanged."""

    skippable = False
    repeating = False

    def apply(
        self,
        key: str,
        source: Any,
        stream: TokenStream,
        context: ParsingContext,
        inner: Step,
    ) -> ParseOutcome:
        return inner(source, stream, context)

    def usage(self, key: str, inner_usage: str) -> str:
        return inner_usage


@dataclass(frozen=True)
class OnlyOne(ValueParameterModifier):
    def apply(self, key, source, stream, context, inner) -> ParseOutcome:
        position = stream.get_raw_position()
        outcome = inner(source, stream, context)
        if outcome and len(context.get_all(key)) > 1:
            return ParseOutcome.failed(
                stream.create_error(
                    f"Multiple values were found for '{key}', but only one is allowed.",
                    position,
                    AmbiguousResultError,
                )
            )
        return outcome


@dataclass(frozen=True)
class AllOf(ValueParameterModifier):
    repeating = True

    def apply(self, key, source, stream, context, inner) -> ParseOutcome:
        successes = 0
        while stream.has_next():
            start = stream.get_state()
            with Transaction(stream, context) as tx:
                outcome = inner(source, stream, context)
                if outcome:
                    tx.commit()
            if not outcome:
                if successes == 0:
                    return outcome
                logger.debug(
                    "[%s] Stopped after %d values: %s", key, successes, outcome.error
                )
                break
            successes += 1
            if stream.get_state() == start:
                break
        if successes == 0:
            return ParseOutcome.failed(
                stream.create_error(
                    f"Expected at least one value for '{key}'.",
                    error_type=OutOfTokensError,
                )
            )
        return ParseOutcome.ok()

    def usage(self, key, inner_usage) -> str:
        if not inner_usage:
            return inner_usage
        return f"{inner_usage} [{inner_usage} ...]"


@dataclass(frozen=True)
class Repeated(ValueParameterModifier):
    times: int
    repeating = True

    def __post_init__(self) -> None:
        if self.times < 1:
            raise ParameterSpecError(
                f"Repeated requires a positive count, got {self.times}."
            )

    def apply(self, key, source, stream, context, inner) -> ParseOutcome:
        with Transaction(stream, context) as tx:
            for attempt in range(1, self.times + 1):
                outcome = inner(source, stream, context)
                if not outcome:
                    error = outcome.error
                    return ParseOutcome.failed(
                        type(error)(
                            f"{error.message} (value {attempt} of {self.times})",
                            error.raw,
                            error.position,
                        )
                    )
            tx.commit()
        return ParseOutcome.ok()

    def usage(self, key, inner_usage) -> str:
        if not inner_usage:
            return inner_usage
        return " ".join([inner_usage] * self.times)


@dataclass(frozen=True)
class Optional(ValueParameterModifier):
    skippable = True

    def apply(self, key, source, stream, context, inner) -> ParseOutcome:
        had_tokens = stream.has_next()
        with Transaction(stream, context) as tx:
            outcome = inner(source, stream, context)
            if outcome:
                tx.commit()
                return outcome
        if had_tokens:
            return outcome
        logger.debug("[%s] Nothing to parse, skipping optional value.", key)
        return ParseOutcome.ok()

    def usage(self, key, inner_usage) -> str:
        return f"[{inner_usage}]" if inner_usage else inner_usage


@dataclass(frozen=True)
class OptionalWeak(ValueParameterModifier):
    skippable = True

    def apply(self, key, source, stream, context, inner) -> ParseOutcome:
        with Transaction(stream, context) as tx:
            outcome = inner(source, stream, context)
            if outcome:
                tx.commit()
                return outcome
        logger.debug("[%s] Ignoring weak optional failure: %s", key, outcome.error)
        return ParseOutcome.ok()

    def usage(self, key, inner_usage) -> str:
        return f"[{inner_usage}]" if inner_usage else inner_usage


@dataclass(frozen=True)
class DefaultValue(ValueParameterModifier):
    value: Any

    def apply(self, key, source, stream, context, inner) -> ParseOutcome:
        outcome = inner(source, stream, context)
        if outcome and not context.has_any(key):
            context.put_entry(key, self.value)
        return outcome


@dataclass(frozen=True)
class DefaultValueSupplier(ValueParameterModifier):
    """Binds `supplier(source)` when nothing was bound and the supplier returns a value."""

    supplier: Callable[[Any], Any]

    def apply(self, key, source, stream, context, inner) -> ParseOutcome:
        outcome = inner(source, stream, context)
        if outcome and not context.has_any(key):
            value = self.supplier(source)
            if value is not None:
                context.put_entry(key, value)
        return outcome

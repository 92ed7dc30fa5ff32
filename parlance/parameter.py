# Parlance Command Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Defines `Parameter`, the composition unit of the Parlance grammar, together with
the builders that produce it and the `seq` / `first_of` combinators.

A `Parameter` binds a key to either a leaf `ValueParameter` or a list of child
parameters, and wraps that core in an ordered chain of modifiers. Composite
parameters come in two modes:

- `CompositionMode.ALL` (`seq`): children are parsed strictly in order. The first
  failure rolls back everything the sequence did and propagates.
- `CompositionMode.FIRST` (`first_of`): each child is attempted inside its own
  rollback scope. The first success wins. When every child fails, the error
  from the child that progressed furthest into the input is raised, with ties
  going to the earliest child.

The same grammar graph answers `parse`, `complete` and `usage`.

Example:
    amount = ParameterBuilder("amount").integer().only_one().build()
    note = ParameterBuilder("note").remaining_joined_strings().optional_weak().build()
    grammar = seq(amount, note)
    grammar.parse(source, InputTokenizer.QUOTED_STRINGS.tokenize("5 hello"), context)
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Sequence

from parlance.context import ParsingContext, Transaction
from parlance.exceptions import ArgumentParseError, ParameterSpecError
from parlance.logger import logger
from parlance.modifiers import (
    AllOf,
    DefaultValue,
    DefaultValueSupplier,
    OnlyOne,
    Optional,
    OptionalWeak,
    Repeated,
    Step,
    ValueParameterModifier,
)
from parlance.outcome import ParseOutcome
from parlance.patterns import (
    ChoicesValue,
    EnumValue,
    PatternMatchingValueParameter,
    SelectorValueParameter,
)
from parlance.protocols import ChoicesSupplier, SelectorResolver, has_permission
from parlance.tokens import TokenStream
from parlance.values import (
    BooleanValue,
    DateTimeValue,
    DoubleValue,
    DurationValue,
    IntegerValue,
    LiteralValue,
    MultiValue,
    NoneValue,
    RemainingJoinedStrings,
    RemainingRawJoinedStrings,
    StringValue,
    ValueParameter,
    ensure_value_parameter,
)

Completer = Callable[[Any, TokenStream, ParsingContext], Iterable[str]]


class CompositionMode(Enum):
    """How a composite parameter combines its children."""

    SINGLE = "single"
    ALL = "all"
    FIRST = "first"


def _unique(values: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(values))


def _chain(
    key: str, modifiers: Sequence[ValueParameterModifier], innermost: Step
) -> Step:
    step = innermost
    for modifier in reversed(modifiers):
        step = _wrap(modifier, key, step)
    return step


def _wrap(modifier: ValueParameterModifier, key: str, inner: Step) -> Step:
    def step(source: Any, stream: TokenStream, context: ParsingContext) -> ParseOutcome:
        return modifier.apply(key, source, stream, context, inner)

    return step


def deepest_error(errors: Sequence[ArgumentParseError]) -> ArgumentParseError:
    """Return the error that progressed furthest, keeping the earliest on ties."""
    deepest = errors[0]
    for error in errors[1:]:
        if error.position > deepest.position:
            deepest = error
    return deepest


class Parameter:
    """
    Immutable grammar node. Build instances through `ParameterBuilder`,
    `SequenceBuilder`, `seq` or `first_of`.

    Attributes:
        key (str): Context key values are bound under. Empty for pass-through
            composites and for leaves whose value should not be bound.
        parser (ValueParameter | None): Leaf parser, for single parameters.
        children (tuple[Parameter, ...]): Child parameters, for composites.
        mode (CompositionMode): SINGLE, ALL or FIRST.
        modifiers (tuple[ValueParameterModifier, ...]): Outermost first.
        permission (str | None): Sources without it skip this parameter.
    """

    def __init__(
        self,
        key: str = "",
        parser: ValueParameter | None = None,
        children: Sequence[Parameter] = (),
        mode: CompositionMode = CompositionMode.SINGLE,
        modifiers: Sequence[ValueParameterModifier] = (),
        permission: str | None = None,
        completer: Completer | None = None,
        usage: str | Callable[[Any], str] | None = None,
    ) -> None:
        self._key = key
        self._parser = parser
        self._children: tuple[Parameter, ...] = tuple(children)
        self._mode = mode
        self._modifiers: tuple[ValueParameterModifier, ...] = tuple(modifiers)
        self._permission = permission
        self._completer = completer
        self._usage = usage
        self._step = _chain(key, self._modifiers, self._parse_core)

    @property
    def key(self) -> str:
        return self._key

    @property
    def parser(self) -> ValueParameter | None:
        return self._parser

    @property
    def children(self) -> tuple[Parameter, ...]:
        return self._children

    @property
    def mode(self) -> CompositionMode:
        return self._mode

    @property
    def modifiers(self) -> tuple[ValueParameterModifier, ...]:
        return self._modifiers

    @property
    def permission(self) -> str | None:
        return self._permission

    @property
    def is_optional(self) -> bool:
        if any(modifier.skippable for modifier in self._modifiers):
            return True
        if isinstance(self._parser, NoneValue):
            return True
        if self._mode is CompositionMode.ALL:
            return all(child.is_optional for child in self._children)
        if self._mode is CompositionMode.FIRST:
            return any(child.is_optional for child in self._children)
        return False

    @property
    def is_repeating(self) -> bool:
        return any(modifier.repeating for modifier in self._modifiers)

    def _bind(self, context: ParsingContext, value: Any) -> None:
        if value is None or not self._key:
            return
        if isinstance(value, MultiValue):
            for item in value:
                context.put_entry(self._key, item)
        else:
            context.put_entry(self._key, value)

    def _parse_core(
        self, source: Any, stream: TokenStream, context: ParsingContext
    ) -> ParseOutcome:
        if self._mode is CompositionMode.ALL:
            return self._parse_sequence(source, stream, context)
        if self._mode is CompositionMode.FIRST:
            return self._parse_first_of(source, stream, context)
        assert self._parser is not None
        try:
            value = self._parser.parse_value(source, stream, context)
        except ArgumentParseError as error:
            return ParseOutcome.failed(error)
        self._bind(context, value)
        return ParseOutcome.ok()

    def _parse_sequence(
        self, source: Any, stream: TokenStream, context: ParsingContext
    ) -> ParseOutcome:
        with Transaction(stream, context) as tx:
            for child in self._children:
                outcome = child.parse_outcome(source, stream, context)
                if not outcome:
                    return outcome
            tx.commit()
        return ParseOutcome.ok()

    def _parse_first_of(
        self, source: Any, stream: TokenStream, context: ParsingContext
    ) -> ParseOutcome:
        errors: list[ArgumentParseError] = []
        for child in self._children:
            with Transaction(stream, context) as tx:
                outcome = child.parse_outcome(source, stream, context)
                if outcome:
                    tx.commit()
                    return outcome
            assert outcome.error is not None
            errors.append(outcome.error)
        logger.debug("All %d alternatives failed: %s", len(errors), errors)
        return ParseOutcome.failed(deepest_error(errors))

    def _derive(self, **changes: Any) -> Parameter:
        fields = {
            "key": self._key,
            "parser": self._parser,
            "children": self._children,
            "mode": self._mode,
            "modifiers": self._modifiers,
            "permission": self._permission,
            "completer": self._completer,
            "usage": self._usage,
        }
        fields.update(changes)
        return Parameter(**fields)

    def wrapped(self, *modifiers: ValueParameterModifier) -> Parameter:
        """Return a copy of this parameter with `modifiers` as its outermost wrappers."""
        return self._derive(modifiers=(*modifiers, *self._modifiers))

    def with_permission(self, permission: str | None) -> Parameter:
        return self._derive(permission=permission)

    def can_use(self, source: Any) -> bool:
        return has_permission(source, self._permission)

    def parse_outcome(
        self, source: Any, stream: TokenStream, context: ParsingContext
    ) -> ParseOutcome:
        """Parse, returning the outcome instead of raising."""
        if not self.can_use(source):
            logger.debug(
                "[%s] Skipping parameter, missing permission '%s'.",
                self._key,
                self._permission,
            )
            return ParseOutcome.ok()
        return self._step(source, stream, context)

    def parse(self, source: Any, stream: TokenStream, context: ParsingContext) -> None:
        """
        Parse tokens from `stream`, binding values into `context`.

        Raises:
            ArgumentParseError: If the input does not match this parameter.
        """
        self.parse_outcome(source, stream, context).raise_for_failure()

    def complete(
        self, source: Any, stream: TokenStream, context: ParsingContext
    ) -> list[str]:
        """Return completions for the last token of `stream`."""
        if not self.can_use(source):
            return []
        if self._completer is not None:
            return _unique(self._completer(source, stream, context))
        if self.is_repeating:
            self._skip_parsed(source, stream, context)
        if self._mode is CompositionMode.ALL:
            return self._complete_sequence(source, stream, context)
        if self._mode is CompositionMode.FIRST:
            return self._complete_first_of(source, stream, context)
        assert self._parser is not None
        return _unique(self._parser.complete(source, stream, context))

    def _skip_parsed(
        self, source: Any, stream: TokenStream, context: ParsingContext
    ) -> None:
        while stream.remaining() > 1:
            start = stream.get_state()
            outcome = self._parse_core(source, stream, context)
            if not outcome or stream.get_state() == start or not stream.has_next():
                stream.set_state(start)
                return

    def _complete_sequence(
        self, source: Any, stream: TokenStream, context: ParsingContext
    ) -> list[str]:
        completions: list[str] = []
        for child in self._children:
            start = stream.get_state()
            outcome = child.parse_outcome(source, stream, context)
            if outcome and stream.has_next():
                continue
            stream.set_state(start)
            completions.extend(child.complete(source, stream, context))
            if not child.is_optional:
                return _unique(completions)
            stream.set_state(start)
        return _unique(completions)

    def _complete_first_of(
        self, source: Any, stream: TokenStream, context: ParsingContext
    ) -> list[str]:
        completions: list[str] = []
        for child in self._children:
            with Transaction(stream, context):
                completions.extend(child.complete(source, stream, context))
        return _unique(completions)

    def usage(self, source: Any) -> str:
        if not self.can_use(source):
            return ""
        if self._usage is not None:
            return self._usage if isinstance(self._usage, str) else self._usage(source)
        if self._mode is CompositionMode.SINGLE:
            assert self._parser is not None
            text = self._parser.usage(self._key, source)
        else:
            parts = [usage for usage in (c.usage(source) for c in self._children) if usage]
            if self._mode is CompositionMode.ALL:
                text = " ".join(parts)
            elif len(parts) > 1:
                text = "(" + "|".join(parts) + ")"
            else:
                text = "".join(parts)
        for modifier in reversed(self._modifiers):
            text = modifier.usage(self._key, text)
        return text

    def __repr__(self) -> str:
        if self._mode is CompositionMode.SINGLE:
            core = repr(self._parser)
        else:
            core = f"{self._mode.value}({', '.join(map(repr, self._children))})"
        modifiers = ", ".join(type(modifier).__name__ for modifier in self._modifiers)
        return f"Parameter(key={self._key!r}, {core}, modifiers=[{modifiers}])"


class _ModifierBuilderMixin:
    """Modifier convenience methods shared by the parameter builders."""

    _modifiers: list[ValueParameterModifier]

    def add_modifiers(self, *modifiers: ValueParameterModifier):
        """Append modifiers. Earlier modifiers wrap later ones."""
        for modifier in modifiers:
            if not isinstance(modifier, ValueParameterModifier):
                raise ParameterSpecError(
                    f"Expected a modifier, got {type(modifier).__name__}."
                )
            self._modifiers.append(modifier)
        return self

    def add_modifier_to_beginning(self, modifier: ValueParameterModifier):
        """Insert `modifier` as the outermost wrapper."""
        if not isinstance(modifier, ValueParameterModifier):
            raise ParameterSpecError(f"Expected a modifier, got {type(modifier).__name__}.")
        self._modifiers.insert(0, modifier)
        return self

    def optional(self):
        return self.add_modifiers(Optional())

    def optional_weak(self):
        return self.add_modifiers(OptionalWeak())

    def only_one(self):
        return self.add_modifiers(OnlyOne())

    def all_of(self):
        return self.add_modifiers(AllOf())

    def repeated(self, times: int):
        return self.add_modifiers(Repeated(times))

    def default_value(self, value: Any):
        """Bind `value` when nothing else was bound. Wraps every modifier added so far."""
        return self.add_modifier_to_beginning(DefaultValue(value))

    def default_value_supplier(self, supplier: Callable[[Any], Any]):
        return self.add_modifier_to_beginning(DefaultValueSupplier(supplier))


class ParameterBuilder(_ModifierBuilderMixin):
    """
    Accumulates the definition of a single (leaf) parameter.

    Example:
        ParameterBuilder("amount").integer().only_one().build()
    """

    def __init__(self, key: str = "") -> None:
        self._key = key
        self._parser: ValueParameter | None = None
        self._modifiers: list[ValueParameterModifier] = []
        self._permission: str | None = None
        self._completer: Completer | None = None
        self._usage: str | Callable[[Any], str] | None = None

    def key(self, key: str) -> ParameterBuilder:
        self._key = key
        return self

    def parser(self, parser: ValueParameter) -> ParameterBuilder:
        self._parser = ensure_value_parameter(parser)
        return self

    def permission(self, permission: str | None) -> ParameterBuilder:
        self._permission = permission
        return self

    def completer(self, completer: Completer) -> ParameterBuilder:
        self._completer = completer
        return self

    def usage(self, usage: str | Callable[[Any], str]) -> ParameterBuilder:
        self._usage = usage
        return self

    def string(self) -> ParameterBuilder:
        return self.parser(StringValue())

    def integer(self) -> ParameterBuilder:
        return self.parser(IntegerValue())

    def long_number(self) -> ParameterBuilder:
        return self.parser(IntegerValue())

    def double_number(self) -> ParameterBuilder:
        return self.parser(DoubleValue())

    def boolean(self) -> ParameterBuilder:
        return self.parser(BooleanValue())

    def none(self) -> ParameterBuilder:
        return self.parser(NoneValue())

    def remaining_joined_strings(self) -> ParameterBuilder:
        return self.parser(RemainingJoinedStrings())

    def remaining_raw_joined_strings(self) -> ParameterBuilder:
        return self.parser(RemainingRawJoinedStrings())

    def duration(self) -> ParameterBuilder:
        return self.parser(DurationValue())

    def date_time(self) -> ParameterBuilder:
        return self.parser(DateTimeValue())

    def literal(self, returned_value: Any, *literals: str) -> ParameterBuilder:
        return self.parser(LiteralValue(returned_value, *literals))

    def enum_value(self, enum_type: type[Enum]) -> ParameterBuilder:
        return self.parser(EnumValue(enum_type))

    def choices(self, choices: Mapping[str, Any], show_usage: bool = True) -> ParameterBuilder:
        return self.parser(ChoicesValue(choices, show_usage))

    def pattern(
        self,
        choices: ChoicesSupplier,
        value_function: Callable[[str], Any] | None = None,
    ) -> ParameterBuilder:
        return self.parser(PatternMatchingValueParameter(choices, value_function))

    def selector(
        self,
        entity_type: type,
        resolver: SelectorResolver,
        choices: ChoicesSupplier | None = None,
        value_function: Callable[[str], Any] | None = None,
    ) -> ParameterBuilder:
        return self.parser(
            SelectorValueParameter(entity_type, resolver, choices, value_function)
        )

    def build(self) -> Parameter:
        if self._parser is None:
            raise ParameterSpecError(
                f"Parameter '{self._key}' has no value parser. "
                "Call parser() or one of the leaf methods before build()."
            )
        return Parameter(
            key=self._key,
            parser=self._parser,
            modifiers=self._modifiers,
            permission=self._permission,
            completer=self._completer,
            usage=self._usage,
        )


class SequenceBuilder(_ModifierBuilderMixin):
    """
    Accumulates children for a composite parameter.

    `require_all()` (the default) parses children in order; `require_all(False)`
    switches to first-success alternation.
    """

    def __init__(self, key: str = "") -> None:
        self._key = key
        self._children: list[Parameter] = []
        self._mode = CompositionMode.ALL
        self._modifiers: list[ValueParameterModifier] = []
        self._permission: str | None = None

    def require_all(self, require_all: bool = True) -> SequenceBuilder:
        self._mode = CompositionMode.ALL if require_all else CompositionMode.FIRST
        return self

    def add(self, *parameters: Parameter | ParameterBuilder) -> SequenceBuilder:
        self._children.extend(_as_parameter(parameter) for parameter in parameters)
        return self

    def permission(self, permission: str | None) -> SequenceBuilder:
        self._permission = permission
        return self

    def build(self) -> Parameter:
        if not self._children:
            raise ParameterSpecError("A parameter sequence requires at least one child.")
        return Parameter(
            key=self._key,
            children=self._children,
            mode=self._mode,
            modifiers=self._modifiers,
            permission=self._permission,
        )


def _as_parameter(parameter: Parameter | ParameterBuilder) -> Parameter:
    if isinstance(parameter, ParameterBuilder):
        return parameter.build()
    if not isinstance(parameter, Parameter):
        raise ParameterSpecError(f"Expected a Parameter, got {type(parameter).__name__}.")
    return parameter


def seq(*children: Parameter | ParameterBuilder) -> Parameter:
    """Parse every child in order, all or nothing."""
    return SequenceBuilder().add(*children).build()


def first_of(*children: Parameter | ParameterBuilder) -> Parameter:
    """Parse the first child that succeeds."""
    return SequenceBuilder().require_all(False).add(*children).build()

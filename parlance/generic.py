# Parlance Command Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Function-style helpers for building common parameters.

Leaf factories take the key and return a ready `Parameter`:

    seq(integer("amount"), optional_weak(remaining_joined_strings("note")))

Wrapping helpers return a copy of an existing parameter with an extra
outermost modifier, so they compose in reading order:

    optional(only_one(choices("mode", {"fast": 1, "slow": 2})), default=1)
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

from parlance.modifiers import (
    AllOf,
    DefaultValue,
    OnlyOne,
    Optional,
    OptionalWeak,
    Repeated,
)
from parlance.parameter import Parameter, ParameterBuilder, first_of, seq
from parlance.values import ValueParameter

_UNSET = object()


def optional(parameter: Parameter, default: Any = _UNSET) -> Parameter:
    """Make `parameter` optional, binding `default` (when given) if it is skipped."""
    wrapped = parameter.wrapped(Optional())
    if default is not _UNSET:
        wrapped = wrapped.wrapped(DefaultValue(default))
    return wrapped


def optional_weak(parameter: Parameter, default: Any = _UNSET) -> Parameter:
    """Like `optional`, but any failure is ignored and rolled back."""
    wrapped = parameter.wrapped(OptionalWeak())
    if default is not _UNSET:
        wrapped = wrapped.wrapped(DefaultValue(default))
    return wrapped


def only_one(parameter: Parameter) -> Parameter:
    return parameter.wrapped(OnlyOne())


def all_of(parameter: Parameter) -> Parameter:
    return parameter.wrapped(AllOf())


def repeated(parameter: Parameter, times: int) -> Parameter:
    return parameter.wrapped(Repeated(times))


def requiring_permission(parameter: Parameter, permission: str) -> Parameter:
    return parameter.with_permission(permission)


def leaf(key: str, parser: ValueParameter) -> Parameter:
    return ParameterBuilder(key).parser(parser).build()


def string(key: str) -> Parameter:
    return ParameterBuilder(key).string().build()


def integer(key: str) -> Parameter:
    return ParameterBuilder(key).integer().build()


def long_number(key: str) -> Parameter:
    return ParameterBuilder(key).long_number().build()


def double_number(key: str) -> Parameter:
    return ParameterBuilder(key).double_number().build()


def boolean(key: str) -> Parameter:
    return ParameterBuilder(key).boolean().build()


def remaining_joined_strings(key: str) -> Parameter:
    return ParameterBuilder(key).remaining_joined_strings().build()


def remaining_raw_joined_strings(key: str) -> Parameter:
    return ParameterBuilder(key).remaining_raw_joined_strings().build()


def duration(key: str) -> Parameter:
    return ParameterBuilder(key).duration().build()


def date_time(key: str) -> Parameter:
    return ParameterBuilder(key).date_time().build()


def literal(key: str, returned_value: Any, *literals: str) -> Parameter:
    return ParameterBuilder(key).literal(returned_value, *literals).build()


def enum_value(key: str, enum_type: type[Enum]) -> Parameter:
    return ParameterBuilder(key).enum_value(enum_type).build()


def choices(key: str, mapping: Mapping[str, Any], show_usage: bool = True) -> Parameter:
    return ParameterBuilder(key).choices(mapping, show_usage).build()


def none() -> Parameter:
    """A parameter that consumes and binds nothing."""
    return ParameterBuilder().none().build()


__all__ = [
    "all_of",
    "boolean",
    "choices",
    "date_time",
    "double_number",
    "duration",
    "enum_value",
    "first_of",
    "integer",
    "leaf",
    "literal",
    "long_number",
    "none",
    "only_one",
    "optional",
    "optional_weak",
    "remaining_joined_strings",
    "remaining_raw_joined_strings",
    "repeated",
    "requiring_permission",
    "seq",
    "string",
]

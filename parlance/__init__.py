"""
Parlance Command Framework

Copyright (c) 2025 rtj.dev LLC.
Licensed under the MIT License. See LICENSE file for details.
"""

import logging

from .command import CommandBuilder, CommandSpec
from .config import ParlanceSettings, load_settings
from .context import ContextState, ParsingContext, Transaction
from .exceptions import (
    AmbiguousResultError,
    ArgumentParseError,
    CommandExecutionError,
    NoMatchingChoiceError,
    NoValueBoundError,
    OutOfTokensError,
    ParameterSpecError,
    ParlanceError,
    PermissionDeniedError,
    TokenizeError,
    TooManyValuesError,
    UnknownFlagError,
)
from .flags import Flags, FlagsBuilder
from .modifiers import (
    AllOf,
    DefaultValue,
    DefaultValueSupplier,
    OnlyOne,
    Optional,
    OptionalWeak,
    Repeated,
)
from .outcome import ParseOutcome
from .parameter import Parameter, ParameterBuilder, SequenceBuilder, first_of, seq
from .patterns import PatternMatchingValueParameter, SelectorValueParameter
from .policies import ChildExceptionBehavior, UnknownFlagBehavior
from .result import CommandResult
from .tokens import InputTokenizer, TokenStream, TokenStreamState
from .values import MultiValue, ValueParameter

logger = logging.getLogger("parlance")


__all__ = [
    "AllOf",
    "AmbiguousResultError",
    "ArgumentParseError",
    "ChildExceptionBehavior",
    "CommandBuilder",
    "CommandExecutionError",
    "CommandResult",
    "CommandSpec",
    "ContextState",
    "DefaultValue",
    "DefaultValueSupplier",
    "Flags",
    "FlagsBuilder",
    "InputTokenizer",
    "MultiValue",
    "NoMatchingChoiceError",
    "NoValueBoundError",
    "OnlyOne",
    "Optional",
    "OptionalWeak",
    "OutOfTokensError",
    "Parameter",
    "ParameterBuilder",
    "ParameterSpecError",
    "ParlanceError",
    "ParlanceSettings",
    "ParseOutcome",
    "ParsingContext",
    "PatternMatchingValueParameter",
    "PermissionDeniedError",
    "Repeated",
    "SelectorValueParameter",
    "SequenceBuilder",
    "TokenStream",
    "TokenStreamState",
    "TokenizeError",
    "TooManyValuesError",
    "Transaction",
    "UnknownFlagBehavior",
    "UnknownFlagError",
    "ValueParameter",
    "first_of",
    "load_settings",
    "seq",
]

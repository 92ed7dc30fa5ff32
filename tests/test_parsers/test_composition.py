from types import SimpleNamespace

import pytest

from parlance.context import ParsingContext
from parlance.exceptions import ArgumentParseError, ParameterSpecError
from parlance.generic import (
    double_number,
    integer,
    optional_weak,
    remaining_joined_strings,
    requiring_permission,
    string,
)
from parlance.parameter import (
    CompositionMode,
    ParameterBuilder,
    SequenceBuilder,
    deepest_error,
    first_of,
    seq,
)
from parlance.tokens import InputTokenizer, TokenStreamState

everyone = SimpleNamespace(has_permission=lambda permission: True)
nobody = SimpleNamespace(has_permission=lambda permission: False)


def run(parameter, raw, source=everyone):
    stream = InputTokenizer.QUOTED_STRINGS.tokenize(raw)
    context = ParsingContext()
    outcome = parameter.parse_outcome(source, stream, context)
    return outcome, stream, context


def test_sequence_parses_in_order():
    grammar = seq(integer("amount"), optional_weak(remaining_joined_strings("note")))
    outcome, stream, context = run(grammar, "5 hello world")
    assert outcome
    assert context.get_all("amount") == [5]
    assert context.get_all("note") == ["hello world"]
    assert not stream.has_next()


def test_sequence_is_atomic():
    grammar = seq(integer("a"), integer("b"), integer("c"))
    outcome, stream, context = run(grammar, "1 x 3")
    assert not outcome
    assert outcome.position == 2
    assert stream.get_state() == TokenStreamState(0)
    assert context.as_dict() == {}


def test_sequence_parse_raises_failure():
    with pytest.raises(ArgumentParseError) as excinfo:
        seq(integer("a"), integer("b")).parse(
            everyone, InputTokenizer.QUOTED_STRINGS.tokenize("1 x"), ParsingContext()
        )
    assert excinfo.value.position == 2


def test_first_of_is_winner_take_all():
    deep = seq(string("a1"), string("a2"), integer("a3"))
    grammar = first_of(deep, string("b"))
    outcome, stream, context = run(grammar, "foo bar baz")
    assert outcome
    assert context.keys() == ["b"]
    assert context.get_all("b") == ["foo"]
    assert stream.get_state() == TokenStreamState(1)


def test_first_of_prefers_first_success():
    grammar = first_of(integer("number"), string("word"))
    _, _, context = run(grammar, "12")
    assert context.as_dict() == {"number": [12]}


def test_first_of_raises_deepest_error():
    grammar = first_of(integer("n"), seq(string("s"), integer("m")))
    outcome, _, _ = run(grammar, "x y")
    assert not outcome
    assert outcome.position == 2


def test_first_of_ties_keep_earliest():
    grammar = first_of(integer("a"), double_number("b"))
    outcome, _, _ = run(grammar, "x")
    assert "integer" in outcome.error.message


def test_deepest_error():
    first = ArgumentParseError("first", "abc", 1)
    second = ArgumentParseError("second", "abc", 1)
    third = ArgumentParseError("third", "abc", 0)
    assert deepest_error([first, second, third]) is first
    assert deepest_error([third, second]) is second


def test_permission_gated_parameter_is_skipped():
    grammar = seq(requiring_permission(integer("secret"), "admin"), string("word"))
    outcome, _, context = run(grammar, "hello", source=nobody)
    assert outcome
    assert context.as_dict() == {"word": ["hello"]}


def test_permission_gated_parameter_parses_for_permitted_sources():
    grammar = seq(requiring_permission(integer("secret"), "admin"), string("word"))
    _, _, context = run(grammar, "5 hello")
    assert context.as_dict() == {"secret": [5], "word": ["hello"]}


def test_permission_without_protocol():
    parameter = ParameterBuilder("n").integer().permission("admin").build()
    assert not parameter.can_use(object())
    assert integer("n").can_use(object())


def test_sequence_builder():
    grammar = (
        SequenceBuilder("pair")
        .add(ParameterBuilder("x").integer(), integer("y"))
        .optional()
        .build()
    )
    assert grammar.mode is CompositionMode.ALL
    assert [child.key for child in grammar.children] == ["x", "y"]
    assert grammar.is_optional


def test_sequence_builder_first_of_mode():
    grammar = SequenceBuilder().require_all(False).add(integer("a"), string("b")).build()
    assert grammar.mode is CompositionMode.FIRST


def test_sequence_requires_children():
    with pytest.raises(ParameterSpecError):
        SequenceBuilder().build()


def test_parameter_builder_requires_parser():
    with pytest.raises(ParameterSpecError, match="amount"):
        ParameterBuilder("amount").build()


def test_parser_must_be_value_parameter():
    with pytest.raises(ParameterSpecError):
        ParameterBuilder("amount").parser(int)


def test_optionality_of_composites():
    assert seq(optional_weak(integer("a")), optional_weak(integer("b"))).is_optional
    assert not seq(optional_weak(integer("a")), integer("b")).is_optional
    assert first_of(integer("a"), optional_weak(integer("b"))).is_optional


def test_repr_mentions_key_and_modifiers():
    text = repr(optional_weak(integer("amount")))
    assert "amount" in text
    assert "OptionalWeak" in text

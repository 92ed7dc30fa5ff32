from types import SimpleNamespace

import pytest
from prompt_toolkit.completion import Completion
from prompt_toolkit.document import Document

from parlance.command import CommandBuilder
from parlance.completer import CommandCompleter
from parlance.flags import FlagsBuilder
from parlance.parameter import ParameterBuilder
from parlance.result import CommandResult


def done(source, context):
    return CommandResult.success()


@pytest.fixture
def command():
    give = (
        CommandBuilder()
        .flags(FlagsBuilder().flag("q", "quiet").build())
        .parameters(ParameterBuilder("item").choices({"apple": 1, "apricot": 2}))
        .executor(done)
    )
    travel = (
        CommandBuilder()
        .parameters(ParameterBuilder("city").choices({"New York": 1, "London": 2}))
        .executor(done)
    )
    return CommandBuilder().add_child(give, "give").add_child(travel, "travel").build()


@pytest.fixture
def completer(command):
    source = SimpleNamespace(has_permission=lambda permission: True)
    return CommandCompleter(command, source, extra_words=("help", "exit"))


def texts(completer, text):
    return [c.text for c in completer.get_completions(Document(text), None)]


def test_get_completions_no_input(completer):
    results = list(completer.get_completions(Document(""), None))
    assert all(isinstance(c, Completion) for c in results)
    assert [c.text for c in results] == ["give", "travel", "help", "exit"]


def test_get_completions_partial_command(completer):
    results = list(completer.get_completions(Document("gi"), None))
    assert [c.text for c in results] == ["give"]
    assert results[0].start_position == -2


def test_extra_words_only_for_first_token(completer):
    assert texts(completer, "he") == ["help"]
    assert "help" not in texts(completer, "give he")


def test_get_completions_no_match(completer):
    assert texts(completer, "zzz") == []
    assert texts(completer, "give zzz") == []


def test_get_completions_parameter_values(completer):
    assert texts(completer, "give a") == ["ap", "apple", "apricot"]
    assert texts(completer, "give ap") == ["apple", "apricot"]


def test_get_completions_after_space(completer):
    results = list(completer.get_completions(Document("give "), None))
    assert [c.text for c in results] == ["ap", "apple", "apricot"]
    assert all(c.start_position == 0 for c in results)


def test_get_completions_partial_flag(completer):
    results = list(completer.get_completions(Document("give --q"), None))
    assert [c.text for c in results] == ["--quiet"]
    assert results[0].start_position == -3


def test_get_completions_flags_are_not_prefixed(completer):
    assert texts(completer, "give -") == ["-q", "--quiet"]


def test_get_completions_quotes_whitespace(completer):
    assert texts(completer, "travel N") == ['"New York"']


def test_get_completions_replaces_open_quote(completer):
    results = list(completer.get_completions(Document('travel "New'), None))
    assert [c.text for c in results] == ['"New York"']
    assert results[0].start_position == -4

import pytest

from parlance.context import ContextState, ParsingContext, Transaction, transaction
from parlance.exceptions import NoValueBoundError, TooManyValuesError
from parlance.tokens import InputTokenizer


def test_bindings_are_ordered_lists():
    context = ParsingContext()
    context.put_entry("name", "a")
    context.put_entry("name", "b")
    assert context.get_all("name") == ["a", "b"]
    assert context.get_one("name") == "a"
    assert context.has_any("name")
    assert "name" in context


def test_keys_are_case_sensitive():
    context = ParsingContext()
    context.put_entry("Name", 1)
    assert not context.has_any("name")
    assert context.get_one("name") is None


def test_get_one_default():
    context = ParsingContext()
    assert context.get_one("missing", 7) == 7
    assert context.get_all("missing") == []


def test_get_one_or_fail():
    context = ParsingContext()
    with pytest.raises(NoValueBoundError):
        context.get_one_or_fail("amount")

    context.put_entry("amount", 5)
    assert context.get_one_or_fail("amount") == 5

    context.put_entry("amount", 6)
    with pytest.raises(TooManyValuesError):
        context.get_one_or_fail("amount")


def test_get_all_returns_a_copy():
    context = ParsingContext()
    context.put_entry("a", 1)
    values = context.get_all("a")
    values.append(2)
    assert context.get_all("a") == [1]


def test_ambient_metadata():
    context = ParsingContext(is_completion=True, target_block=(1, 2, 3))
    assert context.is_completion
    assert context.target_block == (1, 2, 3)


def test_snapshot_idempotence():
    context = ParsingContext(target_block="here")
    context.put_entry("a", 1)
    context.put_entry("b", [1, 2])
    state = context.get_state()
    context.set_state(state)
    assert context.get_state() == state
    assert context.as_dict() == {"a": [1], "b": [[1, 2]]}


def test_restore_discards_later_bindings():
    context = ParsingContext()
    context.put_entry("a", 1)
    state = context.get_state()
    context.put_entry("a", 2)
    context.put_entry("c", 3)
    context.set_state(state)
    assert context.get_all("a") == [1]
    assert not context.has_any("c")
    assert isinstance(state, ContextState)


def test_transaction_rolls_back_without_commit():
    stream = InputTokenizer.QUOTED_STRINGS.tokenize("a b")
    context = ParsingContext()
    with Transaction(stream, context):
        stream.next()
        context.put_entry("x", 1)
    assert stream.peek() == "a"
    assert not context.has_any("x")


def test_transaction_keeps_committed_changes():
    stream = InputTokenizer.QUOTED_STRINGS.tokenize("a b")
    context = ParsingContext()
    with transaction(stream, context) as tx:
        stream.next()
        context.put_entry("x", 1)
        tx.commit()
    assert stream.peek() == "b"
    assert context.get_all("x") == [1]


def test_transaction_rolls_back_on_exception():
    stream = InputTokenizer.QUOTED_STRINGS.tokenize("a b")
    context = ParsingContext()
    with pytest.raises(RuntimeError):
        with Transaction(stream, context):
            stream.next()
            context.put_entry("x", 1)
            raise RuntimeError("boom")
    assert stream.peek() == "a"
    assert not context.has_any("x")

import pytest

from parlance.exceptions import ArgumentParseError, OutOfTokensError, TokenizeError
from parlance.tokens import InputTokenizer, Token, TokenStream, TokenStreamState


def tokenize(raw: str) -> TokenStream:
    return InputTokenizer.QUOTED_STRINGS.tokenize(raw)


def test_next_peek_and_positions():
    stream = tokenize('say "hello world" -q')
    assert stream.get_all() == ["say", "hello world", "-q"]
    assert stream.get_raw_position() == 0
    assert stream.next() == "say"
    assert stream.get_raw_position() == 4
    assert stream.peek() == "hello world"
    assert stream.peek() == "hello world"
    assert stream.next() == "hello world"
    assert stream.next() == "-q"
    assert not stream.has_next()
    assert stream.get_raw_position() == len(stream.get_raw())


def test_next_at_end_raises_out_of_tokens():
    stream = tokenize("a")
    stream.next()
    with pytest.raises(OutOfTokensError) as excinfo:
        stream.next()
    assert excinfo.value.position == 1
    with pytest.raises(OutOfTokensError):
        stream.peek()


def test_previous_at_start_raises_out_of_tokens():
    stream = tokenize("a b")
    assert not stream.has_previous()
    with pytest.raises(OutOfTokensError):
        stream.previous()


def test_next_if_present():
    stream = tokenize("a")
    assert stream.next_if_present() == "a"
    assert stream.next_if_present() is None


@pytest.mark.parametrize("steps", [0, 1, 2, 3, 4])
def test_round_trip_cursor(steps):
    stream = tokenize("one two 'three four' five")
    initial = stream.get_state()
    forward = [stream.next() for _ in range(steps)]
    backward = [stream.previous() for _ in range(steps)]
    assert backward == list(reversed(forward))
    assert stream.get_state() == initial


def test_state_round_trip_is_noop():
    stream = tokenize("a b c")
    stream.next()
    state = stream.get_state()
    stream.set_state(state)
    assert stream.get_state() == state
    assert stream.peek() == "b"

    stream.next()
    stream.next()
    stream.set_state(state)
    assert stream.peek() == "b"
    assert state == TokenStreamState(1)


def test_set_state_rejects_foreign_values():
    stream = tokenize("a b")
    with pytest.raises(TypeError):
        stream.set_state(1)
    with pytest.raises(ValueError):
        stream.set_state(TokenStreamState(5))


def test_create_error_uses_current_position():
    stream = tokenize("a b")
    stream.next()
    error = stream.create_error("Bad value.")
    assert isinstance(error, ArgumentParseError)
    assert error.position == 2
    assert error.raw == "a b"
    assert error.caret_message() == "Bad value.\na b\n  ^"


def test_create_error_with_explicit_position_and_type():
    stream = tokenize("a b")
    error = stream.create_error("Out.", position=0, error_type=OutOfTokensError)
    assert isinstance(error, OutOfTokensError)
    assert error.position == 0


def test_unterminated_quote_is_raised_lazily():
    stream = tokenize('a b "c d')
    assert stream.next() == "a"
    assert stream.next() == "b"
    assert stream.has_next()
    with pytest.raises(TokenizeError) as excinfo:
        stream.peek()
    assert excinfo.value.position == 4
    with pytest.raises(TokenizeError):
        stream.next()


def test_remaining_counts_unread_tokens():
    stream = tokenize("a b c")
    assert stream.remaining() == 3
    stream.next()
    assert stream.remaining() == 2
    assert [token.text for token in stream.remaining_tokens()] == ["b", "c"]


def test_from_tokens_keeps_raw_offsets():
    raw = "x -q y"
    stream = TokenStream.from_tokens(raw, [Token("x", 0, 1), Token("y", 5, 6)])
    assert stream.get_raw() == raw
    stream.next()
    assert stream.get_raw_position() == 5
    assert stream.next() == "y"

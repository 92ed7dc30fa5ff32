import pytest

from parlance.tokens import InputTokenizer


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("", []),
        ("   ", []),
        ("a  b\tc", ["a", "b", "c"]),
        ('"hello world" x', ["hello world", "x"]),
        ("'single quoted' x", ["single quoted", "x"]),
        ('name="a b"', ["name=a b"]),
        (r'"say \"hi\""', ['say "hi"']),
        (r"a\ b", ["a b"]),
        ('""', [""]),
    ],
)
def test_quoted_strings(raw, expected):
    assert InputTokenizer.QUOTED_STRINGS.tokenize(raw).get_all() == expected


def test_space_split_treats_quotes_literally():
    stream = InputTokenizer.SPACE_SPLIT.tokenize('"a b" c')
    assert stream.get_all() == ['"a', 'b"', "c"]


def test_raw_input_is_a_single_token():
    assert InputTokenizer.RAW_INPUT.tokenize("  a b ").get_all() == ["  a b "]
    assert InputTokenizer.RAW_INPUT.tokenize("").get_all() == []
    assert InputTokenizer.RAW_INPUT.tokenize_for_completion("a b ").get_all() == ["a b "]


def test_token_offsets():
    tokens, error = InputTokenizer.QUOTED_STRINGS.split('ab "c d" e')
    assert error is None
    assert [(token.start, token.end) for token in tokens] == [(0, 2), (3, 8), (9, 10)]


@pytest.mark.parametrize(
    "value, expected",
    [
        ("quoted", InputTokenizer.QUOTED_STRINGS),
        ("quoted_strings", InputTokenizer.QUOTED_STRINGS),
        ("SPACE", InputTokenizer.SPACE_SPLIT),
        ("raw-input", InputTokenizer.RAW_INPUT),
    ],
)
def test_tokenizer_aliases(value, expected):
    assert InputTokenizer(value) is expected


def test_tokenizer_invalid_value():
    with pytest.raises(ValueError, match="Must be one of"):
        InputTokenizer("bogus")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("", [""]),
        ("give", ["give"]),
        ("give ", ["give", ""]),
        ('say "hello wor', ["say", "hello wor"]),
        ('say "hello ', ["say", "hello "]),
        ('say "hello" ', ["say", "hello", ""]),
        ("say hello\\ ", ["say", "hello "]),
    ],
)
def test_tokenize_for_completion(raw, expected):
    assert InputTokenizer.QUOTED_STRINGS.tokenize_for_completion(raw).get_all() == expected

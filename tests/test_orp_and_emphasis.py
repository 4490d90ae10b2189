import pytest

from breeze_reader.emphasis import emphasize, emphasize_text
from breeze_reader.errors import InvalidArgument
from breeze_reader.orp import orp_index, split_orp


@pytest.mark.parametrize(
    ("length", "expected"),
    [(0, 0), (1, 0), (2, 1), (5, 1), (6, 2), (9, 2), (10, 3), (13, 3), (14, 4), (40, 4)],
)
def test_orp_index_buckets(length: int, expected: int):
    assert orp_index(length) == expected


def test_split_orp_thirds():
    split = split_orp("reading")

    assert (split.left, split.center, split.right) == ("re", "a", "ding")
    assert split.left + split.center + split.right == "reading"


def test_split_orp_empty_and_single_char():
    empty = split_orp("")
    assert (empty.left, empty.center, empty.right, empty.orp) == ("", "", "", 0)

    single = split_orp("I")
    assert (single.left, single.center, single.right) == ("", "I", "")


def test_emphasize_bolds_leading_share():
    split = emphasize("testing", 0.5)

    assert split.bold == "test"
    assert split.light == "ing"
    assert split.emphasized


def test_emphasize_keeps_punctuation_outside_core():
    split = emphasize('"Hello,', 0.5)

    assert split.prefix == '"'
    assert split.bold == "Hel"
    assert split.light == "lo"
    assert split.suffix == ","
    assert split.text == '"Hello,'


def test_emphasize_always_bolds_at_least_one_character():
    split = emphasize("word", 0.0)

    assert split.bold == "w"
    assert split.light == "ord"


def test_emphasize_punctuation_only_token_is_untouched():
    split = emphasize("...", 0.5)

    assert not split.emphasized
    assert split.text == "..."
    assert split.bold == ""


def test_emphasize_rejects_ratio_outside_unit_interval():
    with pytest.raises(InvalidArgument):
        emphasize("word", 1.5)


def test_emphasize_text_preserves_whitespace():
    parts = emphasize_text("Fast  reading!", 0.5)

    assert "".join(part.text for part in parts) == "Fast  reading!"
    assert [part.emphasized for part in parts] == [True, False, True]
    assert parts[2].bold == "read"
    assert parts[2].suffix == "!"

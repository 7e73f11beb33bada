import pytest

from posttags.tokens.parser import parse_mentions, parse_tags, parse_tokens


def test_case_and_duplicates_collapse() -> None:
    assert parse_tags("#Hello #hello #HELLO") == ["hello"]


def test_first_occurrence_order_is_kept() -> None:
    assert parse_tags("#a #b #a #c") == ["a", "b", "c"]


def test_no_matches_returns_empty_list() -> None:
    assert parse_tags("My first tweet!") == []
    assert parse_tags("") == []
    assert parse_tags(None) == []


def test_trailing_punctuation_is_kept() -> None:
    assert parse_tags("Another tweet with a tag! #hello-world,") == ["hello-world,"]


def test_mixed_case_is_lowered() -> None:
    text = "Is anyone else hungry? #imHUNGRY #gimmefood @TOM @jane"
    assert parse_tags(text) == ["imhungry", "gimmefood"]
    assert parse_mentions(text) == ["tom", "jane"]


def test_token_stops_at_whitespace() -> None:
    assert parse_mentions("@bob\tI am!\n@doug") == ["bob", "doug"]


def test_prefix_inside_word_still_matches() -> None:
    assert parse_mentions("mail me at me@example.com") == ["example.com"]


def test_doubled_prefix_is_part_of_token() -> None:
    assert parse_tags("##meta") == ["#meta"]


def test_lone_prefix_is_ignored() -> None:
    assert parse_tags("# not a tag #") == []


def test_prefix_is_escaped() -> None:
    assert parse_tokens("$usd and +plus", "$") == ["usd"]
    assert parse_tokens("a+b +plus", "+") == ["b", "plus"]


@pytest.mark.parametrize("prefix", ["", "##", " "])
def test_invalid_prefix_raises(prefix: str) -> None:
    with pytest.raises(ValueError):
        parse_tokens("#a", prefix)


def test_repeatable() -> None:
    text = "@bob I am! #imhungry #metoo #gimmefood #now"
    assert parse_tags(text) == parse_tags(text) == ["imhungry", "metoo", "gimmefood", "now"]

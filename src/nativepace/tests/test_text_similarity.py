"""Tests for text similarity."""
import pytest

from nativepace.services.text_similarity import (
    calculate_similarity,
    combined_similarity,
    contains_all_tokens,
    count_matching_tokens,
    find_best_match,
    is_answer_acceptable,
    levenshtein_distance,
    normalize_text,
    round_half_up,
    token_similarity,
    tokenize,
)


def test_normalize_text() -> None:
    """Test lowercasing, punctuation stripping and whitespace collapsing."""
    assert normalize_text("  Want To  GO! ") == "want to go"
    assert normalize_text("I'm (really) [sure]; {yes}-no: \"ok\"?") == "im really sure yesno ok"
    assert normalize_text("...") == ""


@pytest.mark.parametrize(
    "a, b, expected",
    [
        ("", "", 0),
        ("", "abc", 3),
        ("abc", "", 3),
        ("kitten", "sitting", 3),
        ("flaw", "lawn", 2),
        ("same", "same", 0),
    ],
)
def test_levenshtein_distance(a: str, b: str, expected: int) -> None:
    """Test edit distance on known pairs."""
    assert levenshtein_distance(a, b) == expected


def test_levenshtein_distance_is_symmetric() -> None:
    """Test that swapping arguments does not change the distance."""
    assert levenshtein_distance("wanna go", "want to go") == levenshtein_distance("want to go", "wanna go")


def test_similarity_identical_after_normalization() -> None:
    """Test that case and punctuation differences are ignored."""
    assert calculate_similarity("Hello, World!", "hello world") == 100
    assert calculate_similarity("", "") == 100


def test_similarity_with_one_empty_side() -> None:
    """Test that an empty side against a non-empty one scores 0."""
    assert calculate_similarity("", "hello") == 0
    assert calculate_similarity("hello", "!!!") == 0


def test_similarity_single_typo() -> None:
    """Test one substitution in an 11-character phrase."""
    # (11 - 1) / 11 = 90.9 -> 91
    assert calculate_similarity("gonna go na", "gonna go no") == 91


def test_similarity_rounds_half_up() -> None:
    """Test that x.5 similarities round up."""
    # distance 1 over 8 characters: 87.5
    assert calculate_similarity("abcdefgh", "abcdefgx") == 88


def test_similarity_bounds() -> None:
    """Test that similarity stays within 0-100."""
    assert calculate_similarity("abc", "xyz") == 0
    assert 0 <= calculate_similarity("what do you want", "whaddaya want") <= 100


def test_answer_acceptable_exact_and_alternates() -> None:
    """Test exact matches and alternates."""
    assert is_answer_acceptable("I want to go.", "i want to go")
    assert is_answer_acceptable("I wanna go", "I want to go", alternates=["I wanna go"])
    assert not is_answer_acceptable("I wanna go", "I want to go")


def test_answer_acceptable_threshold() -> None:
    """Test the similarity threshold."""
    assert is_answer_acceptable("gonna go na", "gonna go no")  # 91
    assert not is_answer_acceptable("gonna go na", "gonna go no", threshold=95)
    assert is_answer_acceptable("abc", "xyz", threshold=0)


@pytest.mark.parametrize("threshold", [0, 50, 85, 100, 101])
def test_empty_answer_to_empty_target_is_acceptable(threshold: int) -> None:
    """Test that an empty answer matches an empty target at any threshold."""
    assert is_answer_acceptable("", "", [], threshold)
    assert is_answer_acceptable("  ...  ", "", [], threshold)


def test_round_half_up() -> None:
    """Test that halves round up."""
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(2.4999) == 2


def test_find_best_match() -> None:
    """Test picking the closest candidate."""
    best = find_best_match("wanna", ["gonna", "wanna", "gotta"])
    assert best is not None
    assert best.match == "wanna"
    assert best.score == 100
    assert best.index == 1


def test_find_best_match_without_candidates() -> None:
    """Test that no candidates or only zero scores give None."""
    assert find_best_match("wanna", []) is None
    assert find_best_match("abc", ["xyz"]) is None


def test_tokens() -> None:
    """Test token helpers."""
    assert tokenize("Want to, go!") == ["want", "to", "go"]
    assert tokenize("  ") == []
    assert count_matching_tokens("I want to go", "you want to stay") == 2
    assert contains_all_tokens("I want to go", ["Want", "go"])
    assert not contains_all_tokens("I want to go", ["stay"])


def test_token_similarity() -> None:
    """Test token overlap over the union of distinct tokens."""
    # matches: want, to; union: i, want, to, go, you, stay
    assert token_similarity("I want to go", "you want to stay") == 33
    assert token_similarity("", "want") == 0


def test_combined_similarity() -> None:
    """Test the weighted blend of character and token similarity."""
    assert combined_similarity("want to go", "want to go") == 100
    assert combined_similarity("abc", "xyz") == 0

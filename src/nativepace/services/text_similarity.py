"""Text comparison and fuzzy matching for typed answers."""
import math
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

# Minimum similarity (percent) for a typed answer to count as correct
DEFAULT_SIMILARITY_THRESHOLD = 85

_PUNCTUATION_RE = re.compile(r"""[.,!?;:'"()\-\[\]{}]""")
_WHITESPACE_RE = re.compile(r"\s+")


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def normalize_text(text: str) -> str:
    """Lowercase, strip punctuation, collapse whitespace and trim."""
    text = _PUNCTUATION_RE.sub("", text.lower())
    return _WHITESPACE_RE.sub(" ", text).strip()


def levenshtein_distance(a: str, b: str) -> int:
    """Minimum number of single-character insertions, deletions and substitutions."""
    if not a:
        return len(b)
    if not b:
        return len(a)

    matrix = [[0] * (len(a) + 1) for _ in range(len(b) + 1)]
    for i in range(len(b) + 1):
        matrix[i][0] = i
    for j in range(len(a) + 1):
        matrix[0][j] = j

    for i in range(1, len(b) + 1):
        for j in range(1, len(a) + 1):
            if b[i - 1] == a[j - 1]:
                matrix[i][j] = matrix[i - 1][j - 1]
            else:
                matrix[i][j] = min(
                    matrix[i - 1][j - 1] + 1,  # substitution
                    matrix[i][j - 1] + 1,  # insertion
                    matrix[i - 1][j] + 1,  # deletion
                )

    return matrix[len(b)][len(a)]


def calculate_similarity(user_input: str, correct: str) -> int:
    """Similarity of two strings after normalization, 0-100."""
    normalized_input = normalize_text(user_input)
    normalized_correct = normalize_text(correct)

    if normalized_input == normalized_correct:
        return 100

    if not normalized_input or not normalized_correct:
        return 0

    distance = levenshtein_distance(normalized_input, normalized_correct)
    max_length = max(len(normalized_input), len(normalized_correct))
    similarity = (max_length - distance) / max_length * 100
    return round_half_up(max(0.0, similarity))


def is_answer_acceptable(
    user_input: str,
    correct: str,
    alternates: Iterable[str] = (),
    threshold: int = DEFAULT_SIMILARITY_THRESHOLD,
) -> bool:
    """Check a typed answer.

    Accepted when it matches ``correct`` or any of ``alternates`` exactly after
    normalization, or when its similarity to ``correct`` reaches ``threshold``.
    """
    normalized_input = normalize_text(user_input)

    if normalized_input == normalize_text(correct):
        return True

    for alternate in alternates:
        if normalized_input == normalize_text(alternate):
            return True

    return calculate_similarity(user_input, correct) >= threshold


@dataclass(frozen=True)
class BestMatch:
    """Best scoring candidate for an input."""
    match: str
    score: int
    index: int


def find_best_match(user_input: str, candidates: Sequence[str]) -> Optional[BestMatch]:
    """Find the most similar candidate; None if there are none or all score 0."""
    best: Optional[BestMatch] = None
    for index, candidate in enumerate(candidates):
        score = calculate_similarity(user_input, candidate)
        if best is None or score > best.score:
            best = BestMatch(match=candidate, score=score, index=index)

    if best is not None and best.score == 0:
        return None
    return best


def tokenize(text: str) -> List[str]:
    """Split normalized text into words."""
    normalized = normalize_text(text)
    if not normalized:
        return []
    return normalized.split(" ")


def count_matching_tokens(user_input: str, target: str) -> int:
    """Count input tokens that also appear in the target."""
    target_tokens = set(tokenize(target))
    return sum(1 for token in tokenize(user_input) if token in target_tokens)


def token_similarity(user_input: str, target: str) -> int:
    """Share of matching tokens over the union of distinct tokens, 0-100."""
    input_tokens = tokenize(user_input)
    target_tokens = tokenize(target)
    if not input_tokens or not target_tokens:
        return 0

    total_unique = len(set(input_tokens) | set(target_tokens))
    return round_half_up(count_matching_tokens(user_input, target) / total_unique * 100)


def contains_all_tokens(user_input: str, required_tokens: Iterable[str]) -> bool:
    """Check that every required token occurs in the input."""
    input_tokens = set(tokenize(user_input))
    return all(normalize_text(token) in input_tokens for token in required_tokens)


def combined_similarity(user_input: str, target: str) -> int:
    """Weighted blend: 70% character similarity, 30% token similarity."""
    char_similarity = calculate_similarity(user_input, target)
    word_similarity = token_similarity(user_input, target)
    return round_half_up(char_similarity * 0.7 + word_similarity * 0.3)

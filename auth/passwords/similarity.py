"""
String similarity for the personal-information check.

The score is the higher of two measures, both scaled to 0-100:

- Sørensen-Dice coefficient over character bigrams (multiset). Tolerant
  of reordered chunks: "captainjoe" vs "joecaptain" share 8 of 9
  bigrams and score 89.
- Optimal string alignment (restricted Damerau-Levenshtein) distance,
  normalized by the longer length. An adjacent swap costs one edit, so
  "jsmtih" vs "jsmith" scores 83 where bigrams alone give 40.

Both are symmetric and deterministic, so the maximum is too.

Strings shorter than two characters score 100 when equal and 0
otherwise.
"""

import re
from collections import Counter

_SEPARATORS = re.compile(r"[\W_]+", re.UNICODE)


def normalize(value: str) -> str:
    """Lowercase and drop whitespace, punctuation and separators."""
    return _SEPARATORS.sub("", value.casefold())


def _bigrams(value: str) -> Counter:
    return Counter(value[i:i + 2] for i in range(len(value) - 1))


def dice(a: str, b: str) -> float:
    left = _bigrams(a)
    right = _bigrams(b)
    total = sum(left.values()) + sum(right.values())
    if not total:
        return 0.0
    return 200.0 * sum((left & right).values()) / total


def osa_distance(a: str, b: str) -> int:
    """Edits (insert, delete, substitute, swap adjacent) to turn a into b."""
    # Three rolling rows: the swap looks two rows back
    two_back: list[int] = []
    previous = list(range(len(b) + 1))
    for i in range(1, len(a) + 1):
        current = [i] + [0] * len(b)
        for j in range(1, len(b) + 1):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            current[j] = min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + cost,
            )
            if i > 1 and j > 1 and a[i - 1] == b[j - 2] and a[i - 2] == b[j - 1]:
                current[j] = min(current[j], two_back[j - 2] + 1)
        two_back, previous = previous, current
    return previous[len(b)]


def similarity(a: str, b: str) -> float:
    """Similarity score in [0, 100]; higher means more alike."""
    if a == b:
        return 100.0
    if len(a) < 2 or len(b) < 2:
        return 0.0

    edits = 100.0 * (1 - osa_distance(a, b) / max(len(a), len(b)))
    return max(dice(a, b), edits)

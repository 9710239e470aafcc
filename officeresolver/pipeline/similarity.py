"""
Similarity functions for entity resolution.

Every similarity is pure and total: it returns a score in [0, 1] and treats
a missing or empty value on either side as "no evidence" (score 0).
"""

import re
from typing import Dict, Iterable, List, Sequence, Tuple

import Levenshtein

from officeresolver.utils.string_utils import extract_number, fold, split_words


def exact_equals(a, b) -> float:
    """Case-folded, trimmed equality."""
    a, b = fold(a), fold(b)
    if not a or not b:
        return 0.0
    return 1.0 if a == b else 0.0


def containment(a, b) -> float:
    """1.0 when equal, 0.8 when one string contains the other, else 0."""
    a, b = fold(a), fold(b)
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    if a in b or b in a:
        return 0.8
    return 0.0


def edit_similarity(a, b) -> float:
    """Levenshtein distance normalized by the longer string's length."""
    a, b = fold(a), fold(b)
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0

    distance = Levenshtein.distance(a, b)
    max_len = max(len(a), len(b))
    return max(0.0, 1.0 - (distance / max_len))


def categorical_similarity(a, b, groups: Dict[str, Sequence[str]]) -> float:
    """
    Compare two category labels.

    Labels that both mention a keyword from the same synonym group score 0.8
    ("apartment block" vs "housing"); otherwise fall back to edit similarity.
    """
    a, b = fold(a), fold(b)
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0

    for keywords in groups.values():
        if any(k in a for k in keywords) and any(k in b for k in keywords):
            return 0.8

    return edit_similarity(a, b)


def numeric_relative_similarity(a, b) -> float:
    """
    Compare the magnitudes embedded in two strings ("20000 m2" vs "20500 m2").

    Falls back to edit similarity when either side has no usable number.
    """
    a, b = fold(a), fold(b)
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0

    n1, n2 = extract_number(a), extract_number(b)
    if not n1 or not n2:
        return edit_similarity(a, b)

    return max(0.0, 1.0 - abs(n1 - n2) / max(n1, n2))


def relative_difference(a, b) -> float:
    """
    Difference of two embedded magnitudes relative to the smaller one.

    "40000 m2" vs "20500 m2" gives 0.95. Returns 0 when either side has no
    usable number.
    """
    n1, n2 = extract_number(a), extract_number(b)
    if not n1 or not n2:
        return 0.0
    return abs(n1 - n2) / min(n1, n2)


def word_overlap_ratio(a, b, stopwords: Iterable[str] = ()) -> float:
    """Shared words over the longer word list, ignoring stopwords."""
    stopwords = set(stopwords)
    words_a = split_words(a, stopwords)
    words_b = split_words(b, stopwords)
    if not words_a or not words_b:
        return 0.0

    common = sum(1 for word in words_a if word in words_b)
    return min(1.0, common / max(len(words_a), len(words_b)))


def jaccard_similarity(a, b, stopwords: Iterable[str] = (), min_length: int = 3) -> float:
    """Jaccard overlap of the word sets of two texts."""
    stopwords = set(stopwords)
    words_a = set(split_words(a, stopwords, min_length))
    words_b = set(split_words(b, stopwords, min_length))
    if not words_a or not words_b:
        return 0.0

    return len(words_a & words_b) / len(words_a | words_b)


def normalize_abbreviations(text, abbreviations: Sequence[Tuple[str, str]]) -> str:
    """Rewrite long forms to their short spelling ("centre"/"center", "street"/"st")."""
    text = fold(text)
    for long_form, short_form in abbreviations:
        text = re.sub(rf"\b{re.escape(long_form)}\b", short_form, text)
    return text


def name_similarity(a, b, abbreviations: Sequence[Tuple[str, str]] = ()) -> float:
    """
    Compare project names.

    Names that only differ by a known spelling variant score 0.95; otherwise
    the normalized names are compared by edit similarity.
    """
    a, b = fold(a), fold(b)
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0

    adjusted_a = normalize_abbreviations(a, abbreviations)
    adjusted_b = normalize_abbreviations(b, abbreviations)
    if adjusted_a == adjusted_b:
        return 0.95

    return edit_similarity(adjusted_a, adjusted_b)


def location_similarity(a, b) -> float:
    """
    Compare locations given at different granularity.

    Containment scores 0.8 ("Riga" in "Riga, Latvia"); a shared leading
    component before the first comma scores 0.7.
    """
    score = containment(a, b)
    if score:
        return score

    a, b = fold(a), fold(b)
    if not a or not b:
        return 0.0

    if a.split(",")[0].strip() == b.split(",")[0].strip():
        return 0.7

    return edit_similarity(a, b)


def status_similarity(a, b, groups: Dict[str, Sequence[str]]) -> float:
    """Statuses in the same lifecycle group score 0.8, unrelated ones 0.5."""
    a, b = fold(a), fold(b)
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0

    for statuses in groups.values():
        if a in statuses and b in statuses:
            return 0.8

    return 0.5


def key_terms(name, generic_terms: Iterable[str]) -> List[str]:
    """Distinctive words of a name: longer than three letters, not generic."""
    generic_terms = set(generic_terms)
    return [word for word in fold(name).split() if len(word) > 3 and word not in generic_terms]


def are_names_related(a, b, generic_terms: Iterable[str]) -> bool:
    """True when two names share at least one distinctive term."""
    generic_terms = list(generic_terms)
    terms_a = key_terms(a, generic_terms)
    terms_b = key_terms(b, generic_terms)
    if not terms_a or not terms_b:
        return False
    return any(term in terms_b for term in terms_a)

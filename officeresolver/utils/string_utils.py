"""
String utility functions shared by the matchers and mergers.
"""

import re

_NUMBER_RE = re.compile(r"(\d+(?:\.\d+)?)")


def fold(value):
    """
    Case-fold and trim a value for comparison.

    Args:
        value: Any scalar; None becomes an empty string

    Returns:
        str: The lowercased, trimmed text
    """
    if value is None:
        return ""

    if not isinstance(value, str):
        value = str(value)

    return value.lower().strip()


def extract_number(text):
    """
    Extract the first decimal number embedded in a string.

    Args:
        text (str): Free text such as "20 500 m2" or "approx. 3.5 ha"

    Returns:
        float or None: The first number found, or None when there is none
    """
    match = _NUMBER_RE.search(fold(text))
    if not match:
        return None
    return float(match.group(1))


def split_words(text, stopwords=(), min_length=1):
    """
    Split folded text on whitespace, dropping stopwords and short words.

    Args:
        text (str): The text to split
        stopwords: Words to drop
        min_length (int): Minimum word length to keep

    Returns:
        list: The remaining words, in order
    """
    return [
        word
        for word in fold(text).split()
        if word not in stopwords and len(word) >= min_length
    ]


def dedupe_case_insensitive(values):
    """
    De-duplicate strings case-insensitively, keeping the first-seen casing.

    Non-string items are kept as they are. Empty strings are dropped.

    Args:
        values: Iterable of values

    Returns:
        list: The de-duplicated values in first-seen order
    """
    seen = set()
    result = []

    for value in values or []:
        if not isinstance(value, str):
            result.append(value)
            continue

        key = fold(value)
        if not key or key in seen:
            continue

        seen.add(key)
        result.append(value.strip())

    return result


__all__ = [
    "fold",
    "extract_number",
    "split_words",
    "dedupe_case_insensitive",
]

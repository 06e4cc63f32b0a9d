from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from typing import Any

from rapidfuzz.distance import Levenshtein

"""Name normalization, header aliasing and edit distance.

Two names are "the same student" when their normalized forms are equal;
everything that compares names goes through ``normalize_name``.
"""

__all__ = [
    "normalize_name",
    "find_header",
    "name_distance",
]

_PUNCTUATION = re.compile(r"[.,/#!$%^&*;:{}=\-_`~()]")
_WHITESPACE = re.compile(r"\s+")


def normalize_name(value: Any) -> str:
    """Lower-case, strip punctuation and collapse whitespace.

    >>> normalize_name("  Budi,  Santoso. ")
    'budi santoso'

    Non-string input normalizes to "".
    """
    if not isinstance(value, str):
        return ""
    text = _PUNCTUATION.sub("", value.strip().lower())
    return _WHITESPACE.sub(" ", text).strip()


def find_header(headers: Sequence[str], aliases: Iterable[str]) -> str | None:
    """First header whose trimmed lower-cased text equals one of ``aliases``.

    Headers are scanned in order, so with ["Name", "Nama"] and aliases
    ("nama", "name") the result is "Name".
    """
    wanted = {a.strip().lower() for a in aliases}
    for header in headers:
        if isinstance(header, str) and header.strip().lower() in wanted:
            return header
    return None


def name_distance(a: Any, b: Any) -> int:
    """Levenshtein distance between the normalized forms of two names."""
    return Levenshtein.distance(normalize_name(a), normalize_name(b))

"""
identity/normalizer.py

Name normalization helpers shared by the resolver and its roster index.
"""

from __future__ import annotations

import re

_NON_LETTERS = re.compile(r"[^a-z\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_name(name: str) -> str:
    """
    Lowercase, drop everything except letters and whitespace, collapse spaces.

    >>> normalize_name("  O'Brien,   Sean ")
    'obrien sean'
    """

    lowered = (name or "").lower()
    letters_only = _NON_LETTERS.sub("", lowered)
    return _WHITESPACE.sub(" ", letters_only).strip()


def reverse_last_first(name: str) -> str:
    """
    Rewrite ``"Last, First"`` as ``"First Last"``; other shapes pass through.
    """

    if "," not in (name or ""):
        return name or ""
    parts = [part.strip() for part in name.split(",")]
    return f"{parts[1]} {parts[0]}"


def split_first_last(normalized: str) -> tuple[str, str]:
    """
    Return (first token, last token) of an already-normalized name.
    """

    tokens = normalized.split()
    if not tokens:
        return "", ""
    return tokens[0], tokens[-1]

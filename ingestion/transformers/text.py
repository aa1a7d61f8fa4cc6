"""
Text cleanup helpers shared by the normalizer.
"""

import re
from typing import Optional

# Hyphen, non-breaking hyphen, figure dash, en dash, em dash, horizontal bar, minus
_DASHES_RE = re.compile("[‐‑‒–—―−]")
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_DISALLOWED_RE = re.compile(r"[^\w\s\-.,()]")
_WHITESPACE_RE = re.compile(r"\s+")


def collapse_whitespace(value: Optional[str]) -> Optional[str]:
    """Collapse whitespace runs and trim; empty result is None"""
    if value is None:
        return None
    value = _WHITESPACE_RE.sub(" ", _CONTROL_RE.sub("", str(value))).strip()
    return value or None


def clean_text(value: Optional[str]) -> Optional[str]:
    """
    Clean a free-text field.

    Unicode dashes become "-", control characters and anything outside word
    characters, whitespace and ".,()-" are removed, whitespace collapses.

    >>> clean_text("  Bill C‑21 — Act™  ")
    'Bill C-21 - Act'
    """
    if value is None:
        return None
    value = _DASHES_RE.sub("-", str(value))
    value = _CONTROL_RE.sub("", value)
    value = _DISALLOWED_RE.sub("", value)
    return collapse_whitespace(value)


def clean_contact(value: Optional[str]) -> Optional[str]:
    """Emails, URLs and phone numbers keep their punctuation"""
    return collapse_whitespace(value)

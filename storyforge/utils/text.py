# SPDX-License-Identifier: Apache-2.0
"""
Plain-text helpers shared by the document model and the progress tracker.
"""
from __future__ import annotations

import re

_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")


def strip_html(html: str) -> str:
    """Drop every tag; entities and whitespace are left untouched."""
    return _TAG_RE.sub("", html or "")


def count_words(text: str) -> int:
    return len([w for w in _WS_RE.split((text or "").strip()) if w])


def is_meaningful_change(new_html: str, old_html: str) -> bool:
    """
    True when an edit adds/removes at least 5 words or 25 characters
    (used to decide whether an edit counts as a writing session).
    """
    new_text = strip_html(new_html).strip()
    old_text = strip_html(old_html).strip()
    word_diff = abs(count_words(new_text) - count_words(old_text))
    char_diff = abs(len(new_text) - len(old_text))
    return word_diff >= 5 or char_diff >= 25

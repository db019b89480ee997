# SPDX-License-Identifier: Apache-2.0
"""
HTML -> plain text / RTF transforms for scene content.

Both are ordered rule tables applied top to bottom. They are
lossy: known tags map to target-format markers, anything left over is
stripped, and malformed input (e.g. an unterminated tag) degrades to
best-effort text instead of raising (pass `strict=True` to get
MalformedContent instead). Closing rules mirror opening rules so
inline markers always pair up.
"""
from __future__ import annotations

import re
from typing import Callable, List, Optional, Pattern, Tuple

from ...errors import MalformedContent

Rule = Tuple[Pattern[str], str]


def _rules(pairs: List[Tuple[str, str]]) -> List[Rule]:
    return [(re.compile(p, re.IGNORECASE), repl) for p, repl in pairs]


def _open(tag: str) -> str:
    # word-bounded so <b> never matches <br>, <body> or <blockquote>
    return rf"<{tag}\b[^>]*>"


def _close(tag: str) -> str:
    return rf"</{tag}\s*>"


_TEXT_RULES = _rules(
    [
        (_open("p"), ""),
        (_close("p"), "\n\n"),
        (_open("br"), "\n"),
        (_open("h1"), "\n\n=== "),
        (_close("h1"), " ===\n\n"),
        (_open("h2"), "\n\n--- "),
        (_close("h2"), " ---\n\n"),
        (_open("h3"), "\n\n• "),
        (_close("h3"), "\n\n"),
        (_open("strong"), "**"),
        (_close("strong"), "**"),
        (_open("b"), "**"),
        (_close("b"), "**"),
        (_open("em"), "*"),
        (_close("em"), "*"),
        (_open("i"), "*"),
        (_close("i"), "*"),
        (_open("u"), "_"),
        (_close("u"), "_"),
        (_open("ul"), "\n"),
        (_close("ul"), "\n"),
        (_open("ol"), "\n"),
        (_close("ol"), "\n"),
        (_open("li"), "\n• "),
        (_close("li"), ""),
        (_open("blockquote"), "\n> "),
        (_close("blockquote"), "\n"),
        (_open("div"), ""),
        (_close("div"), "\n"),
        (_open("span"), ""),
        (_close("span"), ""),
    ]
)

_PARA = r"\pard\plain\f0\fs24 "
_BODY_RESET = r"\par\pard\plain\f0\fs24\par "

_RTF_RULES = _rules(
    [
        (_open("p"), _PARA),
        (_close("p"), r"\par "),
        (_open("br"), r"\par "),
        (_open("h1"), r"\pard\plain\f0\fs36\b\qc "),
        (_close("h1"), _BODY_RESET),
        (_open("h2"), r"\pard\plain\f0\fs32\b "),
        (_close("h2"), _BODY_RESET),
        (_open("h3"), r"\pard\plain\f0\fs28\b "),
        (_close("h3"), _BODY_RESET),
        (_open("strong"), r"\b "),
        (_close("strong"), r"\b0 "),
        (_open("b"), r"\b "),
        (_close("b"), r"\b0 "),
        (_open("em"), r"\i "),
        (_close("em"), r"\i0 "),
        (_open("i"), r"\i "),
        (_close("i"), r"\i0 "),
        (_open("u"), r"\ul "),
        (_close("u"), r"\ul0 "),
        (_open("ul"), _PARA),
        (_close("ul"), r"\par" + _PARA),
        (_open("ol"), _PARA),
        (_close("ol"), r"\par" + _PARA),
        (_open("li"), r"\tab "),
        (_close("li"), r"\par "),
        (_open("blockquote"), r"\pard\plain\f0\fs24\li720\fi-720\qj "),
        (_close("blockquote"), r"\par" + _PARA),
        (_open("div"), ""),
        (_close("div"), r"\par "),
        (_open("span"), ""),
        (_close("span"), ""),
    ]
)

_LEFTOVER_TAG = re.compile(r"<[^>]*>")
# "<p class='x" with no closing bracket: drop it through the end of input
_UNTERMINATED_TAG = re.compile(r"<[a-zA-Z/!][^>]*$")
_WS = re.compile(r"\s+")
_LONE_SURROGATE = re.compile("[\ud800-\udfff]")
_ENTITY = re.compile(r"&(?:(nbsp|amp|lt|gt|quot|apos)|#(\d{1,7})|#x([0-9a-f]{1,6}));", re.IGNORECASE)

_NAMED = {
    "nbsp": " ",
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "quot": '"',
    "apos": "'",
}


def _apply(rules: List[Rule], text: str) -> str:
    for pattern, repl in rules:
        # callable replacement: RTF control words must not be read as group refs
        text = pattern.sub(lambda _m, r=repl: r, text)
    return text


def _strip_leftovers(text: str, strict: bool = False) -> str:
    if strict and _UNTERMINATED_TAG.search(text):
        raise MalformedContent("unterminated tag at end of content")
    text = _LEFTOVER_TAG.sub("", text)
    return _UNTERMINATED_TAG.sub("", text)


def decode_entities(text: str, escape: Optional[Callable[[str], str]] = None) -> str:
    """
    Decode the common named entities plus numeric references in one pass,
    so "&amp;lt;" becomes "&lt;" and never "<".
    """
    def _sub(m: re.Match) -> str:
        name, dec, hexa = m.groups()
        if name:
            out = _NAMED[name.lower()]
        else:
            code = int(dec) if dec else int(hexa, 16)
            if code == 0 or code > 0x10FFFF or 0xD800 <= code <= 0xDFFF:
                return m.group(0)
            out = chr(code)
        return escape(out) if escape else out

    return _ENTITY.sub(_sub, text)


def collapse_whitespace(text: str) -> str:
    return _WS.sub(" ", text).strip()


def html_to_text(html: str, strict: bool = False) -> str:
    """
    Plain-text rendering of editor HTML. With `strict`, an unterminated tag
    raises MalformedContent instead of being dropped:

    >>> html_to_text("<h1>Title</h1><p>Hello <strong>world</strong></p>")
    '=== Title === Hello **world**'
    """
    text = _apply(_TEXT_RULES, html or "")
    text = _strip_leftovers(text, strict)
    text = decode_entities(text)
    text = _LONE_SURROGATE.sub("", text)
    return collapse_whitespace(text)


# ------------------------------- RTF --------------------------------------


def rtf_escape(text: str) -> str:
    """Escape RTF control characters (\\ { })."""
    return text.replace("\\", "\\\\").replace("{", "\\{").replace("}", "\\}")


def rtf_unicode(text: str) -> str:
    """Emit non-ASCII characters as signed 16-bit \\uN? escapes (surrogate pairs above the BMP)."""
    out: List[str] = []
    for ch in text:
        if ord(ch) < 128:
            out.append(ch)
            continue
        raw = ch.encode("utf-16-le", "surrogatepass")
        for i in range(0, len(raw), 2):
            unit = int.from_bytes(raw[i : i + 2], "little", signed=True)
            out.append(f"\\u{unit}?")
    return "".join(out)


def rtf_text(text: str) -> str:
    """Escape a plain string (titles, descriptions) for direct RTF output."""
    escaped = rtf_unicode(rtf_escape(text or ""))
    return escaped.replace("\r\n", "\n").replace("\n", "\\par ").replace("\t", "\\tab ")


def html_to_rtf(html: str, strict: bool = False) -> str:
    """
    RTF body fragment for editor HTML. Text is escaped before tags become
    control words, so user braces/backslashes can never open RTF groups.
    """
    text = rtf_escape(html or "")
    text = _apply(_RTF_RULES, text)
    text = _strip_leftovers(text, strict)
    text = decode_entities(text, escape=rtf_escape)
    text = rtf_unicode(text)
    return collapse_whitespace(text)

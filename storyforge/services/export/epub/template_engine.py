# SPDX-License-Identifier: Apache-2.0
"""
Minimal placeholder engine for the EPUB document skeletons.

Syntax:
  {{key}}                 value, XML-escaped
  {{{key}}}               value inserted raw (pre-rendered markup)
  {{#key}}...{{/key}}     block kept only when `key` is truthy
  {{^key}}...{{/key}}     block kept only when `key` is falsy

Blocks are resolved on the template text first and values are substituted in
one final pass, so user text that happens to contain "{{...}}" is never
re-expanded.
"""
from __future__ import annotations

import re
from typing import Any, Mapping

_BLOCK = re.compile(r"\{\{([#^])(\w+)\}\}(.*?)\{\{/\2\}\}", re.DOTALL)
_VAR = re.compile(r"\{\{\{(\w+)\}\}\}|\{\{(\w+)\}\}")

# everything outside the XML 1.0 Char production (C0 controls, lone surrogates, U+FFFE/FFFF)
_ILLEGAL_XML = re.compile(
    "[^\t\n\r\u0020-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]"
)

_XML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&apos;",
}


def strip_illegal_xml(text: str) -> str:
    return _ILLEGAL_XML.sub("", text)


def escape_xml(text: Any) -> str:
    return "".join(_XML_ESCAPES.get(ch, ch) for ch in strip_illegal_xml(str(text)))


def _lookup(context: Mapping[str, Any], key: str) -> Any:
    return context.get(key)


def render(template: str, context: Mapping[str, Any]) -> str:
    def _block(m: re.Match) -> str:
        kind, key, inner = m.groups()
        truthy = bool(_lookup(context, key))
        return inner if truthy == (kind == "#") else ""

    # nested blocks with different keys resolve outer-first
    prev = None
    text = template
    while prev != text:
        prev, text = text, _BLOCK.sub(_block, text)

    def _var(m: re.Match) -> str:
        raw_key, esc_key = m.groups()
        value = _lookup(context, raw_key or esc_key)
        if value is None:
            return ""
        return str(value) if raw_key else escape_xml(value)

    return _VAR.sub(_var, text)

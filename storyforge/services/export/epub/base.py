# SPDX-License-Identifier: Apache-2.0
"""
Shared EPUB 3 building blocks.

Templates only decide what their content documents look like.
`generate_manifest_and_nav` turns those documents into the complete file set
(container, package document, NCX, nav document, stylesheet) and is the single
place where manifest, spine and navigation are derived, all from the same
ordered document list.
"""
from __future__ import annotations

import re
from html.entities import name2codepoint
from typing import List, Sequence

from .template_engine import escape_xml, render, strip_illegal_xml
from .types import (
    CSS_MEDIA_TYPE,
    NCX_MEDIA_TYPE,
    OPF_MEDIA_TYPE,
    XHTML_MEDIA_TYPE,
    ContentDocument,
    EpubFile,
    EpubTemplateContext,
    ManifestItem,
    TocEntry,
)

OEBPS = "OEBPS"
STYLESHEET_HREF = "stylesheet.css"
NAV_HREF = "nav.xhtml"
NCX_HREF = "toc.ncx"
OPF_PATH = f"{OEBPS}/content.opf"

CONTAINER_XML = """<?xml version="1.0" encoding="UTF-8"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="{{opf_path}}" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>
"""

CONTENT_OPF = """<?xml version="1.0" encoding="UTF-8"?>
<package xmlns="http://www.idpf.org/2007/opf" unique-identifier="BookId" version="3.0" xml:lang="{{language}}">
  <metadata xmlns:dc="http://purl.org/dc/elements/1.1/">
    <dc:identifier id="BookId">{{identifier}}</dc:identifier>
    <dc:title>{{title}}</dc:title>
{{#author}}    <dc:creator id="creator">{{author}}</dc:creator>
{{/author}}    <dc:language>{{language}}</dc:language>
{{#description}}    <dc:description>{{description}}</dc:description>
{{/description}}{{#publisher}}    <dc:publisher>{{publisher}}</dc:publisher>
{{/publisher}}{{#date}}    <dc:date>{{date}}</dc:date>
{{/date}}{{{subjects}}}{{#rights}}    <dc:rights>{{rights}}</dc:rights>
{{/rights}}    <meta property="dcterms:modified">{{modified}}</meta>
  </metadata>
  <manifest>
{{{manifest}}}  </manifest>
  <spine toc="ncx">
{{{spine}}}  </spine>
</package>
"""

TOC_NCX = """<?xml version="1.0" encoding="UTF-8"?>
<ncx xmlns="http://www.daisy.org/z3986/2005/ncx/" version="2005-1">
  <head>
    <meta name="dtb:uid" content="{{identifier}}"/>
    <meta name="dtb:depth" content="{{depth}}"/>
    <meta name="dtb:totalPageCount" content="0"/>
    <meta name="dtb:maxPageNumber" content="0"/>
  </head>
  <docTitle>
    <text>{{title}}</text>
  </docTitle>
  <navMap>
{{{nav_points}}}  </navMap>
</ncx>
"""

NAV_XHTML = """<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE html>
<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops" xml:lang="{{language}}" lang="{{language}}">
<head>
  <meta charset="utf-8"/>
  <title>{{heading}}</title>
  <link rel="stylesheet" type="text/css" href="{{stylesheet}}"/>
</head>
<body>
  <nav epub:type="toc" id="toc">
    <h2>{{heading}}</h2>
    <ol>
{{{nav_items}}}    </ol>
  </nav>
</body>
</html>
"""

PAGE_XHTML = """<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE html>
<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops" xml:lang="{{language}}" lang="{{language}}">
<head>
  <meta charset="utf-8"/>
  <title>{{title}}</title>
  <link rel="stylesheet" type="text/css" href="{{stylesheet}}"/>
</head>
<body{{#body_class}} class="{{body_class}}"{{/body_class}}>
{{{body}}}
</body>
</html>
"""

_VOID = ("br", "hr", "img", "meta", "link", "input", "col", "source", "wbr")
_VOID_RE = re.compile(rf"<({'|'.join(_VOID)})\b([^>]*?)\s*/?>", re.IGNORECASE)
_NAMED_ENTITY = re.compile(r"&([a-zA-Z][a-zA-Z0-9]*);")
_BARE_AMP = re.compile(r"&(?!(?:amp|lt|gt|quot|apos|#\d+|#x[0-9a-fA-F]+);)")
_XML_ENTITIES = {"amp", "lt", "gt", "quot", "apos"}
_NUMERIC_REF = re.compile(r"&#(?:([0-9]+)|[xX]([0-9a-fA-F]+));")


def _is_xml_char(code: int) -> bool:
    return (
        code in (0x9, 0xA, 0xD)
        or 0x20 <= code <= 0xD7FF
        or 0xE000 <= code <= 0xFFFD
        or 0x10000 <= code <= 0x10FFFF
    )


def html_to_xhtml(html: str) -> str:
    """
    Best-effort XHTML from editor HTML: void elements are self-closed, HTML
    named entities become numeric references and stray '&' is escaped.
    Characters and numeric references XML cannot carry are dropped.
    Unbalanced markup is passed through untouched.
    """
    text = strip_illegal_xml(html or "")
    text = _VOID_RE.sub(lambda m: f"<{m.group(1).lower()}{m.group(2)}/>", text)

    def _entity(m: re.Match) -> str:
        name = m.group(1)
        if name in _XML_ENTITIES:
            return m.group(0)
        code = name2codepoint.get(name)
        return f"&#{code};" if code is not None else f"&amp;{name};"

    def _numeric(m: re.Match) -> str:
        dec, hexa = m.groups()
        code = int(dec) if dec else int(hexa, 16)
        return m.group(0) if _is_xml_char(code) else ""

    text = _NAMED_ENTITY.sub(_entity, text)
    text = _NUMERIC_REF.sub(_numeric, text)
    return _BARE_AMP.sub("&amp;", text)


def render_page(context: EpubTemplateContext, title: str, body: str, body_class: str = "") -> str:
    return render(
        PAGE_XHTML,
        {
            "language": context.metadata.language,
            "title": title,
            "stylesheet": STYLESHEET_HREF,
            "body": body,
            "body_class": body_class,
        },
    )


# ---------------------------- navigation ----------------------------------


def _depth(entries: Sequence[TocEntry]) -> int:
    if not entries:
        return 1
    return 1 + max((_depth(e.children) if e.children else 0) for e in entries)


def _nav_points(entries: Sequence[TocEntry], order: List[int], indent: str = "    ") -> str:
    out = []
    for e in entries:
        order[0] += 1
        out.append(
            f'{indent}<navPoint id="{escape_xml(e.id)}" playOrder="{order[0]}">\n'
            f"{indent}  <navLabel><text>{escape_xml(e.title)}</text></navLabel>\n"
            f'{indent}  <content src="{escape_xml(e.href)}"/>\n'
        )
        if e.children:
            out.append(_nav_points(e.children, order, indent + "  "))
        out.append(f"{indent}</navPoint>\n")
    return "".join(out)


def _nav_items(entries: Sequence[TocEntry], indent: str = "      ") -> str:
    out = []
    for e in entries:
        link = f'<a href="{escape_xml(e.href)}">{escape_xml(e.title)}</a>'
        if e.children:
            out.append(f"{indent}<li>{link}\n{indent}  <ol>\n")
            out.append(_nav_items(e.children, indent + "    "))
            out.append(f"{indent}  </ol>\n{indent}</li>\n")
        else:
            out.append(f"{indent}<li>{link}</li>\n")
    return "".join(out)


# ----------------------------- packaging -----------------------------------


def _manifest_xml(items: Sequence[ManifestItem]) -> str:
    lines = []
    for item in items:
        props = f' properties="{item.properties}"' if item.properties else ""
        lines.append(
            f'    <item id="{escape_xml(item.id)}" href="{escape_xml(item.href)}" '
            f'media-type="{item.media_type}"{props}/>\n'
        )
    return "".join(lines)


def _subjects_xml(subjects: Sequence[str]) -> str:
    return "".join(f"    <dc:subject>{escape_xml(s)}</dc:subject>\n" for s in subjects)


def generate_manifest_and_nav(
    documents: Sequence[ContentDocument],
    context: EpubTemplateContext,
    nav_heading: str = "Table of Contents",
) -> List[EpubFile]:
    """
    Package ordered content documents into the full EPUB file list.

    Manifest content items, spine itemrefs, NCX navPoints and nav.xhtml links
    are all produced from `documents`, so they hold the same ids in the same
    order. Every manifest item has exactly one emitted file.
    """
    ids = [d.id for d in documents]
    if len(set(ids)) != len(ids):
        raise ValueError(f"duplicate content document ids: {ids}")

    md = context.metadata
    content_items = [ManifestItem(d.id, d.href, XHTML_MEDIA_TYPE) for d in documents]
    manifest = [
        ManifestItem("ncx", NCX_HREF, NCX_MEDIA_TYPE),
        ManifestItem("nav", NAV_HREF, XHTML_MEDIA_TYPE, properties="nav"),
        ManifestItem("css", STYLESHEET_HREF, CSS_MEDIA_TYPE),
        *content_items,
    ]
    spine = "".join(f'    <itemref idref="{escape_xml(i.id)}"/>\n' for i in content_items)
    toc = [TocEntry(d.id, d.title, d.href, d.toc_children) for d in documents]

    opf = render(
        CONTENT_OPF,
        {
            "identifier": md.identifier,
            "title": md.title,
            "author": md.author,
            "language": md.language,
            "description": md.description,
            "publisher": md.publisher,
            "date": md.date,
            "rights": md.rights,
            "modified": md.modified,
            "subjects": _subjects_xml(md.subjects),
            "manifest": _manifest_xml(manifest),
            "spine": spine,
        },
    )
    ncx = render(
        TOC_NCX,
        {
            "identifier": md.identifier,
            "title": md.title,
            "depth": _depth(toc),
            "nav_points": _nav_points(toc, [0]),
        },
    )
    nav = render(
        NAV_XHTML,
        {
            "language": md.language,
            "heading": nav_heading,
            "stylesheet": STYLESHEET_HREF,
            "nav_items": _nav_items(toc),
        },
    )

    files = [
        EpubFile("META-INF/container.xml", render(CONTAINER_XML, {"opf_path": OPF_PATH}), "application/xml"),
        EpubFile(OPF_PATH, opf, OPF_MEDIA_TYPE),
        EpubFile(f"{OEBPS}/{NCX_HREF}", ncx, NCX_MEDIA_TYPE),
        EpubFile(f"{OEBPS}/{NAV_HREF}", nav, XHTML_MEDIA_TYPE),
        EpubFile(f"{OEBPS}/{STYLESHEET_HREF}", context.css, CSS_MEDIA_TYPE),
    ]
    files.extend(EpubFile(f"{OEBPS}/{d.href}", d.xhtml, XHTML_MEDIA_TYPE) for d in documents)
    return files


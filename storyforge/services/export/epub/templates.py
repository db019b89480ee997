# SPDX-License-Identifier: Apache-2.0
"""
Built-in EPUB templates.

A template is a name, a stylesheet and a few layout flags. All novel-style
templates share `NovelTemplate.generate_files`, which builds one content
document per chapter (one <section> per scene) plus an optional title page and
hands them to `generate_manifest_and_nav`.
"""
from __future__ import annotations

from typing import List, Sequence

from .base import generate_manifest_and_nav, html_to_xhtml, render_page
from .template_engine import escape_xml, render
from .types import ContentDocument, EpubFile, EpubTemplateContext, TocEntry

GENERIC_NOVEL_CSS = """\
body {
  font-family: Georgia, "Times New Roman", serif;
  line-height: 1.5;
  margin: 1em;
}
h1.chapter-title {
  font-size: 1.6em;
  text-align: center;
  margin: 2em 0 1em;
}
h2.scene-title {
  font-size: 1.15em;
  margin: 1.5em 0 0.5em;
}
p {
  margin: 0;
  text-indent: 1.5em;
}
p.word-count {
  font-size: 0.8em;
  color: #666;
  text-indent: 0;
}
.scene-break {
  text-align: center;
  margin: 1.5em 0;
}
.title-page {
  text-align: center;
  margin-top: 30%;
}
.title-page .author {
  font-style: italic;
  margin-top: 2em;
}
"""

MODERN_COMPACT_CSS = """\
body {
  font-family: "Helvetica Neue", Helvetica, Arial, sans-serif;
  line-height: 1.35;
  margin: 0.5em;
}
h1.chapter-title {
  font-size: 1.3em;
  font-weight: 600;
  letter-spacing: 0.04em;
  text-transform: uppercase;
  margin: 1em 0 0.75em;
}
h2.scene-title {
  font-size: 1em;
  font-weight: 600;
  margin: 1em 0 0.25em;
}
p {
  margin: 0 0 0.6em;
}
p.word-count {
  font-size: 0.75em;
  color: #888;
}
.scene-break {
  border-top: 1px solid #ccc;
  margin: 1em 25%;
  height: 0;
}
.title-page {
  margin-top: 20%;
}
"""

CLASSIC_BOOK_CSS = """\
body {
  font-family: "Palatino Linotype", Palatino, "Book Antiqua", serif;
  line-height: 1.6;
  margin: 2em 2.5em;
  text-align: justify;
  hyphens: auto;
}
h1.chapter-title {
  font-size: 1.8em;
  font-variant: small-caps;
  font-weight: normal;
  text-align: center;
  margin: 3em 0 2em;
}
h2.scene-title {
  font-size: 1.1em;
  font-style: italic;
  font-weight: normal;
  text-align: center;
}
p {
  margin: 0;
  text-indent: 2em;
}
section.scene > p:first-of-type {
  text-indent: 0;
}
p.word-count {
  font-size: 0.8em;
  text-align: right;
}
.scene-break {
  text-align: center;
  letter-spacing: 1em;
  margin: 2em 0;
}
.title-page {
  text-align: center;
  margin-top: 35%;
  font-variant: small-caps;
}
"""

TITLE_PAGE_BODY = """\
  <section epub:type="titlepage" class="title-page">
    <h1 class="book-title">{{title}}</h1>
{{#author}}    <p class="author">{{author}}</p>
{{/author}}{{#description}}    <p class="description">{{description}}</p>
{{/description}}  </section>"""

CHAPTER_BODY = """\
  <section epub:type="chapter" class="chapter" id="{{doc_id}}">
{{#show_heading}}    <h1 class="chapter-title">{{title}}</h1>
{{/show_heading}}{{{scenes}}}  </section>"""


class NovelTemplate:
    """
    Shared novel layout; variants differ by stylesheet and scene-break marker.
    """

    def __init__(self, name: str, description: str, stylesheet: str, scene_break: str = "* * *") -> None:
        self.name = name
        self.description = description
        self._css = stylesheet
        self.scene_break = scene_break

    def css(self) -> str:
        return self._css

    def generate_files(self, context: EpubTemplateContext) -> List[EpubFile]:
        return generate_manifest_and_nav(self.documents(context), context)

    # --- documents ----------------------------------------------------------

    def documents(self, context: EpubTemplateContext) -> List[ContentDocument]:
        docs: List[ContentDocument] = []
        if context.options.include_title:
            docs.append(self._title_page(context))
        for number, chapter in enumerate(context.project.ordered_chapters(), start=1):
            docs.append(self._chapter_document(context, chapter, number))
        return docs

    def _title_page(self, context: EpubTemplateContext) -> ContentDocument:
        md = context.metadata
        body = render(
            TITLE_PAGE_BODY,
            {"title": md.title, "author": md.author, "description": md.description},
        )
        xhtml = render_page(context, md.title, body, body_class="front-matter")
        return ContentDocument("title", "title.xhtml", md.title, xhtml)

    def _chapter_document(self, context: EpubTemplateContext, chapter, number: int) -> ContentDocument:
        options = context.options
        doc_id = f"chapter_{number}"
        href = f"chapter_{number:02d}.xhtml"
        title = chapter.title.strip() or f"Chapter {number}"

        sections: List[str] = []
        children: List[TocEntry] = []
        scenes = chapter.ordered_scenes()
        for idx, scene in enumerate(scenes, start=1):
            anchor = f"{doc_id}_scene_{idx}"
            sections.append(self._scene_section(context, scene, anchor))
            if idx < len(scenes):
                sections.append(f'    <div class="scene-break">{escape_xml(self.scene_break)}</div>\n')
            if options.include_scene_titles and scene.title.strip():
                children.append(TocEntry(anchor, scene.title, f"{href}#{anchor}"))

        body = render(
            CHAPTER_BODY,
            {
                "doc_id": doc_id,
                "title": title,
                "show_heading": options.include_chapter_titles,
                "scenes": "".join(sections),
            },
        )
        xhtml = render_page(context, title, body)
        return ContentDocument(doc_id, href, title, xhtml, tuple(children))

    def _scene_section(self, context: EpubTemplateContext, scene, anchor: str) -> str:
        options = context.options
        parts: List[str] = [f'    <section class="scene" id="{anchor}">\n']
        if options.include_scene_titles:
            parts.append(f'      <h2 class="scene-title">{escape_xml(scene.title)}</h2>\n')
        if scene.content.strip():
            parts.append(f"      {html_to_xhtml(scene.content)}\n")
        if options.include_word_count:
            parts.append(f'      <p class="word-count">Words: {scene.word_count}</p>\n')
        parts.append("    </section>\n")
        return "".join(parts)


class GenericNovelTemplate(NovelTemplate):
    def __init__(self) -> None:
        super().__init__(
            "Generic Novel",
            "A standard novel template with title page, chapters, and scenes",
            GENERIC_NOVEL_CSS,
        )


class ModernCompactTemplate(NovelTemplate):
    def __init__(self) -> None:
        super().__init__(
            "Modern Compact",
            "Clean modern typography with compact spacing for fast reading",
            MODERN_COMPACT_CSS,
            scene_break="",
        )


class ClassicBookTemplate(NovelTemplate):
    def __init__(self) -> None:
        super().__init__(
            "Classic Book",
            "Traditional print-inspired layout with generous margins and elegant rhythm",
            CLASSIC_BOOK_CSS,
            scene_break="❦",
        )


BUILTIN_TEMPLATES: Sequence[tuple] = (
    ("generic_novel", GenericNovelTemplate),
    ("modern_compact", ModernCompactTemplate),
    ("classic_book", ClassicBookTemplate),
)

# tests/test_epub.py
from __future__ import annotations

import io
import logging
import xml.etree.ElementTree as ET
import zipfile

import pytest

from storyforge.config import settings
from storyforge.errors import UnknownTemplate
from storyforge.models import EpubMetadataOptions, ExportOptions, Project
from storyforge.services.export import EpubExportHandler

NS = {
    "opf": "http://www.idpf.org/2007/opf",
    "dc": "http://purl.org/dc/elements/1.1/",
    "ncx": "http://www.daisy.org/z3986/2005/ncx/",
    "x": "http://www.w3.org/1999/xhtml",
}


def _epub(handler, project, **opts) -> zipfile.ZipFile:
    options = ExportOptions.model_validate({"format": "epub", **opts})
    return zipfile.ZipFile(io.BytesIO(handler.render(project, options)))


def _package(zf):
    opf = ET.fromstring(zf.read("OEBPS/content.opf"))
    items = {i.get("id"): i for i in opf.find("opf:manifest", NS)}
    spine = [r.get("idref") for r in opf.find("opf:spine", NS)]
    return opf, items, spine


def _ncx_ids(zf):
    ncx = ET.fromstring(zf.read("OEBPS/toc.ncx"))
    return [p.get("id") for p in ncx.find("ncx:navMap", NS).findall("ncx:navPoint", NS)]


def _nav_hrefs(zf):
    nav = ET.fromstring(zf.read("OEBPS/nav.xhtml"))
    ol = nav.find(".//x:nav/x:ol", NS)
    return [li.find("x:a", NS).get("href") for li in ol.findall("x:li", NS)]


@pytest.fixture
def handler(recording_fs) -> EpubExportHandler:
    return EpubExportHandler(recording_fs)


def test_mimetype_entry_comes_first_uncompressed(handler, project):
    zf = _epub(handler, project)
    first = zf.infolist()[0]
    assert first.filename == "mimetype"
    assert first.compress_type == zipfile.ZIP_STORED
    assert zf.read("mimetype") == b"application/epub+zip"
    assert "META-INF/container.xml" in zf.namelist()


def test_manifest_spine_and_navigation_agree(handler, project):
    zf = _epub(handler, project)
    _, items, spine = _package(zf)

    content_ids = [
        i for i, item in items.items()
        if item.get("media-type") == "application/xhtml+xml" and item.get("properties") != "nav"
    ]
    assert spine == ["title", "chapter_1", "chapter_2"]
    assert content_ids == spine
    assert _ncx_ids(zf) == spine
    assert _nav_hrefs(zf) == [items[i].get("href") for i in spine]

    for item in items.values():
        assert f"OEBPS/{item.get('href')}" in zf.namelist()


def test_chapters_follow_rank_order(handler):
    p = Project.model_validate(
        {
            "title": "Ranked",
            "chapters": [
                {"title": "Second", "order": 1, "scenes": [{"title": "s", "content": "<p>two</p>"}]},
                {"title": "First", "order": 0, "scenes": [{"title": "s", "content": "<p>one</p>"}]},
            ],
        }
    )
    zf = _epub(handler, p, includeTitle=False)
    assert b"First" in zf.read("OEBPS/chapter_01.xhtml")
    assert b"Second" in zf.read("OEBPS/chapter_02.xhtml")


def test_scene_titles_become_nested_navigation(handler, project):
    zf = _epub(handler, project, includeSceneTitles=True)
    _, _, spine = _package(zf)
    assert spine == ["title", "chapter_1", "chapter_2"]

    ncx = ET.fromstring(zf.read("OEBPS/toc.ncx"))
    chapter_1 = ncx.find("ncx:navMap", NS).findall("ncx:navPoint", NS)[1]
    children = chapter_1.findall("ncx:navPoint", NS)
    assert [c.find("ncx:content", NS).get("src") for c in children] == [
        "chapter_01.xhtml#chapter_1_scene_1",
        "chapter_01.xhtml#chapter_1_scene_2",
    ]


def test_content_documents_are_well_formed(handler):
    p = Project(title="Markup")
    ch = p.add_chapter("Odd & Ends")
    s = p.add_scene(ch.id, "s")
    p.update_scene_content(ch.id, s.id, "<p>A&nbsp;B<br>C &amp; D & E</p><hr>")
    zf = _epub(handler, p)
    for name in zf.namelist():
        if name.endswith((".xhtml", ".opf", ".ncx", ".xml")):
            ET.fromstring(zf.read(name))
    assert b"Odd &amp; Ends" in zf.read("OEBPS/chapter_01.xhtml")


def test_empty_project_still_packages(handler):
    zf = _epub(handler, Project(title="Empty"), includeTitle=False)
    _, items, spine = _package(zf)
    assert spine == []
    assert sorted(items) == ["css", "nav", "ncx"]
    assert _ncx_ids(zf) == []


def test_chapter_titles_can_be_hidden(handler, project):
    zf = _epub(handler, project, includeChapterTitles=False)
    assert b'class="chapter-title"' not in zf.read("OEBPS/chapter_01.xhtml")
    assert _ncx_ids(zf) == ["title", "chapter_1", "chapter_2"]


def test_unknown_template_falls_back_to_default(handler, project, caplog):
    with caplog.at_level(logging.WARNING, logger="storyforge.export.epub"):
        fallback = handler.render(project, ExportOptions.model_validate({"format": "epub", "epub": {"templateName": "nope"}}))
    default = handler.render(project, ExportOptions(format="epub"))
    assert fallback == default
    assert "Unknown EPUB template" in caplog.text


def test_templates_change_the_stylesheet(handler, project):
    generic = _epub(handler, project).read("OEBPS/stylesheet.css")
    classic = _epub(handler, project, epub={"templateName": "classic_book"}).read("OEBPS/stylesheet.css")
    assert generic != classic
    assert b"Palatino" in classic


def test_template_registry(handler):
    assert handler.available_templates() == ["generic_novel", "modern_compact", "classic_book"]
    assert [d.name for d in handler.template_definitions()][0] == "Generic Novel"
    handler.set_default_template("modern_compact")
    assert handler.default_template_name == "modern_compact"
    with pytest.raises(UnknownTemplate, match="Template 'nope' not found"):
        handler.set_default_template("nope")


def test_metadata_precedence(handler, project):
    project.epub_metadata = EpubMetadataOptions(author="Saved Author", publisher="Saved Press", subjects=["sea"])
    options = ExportOptions.model_validate(
        {"format": "epub", "epub": {"metadata": {"author": "Override", "publisher": "  "}}}
    )
    md = handler.resolve_metadata(project, options)
    assert md.author == "Override"
    assert md.publisher == "Saved Press"
    assert md.rights == "All rights reserved"
    assert md.language == "en"
    assert md.subjects == ("sea",)
    assert md.date == "2024-03-01"
    assert md.modified == "2024-03-01T12:30:00Z"


def test_identifier_is_stable_per_project(handler, project):
    a = handler.resolve_metadata(project, ExportOptions(format="epub"))
    b = handler.resolve_metadata(project.snapshot(), ExportOptions(format="epub"))
    other = handler.resolve_metadata(Project(id="project-other"), ExportOptions(format="epub"))
    assert a.identifier == b.identifier
    assert a.identifier.startswith("urn:uuid:")
    assert other.identifier != a.identifier


def test_package_metadata_is_written(handler, project):
    zf = _epub(handler, project)
    opf, _, _ = _package(zf)
    md = opf.find("opf:metadata", NS)
    assert md.find("dc:title", NS).text == "My Book!"
    assert md.find("dc:creator", NS).text == "Unknown Author"
    assert md.find("dc:description", NS).text == "A tale."
    assert opf.get("unique-identifier") == "BookId"


def test_xml_illegal_characters_are_dropped(handler):
    p = Project(title="Bad\x0bTitle", description="Form\x0cfeed")
    ch = p.add_chapter("Bell\x07s")
    s = p.add_scene(ch.id, "s")
    p.update_scene_content(ch.id, s.id, "<p>a&#1;b &#xD800; c\x0cd &#x1F600;</p>")
    zf = _epub(handler, p)
    for name in zf.namelist():
        if name.endswith((".xhtml", ".opf", ".ncx", ".xml")):
            ET.fromstring(zf.read(name))
    opf, _, _ = _package(zf)
    md = opf.find("opf:metadata", NS)
    assert md.find("dc:title", NS).text == "BadTitle"
    assert md.find("dc:description", NS).text == "Formfeed"
    chapter = zf.read("OEBPS/chapter_01.xhtml").decode("utf-8")
    assert "Bells" in chapter
    assert "ab" in chapter and "cd" in chapter
    assert "&#x1F600;" in chapter


def test_blank_author_omits_creator(handler, project, monkeypatch):
    monkeypatch.setattr(settings, "EPUB_DEFAULT_AUTHOR", "")
    zf = _epub(handler, project)
    opf, _, _ = _package(zf)
    md = opf.find("opf:metadata", NS)
    assert md.find("dc:creator", NS) is None
    assert md.find("dc:title", NS).text == "My Book!"

# tests/test_utils.py
from __future__ import annotations

import pytest
from pydantic import ValidationError

from storyforge.config import Settings
from storyforge.utils.fs import atomic_write, safe_filename, slugify_title
from storyforge.utils.ids import generate_id
from storyforge.utils.text import count_words, is_meaningful_change, strip_html


def test_slugify_title():
    assert slugify_title("My Book!") == "my_book_"
    assert slugify_title("   ") == "___"
    assert slugify_title("") == "untitled"


def test_safe_filename_drops_directories():
    assert safe_filename("../../etc/passwd") == "passwd"
    assert safe_filename("a b?.txt") == "a_b.txt"
    assert safe_filename("???", default="x.txt") == "x.txt"


def test_atomic_write(tmp_path):
    target = atomic_write(tmp_path / "nested" / "out.txt", "héllo")
    assert target.read_text(encoding="utf-8") == "héllo"
    atomic_write(target, b"\x00\x01")
    assert target.read_bytes() == b"\x00\x01"
    assert [p.name for p in target.parent.iterdir()] == ["out.txt"]


def test_generate_id_is_prefixed_and_unique():
    a, b = generate_id("scene"), generate_id("scene")
    assert a.startswith("scene-")
    assert a != b


def test_word_counting():
    assert count_words(strip_html("<p>One <b>two</b></p><p>three</p>")) == 2
    assert count_words(strip_html("<p>One <b>two</b></p> <p>three</p>")) == 3
    assert count_words("   ") == 0


def test_meaningful_change_threshold():
    assert not is_meaningful_change("<p>a b c d</p>", "")
    assert is_meaningful_change("<p>a b c d e</p>", "")
    assert is_meaningful_change("x" * 25, "")


def test_settings_bounds(tmp_path):
    cfg = Settings(EXPORT_DIR=tmp_path / "exports", EPUB_DEFAULT_LANGUAGE="  ")
    assert cfg.EPUB_DEFAULT_LANGUAGE == "en"
    cfg.ensure_dirs()
    assert cfg.EXPORT_DIR.is_dir()
    with pytest.raises(ValidationError):
        Settings(DAILY_WORD_TARGET=0)


def test_error_taxonomy():
    from storyforge.errors import (
        ExportFailed,
        InvalidProject,
        MalformedContent,
        StoryforgeError,
        UnknownTemplate,
        UnsupportedFormat,
    )

    for exc in (InvalidProject(), UnsupportedFormat("pdf"), UnknownTemplate("x"), ExportFailed("boom"), MalformedContent("bad")):
        assert isinstance(exc, StoryforgeError)
    assert str(UnsupportedFormat("pdf")) == "Unsupported export format: 'pdf'"

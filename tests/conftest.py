# tests/conftest.py
from __future__ import annotations

import datetime as dt
from pathlib import Path
from typing import List, Optional, Tuple

import pytest

from storyforge.models import Project

FIXED_TIME = dt.datetime(2024, 3, 1, 12, 30, tzinfo=dt.timezone.utc)


class RecordingFileSystem:
    """FileSystem double: records prompts/writes, can cancel or fail."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.cancel = False
        self.fail: Optional[OSError] = None
        self.prompts: List[Tuple[str, str, str]] = []
        self.writes: List[Tuple[Path, object]] = []

    def prompt_save_location(self, default_name: str, filter_label: str, extension: str):
        self.prompts.append((default_name, filter_label, extension))
        if self.cancel:
            return None
        return self.root / default_name

    def write(self, path: Path, data) -> None:
        if self.fail is not None:
            raise self.fail
        self.writes.append((path, data))


@pytest.fixture
def project() -> Project:
    p = Project(id="project-fixed", title="My Book!", description="A tale.")
    ch1 = p.add_chapter("Beginnings")
    s1 = p.add_scene(ch1.id, "Arrival")
    p.update_scene_content(ch1.id, s1.id, "<p>The <strong>ship</strong> landed.</p>")
    s2 = p.add_scene(ch1.id, "Harbor")
    p.update_scene_content(ch1.id, s2.id, "<p>Gulls &amp; salt.</p>")
    ch2 = p.add_chapter("Endings")
    s3 = p.add_scene(ch2.id, "Departure")
    p.update_scene_content(ch2.id, s3.id, "<p>She left at dawn.</p>")
    p.created_at = FIXED_TIME
    p.updated_at = FIXED_TIME
    return p


@pytest.fixture
def recording_fs(tmp_path) -> RecordingFileSystem:
    return RecordingFileSystem(tmp_path)


class FakeClock:
    def __init__(self, day: dt.date) -> None:
        self.day = day

    def __call__(self) -> dt.date:
        return self.day

    def advance(self, days: int = 1) -> None:
        self.day += dt.timedelta(days=days)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(dt.date(2024, 3, 10))

# SPDX-License-Identifier: Apache-2.0
"""
Document model: Project -> Chapters -> Scenes, plus free-standing Notes.

Ownership is strict (a Project owns its Chapters and Notes, a Chapter owns its
Scenes). Sibling `order` values are contiguous zero-based ranks; renderers must
go through the `ordered_*` views instead of the raw lists, which may arrive in
any storage order.
"""
from __future__ import annotations

import datetime as dt
import logging
import re
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from ..utils.ids import generate_id
from ..utils.text import count_words, strip_html
from .export import EpubMetadataOptions

log = logging.getLogger("storyforge.models.project")

ChangeListener = Callable[["Project"], None]


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _normalize_tag(tag: str) -> str:
    return (tag or "").strip().lower()


def _rerank(items: Sequence["_Ordered"]) -> None:
    """Rewrite `order` as 0..n-1 following the current relative order."""
    for rank, item in enumerate(sorted(items, key=lambda i: i.order)):
        item.order = rank


def _check_ranks(items: Sequence["_Ordered"], what: str) -> None:
    """
    Duplicated ranks are ambiguous and rejected; gaps (left behind by older
    deletes) are compacted in place.
    """
    orders = [i.order for i in items]
    if len(set(orders)) != len(orders):
        raise ValueError(f"{what} order values must be unique, got {sorted(orders)}")
    if sorted(orders) != list(range(len(orders))):
        _rerank(items)


class _Entity(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    created_at: dt.datetime = Field(default_factory=_utcnow)
    updated_at: dt.datetime = Field(default_factory=_utcnow)

    def touch(self) -> None:
        self.updated_at = _utcnow()


class _Ordered(_Entity):
    order: int = Field(default=0, ge=0)


class Scene(_Ordered):
    """
    A unit of prose. `content` is editor-produced HTML treated as opaque.
    Word and character counts are derived from it on every read.
    """
    id: str = Field(default_factory=lambda: generate_id("scene"))
    title: str = "Untitled Scene"
    content: str = ""

    @computed_field
    @property
    def word_count(self) -> int:
        return count_words(strip_html(self.content))

    @computed_field
    @property
    def character_count(self) -> int:
        return len(strip_html(self.content))

    def set_content(self, html: str) -> None:
        self.content = html or ""
        self.touch()


class Chapter(_Ordered):
    id: str = Field(default_factory=lambda: generate_id("chapter"))
    title: str = "Untitled Chapter"
    scenes: List[Scene] = Field(default_factory=list)

    @model_validator(mode="after")
    def _scene_ranks(self):
        _check_ranks(self.scenes, "scene")
        return self

    @computed_field
    @property
    def word_count(self) -> int:
        return sum(s.word_count for s in self.scenes)

    def ordered_scenes(self) -> List[Scene]:
        return sorted(self.scenes, key=lambda s: s.order)

    def get_scene(self, scene_id: str) -> Optional[Scene]:
        return next((s for s in self.scenes if s.id == scene_id), None)

    def add_scene(self, title: str = "Untitled Scene") -> Scene:
        scene = Scene(title=title, order=len(self.scenes))
        self.scenes.append(scene)
        self.touch()
        return scene

    def remove_scene(self, scene_id: str) -> bool:
        scene = self.get_scene(scene_id)
        if scene is None:
            return False
        self.scenes.remove(scene)
        _rerank(self.scenes)
        self.touch()
        return True

    def move_scene(self, scene_id: str, new_index: int) -> bool:
        scene = self.get_scene(scene_id)
        if scene is None:
            return False
        seq = [s for s in self.ordered_scenes() if s is not scene]
        seq.insert(max(0, min(new_index, len(seq))), scene)
        for rank, s in enumerate(seq):
            s.order = rank
        self.touch()
        return True


class Note(_Ordered):
    """Free-standing research/worldbuilding note, matched to scenes by tag."""
    id: str = Field(default_factory=lambda: generate_id("note"))
    title: str = "Untitled Note"
    description: str = ""
    tags: List[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def _unique_tags(cls, v):
        out: List[str] = []
        for tag in v or []:
            t = _normalize_tag(str(tag))
            if t and t not in out:
                out.append(t)
        return out


class Project(_Entity):
    """
    Root of the document tree.

    `last_opened_scene_id` is a weak, advisory reference: it is never
    validated eagerly, use `resolve_last_opened_scene()` to dereference it.
    """
    id: str = Field(default_factory=lambda: generate_id("project"))
    title: str = "Untitled Project"
    description: str = ""
    chapters: List[Chapter] = Field(default_factory=list)
    notes: List[Note] = Field(default_factory=list)
    last_opened_scene_id: Optional[str] = None
    epub_metadata: Optional[EpubMetadataOptions] = None

    _listeners: List[ChangeListener] = PrivateAttr(default_factory=list)

    @model_validator(mode="after")
    def _ranks(self):
        _check_ranks(self.chapters, "chapter")
        _check_ranks(self.notes, "note")
        return self

    # --- change notification --------------------------------------------

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """
        Register `listener(project)` to run after every editing operation.
        Returns a callable that removes it again.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _changed(self) -> None:
        self.touch()
        for listener in list(self._listeners):
            listener(self)

    def snapshot(self) -> "Project":
        """Detached deep copy (no listeners) to hand to the export pipeline."""
        return type(self).model_validate(self.model_dump())

    # --- ordered views --------------------------------------------------

    def ordered_chapters(self) -> List[Chapter]:
        return sorted(self.chapters, key=lambda c: c.order)

    def ordered_notes(self) -> List[Note]:
        return sorted(self.notes, key=lambda n: n.order)

    def iter_scenes(self) -> Iterable[Tuple[Chapter, Scene]]:
        for chapter in self.ordered_chapters():
            for scene in chapter.ordered_scenes():
                yield chapter, scene

    # --- lookups --------------------------------------------------------

    def get_chapter(self, chapter_id: str) -> Optional[Chapter]:
        return next((c for c in self.chapters if c.id == chapter_id), None)

    def _require_chapter(self, chapter_id: str) -> Chapter:
        chapter = self.get_chapter(chapter_id)
        if chapter is None:
            raise KeyError(f"chapter not found: {chapter_id}")
        return chapter

    def locate_scene(self, scene_id: str) -> Optional[Tuple[Chapter, Scene]]:
        for chapter in self.chapters:
            scene = chapter.get_scene(scene_id)
            if scene is not None:
                return chapter, scene
        return None

    def find_scene(self, scene_id: str) -> Optional[Scene]:
        found = self.locate_scene(scene_id)
        return found[1] if found else None

    def resolve_last_opened_scene(self) -> Optional[Scene]:
        if not self.last_opened_scene_id:
            return None
        return self.find_scene(self.last_opened_scene_id)

    def get_note(self, note_id: str) -> Optional[Note]:
        return next((n for n in self.notes if n.id == note_id), None)

    # --- chapters -------------------------------------------------------

    def add_chapter(self, title: str = "Untitled Chapter") -> Chapter:
        chapter = Chapter(title=title, order=len(self.chapters))
        self.chapters.append(chapter)
        self._changed()
        return chapter

    def rename_chapter(self, chapter_id: str, title: str) -> Chapter:
        chapter = self._require_chapter(chapter_id)
        chapter.title = title
        chapter.touch()
        self._changed()
        return chapter

    def remove_chapter(self, chapter_id: str) -> bool:
        chapter = self.get_chapter(chapter_id)
        if chapter is None:
            return False
        self.chapters.remove(chapter)
        _rerank(self.chapters)
        self._changed()
        return True

    def move_chapter(self, chapter_id: str, new_index: int) -> bool:
        chapter = self.get_chapter(chapter_id)
        if chapter is None:
            return False
        seq = [c for c in self.ordered_chapters() if c is not chapter]
        seq.insert(max(0, min(new_index, len(seq))), chapter)
        for rank, c in enumerate(seq):
            c.order = rank
        self._changed()
        return True

    # --- scenes ---------------------------------------------------------

    def add_scene(self, chapter_id: str, title: str = "Untitled Scene") -> Scene:
        scene = self._require_chapter(chapter_id).add_scene(title)
        self._changed()
        return scene

    def remove_scene(self, chapter_id: str, scene_id: str) -> bool:
        chapter = self.get_chapter(chapter_id)
        if chapter is None or not chapter.remove_scene(scene_id):
            return False
        self._changed()
        return True

    def move_scene(self, chapter_id: str, scene_id: str, new_index: int) -> bool:
        chapter = self.get_chapter(chapter_id)
        if chapter is None or not chapter.move_scene(scene_id, new_index):
            return False
        self._changed()
        return True

    def rename_scene(self, chapter_id: str, scene_id: str, title: str) -> Scene:
        chapter = self._require_chapter(chapter_id)
        scene = chapter.get_scene(scene_id)
        if scene is None:
            raise KeyError(f"scene not found: {scene_id}")
        scene.title = title
        scene.touch()
        chapter.touch()
        self._changed()
        return scene

    def update_scene_content(self, chapter_id: str, scene_id: str, html: str) -> Scene:
        """
        Replace a scene's HTML. Counts follow automatically; the scene becomes
        the last opened one.
        """
        chapter = self._require_chapter(chapter_id)
        scene = chapter.get_scene(scene_id)
        if scene is None:
            raise KeyError(f"scene not found: {scene_id}")
        scene.set_content(html)
        chapter.touch()
        self.last_opened_scene_id = scene.id
        self._changed()
        return scene

    def set_last_opened_scene(self, scene_id: Optional[str]) -> None:
        self.last_opened_scene_id = scene_id
        self._changed()

    # --- notes ----------------------------------------------------------

    def add_note(self, title: str = "Untitled Note", description: str = "") -> Note:
        note = Note(title=title, description=description, order=len(self.notes))
        self.notes.append(note)
        self._changed()
        return note

    def update_note(
        self,
        note_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Note:
        note = self.get_note(note_id)
        if note is None:
            raise KeyError(f"note not found: {note_id}")
        if title is not None:
            note.title = title
        if description is not None:
            note.description = description
        note.touch()
        self._changed()
        return note

    def remove_note(self, note_id: str) -> bool:
        note = self.get_note(note_id)
        if note is None:
            return False
        self.notes.remove(note)
        _rerank(self.notes)
        self._changed()
        return True

    def add_note_tag(self, note_id: str, tag: str) -> bool:
        note = self.get_note(note_id)
        t = _normalize_tag(tag)
        if note is None or not t or t in note.tags:
            return False
        note.tags.append(t)
        note.touch()
        self._changed()
        return True

    def remove_note_tag(self, note_id: str, tag: str) -> bool:
        note = self.get_note(note_id)
        t = _normalize_tag(tag)
        if note is None or t not in note.tags:
            return False
        note.tags.remove(t)
        note.touch()
        self._changed()
        return True

    def all_tags(self) -> List[str]:
        return sorted({t for n in self.notes for t in n.tags})

    def notes_by_tag(self, tag: str) -> List[Note]:
        t = _normalize_tag(tag)
        return [n for n in self.ordered_notes() if t in n.tags]

    def find_notes_by_content(self, html: str) -> List[Note]:
        """Notes having at least one tag that occurs as a whole word in `html`."""
        text = strip_html(html).lower()
        matched: List[Note] = []
        for note in self.ordered_notes():
            for tag in note.tags:
                if re.search(rf"\b{re.escape(tag)}\b", text):
                    matched.append(note)
                    break
        return matched

    # --- aggregates -----------------------------------------------------

    @computed_field
    @property
    def total_word_count(self) -> int:
        return sum(c.word_count for c in self.chapters)

    def stats(self) -> Dict[str, int]:
        scenes = [s for c in self.chapters for s in c.scenes]
        return {
            "total_words": sum(s.word_count for s in scenes),
            "total_characters": sum(s.character_count for s in scenes),
            "total_scenes": len(scenes),
            "total_chapters": len(self.chapters),
        }

    def recent_scenes(self, limit: int = 10) -> List[Tuple[Chapter, Scene]]:
        """Most recently edited scenes first, with their owning chapter."""
        pairs = [(c, s) for c in self.chapters for s in c.scenes]
        pairs.sort(key=lambda cs: cs[1].updated_at, reverse=True)
        return pairs[: max(0, limit)]

# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ExportFormat(str, Enum):
    txt = "txt"
    rtf = "rtf"
    epub = "epub"


class EpubMetadataOptions(BaseModel):
    """
    Optional metadata overrides. Blank strings count as "unset" so the next
    precedence layer (project, then template defaults) wins.
    """
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    author: Optional[str] = None
    publisher: Optional[str] = None
    language: Optional[str] = None
    rights: Optional[str] = None
    subjects: List[str] = Field(default_factory=list)

    @field_validator("author", "publisher", "language", "rights")
    @classmethod
    def _blank_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator("subjects", mode="before")
    @classmethod
    def _strip_subjects(cls, v):
        if not v:
            return []
        return [str(s).strip() for s in v if str(s).strip()]


class EpubExportOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    template_name: Optional[str] = None
    metadata: Optional[EpubMetadataOptions] = None


class ExportOptions(BaseModel):
    """
    Per-export switches. `format` is a free string because the handler
    registry is extensible at runtime; the built-ins are listed in ExportFormat.
    """
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    format: str = Field(default=ExportFormat.txt.value)
    include_title: bool = True
    include_chapter_titles: bool = True
    include_scene_titles: bool = False
    include_word_count: bool = False
    epub: Optional[EpubExportOptions] = None

    @field_validator("format", mode="before")
    @classmethod
    def _normalize_format(cls, v):
        if isinstance(v, Enum):
            v = v.value
        return str(v or "").strip().lower()

    @property
    def template_name(self) -> Optional[str]:
        return self.epub.template_name if self.epub else None

    @property
    def metadata_overrides(self) -> Optional[EpubMetadataOptions]:
        return self.epub.metadata if self.epub else None

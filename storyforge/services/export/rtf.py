# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import logging
from typing import List

from ...models.export import ExportOptions
from ...models.project import Project
from .base import BaseExportHandler
from .converters import html_to_rtf, rtf_text

log = logging.getLogger("storyforge.export.rtf")

RTF_HEADER = (
    r"{\rtf1\ansi\ansicpg1252\uc1\deff0\deflang1033"
    r"{\fonttbl{\f0\fnil\fcharset0 Times New Roman;}}"
    r"{\colortbl;\red0\green0\blue0;}\f0\fs24"
)
RTF_FOOTER = "}"


def _title(text: str) -> str:
    return rf"\pard\plain\f0\fs36\b\qc {rtf_text(text)}\par\pard\plain\f0\fs24\par "


def _heading(text: str, level: int) -> str:
    size = r"\fs32" if level == 1 else r"\fs28"
    return rf"\pard\plain\f0{size}\b {rtf_text(text)}\par\pard\plain\f0\fs24\par "


class RtfExportHandler(BaseExportHandler):
    def file_extension(self) -> str:
        return "rtf"

    def mime_type(self) -> str:
        return "text/rtf"

    def filter_label(self) -> str:
        return "RTF Files"

    def render(self, project: Project, options: ExportOptions) -> str:
        parts: List[str] = [RTF_HEADER]

        if options.include_title:
            parts.append(_title(project.title))
        if project.description:
            parts.append(rtf_text(project.description))
            parts.append(r"\par\par ")

        for chapter in project.ordered_chapters():
            if options.include_chapter_titles:
                parts.append(_heading(chapter.title, 1))
            for scene in chapter.ordered_scenes():
                if options.include_scene_titles:
                    parts.append(_heading(scene.title, 2))
                if scene.content.strip():
                    parts.append(r"\pard\plain\f0\fs24 ")
                    parts.append(html_to_rtf(scene.content))
                    parts.append(r"\par\par ")
                if options.include_word_count:
                    parts.append(rf"{{\i Words: {scene.word_count}}}\par ")
                parts.append(r"\par ")

        parts.append(RTF_FOOTER)
        body = "".join(parts)
        log.debug("RTF export rendered", extra={"project_id": project.id, "chars": len(body)})
        return body

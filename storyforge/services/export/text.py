# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import logging
from typing import List

from ...models.export import ExportOptions
from ...models.project import Project
from .base import BaseExportHandler
from .converters import html_to_text

log = logging.getLogger("storyforge.export.text")


class TextExportHandler(BaseExportHandler):
    def file_extension(self) -> str:
        return "txt"

    def mime_type(self) -> str:
        return "text/plain"

    def filter_label(self) -> str:
        return "Text Files"

    def render(self, project: Project, options: ExportOptions) -> str:
        parts: List[str] = []

        if options.include_title:
            parts.append(project.title)
        if project.description:
            parts.append(project.description)

        for chapter in project.ordered_chapters():
            if options.include_chapter_titles:
                parts.append(chapter.title.upper())
            for scene in chapter.ordered_scenes():
                if options.include_scene_titles:
                    parts.append(scene.title)
                if scene.content.strip():
                    parts.append(html_to_text(scene.content))
                if options.include_word_count:
                    parts.append(f"Words: {scene.word_count}")

        body = "".join(p + "\n\n" for p in parts)
        log.debug("Text export rendered", extra={"project_id": project.id, "chars": len(body)})
        return body

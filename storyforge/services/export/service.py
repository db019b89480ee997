# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

from ...errors import InvalidProject, UnsupportedFormat
from ...models.export import ExportOptions
from ...models.project import Project
from .base import FormatHandler, Payload
from .epub import EpubExportHandler
from .persistence import FileSystem
from .rtf import RtfExportHandler
from .text import TextExportHandler

log = logging.getLogger("storyforge.export.service")


class ExportService:
    """
    Registry mapping a format id ("txt", "rtf", "epub", ...) to its handler.
    Registration is last-write-wins and may happen at any time.
    """

    def __init__(self, filesystem: Optional[FileSystem] = None, register_defaults: bool = True) -> None:
        self._handlers: Dict[str, FormatHandler] = {}
        if register_defaults:
            self.register_handler("rtf", RtfExportHandler(filesystem))
            self.register_handler("txt", TextExportHandler(filesystem))
            self.register_handler("epub", EpubExportHandler(filesystem))

    def register_handler(self, fmt: str, handler: FormatHandler) -> None:
        key = fmt.strip().lower()
        if key in self._handlers:
            log.info("Replacing export handler", extra={"format": key})
        self._handlers[key] = handler

    def available_formats(self) -> List[str]:
        return list(self._handlers.keys())

    def get_handler(self, fmt: str) -> Optional[FormatHandler]:
        return self._handlers.get((fmt or "").strip().lower())

    def _resolve(self, project: Optional[Project], options: ExportOptions) -> FormatHandler:
        if project is None:
            raise InvalidProject()
        handler = self.get_handler(options.format)
        if handler is None:
            raise UnsupportedFormat(options.format)
        return handler

    def export_project(self, project: Optional[Project], options: ExportOptions) -> Optional[Path]:
        """
        Render and persist. Returns the written path, or None if the save was
        cancelled by the file-system collaborator.
        """
        handler = self._resolve(project, options)
        log.info("Exporting project", extra={"project_id": project.id, "format": options.format})
        return handler.export_and_download(project, options)

    def export_content(self, project: Optional[Project], options: ExportOptions) -> Payload:
        """Render without persisting (preview / programmatic use)."""
        handler = self._resolve(project, options)
        return handler.render(project, options)

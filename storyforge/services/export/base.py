# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import abc
import logging
from pathlib import Path
from typing import Optional, Protocol, Union, runtime_checkable

from ...errors import ExportFailed, InvalidProject
from ...models.export import ExportOptions
from ...models.project import Project
from ...utils.fs import slugify_title
from .persistence import FileSystem, LocalFileSystem

log = logging.getLogger("storyforge.export")

Payload = Union[str, bytes]


@runtime_checkable
class FormatHandler(Protocol):
    """Capability set every registered export format provides."""

    def render(self, project: Project, options: ExportOptions) -> Payload: ...

    def file_extension(self) -> str: ...

    def mime_type(self) -> str: ...

    def filter_label(self) -> str: ...

    def export_and_download(
        self, project: Project, options: ExportOptions
    ) -> Optional[Path]: ...


class BaseExportHandler(abc.ABC):
    """
    Shared persistence path for concrete handlers. Subclasses provide the pure
    `render` step and the static descriptors.
    """

    def __init__(self, filesystem: Optional[FileSystem] = None) -> None:
        self.filesystem: FileSystem = filesystem or LocalFileSystem()

    @abc.abstractmethod
    def render(self, project: Project, options: ExportOptions) -> Payload:
        """Pure function of (project, options); never mutates the project."""

    @abc.abstractmethod
    def file_extension(self) -> str: ...

    @abc.abstractmethod
    def mime_type(self) -> str: ...

    @abc.abstractmethod
    def filter_label(self) -> str: ...

    def generate_filename(self, project: Project) -> str:
        return f"{slugify_title(project.title)}.{self.file_extension()}"

    def export_and_download(
        self, project: Project, options: ExportOptions
    ) -> Optional[Path]:
        """
        Render, ask the file-system collaborator for a destination and write.

        Returns the written path, or None if the save was cancelled.
        Raises ExportFailed (chained to the I/O error) if persisting fails.
        """
        if project is None:
            raise InvalidProject()

        payload = self.render(project, options)
        filename = self.generate_filename(project)
        try:
            path = self.filesystem.prompt_save_location(
                filename, self.filter_label(), self.file_extension()
            )
            if path is None:
                log.info("Export cancelled", extra={"file_name": filename})
                return None
            self.filesystem.write(path, payload)
        except OSError as e:
            raise ExportFailed(
                f"Could not save {self.file_extension().upper()} export "
                f"'{filename}': {e.strerror or e}",
                path=str(e.filename) if e.filename else None,
            ) from e
        return Path(path)

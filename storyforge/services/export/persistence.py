# SPDX-License-Identifier: Apache-2.0
"""
Persistence collaborator for exports.

The export pipeline only needs two capabilities: pick a destination (which a
desktop host may implement as a save dialog the user can cancel) and write the
payload there. `LocalFileSystem` is the headless implementation: it resolves
into the configured export directory and never cancels.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Protocol, Union, runtime_checkable

from ...config import settings
from ...utils.fs import atomic_write, ensure_dir, safe_filename

log = logging.getLogger("storyforge.export.persistence")

Payload = Union[str, bytes]


@runtime_checkable
class FileSystem(Protocol):
    def prompt_save_location(
        self, default_name: str, filter_label: str, extension: str
    ) -> Optional[Path]:
        """Return the chosen path, or None when the user cancelled."""
        ...

    def write(self, path: Path, data: Payload) -> None:
        ...


class LocalFileSystem:
    """Writes exports under `root` (defaults to settings.EXPORT_DIR)."""

    def __init__(self, root: Optional[Path | str] = None) -> None:
        self.root = Path(root) if root is not None else Path(settings.EXPORT_DIR)

    def prompt_save_location(
        self, default_name: str, filter_label: str, extension: str
    ) -> Optional[Path]:
        name = safe_filename(default_name, default=f"export.{extension}")
        return ensure_dir(self.root) / name

    def write(self, path: Path, data: Payload) -> None:
        target = atomic_write(path, data)
        log.info("Export written", extra={"path": str(target), "bytes": len(data)})

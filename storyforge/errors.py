# SPDX-License-Identifier: Apache-2.0
"""
Error taxonomy for the export pipeline.

Validation errors (InvalidProject, UnsupportedFormat) are raised straight to
the caller. Persistence failures are wrapped in ExportFailed at the handler
boundary. UnknownTemplate is only raised by explicit template configuration;
export-time lookups fall back to the default template instead.
"""
from __future__ import annotations

from typing import Optional


class StoryforgeError(Exception):
    """Base class for all errors raised by storyforge."""


class InvalidProject(StoryforgeError):
    """No project (or an unusable one) was supplied for export."""

    def __init__(self, message: str = "No project provided for export") -> None:
        super().__init__(message)


class UnsupportedFormat(StoryforgeError):
    """No handler is registered for the requested export format."""

    def __init__(self, fmt: object) -> None:
        self.format = fmt
        super().__init__(f"Unsupported export format: {fmt!r}")


class UnknownTemplate(StoryforgeError):
    """The requested EPUB template name is not registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Template '{name}' not found")


class ExportFailed(StoryforgeError):
    """Writing the rendered payload failed; the I/O error is kept as __cause__."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        self.path = path
        super().__init__(message)


class MalformedContent(StoryforgeError):
    """
    Scene content could not be transformed.

    Only raised by the converters in strict mode (`html_to_text(..., strict=True)`);
    exports always degrade to best-effort text.
    """

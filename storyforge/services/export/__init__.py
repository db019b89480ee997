# SPDX-License-Identifier: Apache-2.0
"""
Export services for writing projects.

This package provides:
- Text and RTF handlers (HTML scene content -> target markup)
- EPUB handler with pluggable visual templates
- ExportService, the format registry driving render + persist

Public entry points:
- export_service.export_content(project, options) -> str | bytes
- export_service.export_project(project, options) -> Path | None
- export_service.register_handler(format, handler)
"""
from __future__ import annotations

from .base import BaseExportHandler, FormatHandler
from .converters import html_to_rtf, html_to_text
from .epub import EpubExportHandler
from .persistence import FileSystem, LocalFileSystem
from .rtf import RtfExportHandler
from .service import ExportService
from .text import TextExportHandler

export_service = ExportService()

__all__ = [
    "BaseExportHandler",
    "FormatHandler",
    "FileSystem",
    "LocalFileSystem",
    "TextExportHandler",
    "RtfExportHandler",
    "EpubExportHandler",
    "ExportService",
    "export_service",
    "html_to_text",
    "html_to_rtf",
]

# SPDX-License-Identifier: Apache-2.0
"""
EPUB template engine.

- types:            EpubFile / EpubMetadata / EpubTemplateContext / EpubTemplate
- template_engine:  {{placeholder}} rendering with XML escaping
- base:             generate_manifest_and_nav() and shared document skeletons
- templates:        generic_novel, modern_compact, classic_book
- handler:          EpubExportHandler (registry, metadata, zip container)
"""
from __future__ import annotations

from .base import generate_manifest_and_nav, html_to_xhtml
from .handler import EpubExportHandler
from .templates import ClassicBookTemplate, GenericNovelTemplate, ModernCompactTemplate, NovelTemplate
from .types import ContentDocument, EpubFile, EpubMetadata, EpubTemplate, EpubTemplateContext

__all__ = [
    "EpubExportHandler",
    "EpubFile",
    "EpubMetadata",
    "EpubTemplate",
    "EpubTemplateContext",
    "ContentDocument",
    "NovelTemplate",
    "GenericNovelTemplate",
    "ModernCompactTemplate",
    "ClassicBookTemplate",
    "generate_manifest_and_nav",
    "html_to_xhtml",
]

# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, Sequence, Tuple, Union, runtime_checkable

from ....models.export import ExportOptions
from ....models.project import Project

XHTML_MEDIA_TYPE = "application/xhtml+xml"
CSS_MEDIA_TYPE = "text/css"
NCX_MEDIA_TYPE = "application/x-dtbncx+xml"
OPF_MEDIA_TYPE = "application/oebps-package+xml"
EPUB_MIMETYPE = "application/epub+zip"


@dataclass(frozen=True)
class EpubFile:
    """One entry of the output archive; `path` is relative to the archive root."""
    path: str
    content: Union[str, bytes]
    media_type: Optional[str] = None

    def data(self) -> bytes:
        if isinstance(self.content, bytes):
            return self.content
        return self.content.encode("utf-8")


@dataclass(frozen=True)
class ManifestItem:
    id: str
    href: str
    media_type: str
    properties: Optional[str] = None


@dataclass(frozen=True)
class TocEntry:
    id: str
    title: str
    href: str
    children: Tuple["TocEntry", ...] = ()


@dataclass(frozen=True)
class EpubMetadata:
    title: str
    author: str
    language: str
    identifier: str
    modified: str
    description: Optional[str] = None
    publisher: Optional[str] = None
    date: Optional[str] = None
    rights: Optional[str] = None
    subjects: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ContentDocument:
    """
    A spine document before packaging. `toc_children` become nested
    navigation entries pointing into this document.
    """
    id: str
    href: str
    title: str
    xhtml: str
    toc_children: Tuple[TocEntry, ...] = ()


@dataclass
class EpubTemplateContext:
    project: Project
    options: ExportOptions
    metadata: EpubMetadata
    css: str
    flags: Dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class EpubTemplate(Protocol):
    name: str
    description: str

    def css(self) -> str: ...

    def generate_files(self, context: EpubTemplateContext) -> Sequence[EpubFile]: ...


@dataclass(frozen=True)
class TemplateDefinition:
    key: str
    name: str
    description: str


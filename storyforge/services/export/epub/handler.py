# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import datetime as dt
import io
import logging
import uuid
import zipfile
from typing import Dict, List, Optional, Sequence, Tuple

from ....config import settings
from ....errors import UnknownTemplate
from ....models.export import EpubMetadataOptions, ExportOptions
from ....models.project import Project
from ..base import BaseExportHandler
from ..persistence import FileSystem
from .templates import BUILTIN_TEMPLATES
from .types import (
    EPUB_MIMETYPE,
    EpubFile,
    EpubMetadata,
    EpubTemplate,
    EpubTemplateContext,
    TemplateDefinition,
)

log = logging.getLogger("storyforge.export.epub")

# Fixed entry timestamp so identical inputs give byte-identical archives
_ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)
_ID_NAMESPACE = uuid.UUID("0b1b6f2e-5c4e-4d8a-9a55-6f0f3c8e2d11")


def _as_utc(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


def _first(*values: Optional[str]) -> Optional[str]:
    for v in values:
        if v and v.strip():
            return v.strip()
    return None


class EpubExportHandler(BaseExportHandler):
    """
    EPUB export: template registry, metadata resolution and zip packaging.

    Unknown template names at export time fall back to the default template
    (logged as a warning) rather than failing; only `set_default_template`
    raises UnknownTemplate.
    """

    FALLBACK_TEMPLATE = "generic_novel"

    def __init__(self, filesystem: Optional[FileSystem] = None) -> None:
        super().__init__(filesystem)
        self._templates: Dict[str, EpubTemplate] = {}
        for key, factory in BUILTIN_TEMPLATES:
            self.register_template(key, factory())
        self.default_template_name = (
            settings.DEFAULT_EPUB_TEMPLATE
            if settings.DEFAULT_EPUB_TEMPLATE in self._templates
            else self.FALLBACK_TEMPLATE
        )

    def file_extension(self) -> str:
        return "epub"

    def mime_type(self) -> str:
        return EPUB_MIMETYPE

    def filter_label(self) -> str:
        return "EPUB Files"

    # --- template registry ------------------------------------------------

    def register_template(self, key: str, template: EpubTemplate) -> None:
        self._templates[key] = template

    def available_templates(self) -> List[str]:
        return list(self._templates.keys())

    def template_definitions(self) -> List[TemplateDefinition]:
        return [
            TemplateDefinition(key=k, name=t.name, description=t.description)
            for k, t in self._templates.items()
        ]

    def get_template(self, key: str) -> Optional[EpubTemplate]:
        return self._templates.get(key)

    def set_default_template(self, key: str) -> None:
        if key not in self._templates:
            raise UnknownTemplate(key)
        self.default_template_name = key

    def resolve_template(self, key: Optional[str]) -> Tuple[str, EpubTemplate]:
        if key and key in self._templates:
            return key, self._templates[key]
        if key:
            log.warning(
                "Unknown EPUB template, falling back to default",
                extra={"requested": key, "fallback": self.default_template_name},
            )
        return self.default_template_name, self._templates[self.default_template_name]

    # --- metadata ---------------------------------------------------------

    def resolve_metadata(self, project: Project, options: ExportOptions) -> EpubMetadata:
        """
        Precedence per field: export override > project's saved EPUB metadata
        > configured defaults.
        """
        override = options.metadata_overrides or EpubMetadataOptions()
        saved = project.epub_metadata or EpubMetadataOptions()
        updated = _as_utc(project.updated_at)

        subjects = override.subjects or saved.subjects
        return EpubMetadata(
            title=project.title.strip() or "Untitled",
            author=_first(override.author, saved.author, settings.EPUB_DEFAULT_AUTHOR) or "",
            language=_first(override.language, saved.language, settings.EPUB_DEFAULT_LANGUAGE) or "en",
            identifier=f"urn:uuid:{uuid.uuid5(_ID_NAMESPACE, project.id)}",
            modified=updated.strftime("%Y-%m-%dT%H:%M:%SZ"),
            description=project.description.strip() or None,
            publisher=_first(override.publisher, saved.publisher, settings.EPUB_DEFAULT_PUBLISHER),
            date=updated.date().isoformat(),
            rights=_first(override.rights, saved.rights, settings.EPUB_DEFAULT_RIGHTS),
            subjects=tuple(subjects),
        )

    # --- rendering --------------------------------------------------------

    def build_files(self, project: Project, options: ExportOptions) -> List[EpubFile]:
        """The archive's file list (without the leading mimetype entry)."""
        key, template = self.resolve_template(options.template_name)
        context = EpubTemplateContext(
            project=project,
            options=options,
            metadata=self.resolve_metadata(project, options),
            css=template.css(),
            flags={"template_key": key},
        )
        files = list(template.generate_files(context))
        paths = [f.path for f in files]
        if len(set(paths)) != len(paths) or "mimetype" in paths:
            raise ValueError(f"template '{key}' emitted duplicate or reserved paths")
        return files

    def render(self, project: Project, options: ExportOptions) -> bytes:
        files = self.build_files(project, options)
        data = self.create_archive(files)
        log.debug(
            "EPUB export rendered",
            extra={"project_id": project.id, "files": len(files), "bytes": len(data)},
        )
        return data

    @staticmethod
    def create_archive(files: Sequence[EpubFile]) -> bytes:
        """
        Zip the files into an EPUB container: 'mimetype' first and stored
        uncompressed, everything else deflated.
        """
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as zout:
            info = zipfile.ZipInfo("mimetype", date_time=_ZIP_EPOCH)
            info.compress_type = zipfile.ZIP_STORED
            zout.writestr(info, EPUB_MIMETYPE.encode("ascii"))
            for f in files:
                info = zipfile.ZipInfo(f.path, date_time=_ZIP_EPOCH)
                info.compress_type = zipfile.ZIP_DEFLATED
                info.external_attr = 0o644 << 16
                zout.writestr(info, f.data())
        return buf.getvalue()

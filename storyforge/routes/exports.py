# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import io
import logging
from typing import Any, Dict, List, Tuple

from flask import Blueprint, Response, current_app, send_file
from pydantic import ValidationError

from ..errors import ExportFailed, InvalidProject, UnsupportedFormat
from ..models.export import ExportOptions
from ..models.project import Project
from ..services.export import EpubExportHandler, ExportService
from ..utils.fs import slugify_title
from . import get_json, json_err, json_ok

bp = Blueprint("exports", __name__)
log = logging.getLogger("storyforge.routes.exports")


class _BadOptions(Exception):
    def __init__(self, errors: List[str]) -> None:
        self.errors = errors
        super().__init__("Invalid export options")


def _service() -> ExportService:
    return current_app.extensions["storyforge.exports"]


def _messages(e: ValidationError) -> List[str]:
    return [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]


def _parse_request() -> Tuple[Project, ExportOptions]:
    """Body: { "project": {...Project...}, "options": {...ExportOptions...} }"""
    data, ok = get_json()
    if not ok:
        raise InvalidProject("Request body must be a JSON object")
    raw_project = data.get("project")
    if not isinstance(raw_project, dict):
        raise InvalidProject()
    try:
        project = Project.model_validate(raw_project)
    except ValidationError as e:
        raise InvalidProject(f"Invalid project: {'; '.join(_messages(e))}") from e
    try:
        options = ExportOptions.model_validate(data.get("options") or {})
    except ValidationError as e:
        raise _BadOptions(_messages(e)) from e
    return project, options


@bp.errorhandler(InvalidProject)
def _invalid_project(e: InvalidProject):
    return json_err("invalid_project", str(e), status=400)


@bp.errorhandler(UnsupportedFormat)
def _unsupported_format(e: UnsupportedFormat):
    return json_err(
        "unsupported_format",
        str(e),
        details={"available": _service().available_formats()},
        status=400,
    )


@bp.errorhandler(_BadOptions)
def _bad_options(e: _BadOptions):
    return json_err("invalid_options", str(e), details=e.errors, status=400)


@bp.errorhandler(ExportFailed)
def _export_failed(e: ExportFailed):
    log.error("Export failed", extra={"path": e.path, "error": str(e)})
    return json_err("export_failed", str(e), details={"path": e.path}, status=500)


@bp.get("/formats")
def formats() -> Any:
    service = _service()
    items: List[Dict[str, Any]] = []
    for fmt in service.available_formats():
        handler = service.get_handler(fmt)
        items.append(
            {
                "id": fmt,
                "extension": handler.file_extension(),
                "mimeType": handler.mime_type(),
                "label": handler.filter_label(),
            }
        )
    return json_ok({"formats": items})


@bp.get("/templates")
def templates() -> Any:
    handler = _service().get_handler("epub")
    if not isinstance(handler, EpubExportHandler):
        return json_ok({"templates": [], "default": None})
    return json_ok(
        {
            "templates": [
                {"key": d.key, "name": d.name, "description": d.description}
                for d in handler.template_definitions()
            ],
            "default": handler.default_template_name,
        }
    )


@bp.post("/content")
def export_content() -> Any:
    """
    POST /api/exports/content
    Renders without persisting. Text formats come back as the response body,
    binary formats (EPUB) as a file attachment.
    """
    project, options = _parse_request()
    service = _service()
    payload = service.export_content(project, options)
    handler = service.get_handler(options.format)
    filename = f"{slugify_title(project.title)}.{handler.file_extension()}"

    if isinstance(payload, bytes):
        return send_file(
            io.BytesIO(payload),
            mimetype=handler.mime_type(),
            as_attachment=True,
            download_name=filename,
        )
    resp = Response(payload, mimetype=handler.mime_type())
    resp.headers["Content-Disposition"] = f'inline; filename="{filename}"'
    return resp


@bp.post("")
def export_project() -> Any:
    """
    POST /api/exports
    Renders and writes into the configured export directory.
    Returns: { "path": "/abs/exports/my_book.epub", "format": "epub" }
    """
    project, options = _parse_request()
    path = _service().export_project(project, options)
    if path is None:
        return json_ok({"path": None, "format": options.format, "cancelled": True})
    return json_ok({"path": str(path), "format": options.format}, status=201)

# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import platform
import sys
from typing import Any, Dict

from flask import Blueprint, current_app

from .. import __version__
from . import json_ok

bp = Blueprint("health", __name__)


@bp.get("")
def health() -> Any:
    service = current_app.extensions["storyforge.exports"]
    info: Dict[str, Any] = {
        "service": "storyforge-api",
        "version": __version__,
        "python": sys.version.split()[0],
        "platform": platform.platform(terse=True),
        "formats": service.available_formats(),
    }
    return json_ok({"status": "ok", "info": info})

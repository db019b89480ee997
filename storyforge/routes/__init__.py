# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import secrets
import time
from typing import Any, Dict, Tuple

from flask import jsonify, make_response, request
from werkzeug.exceptions import BadRequest


def request_id() -> str:
    rid = request.headers.get("X-Request-ID")
    return rid or f"req_{int(time.time()*1000)}_{secrets.token_hex(6)}"


def apply_security_headers(resp):
    resp.headers.setdefault("X-Request-ID", request_id())
    resp.headers.setdefault("X-Content-Type-Options", "nosniff")
    resp.headers.setdefault("X-Frame-Options", "SAMEORIGIN")
    resp.headers.setdefault("Referrer-Policy", "no-referrer-when-downgrade")
    return resp


def json_ok(payload: Dict[str, Any], status: int = 200):
    resp = make_response(jsonify({"ok": True, **payload}), status)
    resp.headers.setdefault("Cache-Control", "no-store")
    return apply_security_headers(resp)


def json_err(code: str, message: str, details: Any | None = None, status: int = 400):
    resp = make_response(
        jsonify({"ok": False, "error": {"code": code, "message": message, "details": details}}),
        status,
    )
    resp.headers.setdefault("Cache-Control", "no-store")
    return apply_security_headers(resp)


def get_json() -> Tuple[dict, bool]:
    """
    Return (data, ok). A body that is not a JSON object gives ({}, False).
    """
    try:
        data = request.get_json(force=True)
    except BadRequest:
        return ({}, False)
    if not isinstance(data, dict):
        return ({}, False)
    return (data, True)

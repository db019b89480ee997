# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import uuid


def generate_id(prefix: str) -> str:
    """Globally unique id such as 'scene-3f2a...'; never reused."""
    return f"{prefix}-{uuid.uuid4().hex}"

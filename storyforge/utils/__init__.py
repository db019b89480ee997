# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations
"""
Utility package for storyforge.
Exports:
- fs: filesystem helpers (safe filenames, atomic writes)
- ids: identifier generation
- text: HTML stripping and word counting
"""
from . import fs as fs  # re-export
from . import ids as ids  # re-export
from . import text as text  # re-export
__all__ = ["fs", "ids", "text"]

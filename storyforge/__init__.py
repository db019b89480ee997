# SPDX-License-Identifier: Apache-2.0
"""
storyforge

Document model and multi-format export pipeline for long-form writing
projects (project -> chapters -> scenes, plus notes).
Exposes nothing at import-time beyond the version to keep startup fast.
"""
from __future__ import annotations

__version__ = "0.4.0"

__all__ = ["__version__"]

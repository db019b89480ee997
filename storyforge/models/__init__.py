# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

# Re-export commonly used models for convenience
from .export import EpubExportOptions, EpubMetadataOptions, ExportFormat, ExportOptions
from .progress import ChartDataPoint, DailyProgress, ProgressGoals, ProgressStats
from .project import Chapter, Note, Project, Scene

__all__ = [
    "Project",
    "Chapter",
    "Scene",
    "Note",
    "ExportFormat",
    "ExportOptions",
    "EpubExportOptions",
    "EpubMetadataOptions",
    "ProgressGoals",
    "DailyProgress",
    "ProgressStats",
    "ChartDataPoint",
]

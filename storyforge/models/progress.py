# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field

MAX_WORD_TARGET = 50_000


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class ProgressGoals(BaseModel):
    """
    Daily and (optional) whole-project word targets.
    """
    daily_word_target: int = Field(default=500, ge=1, le=MAX_WORD_TARGET)
    project_word_target: Optional[int] = Field(default=None, ge=1, le=MAX_WORD_TARGET * 100)
    created_at: dt.datetime = Field(default_factory=_utcnow)
    updated_at: dt.datetime = Field(default_factory=_utcnow)


class DailyProgress(BaseModel):
    """
    One calendar day of writing activity.
    """
    date: dt.date
    words_written: int = Field(default=0, ge=0)
    goal_met: bool = False
    sessions_count: int = Field(default=0, ge=0)
    created_at: dt.datetime = Field(default_factory=_utcnow)
    updated_at: dt.datetime = Field(default_factory=_utcnow)


class ProgressStats(BaseModel):
    current_streak: int = 0
    longest_streak: int = 0
    total_days_active: int = 0
    average_daily_words: int = 0
    estimated_completion_date: Optional[dt.date] = None


class ChartDataPoint(BaseModel):
    date: dt.date
    words_written: int
    goal_target: int
    goal_met: bool
    is_today: bool

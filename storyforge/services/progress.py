# SPDX-License-Identifier: Apache-2.0
"""
Daily writing progress derived from a project's word count.

The coordinator only reads the project, through an accessor callable, so the
document model never needs to know about it. Hook it up with
`coordinator.watch(project)` to re-sync after every edit, or call
`sync_with_project()` on demand.
"""
from __future__ import annotations

import datetime as dt
import logging
import math
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from ..config import settings
from ..models.progress import (
    MAX_WORD_TARGET,
    ChartDataPoint,
    DailyProgress,
    ProgressGoals,
    ProgressStats,
)
from ..models.project import Project
from ..utils.text import is_meaningful_change

log = logging.getLogger("storyforge.services.progress")

ProjectAccessor = Callable[[], Optional[Project]]
Clock = Callable[[], dt.date]

_ONE_DAY = dt.timedelta(days=1)
# edits closer together than this belong to the same writing session
SESSION_GAP = dt.timedelta(minutes=5)


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _validate_target(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 < value <= MAX_WORD_TARGET:
        raise ValueError(f"word target must be an integer in 1..{MAX_WORD_TARGET}, got {value!r}")
    return value


class ProgressCoordinator:
    def __init__(
        self,
        project_accessor: ProjectAccessor,
        daily_target: Optional[int] = None,
        clock: Clock = dt.date.today,
        history: Iterable[DailyProgress] = (),
        snapshots: Optional[Mapping[dt.date, int]] = None,
    ) -> None:
        self._project = project_accessor
        self._clock = clock
        if daily_target is None:
            daily_target = settings.DAILY_WORD_TARGET
        self.goals = ProgressGoals(daily_word_target=_validate_target(daily_target))
        self._days: Dict[dt.date, DailyProgress] = {p.date: p for p in history}
        # word total at the start of each day; today's delta is measured from it
        self._baselines: Dict[dt.date, int] = dict(snapshots or {})
        self._last_total: Optional[int] = None
        self._last_session_at: Optional[dt.datetime] = None
        self._longest_streak = self._longest_run()

    # --- wiring -------------------------------------------------------------

    def watch(self, project: Project) -> Callable[[], None]:
        """
        Sync now (fixing today's baseline) and again after each edit of
        `project`. Returns the unsubscribe callable.
        """
        self.sync_with_project()
        return project.subscribe(lambda _project: self.sync_with_project())

    # --- goals --------------------------------------------------------------

    def set_daily_goal(self, target: int) -> ProgressGoals:
        self.goals = self.goals.model_copy(
            update={"daily_word_target": _validate_target(target), "updated_at": _utcnow()}
        )
        today = self._clock()
        if today in self._days:
            self.record_day(today, self._days[today].words_written)
        return self.goals

    def set_project_goal(self, target: int) -> ProgressGoals:
        self.goals = self.goals.model_copy(
            update={"project_word_target": _validate_target(target), "updated_at": _utcnow()}
        )
        return self.goals

    # --- recording ------------------------------------------------------------

    def sync_with_project(self) -> Optional[DailyProgress]:
        """
        Recompute today's words written as (current total - today's baseline).

        The first sync of a day fixes the baseline at the last total seen (the
        previous day's end), or at the current total when nothing was ever
        recorded, so opening a project never counts existing text as new.
        """
        project = self._project()
        if project is None:
            return None

        today = self._clock()
        total = project.total_word_count
        baseline = self._baselines.get(today)
        if baseline is None:
            baseline = self._last_total if self._last_total is not None else total
            self._baselines[today] = baseline

        self._last_total = total
        entry = self.record_day(today, max(0, total - baseline))
        log.debug(
            "Progress synced",
            extra={"date": today.isoformat(), "total": total, "words_today": entry.words_written},
        )
        return entry

    def record_day(self, day: dt.date, words_written: int) -> DailyProgress:
        if words_written < 0:
            raise ValueError("words_written cannot be negative")
        existing = self._days.get(day)
        now = _utcnow()
        entry = DailyProgress(
            date=day,
            words_written=words_written,
            goal_met=words_written >= self.goals.daily_word_target,
            sessions_count=existing.sessions_count if existing else 0,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        self._days[day] = entry
        self._longest_streak = max(self._longest_streak, self._longest_run())
        return entry

    def increment_session(self) -> DailyProgress:
        today = self._clock()
        existing = self._days.get(today)
        if existing is None:
            existing = self.record_day(today, 0)
        entry = existing.model_copy(
            update={"sessions_count": existing.sessions_count + 1, "updated_at": _utcnow()}
        )
        self._days[today] = entry
        return entry

    def record_edit(self, new_html: str, old_html: str) -> bool:
        """
        Count a writing session for a meaningful scene edit (at least 5 words or
        25 characters changed), at most once per SESSION_GAP. Returns True when
        a new session was counted.
        """
        if not is_meaningful_change(new_html, old_html):
            return False
        now = _utcnow()
        if self._last_session_at is not None and now - self._last_session_at < SESSION_GAP:
            return False
        self._last_session_at = now
        self.increment_session()
        return True

    def reset(self) -> None:
        self._days.clear()
        self._baselines.clear()
        self._last_total = None
        self._last_session_at = None
        self._longest_streak = 0

    # --- views ----------------------------------------------------------------

    @property
    def history(self) -> List[DailyProgress]:
        return [self._days[d] for d in sorted(self._days)]

    @property
    def snapshots(self) -> Dict[dt.date, int]:
        return dict(self._baselines)

    @property
    def todays_progress(self) -> Optional[DailyProgress]:
        return self._days.get(self._clock())

    @property
    def todays_percentage(self) -> int:
        entry = self.todays_progress
        if entry is None:
            return 0
        return min(100, int(entry.words_written * 100 / self.goals.daily_word_target + 0.5))

    @property
    def current_streak(self) -> int:
        """
        Consecutive goal-met days ending today, or ending yesterday while
        today's goal is still open. A missed or absent day breaks it.
        """
        today = self._clock()
        entry = self._days.get(today)
        end = today if entry is not None and entry.goal_met else today - _ONE_DAY
        return self._streak_ending(end)

    @property
    def longest_streak(self) -> int:
        return max(self._longest_streak, self.current_streak)

    def _streak_ending(self, end: dt.date) -> int:
        count = 0
        day = end
        while day in self._days and self._days[day].goal_met:
            count += 1
            day -= _ONE_DAY
        return count

    def _longest_run(self) -> int:
        best = run = 0
        prev: Optional[dt.date] = None
        for day in sorted(self._days):
            if not self._days[day].goal_met:
                run = 0
            elif prev is not None and day - prev == _ONE_DAY and run:
                run += 1
            else:
                run = 1
            best = max(best, run)
            prev = day
        return best

    def stats(self) -> ProgressStats:
        active = [p for p in self._days.values() if p.words_written > 0]
        total_words = sum(p.words_written for p in active)
        average = int(total_words / len(active) + 0.5) if active else 0

        completion: Optional[dt.date] = None
        project = self._project()
        target = self.goals.project_word_target
        if project is not None and target and average > 0:
            remaining = target - project.total_word_count
            if remaining > 0:
                completion = self._clock() + dt.timedelta(days=math.ceil(remaining / average))

        return ProgressStats(
            current_streak=self.current_streak,
            longest_streak=self.longest_streak,
            total_days_active=len(active),
            average_daily_words=average,
            estimated_completion_date=completion,
        )

    def daily_history(self, days: int) -> List[DailyProgress]:
        if days <= 0:
            return []
        today = self._clock()
        start = today - dt.timedelta(days=days - 1)
        return [p for p in self.history if start <= p.date <= today]

    def chart_data(self, days: Optional[int] = None) -> List[ChartDataPoint]:
        """One point per calendar day over the window ending today, gaps included."""
        if days is None:
            days = settings.CHART_DAYS
        today = self._clock()
        target = self.goals.daily_word_target
        points: List[ChartDataPoint] = []
        for offset in range(days - 1, -1, -1):
            day = today - dt.timedelta(days=offset)
            entry = self._days.get(day)
            points.append(
                ChartDataPoint(
                    date=day,
                    words_written=entry.words_written if entry else 0,
                    goal_target=target,
                    goal_met=entry.goal_met if entry else False,
                    is_today=day == today,
                )
            )
        return points

# tests/test_progress.py
from __future__ import annotations

import datetime as dt

import pytest

from storyforge.services.progress import ProgressCoordinator


def _coordinator(project, clock, target=100):
    return ProgressCoordinator(lambda: project, daily_target=target, clock=clock)


def _day(clock, offset: int) -> dt.date:
    return clock.day + dt.timedelta(days=offset)


def test_first_sync_never_counts_existing_text(project, clock):
    coord = _coordinator(project, clock)
    entry = coord.sync_with_project()
    assert entry.words_written == 0
    assert entry.goal_met is False
    assert coord.snapshots == {clock.day: 10}


def test_watch_tracks_edits(project, clock):
    coord = _coordinator(project, clock, target=3)
    unsubscribe = coord.watch(project)
    ch = project.ordered_chapters()[0]
    scene = ch.ordered_scenes()[0]

    project.update_scene_content(ch.id, scene.id, "<p>one two three four five six</p>")
    assert coord.todays_progress.words_written == 3
    assert coord.todays_progress.goal_met is True

    unsubscribe()
    project.update_scene_content(ch.id, scene.id, "<p>" + "w " * 20 + "</p>")
    assert coord.todays_progress.words_written == 3


def test_deleting_text_floors_at_zero(project, clock):
    coord = _coordinator(project, clock)
    coord.watch(project)
    ch = project.ordered_chapters()[0]
    project.update_scene_content(ch.id, ch.ordered_scenes()[0].id, "")
    assert coord.todays_progress.words_written == 0


def test_new_day_starts_from_last_total(project, clock):
    coord = _coordinator(project, clock)
    coord.watch(project)
    ch = project.ordered_chapters()[0]
    scene = ch.ordered_scenes()[0]
    project.update_scene_content(ch.id, scene.id, "<p>a b c d e</p>")  # +2
    assert coord.todays_progress.words_written == 2

    clock.advance()
    coord.sync_with_project()
    assert coord.todays_progress.words_written == 0
    project.update_scene_content(ch.id, scene.id, "<p>a b c d e f g</p>")  # +2 more
    assert coord.todays_progress.words_written == 2
    assert [p.words_written for p in coord.history] == [2, 2]


def test_sync_without_project_is_a_no_op(clock):
    coord = ProgressCoordinator(lambda: None, clock=clock)
    assert coord.sync_with_project() is None
    assert coord.history == []


def test_sync_does_not_modify_project(project, clock):
    before = project.model_dump()
    _coordinator(project, clock).sync_with_project()
    assert project.model_dump() == before


def test_streak_counts_back_from_yesterday_until_today_is_met(project, clock):
    coord = _coordinator(project, clock)
    coord.record_day(_day(clock, -2), 150)
    coord.record_day(_day(clock, -1), 120)
    assert coord.current_streak == 2

    coord.record_day(clock.day, 50)
    assert coord.current_streak == 2

    coord.record_day(clock.day, 100)
    assert coord.current_streak == 3
    assert coord.longest_streak == 3


def test_missed_day_resets_streak_but_not_longest(project, clock):
    coord = _coordinator(project, clock)
    for offset in (-3, -2, -1, 0):
        coord.record_day(_day(clock, offset), 200)
    assert coord.current_streak == 4

    coord.record_day(_day(clock, -1), 10)
    assert coord.current_streak == 1
    assert coord.longest_streak == 4


def test_absent_day_breaks_streak(project, clock):
    coord = _coordinator(project, clock)
    coord.record_day(_day(clock, -3), 500)
    coord.record_day(_day(clock, -1), 500)
    assert coord.current_streak == 1
    assert coord.longest_streak == 1


def test_streak_resets_when_yesterday_missed(project, clock):
    coord = _coordinator(project, clock)
    coord.record_day(_day(clock, -2), 500)
    assert coord.current_streak == 0
    assert coord.longest_streak == 1


@pytest.mark.parametrize("bad", [0, -5, 50_001, "100", 1.5, True])
def test_goal_bounds(project, clock, bad):
    coord = _coordinator(project, clock)
    with pytest.raises(ValueError):
        coord.set_daily_goal(bad)
    with pytest.raises(ValueError):
        coord.set_project_goal(bad)


def test_daily_goal_change_reevaluates_today(project, clock):
    coord = _coordinator(project, clock, target=500)
    coord.record_day(clock.day, 300)
    assert coord.todays_progress.goal_met is False
    coord.set_daily_goal(250)
    assert coord.goals.daily_word_target == 250
    assert coord.todays_progress.goal_met is True


def test_todays_percentage(project, clock):
    coord = _coordinator(project, clock, target=200)
    assert coord.todays_percentage == 0
    coord.record_day(clock.day, 50)
    assert coord.todays_percentage == 25
    coord.record_day(clock.day, 450)
    assert coord.todays_percentage == 100


def test_sessions(project, clock):
    coord = _coordinator(project, clock)
    assert coord.increment_session().sessions_count == 1
    coord.record_day(clock.day, 40)
    entry = coord.increment_session()
    assert entry.sessions_count == 2
    assert entry.words_written == 40


def test_record_edit_counts_meaningful_changes_once(project, clock):
    coord = _coordinator(project, clock)
    assert coord.record_edit("<p>hello</p>", "<p>hell</p>") is False
    assert coord.record_edit("<p>one two three four five six</p>", "<p>one</p>") is True
    assert coord.record_edit("<p>" + "x " * 30 + "</p>", "") is False
    assert coord.todays_progress.sessions_count == 1


def test_stats_and_completion_estimate(project, clock):
    coord = _coordinator(project, clock)
    coord.record_day(_day(clock, -2), 200)
    coord.record_day(_day(clock, -1), 0)
    coord.record_day(clock.day, 400)
    coord.set_project_goal(610)

    stats = coord.stats()
    assert stats.total_days_active == 2
    assert stats.average_daily_words == 300
    assert stats.current_streak == 1
    assert stats.longest_streak == 1
    assert stats.estimated_completion_date == _day(clock, 2)


def test_no_estimate_without_project_goal(project, clock):
    coord = _coordinator(project, clock)
    coord.record_day(clock.day, 400)
    assert coord.stats().estimated_completion_date is None


def test_chart_data_covers_every_day(project, clock):
    coord = _coordinator(project, clock)
    coord.record_day(_day(clock, -3), 150)
    coord.record_day(clock.day, 20)

    points = coord.chart_data(7)
    assert len(points) == 7
    assert [p.date for p in points] == [_day(clock, o) for o in range(-6, 1)]
    assert [p.words_written for p in points] == [0, 0, 0, 150, 0, 0, 20]
    assert [p.is_today for p in points] == [False] * 6 + [True]
    assert points[3].goal_met is True
    assert all(p.goal_target == 100 for p in points)


def test_chart_data_default_window(project, clock):
    assert len(_coordinator(project, clock).chart_data()) == 30


def test_daily_history_window(project, clock):
    coord = _coordinator(project, clock)
    for offset in (-5, -1, 0):
        coord.record_day(_day(clock, offset), 10)
    assert [p.date for p in coord.daily_history(2)] == [_day(clock, -1), clock.day]
    assert coord.daily_history(0) == []


def test_history_can_be_restored(project, clock):
    coord = _coordinator(project, clock)
    coord.record_day(_day(clock, -1), 300)
    coord.record_day(clock.day, 120)

    restored = ProgressCoordinator(
        lambda: project, daily_target=100, clock=clock, history=coord.history, snapshots=coord.snapshots
    )
    assert restored.current_streak == 2
    assert restored.todays_progress.words_written == 120

    restored.reset()
    assert restored.history == []
    assert restored.longest_streak == 0


def test_zero_daily_target_is_rejected_not_defaulted(project, clock):
    with pytest.raises(ValueError):
        ProgressCoordinator(lambda: project, daily_target=0, clock=clock)


def test_chart_data_zero_days_is_empty(project, clock):
    coord = _coordinator(project, clock)
    coord.sync_with_project()
    assert coord.chart_data(0) == []
    assert len(coord.chart_data()) > 0

"""Tests for the XP / level / streak engine."""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from feynlearn.models.session import Session, SessionStatus
from feynlearn.models.user_profile import UserProfile
from feynlearn.progression.engine import (
    apply_daily_check,
    apply_session_completion,
    level_for_xp,
    recalculate,
)
from feynlearn.progression.events import (
    LevelUp,
    SessionMilestone,
    StreakLost,
    StreakMilestone,
    XpMilestone,
)

NOW = datetime(2026, 3, 10, 15, 0, tzinfo=timezone.utc)


def make_profile(**kwargs) -> UserProfile:
    kwargs.setdefault("uid", "alice")
    if "xp" in kwargs and "level" not in kwargs:
        kwargs["level"] = level_for_xp(kwargs["xp"])
    return UserProfile(**kwargs)


def completed(xp_earned: int, score: int) -> Session:
    return Session(
        uid="alice",
        topic="Photosynthesis",
        subject="Biology",
        status=SessionStatus.COMPLETED,
        xp_earned=xp_earned,
        score=score,
    )


class TestLevelForXp:
    @pytest.mark.parametrize(
        "xp,level",
        [(0, 1), (499, 1), (500, 2), (999, 2), (1000, 3), (12345, 25)],
    )
    def test_level_formula(self, xp, level):
        assert level_for_xp(xp) == level


class TestApplySessionCompletion:
    def test_counters_and_level(self):
        profile = make_profile(xp=100, total_sessions=2, total_points=150)
        updated, _ = apply_session_completion(profile, score=80, xp_earned=40)
        assert updated.xp == 140
        assert updated.total_sessions == 3
        assert updated.total_points == 230
        assert updated.level == level_for_xp(140)

    def test_does_not_mutate_input(self):
        profile = make_profile(xp=100, total_sessions=2)
        apply_session_completion(profile, score=80, xp_earned=40)
        assert profile.xp == 100
        assert profile.total_sessions == 2

    def test_zero_xp_is_monotonic(self):
        profile = make_profile(xp=321, total_sessions=3)
        updated, events = apply_session_completion(profile, score=0, xp_earned=0)
        assert updated.xp == 321
        assert updated.total_sessions == 4
        assert events == []

    def test_first_session_milestone(self):
        _, events = apply_session_completion(make_profile(), score=50, xp_earned=10)
        assert events == [SessionMilestone(sessions=1)]

    def test_tenth_session_milestone(self):
        profile = make_profile(xp=200, total_sessions=9)
        _, events = apply_session_completion(profile, score=50, xp_earned=10)
        assert SessionMilestone(sessions=10) in events

    def test_non_milestone_count_emits_nothing(self):
        profile = make_profile(xp=200, total_sessions=10)
        _, events = apply_session_completion(profile, score=50, xp_earned=10)
        assert not any(isinstance(e, SessionMilestone) for e in events)

    def test_level_up(self):
        profile = make_profile(xp=490, total_sessions=3)
        updated, events = apply_session_completion(profile, score=50, xp_earned=20)
        assert updated.level == 2
        assert LevelUp(level=2) in events

    def test_only_lowest_crossed_xp_milestone(self):
        profile = make_profile(xp=50, total_sessions=3)
        _, events = apply_session_completion(profile, score=50, xp_earned=500)
        xp_events = [e for e in events if isinstance(e, XpMilestone)]
        assert xp_events == [XpMilestone(threshold=100)]

    def test_xp_milestone_is_inclusive_at_threshold(self):
        profile = make_profile(xp=99, total_sessions=3)
        _, events = apply_session_completion(profile, score=50, xp_earned=1)
        assert XpMilestone(threshold=100) in events

    def test_xp_milestone_not_repeated_once_passed(self):
        profile = make_profile(xp=100, total_sessions=3)
        _, events = apply_session_completion(profile, score=50, xp_earned=50)
        assert not any(isinstance(e, XpMilestone) for e in events)

    def test_event_order(self):
        profile = make_profile(xp=480, total_sessions=9)
        _, events = apply_session_completion(profile, score=90, xp_earned=40)
        assert events == [
            SessionMilestone(sessions=10),
            LevelUp(level=2),
            XpMilestone(threshold=500),
        ]


class TestApplyDailyCheck:
    def test_same_day_is_unchanged(self):
        profile = make_profile(streak=4, last_active_date=NOW.replace(hour=1))
        for _ in range(3):
            streak, events = apply_daily_check(profile, NOW)
            assert streak == 4
            assert events == []

    def test_next_day_increments(self):
        profile = make_profile(streak=1, last_active_date=NOW - timedelta(days=1))
        streak, events = apply_daily_check(profile, NOW)
        assert streak == 2
        assert events == []

    def test_calendar_day_not_24_hours(self):
        last = datetime(2026, 3, 9, 23, 55, tzinfo=timezone.utc)
        profile = make_profile(streak=1, last_active_date=last)
        streak, _ = apply_daily_check(profile, datetime(2026, 3, 10, 0, 5, tzinfo=timezone.utc))
        assert streak == 2

    @pytest.mark.parametrize("new_streak", [3, 7, 14, 21, 30, 60, 90, 365])
    def test_streak_milestones(self, new_streak):
        profile = make_profile(streak=new_streak - 1, last_active_date=NOW - timedelta(days=1))
        streak, events = apply_daily_check(profile, NOW)
        assert streak == new_streak
        assert events == [StreakMilestone(streak=new_streak)]

    def test_gap_with_long_streak_emits_loss(self):
        profile = make_profile(streak=5, last_active_date=NOW - timedelta(days=3))
        streak, events = apply_daily_check(profile, NOW)
        assert streak == 1
        assert events == [StreakLost(previous_streak=5)]

    def test_gap_with_short_streak_resets_silently(self):
        profile = make_profile(streak=2, last_active_date=NOW - timedelta(days=2))
        streak, events = apply_daily_check(profile, NOW)
        assert streak == 1
        assert events == []

    def test_clock_skew_is_same_day(self):
        profile = make_profile(streak=6, last_active_date=NOW + timedelta(days=2))
        streak, events = apply_daily_check(profile, NOW)
        assert streak == 6
        assert events == []

    def test_missing_last_active_starts_streak(self):
        profile = make_profile(streak=0, last_active_date=None)
        streak, events = apply_daily_check(profile, NOW)
        assert streak == 1
        assert events == []

    def test_naive_timestamps_read_as_utc(self):
        profile = make_profile(streak=1, last_active_date=datetime(2026, 3, 9, 12, 0))
        streak, _ = apply_daily_check(profile, datetime(2026, 3, 10, 12, 0))
        assert streak == 2

    def test_timezone_moves_day_boundary(self):
        # 23:30 UTC on the 9th is already the 10th in Tokyo.
        last = datetime(2026, 3, 9, 14, 0, tzinfo=timezone.utc)
        now = datetime(2026, 3, 9, 23, 30, tzinfo=timezone.utc)
        profile = make_profile(streak=1, last_active_date=last)
        assert apply_daily_check(profile, now)[0] == 1
        assert apply_daily_check(profile, now, ZoneInfo("Asia/Tokyo"))[0] == 2


class TestRecalculate:
    def test_empty_history(self):
        totals = recalculate([])
        assert totals.xp == 0
        assert totals.level == 1
        assert totals.total_sessions == 0
        assert totals.total_points == 0

    def test_ignores_unfinished_sessions(self):
        sessions = [
            completed(xp_earned=30, score=70),
            Session(uid="alice", topic="t", subject="s", xp_earned=99, score=99),
            Session(
                uid="alice", topic="t", subject="s",
                status=SessionStatus.ABANDONED, xp_earned=99, score=99,
            ),
        ]
        totals = recalculate(sessions)
        assert totals.xp == 30
        assert totals.total_sessions == 1
        assert totals.total_points == 70

    def test_matches_replaying_completions(self):
        history = [(40, 90), (250, 60), (0, 10), (300, 100), (15, 45)]
        profile = make_profile()
        for xp_earned, score in history:
            profile, _ = apply_session_completion(profile, score, xp_earned)

        totals = recalculate(completed(xp, score) for xp, score in history)
        assert totals.xp == profile.xp
        assert totals.level == profile.level
        assert totals.total_points == profile.total_points
        assert totals.total_sessions == profile.total_sessions


class TestEndToEndScenario:
    def test_completion_next_day(self):
        profile = make_profile(
            xp=480,
            total_sessions=9,
            streak=2,
            last_active_date=NOW - timedelta(days=1),
        )
        updated, events = apply_session_completion(profile, score=90, xp_earned=40)
        streak, streak_events = apply_daily_check(updated, NOW)

        assert updated.xp == 520
        assert updated.level == 2
        assert updated.total_sessions == 10
        assert events == [
            SessionMilestone(sessions=10),
            LevelUp(level=2),
            XpMilestone(threshold=500),
        ]
        assert streak == 3
        assert streak_events == [StreakMilestone(streak=3)]

"""Tests for notification rendering, emission and storage."""

import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import pytest

from feynlearn.errors import NotFoundError, UpstreamError
from feynlearn.models.notification import NotificationDraft, NotificationType
from feynlearn.notifications import emitter
from feynlearn.progression.events import (
    LevelUp,
    SessionMilestone,
    StreakLost,
    StreakMilestone,
    XpMilestone,
)
from feynlearn.progression.milestones import SESSION_MILESTONES, STREAK_MILESTONES
from feynlearn.storage import files
from feynlearn.storage import notifications as store


def draft(title="Hello", message="World", type_=NotificationType.SYSTEM) -> NotificationDraft:
    return NotificationDraft(type=type_, title=title, message=message)


class TestRender:
    @pytest.mark.parametrize("milestone", SESSION_MILESTONES, ids=lambda m: str(m.threshold))
    def test_session_milestones_use_table(self, milestone):
        rendered = emitter.render(SessionMilestone(sessions=milestone.threshold))
        assert rendered.type == NotificationType.ACHIEVEMENT
        assert rendered.title == milestone.title
        assert rendered.message == milestone.message
        assert rendered.action_url == "/dashboard"

    @pytest.mark.parametrize("milestone", STREAK_MILESTONES, ids=lambda m: str(m.threshold))
    def test_streak_milestones_use_table(self, milestone):
        rendered = emitter.render(StreakMilestone(streak=milestone.threshold))
        assert rendered.type == NotificationType.STREAK
        assert rendered.title == milestone.title

    def test_level_up_mentions_level(self):
        rendered = emitter.render(LevelUp(level=4))
        assert rendered.type == NotificationType.ACHIEVEMENT
        assert "Level 4" in rendered.title
        assert "Level 4" in rendered.message

    def test_xp_milestone_mentions_threshold(self):
        rendered = emitter.render(XpMilestone(threshold=2500))
        assert "2500 XP" in rendered.title

    def test_streak_lost_mentions_old_streak(self):
        rendered = emitter.render(StreakLost(previous_streak=12))
        assert rendered.type == NotificationType.STREAK
        assert "12 day streak" in rendered.message


class TestEmit:
    def test_writes_one_record_per_event(self):
        written = emitter.emit("alice", [SessionMilestone(sessions=1), XpMilestone(threshold=100)])
        assert written == 2
        titles = {n.title for n in store.list_notifications("alice")}
        assert "💰 100 XP Earned!" in titles
        assert store.unread_count("alice") == 2

    def test_no_events_writes_nothing(self):
        assert emitter.emit("alice", []) == 0
        assert store.list_notifications("alice") == []

    def test_write_failure_is_swallowed(self):
        real_create = store.create_notification
        calls = []

        def flaky(uid, notification):
            calls.append(notification.title)
            if len(calls) == 1:
                raise UpstreamError("disk full")
            return real_create(uid, notification)

        with patch.object(store, "create_notification", side_effect=flaky):
            written = emitter.emit("alice", [LevelUp(level=2), XpMilestone(threshold=500)])

        assert written == 1
        assert len(calls) == 2
        assert len(store.list_notifications("alice")) == 1

    def test_welcome(self):
        assert emitter.emit_welcome("alice") is True
        [welcome] = store.list_notifications("alice")
        assert welcome.type == NotificationType.SYSTEM
        assert welcome.action_url == "/upload"

    def test_welcome_failure_is_swallowed(self):
        with patch.object(store, "create_notification", side_effect=UpstreamError("down")):
            assert emitter.emit_welcome("alice") is False


class TestNotificationStore:
    def test_create_defaults(self):
        created = store.create_notification("alice", draft())
        assert created.read is False
        assert created.uid == "alice"

    def test_list_newest_first_with_limit(self):
        ids = [store.create_notification("alice", draft(title=f"n{i}")).id for i in range(3)]
        listed = store.list_notifications("alice", limit=2)
        assert len(listed) == 2
        assert all(n.id in ids for n in listed)
        assert listed[0].created_at >= listed[1].created_at

    def test_mark_read(self):
        created = store.create_notification("alice", draft())
        store.mark_read("alice", created.id)
        assert store.unread_count("alice") == 0

    def test_mark_read_unknown(self):
        with pytest.raises(NotFoundError):
            store.mark_read("alice", "nope")

    def test_mark_all_read(self):
        for i in range(25):
            store.create_notification("alice", draft(title=f"n{i}"))
        assert store.mark_all_read("alice") == 25
        assert store.unread_count("alice") == 0
        assert store.mark_all_read("alice") == 0

    def test_delete(self):
        created = store.create_notification("alice", draft())
        store.delete_notification("alice", created.id)
        assert store.list_notifications("alice") == []
        with pytest.raises(NotFoundError):
            store.delete_notification("alice", created.id)

    def test_scoped_per_user(self):
        created = store.create_notification("alice", draft())
        with pytest.raises(NotFoundError):
            store.mark_read("bob", created.id)
        assert store.unread_count("bob") == 0

    def test_updates_wait_for_the_user_lock(self):
        kept = store.create_notification("alice", draft(title="kept"))
        dropped = store.create_notification("alice", draft(title="dropped"))

        with ThreadPoolExecutor(max_workers=2) as pool:
            with files.user_lock("alice"):
                mark_all = pool.submit(store.mark_all_read, "alice")
                delete = pool.submit(store.delete_notification, "alice", dropped.id)
                time.sleep(0.2)
                assert not mark_all.done()
                assert not delete.done()
            delete.result(timeout=5)
            mark_all.result(timeout=5)

        [remaining] = store.list_notifications("alice")
        assert remaining.id == kept.id
        assert remaining.read is True

"""Tests for the session state machine."""

from datetime import datetime, timezone

import pytest

from feynlearn.errors import InvalidStateTransition, PreconditionError
from feynlearn.models.session import ChatMessage, MessageRole, SessionStatus
from feynlearn.sessions import lifecycle


@pytest.fixture
def session():
    return lifecycle.create("alice", "Newton's laws", "Physics", "F = ma")


class TestCreate:
    def test_starts_in_progress_with_zeroed_counters(self, session):
        assert session.status == SessionStatus.IN_PROGRESS
        assert session.score == 0
        assert session.xp_earned == 0
        assert session.questions_asked == 0
        assert session.messages == []
        assert session.completed_at is None

    def test_requires_topic_and_subject(self):
        with pytest.raises(PreconditionError):
            lifecycle.create("alice", "", "Physics")
        with pytest.raises(PreconditionError):
            lifecycle.create("alice", "Newton's laws", "")


class TestTransitions:
    def test_append_message_keeps_order(self, session):
        lifecycle.append_message(session, ChatMessage(role=MessageRole.AI, content="Hi!"))
        lifecycle.append_message(session, ChatMessage(role=MessageRole.USER, content="Force..."))
        assert [m.role for m in session.messages] == [MessageRole.AI, MessageRole.USER]
        assert session.status == SessionStatus.IN_PROGRESS

    def test_patch_whitelisted_fields(self, session):
        lifecycle.patch(session, {"questions_asked": 3, "topic": "Inertia"})
        assert session.questions_asked == 3
        assert session.topic == "Inertia"

    def test_patch_rejects_other_fields(self, session):
        with pytest.raises(PreconditionError):
            lifecycle.patch(session, {"xp_earned": 1000})
        with pytest.raises(PreconditionError):
            lifecycle.patch(session, {"status": "completed"})
        assert session.xp_earned == 0

    @pytest.mark.parametrize("fields", [
        {"questions_asked": -5},
        {"questions_answered": -1},
        {"duration": -30},
        {"topic": ""},
        {"subject": ""},
    ])
    def test_patch_rejects_invalid_values(self, session, fields):
        with pytest.raises(PreconditionError):
            lifecycle.patch(session, fields)
        assert session.questions_asked == 0
        assert session.duration == 0
        assert session.topic == "Newton's laws"

    def test_complete_sets_result_fields(self, session):
        now = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
        lifecycle.complete(session, score=80, xp_earned=20, now=now)
        assert session.status == SessionStatus.COMPLETED
        assert session.score == 80
        assert session.xp_earned == 20
        assert session.completed_at == now

    def test_abandon(self, session):
        lifecycle.abandon(session)
        assert session.status == SessionStatus.ABANDONED


class TestTerminalStates:
    @pytest.fixture(params=["completed", "abandoned"])
    def terminal(self, request, session):
        if request.param == "completed":
            lifecycle.complete(session, score=50, xp_earned=10)
        else:
            lifecycle.abandon(session)
        return session

    def test_complete_again_rejected(self, terminal):
        with pytest.raises(InvalidStateTransition):
            lifecycle.complete(terminal, score=100, xp_earned=999)
        assert terminal.xp_earned in (0, 10)

    def test_abandon_rejected(self, terminal):
        with pytest.raises(InvalidStateTransition):
            lifecycle.abandon(terminal)

    def test_append_rejected(self, terminal):
        with pytest.raises(InvalidStateTransition):
            lifecycle.append_message(terminal, ChatMessage(role=MessageRole.USER, content="late"))
        assert terminal.messages == []

    def test_patch_rejected(self, terminal):
        with pytest.raises(InvalidStateTransition):
            lifecycle.patch(terminal, {"duration": 5})

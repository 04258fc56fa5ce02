"""Domain Models 单元测试

测试内容：
1. 枚举取值与流转表
2. Task 派生字段（title / billing_rate）
3. Pydantic 模型校验与 payload 序列化
"""

from datetime import UTC, datetime
from decimal import Decimal

import pytest
from honeydew.core.models import (
    TERMINAL_STATES,
    Event,
    EventType,
    PaymentStatus,
    Profile,
    Role,
    Task,
    TaskStatus,
    validate_transition,
)
from honeydew.core.models.payloads import BidAcceptedPayload, TaskCreatedPayload
from pydantic import ValidationError


class TestEnums:
    def test_task_status_values(self):
        assert TaskStatus.PENDING == "pending"
        assert TaskStatus.CONFIRMED == "confirmed"
        assert TaskStatus.COMPLETED == "completed"

    def test_role_from_string(self):
        assert Role("helper") is Role.HELPER
        with pytest.raises(ValueError):
            Role("admin")

    def test_payment_status_values(self):
        assert {s.value for s in PaymentStatus} == {
            "requires_confirmation",
            "succeeded",
            "failed",
        }

    def test_only_forward_transitions(self):
        assert validate_transition(TaskStatus.PENDING, TaskStatus.CONFIRMED)
        assert validate_transition(TaskStatus.CONFIRMED, TaskStatus.COMPLETED)
        assert not validate_transition(TaskStatus.PENDING, TaskStatus.COMPLETED)
        assert not validate_transition(TaskStatus.COMPLETED, TaskStatus.PENDING)
        assert not validate_transition(TaskStatus.CONFIRMED, TaskStatus.PENDING)

    def test_completed_is_terminal(self):
        assert TERMINAL_STATES == {TaskStatus.COMPLETED}


class TestTask:
    def test_title_is_first_line(self, make_task):
        task = make_task(description="Fix the sink\nIt drips at night")
        assert task.title == "Fix the sink"

    def test_title_truncated(self, make_task):
        task = make_task(description="x" * 250)
        assert len(task.title) == 100

    def test_billing_rate_prefers_accepted(self, make_task):
        assert make_task(proposed_rate="25").billing_rate == Decimal("25")
        accepted = make_task(proposed_rate="25", accepted_rate=Decimal("31.50"))
        assert accepted.billing_rate == Decimal("31.50")

    def test_defaults(self, make_task):
        task = make_task()
        assert task.status == TaskStatus.PENDING
        assert task.helper_id is None
        assert task.final_amount is None

    def test_non_positive_rate_rejected(self):
        now = datetime.now(UTC)
        with pytest.raises(ValidationError):
            Task(
                task_id="T1",
                created_at=now,
                updated_at=now,
                requester_id="req-1",
                description="Rake leaves",
                zip="94110",
                proposed_rate=Decimal("0"),
            )


class TestProfile:
    def test_rating_starts_empty(self):
        profile = Profile(user_id="helper-1", created_at=datetime.now(UTC), role=Role.HELPER)
        assert profile.average_rating is None
        assert profile.rating_count == 0

    def test_negative_rating_count_rejected(self):
        with pytest.raises(ValidationError):
            Profile(user_id="u", created_at=datetime.now(UTC), rating_count=-1)


class TestPayloads:
    def test_event_json_round_trip(self):
        payload = TaskCreatedPayload(title="Mow", zip="94110", proposed_rate="25")
        event = Event(
            event_id="01HEVENT000000000000000001",
            task_id="T1",
            ts=datetime(2024, 5, 1, tzinfo=UTC),
            type=EventType.TASK_CREATED,
            actor_id="req-1",
            payload=payload.model_dump(),
            trace_id="trace-T1",
        )
        restored = Event.model_validate_json(event.model_dump_json())
        assert restored == event
        assert restored.payload["proposed_rate"] == "25"

    def test_transition_payload_carries_statuses(self):
        payload = BidAcceptedPayload(
            from_status=TaskStatus.PENDING,
            to_status=TaskStatus.CONFIRMED,
            helper_id="helper-1",
            accepted_rate="30",
        )
        data = payload.model_dump(mode="json")
        assert data["from_status"] == "pending"
        assert data["to_status"] == "confirmed"

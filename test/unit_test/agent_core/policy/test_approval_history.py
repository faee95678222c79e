from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest

from actuator_ai.agent_core.policy.history import ApprovalHistory, ContextBucket, hash_params
from actuator_ai.agent_core.schemas.context import (
    DesktopContext,
    SituationalContext,
    TimeContext,
    UserContext,
    UserMode,
)
from actuator_ai.agent_core.schemas.domain import ApprovalRecord


def _ctx(time_of_day: str = "evening", mode: UserMode = UserMode.normal, app: Optional[str] = None) -> SituationalContext:
    return SituationalContext(
        time=TimeContext(current="19:00", day_of_week="Friday", time_of_day=time_of_day),
        user=UserContext(mode=mode),
        desktop=DesktopContext(active_app=app) if app else None,
    )


class _MemoryApprovalRepo:
    def __init__(self, records: Optional[List[ApprovalRecord]] = None, fail: bool = False) -> None:
        self.records = list(records or [])
        self.fail = fail

    async def append(self, record: ApprovalRecord) -> None:
        if self.fail:
            raise RuntimeError("database is down")
        self.records.append(record)

    async def list(self, user_id=None, limit: int = 1000) -> List[ApprovalRecord]:
        return self.records[:limit]


def test_hash_ignores_volatile_keys_and_key_order() -> None:
    a = hash_params("sendEmail", {"to": "a@b.co", "subject": "hi", "requestId": "r1", "timestamp": 1})
    b = hash_params("sendEmail", {"subject": "hi", "to": "a@b.co", "id": "x"})
    c = hash_params("sendEmail", {"subject": "hello", "to": "a@b.co"})
    assert a == b
    assert a != c
    assert a.startswith("sendEmail:")


def test_bucket_matching() -> None:
    base = ContextBucket(time_of_day="evening", mode="normal", active_app="code")
    assert base.matches(ContextBucket(time_of_day="evening", mode="normal", active_app=None))
    assert not base.matches(ContextBucket(time_of_day="evening", mode="normal", active_app="slack"))
    assert not base.matches(ContextBucket(time_of_day="morning", mode="normal", active_app="code"))
    assert not base.matches(ContextBucket(time_of_day="evening", mode="focus", active_app="code"))


@pytest.mark.asyncio
async def test_record_and_count_in_matching_context() -> None:
    history = ApprovalHistory()
    params = {"device": "light.desk", "action": "turn_on"}
    await history.record_approval("u1", "controlDevice", params, _ctx(app="code"))
    await history.record_approval("u1", "controlDevice", params, _ctx())
    await history.record_approval("u1", "controlDevice", params, _ctx(time_of_day="morning"))

    assert await history.approvals_in_context("u1", "controlDevice", params, _ctx(app="code")) == 2
    assert await history.approvals_in_context("u1", "controlDevice", params, _ctx(app="slack")) == 1
    assert await history.approvals_in_context("u2", "controlDevice", params, _ctx()) == 0
    assert await history.has_learned_approval("u1", "controlDevice", params, _ctx(), threshold=2) is True


@pytest.mark.asyncio
async def test_only_recent_contexts_are_kept() -> None:
    history = ApprovalHistory(max_contexts=2)
    for tod in ("morning", "evening", "evening"):
        await history.record_approval("u1", "setTimer", {"duration": 60}, _ctx(time_of_day=tod))

    pattern = await history.get_pattern("u1", "setTimer", {"duration": 60})
    assert pattern is not None
    assert pattern.approval_count == 3
    assert len(pattern.contexts) == 2
    assert await history.approvals_in_context("u1", "setTimer", {"duration": 60}, _ctx(time_of_day="morning")) == 0


@pytest.mark.asyncio
async def test_approvals_are_persisted() -> None:
    repo = _MemoryApprovalRepo()
    history = ApprovalHistory(repository=repo)

    await history.record_approval("u1", "openUrl", {"url": "https://x.org"}, _ctx(mode=UserMode.focus, app="code"))

    (record,) = repo.records
    assert (record.user_id, record.action) == ("u1", "openUrl")
    assert (record.time_of_day, record.mode, record.active_app) == ("evening", "focus", "code")
    assert record.params_hash == hash_params("openUrl", {"url": "https://x.org"})


@pytest.mark.asyncio
async def test_persistence_failure_keeps_in_memory_pattern() -> None:
    history = ApprovalHistory(repository=_MemoryApprovalRepo(fail=True))

    pattern = await history.record_approval("u1", "openUrl", {"url": "https://x.org"}, _ctx())

    assert pattern.approval_count == 1


@pytest.mark.asyncio
async def test_load_replays_persisted_records_in_order() -> None:
    t0 = datetime(2024, 1, 1, tzinfo=timezone.utc)
    params_hash = hash_params("controlDevice", {"device": "fan"})
    records = [
        ApprovalRecord(
            user_id="u1",
            action="controlDevice",
            params_hash=params_hash,
            time_of_day="evening",
            mode="normal",
            approved_at=t0 + timedelta(minutes=i),
        )
        for i in (2, 0, 1)
    ]
    history = ApprovalHistory(repository=_MemoryApprovalRepo(records))

    assert await history.load() == 3
    pattern = await history.get_pattern("u1", "controlDevice", {"device": "fan"})
    assert pattern is not None
    assert pattern.approval_count == 3
    assert pattern.last_approved == t0 + timedelta(minutes=2)
    assert await history.has_learned_approval("u1", "controlDevice", {"device": "fan"}, _ctx(), threshold=3)


@pytest.mark.asyncio
async def test_load_without_repository_is_a_noop() -> None:
    assert await ApprovalHistory().load() == 0

"""Learned-approval history.

When a user confirms the same action with the same parameters several times in
a similar situation, the autonomy engine may relax the confirmation it asks
for next time. ``ApprovalHistory`` keeps the evidence for that decision.

Patterns are keyed by ``(user_id, action, params hash)``. Volatile keys
(``id``, ``timestamp``, ``requestId``) are ignored when hashing so that two
requests differing only in bookkeeping fields share a pattern. Each pattern
remembers the situational bucket (time of day, user mode, active app) of its
most recent approvals.

Approvals are only ever recorded after an explicit user confirmation; the
history is never written for auto-approved or denied actions.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..repos.interfaces import ApprovalPatternRepository
from ..schemas.base import utc_now
from ..schemas.context import SituationalContext
from ..schemas.domain import ApprovalRecord

logger = logging.getLogger(__name__)

VOLATILE_PARAM_KEYS = frozenset({"id", "timestamp", "requestId", "request_id"})


def hash_params(action: str, params: Mapping[str, Any]) -> str:
    """Stable textual fingerprint of an action and its non-volatile params."""
    stable = "|".join(
        f"{key}:{json.dumps(params[key], sort_keys=True, default=str)}"
        for key in sorted(params)
        if key not in VOLATILE_PARAM_KEYS
    )
    return f"{action}:{stable}"


@dataclass(frozen=True)
class ContextBucket:
    time_of_day: str
    mode: str
    active_app: Optional[str] = None

    @classmethod
    def from_context(cls, context: SituationalContext) -> "ContextBucket":
        return cls(
            time_of_day=context.time.time_of_day,
            mode=context.user.mode.value,
            active_app=context.desktop.active_app if context.desktop else None,
        )

    def matches(self, other: "ContextBucket") -> bool:
        """Same time of day and mode; the active app only counts when both know it."""
        if self.time_of_day != other.time_of_day or self.mode != other.mode:
            return False
        if self.active_app and other.active_app:
            return self.active_app == other.active_app
        return True


@dataclass
class ApprovalPattern:
    user_id: str
    action: str
    params_hash: str
    approval_count: int = 0
    last_approved: Optional[datetime] = None
    contexts: List[ContextBucket] = field(default_factory=list)


class ApprovalHistory:
    """Per-user approval patterns guarded by a single ``asyncio.Lock``."""

    def __init__(
        self,
        *,
        max_contexts: int = 10,
        repository: Optional[ApprovalPatternRepository] = None,
    ) -> None:
        self._max_contexts = max_contexts
        self._repository = repository
        self._patterns: Dict[Tuple[str, str], ApprovalPattern] = {}
        self._lock = asyncio.Lock()

    def _apply(self, user_id: str, action: str, params_hash: str, bucket: ContextBucket, at: datetime) -> ApprovalPattern:
        key = (user_id, params_hash)
        pattern = self._patterns.get(key)
        if pattern is None:
            pattern = ApprovalPattern(user_id=user_id, action=action, params_hash=params_hash)
            self._patterns[key] = pattern
        pattern.approval_count += 1
        pattern.last_approved = at
        pattern.contexts.append(bucket)
        if len(pattern.contexts) > self._max_contexts:
            pattern.contexts = pattern.contexts[-self._max_contexts :]
        return pattern

    async def record_approval(
        self,
        user_id: str,
        action: str,
        params: Mapping[str, Any],
        context: SituationalContext,
    ) -> ApprovalPattern:
        """
        Record one explicit approval.

        The in-memory pattern is always updated; persistence failures are
        logged and do not undo it.
        """
        params_hash = hash_params(action, params)
        bucket = ContextBucket.from_context(context)
        now = utc_now()
        async with self._lock:
            pattern = self._apply(user_id, action, params_hash, bucket, now)
            count = pattern.approval_count
        logger.info("Recorded approval pattern for %s (%s): count=%d", action, user_id, count)

        if self._repository is not None:
            record = ApprovalRecord(
                user_id=user_id,
                action=action,
                params_hash=params_hash,
                time_of_day=bucket.time_of_day,
                mode=bucket.mode,
                active_app=bucket.active_app,
                approved_at=now,
            )
            try:
                await self._repository.append(record)
            except Exception as exc:
                logger.warning("Failed to persist approval for %s: %s", action, exc)
        return pattern

    async def approvals_in_context(
        self,
        user_id: str,
        action: str,
        params: Mapping[str, Any],
        context: SituationalContext,
    ) -> int:
        """Count retained approvals of this exact pattern in a matching bucket."""
        bucket = ContextBucket.from_context(context)
        async with self._lock:
            pattern = self._patterns.get((user_id, hash_params(action, params)))
            if pattern is None:
                return 0
            return sum(1 for ctx in pattern.contexts if ctx.matches(bucket))

    async def has_learned_approval(
        self,
        user_id: str,
        action: str,
        params: Mapping[str, Any],
        context: SituationalContext,
        *,
        threshold: int,
    ) -> bool:
        return await self.approvals_in_context(user_id, action, params, context) >= threshold

    async def get_pattern(self, user_id: str, action: str, params: Mapping[str, Any]) -> Optional[ApprovalPattern]:
        async with self._lock:
            return self._patterns.get((user_id, hash_params(action, params)))

    async def load(self, *, limit: int = 10_000) -> int:
        """Replay persisted approvals into memory; returns how many were loaded."""
        if self._repository is None:
            return 0
        records = await self._repository.list(limit=limit)
        async with self._lock:
            for record in sorted(records, key=lambda r: r.approved_at):
                bucket = ContextBucket(time_of_day=record.time_of_day, mode=record.mode, active_app=record.active_app)
                self._apply(record.user_id, record.action, record.params_hash, bucket, record.approved_at)
        logger.info("Loaded %d persisted approvals", len(records))
        return len(records)

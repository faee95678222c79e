"""Time-bounded confirmation workflow.

A pending confirmation moves through ``CREATED -> CONFIRMED | CANCELLED |
EXPIRED``; every state after ``CREATED`` is terminal and removes the record.

``consume`` is the single guard against double execution: lookup, ownership
check, expiry check and deletion happen under one ``asyncio.Lock``, so of two
concurrent calls with the same id exactly one receives the record.

Expiry is enforced on every read. The background sweep only bounds memory
for confirmations nobody comes back to.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from ..schemas.base import utc_now
from ..schemas.context import SituationalContext
from ..schemas.domain import AutonomyDecision, PendingConfirmation
from ..schemas.intents import ActionIntent

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class ConfirmationManager:
    """Owns the pending-confirmation table and its expiry sweep."""

    def __init__(
        self,
        *,
        clock: Clock = utc_now,
        sweep_interval_seconds: float = 30.0,
        auto_sweep: bool = True,
    ) -> None:
        self._clock = clock
        self._sweep_interval = sweep_interval_seconds
        self._auto_sweep = auto_sweep
        self._pending: Dict[str, PendingConfirmation] = {}
        self._lock = asyncio.Lock()
        self._sweeper: Optional[asyncio.Task[None]] = None

    @property
    def clock(self) -> Clock:
        return self._clock

    def __len__(self) -> int:
        return len(self._pending)

    async def create(
        self,
        user_id: str,
        intent: ActionIntent,
        decision: AutonomyDecision,
        context_snapshot: SituationalContext,
    ) -> str:
        """
        Store a new pending confirmation.

        Args:
            user_id: The user who must confirm.
            intent: The action awaiting confirmation.
            decision: The autonomy decision; its ``expires_in_seconds`` sets the window.
            context_snapshot: Situational context at decision time.

        Returns:
            The opaque confirmation id.
        """
        now = self._clock()
        confirmation_id = f"confirm_{secrets.token_urlsafe(16)}"
        record = PendingConfirmation(
            id=confirmation_id,
            user_id=user_id,
            intent=intent,
            decision=decision,
            context_snapshot=context_snapshot,
            created_at=now,
            expires_at=now + timedelta(seconds=decision.expires_in_seconds),
        )
        async with self._lock:
            self._pending[confirmation_id] = record
        logger.info(
            "Confirmation %s created for %s (%s), expires in %ss",
            confirmation_id,
            intent.action,
            user_id,
            decision.expires_in_seconds,
        )
        if self._auto_sweep:
            self.start()
        return confirmation_id

    def _lookup(self, confirmation_id: str, user_id: str) -> Optional[PendingConfirmation]:
        # Caller holds the lock.
        record = self._pending.get(confirmation_id)
        if record is None:
            return None
        if record.is_expired(self._clock()):
            del self._pending[confirmation_id]
            logger.info("Confirmation %s expired", confirmation_id)
            return None
        if record.user_id != user_id:
            logger.warning("Confirmation %s requested by non-owner %s", confirmation_id, user_id)
            return None
        return record

    async def get(self, confirmation_id: str, user_id: str) -> Optional[PendingConfirmation]:
        """Read-only lookup; expired records are evicted as a side effect."""
        async with self._lock:
            return self._lookup(confirmation_id, user_id)

    async def consume(self, confirmation_id: str, user_id: str) -> Optional[PendingConfirmation]:
        """
        Atomically fetch and delete a pending confirmation.

        Returns:
            The record, or None when it is absent, expired, owned by another
            user, or was already consumed.
        """
        async with self._lock:
            record = self._lookup(confirmation_id, user_id)
            if record is not None:
                del self._pending[confirmation_id]
        if record is not None:
            logger.info("Confirmation %s consumed by %s", confirmation_id, user_id)
        return record

    async def cancel(self, confirmation_id: str, user_id: str) -> bool:
        """Discard a pending confirmation; True when one was removed."""
        cancelled = await self.consume(confirmation_id, user_id) is not None
        if cancelled:
            logger.info("Confirmation %s cancelled", confirmation_id)
        return cancelled

    async def pending_for(self, user_id: str) -> List[PendingConfirmation]:
        """Live confirmations of one user, oldest first."""
        now = self._clock()
        async with self._lock:
            records = [r for r in self._pending.values() if r.user_id == user_id and not r.is_expired(now)]
        return sorted(records, key=lambda r: r.created_at)

    async def sweep(self) -> int:
        """Remove every expired confirmation; returns how many were removed."""
        now = self._clock()
        async with self._lock:
            expired = [cid for cid, r in self._pending.items() if r.is_expired(now)]
            for cid in expired:
                del self._pending[cid]
        if expired:
            logger.info("Swept %d expired confirmations", len(expired))
        return len(expired)

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            try:
                await self.sweep()
            except Exception as exc:
                logger.warning(f"Confirmation sweep failed: {exc}")

    def start(self) -> None:
        """Start the background sweep task if it is not running yet."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.get_running_loop().create_task(self._sweep_loop())

    async def stop(self) -> None:
        """Cancel the background sweep task and wait for it to finish."""
        task, self._sweeper = self._sweeper, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

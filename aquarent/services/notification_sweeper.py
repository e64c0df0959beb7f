"""
Pending notification sweep

Re-drives deferred notifications once their scheduled time has passed.
Each due record is its own unit of work: a failure marks that record failed
and the sweep moves on. Cancelling a sweep stops it between records; a
record already being delivered finishes its fan-out and status write.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Set, Tuple
import asyncio
import logging
import time

from aquarent.core.exceptions import SweepRecordError
from aquarent.core.monitoring import notification_sweep_duration, notification_sweep_records
from aquarent.core.notification_config import SweepConfig
from aquarent.models.notification import Notification, NotificationStatus, deserialize_channels
from aquarent.services.notification_dispatcher import NotificationDispatcher
from aquarent.services.notification_store import NotificationStore
from aquarent.services.user_directory import UserDirectory
from aquarent.utils.helpers import as_utc, utcnow

logger = logging.getLogger(__name__)

@dataclass
class SweepResult:
    """Ids handled by one sweep, grouped by outcome"""

    sent: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.sent) + len(self.failed)

    def summary(self) -> Dict[str, Any]:
        return {
            "sent": len(self.sent),
            "failed": len(self.failed),
            "skipped": len(self.skipped),
            "sent_ids": self.sent,
            "failed_ids": self.failed,
            "skipped_ids": self.skipped,
        }

class NotificationSweeper:
    """Finds due pending notifications and completes their delivery"""

    def __init__(
        self,
        store: NotificationStore,
        directory: UserDirectory,
        dispatcher: NotificationDispatcher,
        config: Optional[SweepConfig] = None
    ):
        self.store = store
        self.directory = directory
        self.dispatcher = dispatcher
        self.config = config or SweepConfig()
        self._in_flight: Set[asyncio.Task] = set()

    async def process_pending_notifications(self, now: Optional[datetime] = None) -> SweepResult:
        """
        Process pending notifications that are due

        Due records are read in pages of ``batch_size``, each page starting
        after the last record of the previous one, until no due record is
        left. Records left pending (orphans, lost status writes) are passed
        over rather than fetched again.

        Args:
            now: Reference time for the due check, defaults to the current time

        Returns:
            Outcome of every record the sweep picked up
        """
        started = time.perf_counter()
        now = as_utc(now) or utcnow()
        result = SweepResult()
        cursor: Optional[Tuple[datetime, str]] = None

        try:
            while True:
                batch = await self.store.list_due(now, limit=self.config.batch_size, after=cursor)
                if not batch:
                    break

                logger.info(f"Processing {len(batch)} due notification(s)")
                await self._process_batch(batch, result)

                last = batch[-1]
                cursor = (last.scheduled_at, last.id)
                if len(batch) < self.config.batch_size:
                    break
        finally:
            notification_sweep_duration.observe(time.perf_counter() - started)

        if result.processed or result.skipped:
            logger.info(
                f"Sweep finished: {len(result.sent)} sent, "
                f"{len(result.failed)} failed, {len(result.skipped)} skipped"
            )
        else:
            logger.debug("No pending notifications due")
        return result

    async def _process_batch(self, batch: List[Notification], result: SweepResult) -> None:
        records = iter(batch)

        async def worker():
            for notification in records:
                task = asyncio.ensure_future(self._process_record(notification, result))
                self._in_flight.add(task)
                task.add_done_callback(self._in_flight.discard)
                await asyncio.shield(task)

        workers = min(self.config.concurrency, len(batch))
        await asyncio.gather(*(worker() for _ in range(workers)))

    async def wait_for_in_flight(self) -> None:
        """Wait for records still completing after a cancelled sweep"""
        if self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)

    async def _process_record(self, notification: Notification, result: SweepResult) -> None:
        notification_id = notification.id
        try:
            recipient = await self.directory.find_user_by_id(notification.user_id)
            if not recipient:
                await self._handle_orphan(notification, result)
                return

            channels = deserialize_channels(notification.channels)
            fan_out = self.dispatcher.fan_out(
                notification_id,
                recipient,
                notification.title,
                notification.message,
                channels
            )
            if self.config.record_timeout:
                report = await asyncio.wait_for(fan_out, timeout=self.config.record_timeout)
            else:
                report = await fan_out

            if report.failed_channels:
                logger.warning(
                    f"Notification {notification_id} not delivered on "
                    f"{[c.value for c in report.failed_channels]}"
                )

        except Exception as e:
            error = SweepRecordError(notification_id, e)
            logger.error(f"Error processing notification: {error}")
            await self._finish(notification_id, NotificationStatus.FAILED, result)
            return

        await self._finish(notification_id, NotificationStatus.SENT, result)

    async def _handle_orphan(self, notification: Notification, result: SweepResult) -> None:
        if self.config.fail_orphaned:
            logger.warning(
                f"User {notification.user_id} of notification {notification.id} "
                f"no longer exists, marking failed"
            )
            await self._finish(notification.id, NotificationStatus.FAILED, result)
            return

        logger.warning(
            f"User {notification.user_id} of notification {notification.id} "
            f"no longer exists, leaving it pending"
        )
        result.skipped.append(notification.id)
        notification_sweep_records.labels(outcome="skipped").inc()

    async def _finish(
        self,
        notification_id: str,
        status: NotificationStatus,
        result: SweepResult
    ) -> None:
        try:
            applied = await self.store.transition(notification_id, status)
        except Exception:
            # stays pending and is retried by the next sweep
            logger.exception(f"Could not record status {status.value} for notification {notification_id}")
            result.skipped.append(notification_id)
            notification_sweep_records.labels(outcome="error").inc()
            return

        if not applied:
            result.skipped.append(notification_id)
            notification_sweep_records.labels(outcome="conflict").inc()
            return

        if status == NotificationStatus.SENT:
            result.sent.append(notification_id)
        else:
            result.failed.append(notification_id)
        notification_sweep_records.labels(outcome=status.value).inc()

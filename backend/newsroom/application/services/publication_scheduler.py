"""Publication Scheduler — asyncio daemon promoting scheduled articles once they are due."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from newsroom.application.interfaces import UnitOfWorkFactory

logger = logging.getLogger(__name__)

# Polling interval in seconds
DEFAULT_INTERVAL = 60
BATCH_SIZE = 100


@dataclass
class PromotionReport:
    """Outcome of a single scheduler tick."""

    promoted: list[int] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)
    ran: bool = True


class PublicationScheduler:
    """Asyncio daemon that promotes ``scheduled`` articles to ``published``.

    Runs as an asyncio.Task inside FastAPI's lifespan. Each tick queries the due
    set in a short-lived unit of work and then promotes every article in its own
    unit of work with a conditional update, so a concurrent edit that moved the
    article out of ``scheduled`` wins and the promotion is skipped.

    Ticks never overlap: if one is still running when the next is due, the new
    one is skipped and the following tick catches up.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        interval_seconds: float = DEFAULT_INTERVAL,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._uow_factory = uow_factory
        self._interval = interval_seconds
        self._clock = clock
        self._running = False
        self._task: asyncio.Task | None = None
        self._tick_lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the scheduling loop."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info("PublicationScheduler started (every %ss)", self._interval)

    async def stop(self) -> None:
        """Gracefully stop the scheduling loop."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("PublicationScheduler stopped")

    async def _loop(self) -> None:
        while self._running:
            try:
                await self.tick()
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("PublicationScheduler tick error")

            await asyncio.sleep(self._interval)

    async def tick(self) -> PromotionReport:
        """Promote every article that is scheduled and due. Safe to re-run."""
        if self._tick_lock.locked():
            logger.warning("Previous publication tick still running — skipping this one")
            return PromotionReport(ran=False)

        async with self._tick_lock:
            now = self._clock()
            async with self._uow_factory() as uow:
                due = await uow.articles.get_due_scheduled(now, limit=BATCH_SIZE)

            report = PromotionReport()
            for article in due:
                try:
                    async with self._uow_factory() as uow:
                        promoted = await uow.articles.promote_if_scheduled(article.id, now)
                        await uow.commit()
                except Exception:
                    logger.exception("Failed to publish scheduled article %s", article.id)
                    report.failed.append(article.id)
                    continue

                if promoted:
                    logger.info("Published scheduled article %s", article.id)
                    report.promoted.append(article.id)
                else:
                    logger.info("Article %s left the scheduled state before promotion", article.id)
                    report.skipped.append(article.id)

            if due:
                logger.info(
                    "Publication tick: %d promoted, %d skipped, %d failed",
                    len(report.promoted),
                    len(report.skipped),
                    len(report.failed),
                )
            return report

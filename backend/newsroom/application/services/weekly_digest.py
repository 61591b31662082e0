"""Weekly Digest — emails the latest published articles to confirmed subscribers."""

import asyncio
import html
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta, timezone
from urllib.parse import quote
from zoneinfo import ZoneInfo

from newsroom.application.interfaces import Notifier, SubscriberDirectory, UnitOfWorkFactory
from newsroom.domain.entities import Article

logger = logging.getLogger(__name__)

DIGEST_SUBJECT = "Weekly Highlights"


@dataclass
class DigestReport:
    """Outcome of one digest run."""

    article_ids: list[int] = field(default_factory=list)
    recipients: int = 0
    sent: int = 0
    failed: list[str] = field(default_factory=list)
    ran: bool = True


def next_run_after(now: datetime, weekday: int, at: time, tz: ZoneInfo) -> datetime:
    """Next occurrence of ``weekday`` (Monday=0) at wall-clock ``at`` in ``tz``, strictly after ``now``."""
    local_now = now.astimezone(tz)
    days_ahead = (weekday - local_now.weekday()) % 7
    candidate = datetime.combine(local_now.date() + timedelta(days=days_ahead), at, tzinfo=tz)
    if candidate <= local_now:
        candidate = datetime.combine(candidate.date() + timedelta(days=7), at, tzinfo=tz)
    return candidate


def render_digest(articles: list[Article], recipient: str, public_base_url: str) -> str:
    """Build the HTML body for one subscriber."""
    base = public_base_url.rstrip("/")
    items = "\n".join(
        f'<li style="margin-bottom: 12px;">'
        f'<a href="{base}/news/{article.id}"><strong>{html.escape(article.title)}</strong></a>'
        f"{_published_line(article)}</li>"
        for article in articles
    )
    unsubscribe = f"{base}/api/subscribe/unsubscribe?email={quote(recipient)}"
    return (
        "<!DOCTYPE html>\n<html>\n<head><meta charset=\"utf-8\"><title>Weekly Newsletter</title></head>\n"
        "<body style=\"font-family: Arial, sans-serif; line-height: 1.6; color: #333;\">\n"
        "<h2>Weekly Highlights</h2>\n"
        "<p>Hello,</p>\n<p>Here are this week's top stories:</p>\n"
        f"<ul style=\"list-style-type: none; padding: 0;\">\n{items}\n</ul>\n"
        "<p>Stay tuned for more updates next week!</p>\n<hr>\n"
        f"<p style=\"font-size: 12px; color: #777;\"><a href=\"{html.escape(unsubscribe)}\">Unsubscribe</a>"
        " from this newsletter.</p>\n</body>\n</html>"
    )


def _published_line(article: Article) -> str:
    if article.published_at is None:
        return ""
    return f"<br><small>{article.published_at.strftime('%d %b %Y')}</small>"


class WeeklyDigestService:
    """Asyncio daemon sending the digest once a week.

    Same lifecycle as the publication scheduler: constructed explicitly,
    started and stopped from the application lifespan, and guarded against
    overlapping runs.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        subscribers: SubscriberDirectory,
        notifier: Notifier,
        public_base_url: str,
        article_count: int = 5,
        weekday: int = 6,
        at: time = time(9, 0),
        tz: ZoneInfo = ZoneInfo("UTC"),
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._uow_factory = uow_factory
        self._subscribers = subscribers
        self._notifier = notifier
        self._public_base_url = public_base_url
        self._article_count = article_count
        self._weekday = weekday
        self._at = at
        self._tz = tz
        self._clock = clock
        self._running = False
        self._task: asyncio.Task | None = None
        self._run_lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info(
            "WeeklyDigestService started (next run %s)",
            next_run_after(self._clock(), self._weekday, self._at, self._tz).isoformat(),
        )

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("WeeklyDigestService stopped")

    async def _loop(self) -> None:
        while self._running:
            now = self._clock()
            due = next_run_after(now, self._weekday, self._at, self._tz)
            try:
                await asyncio.sleep((due - now).total_seconds())
                await self.send_digest()
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("WeeklyDigestService run error")

    async def send_digest(self) -> DigestReport:
        """Send the latest published articles to every confirmed subscriber."""
        if self._run_lock.locked():
            logger.warning("Previous digest run still in progress — skipping")
            return DigestReport(ran=False)

        async with self._run_lock:
            logger.info("Running weekly digest job")
            recipients = await self._subscribers.confirmed_emails()
            if not recipients:
                logger.info("No subscribers to send the digest to")
                return DigestReport()

            async with self._uow_factory() as uow:
                articles = await uow.articles.latest_published(self._article_count)
            if not articles:
                logger.info("No published articles for the digest")
                return DigestReport(recipients=len(recipients))

            report = DigestReport(article_ids=[a.id for a in articles], recipients=len(recipients))
            for recipient in recipients:
                body = render_digest(articles, recipient, self._public_base_url)
                try:
                    await self._notifier.send(recipient, DIGEST_SUBJECT, body)
                except Exception:
                    logger.exception("Digest delivery to %s failed", recipient)
                    report.failed.append(recipient)
                else:
                    report.sent += 1

            logger.info("Weekly digest sent to %d of %d subscribers", report.sent, report.recipients)
            return report

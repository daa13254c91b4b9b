import asyncio
import contextlib
import logging

from actunews.config import settings
from actunews.errors import DeliveryError
from actunews.mailer import MailMessage, Notifier, build_notifier

logger = logging.getLogger(__name__)


class MailOutbox:
    """
    In-process queue of outbound mail, drained by one background task.

    Producers (post-create lifecycle handlers) call ``enqueue`` and return
    immediately; the worker hands each message to the notifier in a
    thread.  Delivery failures are logged and counted, never raised back
    to the producer, and never retried.

    The queue is created by ``start`` rather than ``__init__`` so the
    outbox binds to whichever event loop runs the application.
    """

    def __init__(self, notifier: Notifier, maxsize: int = 0) -> None:
        self.notifier = notifier
        self._maxsize = maxsize
        self._queue: asyncio.Queue[MailMessage] | None = None
        self._worker: asyncio.Task | None = None
        self._sent: int = 0
        self._failed: int = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def start(self) -> None:
        """Create the queue and spawn the worker.  Called at application startup."""
        if self.running:
            return
        self._queue = asyncio.Queue(maxsize=self._maxsize)
        self._worker = asyncio.create_task(self._run(), name="mail-outbox")
        logger.info("Mail outbox started (%s)", type(self.notifier).__name__)

    async def stop(self, drain: bool = True) -> None:
        """
        Stop the worker.  With *drain* (the default) pending messages are
        delivered first so a graceful shutdown loses no mail.
        """
        if self._worker is None:
            return
        if drain and self.running:
            await self._queue.join()
        self._worker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._worker
        self._worker = None
        self._queue = None
        logger.info("Mail outbox stopped")

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def enqueue(self, message: MailMessage) -> None:
        """
        Queue *message* for delivery.

        Raises ``RuntimeError`` when the outbox is not running and
        ``asyncio.QueueFull`` when it is saturated; the lifecycle pipeline
        isolates post-create handlers, so neither aborts a create.
        """
        if not self.running:
            raise RuntimeError("Mail outbox is not running")
        self._queue.put_nowait(message)

    async def join(self) -> None:
        """Wait until every queued message has been processed."""
        if self._queue is not None:
            await self._queue.join()

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    async def _run(self) -> None:
        while True:
            message = await self._queue.get()
            try:
                await self._deliver(message)
            finally:
                self._queue.task_done()

    async def _deliver(self, message: MailMessage) -> None:
        try:
            await asyncio.to_thread(
                self.notifier.send, message.to, message.subject, message.body_html
            )
        except DeliveryError as exc:
            self._failed += 1
            logger.warning("Mail to %s not delivered: %s", message.to, exc)
        except Exception:
            self._failed += 1
            logger.exception("Unexpected error delivering mail to %s", message.to)
        else:
            self._sent += 1

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    @property
    def stats(self) -> dict:
        return {
            "running": self.running,
            "pending": self._queue.qsize() if self._queue is not None else 0,
            "sent": self._sent,
            "failed": self._failed,
        }


# Module-level singleton started and stopped by the application lifespan.
outbox = MailOutbox(build_notifier(settings), maxsize=settings.MAIL_QUEUE_SIZE)

"""Background worker: thumbnails for uploaded images and welcome mails.

Runs as its own process (``files-manager-worker``). Each loop iteration claims
one job from each queue; a job is acknowledged once handled, whether it
succeeded or failed permanently. Nothing is retried except jobs requeued
after a crash.
"""

import asyncio
import logging
import signal
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence

from files_manager.config import get_settings
from files_manager.db.session import Database
from files_manager.errors import JobError
from files_manager.files.storage import BlobStore
from files_manager.files.store import MetadataStore
from files_manager.files.thumbnails import make_thumbnail
from files_manager.jobs.queue import JobQueue
from files_manager.logs import setup_logging
from files_manager.redis_client import create_redis
from files_manager.users.service import get_user_by_id, send_welcome_email

log = logging.getLogger(__name__)

Handler = Callable[[Dict[str, Any]], Awaitable[None]]


class ThumbnailProcessor:
    """Writes resized variants of an image blob next to it (``<path>_<width>``)."""

    def __init__(self, metadata: MetadataStore, blobs: BlobStore, widths: Sequence[int] = (500, 250, 100)):
        self.metadata = metadata
        self.blobs = blobs
        self.widths = tuple(widths)

    async def __call__(self, job: Dict[str, Any]) -> None:
        file_id = job.get("fileId")
        user_id = job.get("userId")
        if not file_id:
            raise JobError("Missing fileId")
        if not user_id:
            raise JobError("Missing userId")
        record = await self.metadata.find_by_id(str(file_id), user_id=str(user_id))
        if record is None or not record.local_path:
            raise JobError("File not found")
        source = self.blobs.read(record.local_path)
        written = 0
        for width in self.widths:
            try:
                thumb = await asyncio.to_thread(make_thumbnail, source, width)
                self.blobs.write_derived(record.local_path, str(width), thumb)
                written += 1
            except Exception:
                # One width failing must not stop the others
                log.exception("Thumbnail width=%d failed for file %s", width, file_id)
        log.info("Thumbnails for file %s: %d/%d written", file_id, written, len(self.widths))


class WelcomeProcessor:
    """Greets a newly registered user by mail (or in the log without SMTP)."""

    def __init__(self, db: Database):
        self.db = db

    async def __call__(self, job: Dict[str, Any]) -> None:
        user_id = job.get("userId")
        if not user_id:
            raise JobError("Missing userId")
        async with self.db.session() as session:
            user = await get_user_by_id(session, str(user_id))
        if user is None:
            raise JobError("User not found")
        settings = get_settings()
        if not settings.smtp_host or not settings.smtp_from:
            log.info("Welcome %s", user.email)
            return
        await send_welcome_email(user.email)
        log.info("Welcome mail sent to %s", user.email)


async def run_job(queue: JobQueue, handler: Handler, raw: str) -> None:
    """Handle one claimed job, log any failure, and acknowledge it."""
    job = JobQueue.decode(raw)
    try:
        await handler(job)
    except JobError as e:
        log.warning("Job on %s dropped: %s (payload=%s)", queue.name, e, raw)
    except Exception:
        log.exception("Job on %s failed (payload=%s)", queue.name, raw)
    finally:
        await queue.ack(raw)


class Worker:
    """Pulls jobs from several queues until stopped."""

    def __init__(
        self,
        handlers: Dict[str, "tuple[JobQueue, Handler]"],
        poll_timeout: float = 5,
        retry_delay: float = 5,
    ):
        self.handlers = handlers
        self.poll_timeout = poll_timeout
        self.retry_delay = retry_delay
        self._stop = asyncio.Event()

    def stop(self) -> None:
        self._stop.set()

    async def recover(self) -> None:
        for queue, _ in self.handlers.values():
            await queue.requeue_unfinished()

    async def run_once(self, timeout: Optional[float] = None) -> int:
        """Claim and handle at most one job per queue; return how many ran."""
        handled = 0
        per_queue = self.poll_timeout if timeout is None else timeout
        for queue, handler in self.handlers.values():
            raw = await queue.claim(timeout=per_queue)
            if raw is None:
                continue
            await run_job(queue, handler, raw)
            handled += 1
        return handled

    async def _pause(self) -> None:
        """Sleep for retry_delay, returning early if stop() is called."""
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=self.retry_delay)
        except asyncio.TimeoutError:
            pass

    async def run(self) -> None:
        log.info("Worker started queues=%s", ", ".join(q.name for q, _ in self.handlers.values()))
        await self.recover()
        while not self._stop.is_set():
            try:
                await self.run_once()
            except Exception:
                log.exception("Worker iteration failed, retrying in %ss", self.retry_delay)
                await self._pause()
        log.info("Worker stopped")


async def _main() -> None:
    settings = get_settings()
    db = Database(settings.sqlalchemy_url)
    await db.init()
    redis_client = create_redis(settings.redis_url)
    metadata = MetadataStore(db.session_factory, page_size=settings.page_size)
    blobs = BlobStore(settings.folder_path)
    worker = Worker(
        {
            "thumbnails": (
                JobQueue(redis_client, settings.file_queue),
                ThumbnailProcessor(metadata, blobs, settings.thumbnail_widths_list),
            ),
            "welcome": (JobQueue(redis_client, settings.user_queue), WelcomeProcessor(db)),
        },
        poll_timeout=settings.worker_poll_timeout,
    )
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, worker.stop)
    try:
        await worker.run()
    finally:
        await redis_client.aclose()
        await db.dispose()


def main() -> None:
    """Entry point for the files-manager-worker command."""
    setup_logging()
    asyncio.run(_main())


if __name__ == "__main__":
    main()

"""Queue consumption loop dispatching one build task per trigger."""

import asyncio
import contextlib
import logging
from dataclasses import dataclass

from icarium.builder import BuildService
from icarium.decoder import decode_message
from icarium.exceptions import DecodeError
from icarium.models.event import BuildTriggerEvent
from icarium.queue.base import MessageQueue

log = logging.getLogger(__name__)

MAX_FAILED_READS = 10
READ_BACKOFF = 1.0


@dataclass(frozen=True, kw_only=True)
class DispatchResult:
    """Summary of a finished consumption loop."""

    fatal: bool
    dispatched: int


@dataclass(frozen=True, kw_only=True)
class Dispatcher:
    """Reads trigger batches and builds each one in its own task.

    The loop runs until ``stop`` is set or the queue fails
    ``max_failed_reads`` times in a row, then waits for every build it
    started. Build failures are logged and never stop the loop.
    """

    queue: MessageQueue
    service: BuildService
    max_failed_reads: int = MAX_FAILED_READS
    read_backoff: float = READ_BACKOFF
    max_concurrent_builds: int | None = None
    build_timeout: float | None = None

    async def run(self, stop: asyncio.Event) -> DispatchResult:
        """Consume the queue until stopped, then drain running builds.

        Args:
            stop: Shutdown signal, checked before each queue read

        Returns:
            Whether the loop stopped on queue failures, and how many builds
            it started

        """
        tasks: set[asyncio.Task[None]] = set()
        limiter = (
            asyncio.Semaphore(self.max_concurrent_builds)
            if self.max_concurrent_builds
            else None
        )
        failed_reads = 0
        dispatched = 0
        fatal = False

        log.info("Waiting for messages...")
        while not stop.is_set():
            try:
                messages = await self.queue.read()
            except Exception as e:
                failed_reads += 1
                log.error(
                    "Queue read failed (%d/%d): %s",
                    failed_reads,
                    self.max_failed_reads,
                    e,
                )
                if failed_reads >= self.max_failed_reads:
                    log.error("Reading from the queue failed too many times")
                    fatal = True
                    break
                await asyncio.sleep(self.read_backoff)
                continue

            failed_reads = 0

            for body in messages:
                event = self.route(body)
                if event is None:
                    continue

                task = asyncio.create_task(
                    self.run_build(event, limiter),
                    name=f"build {event.repository_full_name}@{event.commit}",
                )
                tasks.add(task)
                task.add_done_callback(tasks.discard)
                dispatched += 1

        log.info("Waiting for %d build(s) to complete before exit...", len(tasks))
        await asyncio.gather(*tasks)

        return DispatchResult(fatal=fatal, dispatched=dispatched)

    def route(self, body: str) -> BuildTriggerEvent | None:
        """Decode a message, returning the event only if it requests a build."""
        try:
            event = decode_message(body)
        except DecodeError as e:
            log.error("Skipping message: %s", e)
            return None

        if event.action != "build":
            log.info("Unknown action: %s", event.action)
            return None

        return event

    async def run_build(
        self, event: BuildTriggerEvent, limiter: asyncio.Semaphore | None
    ) -> None:
        """Handle one event, logging its outcome or failure."""
        try:
            async with limiter or contextlib.nullcontext():
                async with asyncio.timeout(self.build_timeout):
                    outcome = await self.service.handle(event)
        except Exception as e:
            log.error(
                "Build of %s at %s failed: %s",
                event.repository_full_name,
                event.commit,
                e,
                exc_info=e,
            )
            return

        if outcome.status == "skipped":
            log.info(
                "Skipped %s at %s: %s",
                outcome.repository,
                outcome.ref,
                outcome.reason,
            )

"""Entry point of the icariumd build daemon."""

import argparse
import asyncio
import logging
import signal
import sys

import boto3
from pydantic import ValidationError

from icarium.builder import BuildService
from icarium.config import Settings
from icarium.dispatcher import Dispatcher
from icarium.pipeline import BuildPipeline
from icarium.queue.sqs import SqsQueue
from icarium.stores.dynamodb import DynamoCredentialStore, DynamoRepositoryStore

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def create_dispatcher(settings: Settings, session: boto3.Session) -> Dispatcher:
    """Wire the dispatcher and its collaborators from settings."""
    dynamodb = session.client("dynamodb")

    service = BuildService(
        repositories=DynamoRepositoryStore(
            client=dynamodb, table=settings.repositories_table
        ),
        credentials=DynamoCredentialStore(
            client=dynamodb, table=settings.identities_table
        ),
        pipeline=BuildPipeline(
            workspace_root=settings.workspace_root,
            registry=settings.registry,
        ),
    )

    return Dispatcher(
        queue=SqsQueue(
            client=session.client("sqs"),
            queue_url=settings.queue_url,
            wait_seconds=settings.queue_wait_seconds,
            batch_size=settings.queue_batch_size,
        ),
        service=service,
        max_failed_reads=settings.max_failed_reads,
        read_backoff=settings.read_backoff,
        max_concurrent_builds=settings.max_concurrent_builds,
        build_timeout=settings.build_timeout,
    )


def install_signal_handlers(stop: asyncio.Event) -> None:
    """Set ``stop`` when the process is asked to terminate."""
    log = logging.getLogger("icarium")
    loop = asyncio.get_running_loop()

    def request_stop(signum: signal.Signals) -> None:
        log.info("Received %s, exiting...", signum.name)
        stop.set()

    for signum in SHUTDOWN_SIGNALS:
        loop.add_signal_handler(signum, request_stop, signum)


async def run(settings: Settings) -> int:
    """Run the daemon until shutdown and return its exit code."""
    log = logging.getLogger("icarium")
    settings.log_settings()

    session = boto3.Session(region_name=settings.aws_region)
    dispatcher = create_dispatcher(settings, session)

    stop = asyncio.Event()
    install_signal_handlers(stop)

    result = await dispatcher.run(stop)
    log.info("Dispatched %d build(s)", result.dispatched)

    return 1 if result.fatal else 0


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="icariumd",
        description="Build and publish container images for pushed commits",
    )
    parser.add_argument(
        "--log-level",
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        help="Override the ICARIUM_LOG_LEVEL setting",
    )
    args = parser.parse_args()

    try:
        settings = Settings()
    except ValidationError as e:
        parser.exit(2, f"Invalid configuration:\n{e}\n")

    logging.basicConfig(
        level=args.log_level or settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    sys.exit(asyncio.run(run(settings)))


if __name__ == "__main__":  # pragma: no cover
    main()

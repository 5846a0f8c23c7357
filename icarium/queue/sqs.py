"""SQS queue client."""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from botocore.exceptions import BotoCoreError, ClientError

from icarium.exceptions import QueueReadError
from icarium.queue.base import MessageQueue

if TYPE_CHECKING:
    from mypy_boto3_sqs import SQSClient
    from mypy_boto3_sqs.type_defs import (
        DeleteMessageBatchRequestEntryTypeDef,
        MessageTypeDef,
    )

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class SqsQueue(MessageQueue):
    """Long-polling SQS reader.

    Messages are acknowledged (deleted) as soon as they are received. Only
    acknowledged messages are handed to the caller; the others stay on the
    queue and are delivered again after their visibility timeout.
    """

    client: "SQSClient" = field(repr=False)
    queue_url: str
    wait_seconds: int = 20
    batch_size: int = 10

    async def read(self) -> Sequence[str]:
        """Receive a batch and delete it from the queue."""
        try:
            response = await asyncio.to_thread(
                self.client.receive_message,
                QueueUrl=self.queue_url,
                MaxNumberOfMessages=self.batch_size,
                WaitTimeSeconds=self.wait_seconds,
            )
        except (ClientError, BotoCoreError) as e:
            raise QueueReadError(f"Failed to receive from {self.queue_url}: {e}") from e

        messages = response.get("Messages", [])
        if not messages:
            return []

        return await self.acknowledge(messages)

    async def acknowledge(self, messages: Sequence["MessageTypeDef"]) -> list[str]:
        """Delete received messages and return the bodies of those deleted.

        Entries the queue refuses to delete are logged and left out.

        Raises:
            QueueReadError: If the delete request itself fails

        """
        entries: list["DeleteMessageBatchRequestEntryTypeDef"] = [
            {"Id": str(index), "ReceiptHandle": message["ReceiptHandle"]}
            for index, message in enumerate(messages)
        ]
        try:
            response = await asyncio.to_thread(
                self.client.delete_message_batch,
                QueueUrl=self.queue_url,
                Entries=entries,
            )
        except (ClientError, BotoCoreError) as e:
            raise QueueReadError(
                f"Failed to acknowledge messages on {self.queue_url}: {e}"
            ) from e

        failed: set[str] = set()
        for failure in response.get("Failed", []):
            log.warning(
                "Message %s was not acknowledged, leaving it for redelivery: %s",
                failure["Id"],
                failure.get("Message"),
            )
            failed.add(failure["Id"])

        return [
            message["Body"]
            for index, message in enumerate(messages)
            if str(index) not in failed
        ]

"""Tests for the SQS queue client."""

from unittest.mock import Mock

import pytest
from botocore.exceptions import ClientError

from icarium.exceptions import QueueReadError
from icarium.queue.sqs import SqsQueue

QUEUE_URL = "https://sqs.us-east-1.amazonaws.com/123456789012/pullr-builds"


@pytest.fixture
def client() -> Mock:
    """Create mock SQS client."""
    client = Mock()
    client.delete_message_batch.return_value = {"Successful": [], "Failed": []}
    return client


@pytest.fixture
def queue(client: Mock) -> SqsQueue:
    """Create queue with mock client."""
    return SqsQueue(client=client, queue_url=QUEUE_URL, wait_seconds=5, batch_size=3)


async def test_returns_bodies_in_order(queue: SqsQueue, client: Mock) -> None:
    """Returns message bodies in the order received."""
    client.receive_message.return_value = {
        "Messages": [
            {"Body": "first", "ReceiptHandle": "rh-1"},
            {"Body": "second", "ReceiptHandle": "rh-2"},
        ]
    }

    bodies = await queue.read()

    assert bodies == ["first", "second"]
    client.receive_message.assert_called_once_with(
        QueueUrl=QUEUE_URL, MaxNumberOfMessages=3, WaitTimeSeconds=5
    )


async def test_acknowledges_received_messages(queue: SqsQueue, client: Mock) -> None:
    """Deletes the received batch from the queue."""
    client.receive_message.return_value = {
        "Messages": [
            {"Body": "first", "ReceiptHandle": "rh-1"},
            {"Body": "second", "ReceiptHandle": "rh-2"},
        ]
    }

    await queue.read()

    client.delete_message_batch.assert_called_once_with(
        QueueUrl=QUEUE_URL,
        Entries=[
            {"Id": "0", "ReceiptHandle": "rh-1"},
            {"Id": "1", "ReceiptHandle": "rh-2"},
        ],
    )


async def test_empty_batch_is_not_an_error(queue: SqsQueue, client: Mock) -> None:
    """An empty receive returns an empty batch without acknowledging."""
    client.receive_message.return_value = {}

    assert await queue.read() == []
    client.delete_message_batch.assert_not_called()


async def test_raises_read_error_on_receive_failure(
    queue: SqsQueue, client: Mock
) -> None:
    """Receive failures are queue read errors."""
    client.receive_message.side_effect = ClientError(
        {"Error": {"Code": "AWS.SimpleQueueService.NonExistentQueue"}},
        "ReceiveMessage",
    )

    with pytest.raises(QueueReadError, match="Failed to receive"):
        await queue.read()


async def test_raises_read_error_on_acknowledge_failure(
    queue: SqsQueue, client: Mock
) -> None:
    """A batch that cannot be acknowledged is not handed out."""
    client.receive_message.return_value = {
        "Messages": [{"Body": "first", "ReceiptHandle": "rh-1"}]
    }
    client.delete_message_batch.side_effect = ClientError(
        {"Error": {"Code": "AccessDenied"}}, "DeleteMessageBatch"
    )

    with pytest.raises(QueueReadError, match="Failed to acknowledge"):
        await queue.read()


async def test_withholds_messages_not_acknowledged(
    queue: SqsQueue, client: Mock, caplog: pytest.LogCaptureFixture
) -> None:
    """Entries refused by the queue are logged and left for redelivery."""
    client.receive_message.return_value = {
        "Messages": [
            {"Body": "first", "ReceiptHandle": "rh-1"},
            {"Body": "second", "ReceiptHandle": "rh-2"},
            {"Body": "third", "ReceiptHandle": "rh-3"},
        ]
    }
    client.delete_message_batch.return_value = {
        "Successful": [{"Id": "0"}, {"Id": "2"}],
        "Failed": [{"Id": "1", "Code": "ReceiptHandleIsInvalid", "Message": "expired"}],
    }

    bodies = await queue.read()

    assert bodies == ["first", "third"]
    assert "Message 1 was not acknowledged, leaving it for redelivery" in caplog.text

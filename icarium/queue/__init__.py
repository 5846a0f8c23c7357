"""Queue clients delivering push notifications."""

from icarium.queue.base import MessageQueue
from icarium.queue.sqs import SqsQueue

__all__ = ["MessageQueue", "SqsQueue"]

"""Abstract base class for queue clients."""

from abc import ABC, abstractmethod
from collections.abc import Sequence


class MessageQueue(ABC):
    """Source of raw push notification messages."""

    @abstractmethod
    async def read(self) -> Sequence[str]:
        """Read the next batch of message bodies.

        Blocks until messages are available or the transport's own wait
        time elapses. An empty batch is a normal outcome.

        Raises:
            QueueReadError: If the queue cannot be read

        """

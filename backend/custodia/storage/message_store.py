from collections import OrderedDict
from threading import RLock
from typing import Optional

from custodia.models.message import Message, MessageStatus

# Processed messages kept for status queries before the oldest are dropped
DEFAULT_RETENTION = 100_000


class MessageStore:
    """
    Status records for queued ledger operations, keyed by message ID.

    Guarded by a lock because API handlers and the message handler touch
    it from different tasks. Once more than ``retention`` messages are held,
    the oldest processed ones are forgotten; pending messages are never
    dropped.
    """

    def __init__(self, retention: int = DEFAULT_RETENTION) -> None:
        self._messages: OrderedDict[str, Message] = OrderedDict()
        self._retention = retention
        self._lock = RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)

    def add(self, message: Message) -> None:
        with self._lock:
            self._messages[message.id] = message
            self._evict()

    def get(self, message_id: str) -> Optional[Message]:
        with self._lock:
            return self._messages.get(message_id)

    def update(self, message: Message) -> None:
        """Store the latest state of a message already added."""
        with self._lock:
            if message.id not in self._messages:
                raise KeyError(f"Unknown message: {message.id}")
            self._messages[message.id] = message

    def get_user_messages(
        self,
        address: str,
        status: Optional[MessageStatus] = None,
    ) -> list[Message]:
        """Messages of one user, oldest first, optionally filtered by status."""
        with self._lock:
            return [
                m
                for m in self._messages.values()
                if m.user_address == address and (status is None or m.status == status)
            ]

    def _evict(self) -> None:
        excess = len(self._messages) - self._retention
        if excess <= 0:
            return
        for message_id in list(self._messages):
            if excess == 0:
                break
            if self._messages[message_id].status in (
                MessageStatus.ACCEPTED,
                MessageStatus.REJECTED,
            ):
                del self._messages[message_id]
                excess -= 1

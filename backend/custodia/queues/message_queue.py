import asyncio
from typing import Optional

from custodia.models.message import Message


class MessageQueue:
    """
    FIFO of ledger operations awaiting the MessageHandler.

    API requests and on-chain native events both land here, so every
    operation reaches the bank in arrival order and one at a time. A
    ``maxsize`` bounds the backlog: producers wait once it is full.
    """

    def __init__(self, maxsize: int = 0) -> None:
        self._queue: asyncio.Queue[Message] = asyncio.Queue(maxsize=maxsize)

    async def put(self, message: Message) -> None:
        await self._queue.put(message)

    async def get(self, timeout: Optional[float] = None) -> Optional[Message]:
        """Next message, or None if nothing arrives within ``timeout`` seconds."""
        if timeout is None:
            return await self._queue.get()
        try:
            return await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None

    def task_done(self) -> None:
        self._queue.task_done()

    async def join(self) -> None:
        """Wait until every queued message has been processed."""
        await self._queue.join()

    @property
    def qsize(self) -> int:
        return self._queue.qsize()

    @property
    def empty(self) -> bool:
        return self._queue.empty()

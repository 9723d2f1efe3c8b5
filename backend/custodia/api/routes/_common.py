"""Shared request/response models for operation routes."""

from pydantic import BaseModel, Field

from custodia.models.message import Message
from custodia.queues.message_queue import MessageQueue
from custodia.storage.message_store import MessageStore

# Amounts are integers in the asset's smallest unit
AMOUNT_PATTERN = "^[0-9]+$"


class OperationResponse(BaseModel):
    """Response after submitting a ledger operation."""

    message_id: str = Field(..., description="Message ID to track operation status")


async def submit(
    message: Message,
    message_queue: MessageQueue,
    message_store: MessageStore,
) -> OperationResponse:
    """Store a message for status tracking and queue it for processing."""
    message_store.add(message)
    await message_queue.put(message)
    return OperationResponse(message_id=message.id)

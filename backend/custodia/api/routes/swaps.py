"""Swap API routes."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from custodia.api.auth import authenticated_address
from custodia.api.dependencies import get_message_queue, get_message_store
from custodia.api.routes._common import AMOUNT_PATTERN, OperationResponse, submit
from custodia.models.message import Message
from custodia.queues.message_queue import MessageQueue
from custodia.storage.message_store import MessageStore

router = APIRouter(prefix="/swaps", tags=["swaps"])


class SwapRequest(BaseModel):
    """Request body for a token-for-native swap."""

    amount: str = Field(..., pattern=AMOUNT_PATTERN, description="Token amount to sell")


@router.post("", response_model=OperationResponse)
async def request_swap(
    swap: SwapRequest,
    user_address: str = Depends(authenticated_address),
    message_queue: MessageQueue = Depends(get_message_queue),
    message_store: MessageStore = Depends(get_message_store),
) -> OperationResponse:
    """
    Swap tokens for native at oracle prices.

    The native amount paid out is reported as amount_out in the message
    status once processed. Native-for-token swaps are made on-chain.
    """
    message = Message.create_token_swap(user_address, swap.amount)
    return await submit(message, message_queue, message_store)

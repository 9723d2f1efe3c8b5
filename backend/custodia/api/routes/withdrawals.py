"""Withdrawal API routes."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from custodia.api.auth import authenticated_address
from custodia.api.dependencies import get_message_queue, get_message_store
from custodia.api.routes._common import AMOUNT_PATTERN, OperationResponse, submit
from custodia.models.message import Message
from custodia.queues.message_queue import MessageQueue
from custodia.storage.message_store import MessageStore

router = APIRouter(prefix="/withdrawals", tags=["withdrawals"])


class WithdrawalRequest(BaseModel):
    """Request body for a withdrawal."""

    asset: str = Field(..., pattern="^(native|token)$", description="Asset to withdraw")
    amount: str = Field(..., pattern=AMOUNT_PATTERN, description="Amount in base units")


@router.post("", response_model=OperationResponse)
async def request_withdrawal(
    withdrawal: WithdrawalRequest,
    user_address: str = Depends(authenticated_address),
    message_queue: MessageQueue = Depends(get_message_queue),
    message_store: MessageStore = Depends(get_message_store),
) -> OperationResponse:
    """
    Request a withdrawal.

    If approved, the funds are transferred on-chain to the caller.
    Returns a message_id that can be used to track the withdrawal status.
    """
    message = Message.create_withdraw(user_address, withdrawal.asset, withdrawal.amount)
    return await submit(message, message_queue, message_store)

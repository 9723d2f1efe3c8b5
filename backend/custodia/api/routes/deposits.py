"""Token deposit API routes."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from custodia.api.auth import authenticated_address
from custodia.api.dependencies import get_message_queue, get_message_store
from custodia.api.routes._common import AMOUNT_PATTERN, OperationResponse, submit
from custodia.models.message import Message
from custodia.queues.message_queue import MessageQueue
from custodia.storage.message_store import MessageStore

router = APIRouter(prefix="/deposits", tags=["deposits"])


class DepositRequest(BaseModel):
    """Request body for a token deposit."""

    amount: str = Field(..., pattern=AMOUNT_PATTERN, description="Token amount in base units")


@router.post("", response_model=OperationResponse)
async def request_deposit(
    deposit: DepositRequest,
    user_address: str = Depends(authenticated_address),
    message_queue: MessageQueue = Depends(get_message_queue),
    message_store: MessageStore = Depends(get_message_store),
) -> OperationResponse:
    """
    Deposit tokens.

    The custodian pulls the amount using the allowance the caller has
    granted it on the token contract, then credits the caller. Native
    deposits are made on-chain and picked up by the event listener.
    """
    message = Message.create_token_deposit(user_address, deposit.amount)
    return await submit(message, message_queue, message_store)

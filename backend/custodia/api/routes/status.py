"""Message status and ledger read API routes."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from custodia.api.dependencies import get_bank, get_message_store
from custodia.core.bank import Bank
from custodia.models.balance import AssetKind
from custodia.models.message import Message, MessageStatus
from custodia.storage.message_store import MessageStore

router = APIRouter(tags=["status"])


class MessageStatusResponse(BaseModel):
    """Response for message status query."""

    message_id: str = Field(..., description="Message ID")
    type: str = Field(..., description="Operation type")
    status: str = Field(..., description="Status (pending, processing, accepted, rejected)")
    rejection_reason: Optional[str] = Field(None, description="Reason if rejected")
    error_code: Optional[str] = Field(None, description="Ledger error code if rejected")
    created_at: datetime = Field(..., description="When message was created")
    processed_at: Optional[datetime] = Field(None, description="When message was processed")
    amount_out: Optional[str] = Field(None, description="Swap output in base units")


class BalanceResponse(BaseModel):
    """Response for balance query."""

    user_address: str = Field(..., description="User's Stellar address")
    native: str = Field(..., description="Tracked native balance in base units")
    token: str = Field(..., description="Tracked token balance in base units")


class StatsResponse(BaseModel):
    """Response for ledger statistics."""

    deposit_count: int
    withdrawal_count: int
    aggregate_liability: str = Field(..., description="Native liability in 8-decimal valuation units")
    native_pool: str = Field(..., description="Native held by the custodian")
    paused: bool
    max_oracle_delay: int = Field(..., description="Oracle staleness window in seconds")


def _status_response(message: Message) -> MessageStatusResponse:
    return MessageStatusResponse(
        message_id=message.id,
        type=message.type.value,
        status=message.status.value,
        rejection_reason=message.rejection_reason,
        error_code=message.error_code,
        created_at=message.created_at,
        processed_at=message.processed_at,
        amount_out=str(message.amount_out) if message.amount_out is not None else None,
    )


@router.get("/messages/{message_id}", response_model=MessageStatusResponse)
async def get_message_status(
    message_id: str,
    message_store: MessageStore = Depends(get_message_store),
) -> MessageStatusResponse:
    """
    Get the status of a message.

    Use this endpoint to check whether a deposit, withdrawal or swap has
    been processed and whether it was accepted or rejected.
    """
    message = message_store.get(message_id)
    if message is None:
        raise HTTPException(
            status_code=404,
            detail=f"Message not found: {message_id}",
        )

    return _status_response(message)


@router.get("/users/{user_address}/messages", response_model=list[MessageStatusResponse])
async def get_user_messages(
    user_address: str,
    status: Optional[str] = None,
    message_store: MessageStore = Depends(get_message_store),
) -> list[MessageStatusResponse]:
    """List a user's operations, oldest first, optionally filtered by status."""
    status_filter = None
    if status is not None:
        try:
            status_filter = MessageStatus(status)
        except ValueError:
            raise HTTPException(status_code=422, detail=f"Invalid status: {status}")

    return [
        _status_response(m)
        for m in message_store.get_user_messages(user_address, status_filter)
    ]


@router.get("/balances/{user_address}", response_model=BalanceResponse)
async def get_user_balance(
    user_address: str,
    bank: Bank = Depends(get_bank),
) -> BalanceResponse:
    """Get a user's tracked balances of both assets."""
    return BalanceResponse(
        user_address=user_address,
        native=str(bank.balance_of(AssetKind.NATIVE, user_address)),
        token=str(bank.balance_of(AssetKind.TOKEN, user_address)),
    )


@router.get("/stats", response_model=StatsResponse)
async def get_stats(bank: Bank = Depends(get_bank)) -> StatsResponse:
    """Get global counters and pool state."""
    stats = bank.bank_stats()
    return StatsResponse(
        deposit_count=stats.deposit_count,
        withdrawal_count=stats.withdrawal_count,
        aggregate_liability=str(bank.aggregate_liability),
        native_pool=str(bank.native_pool),
        paused=bank.paused,
        max_oracle_delay=bank.max_oracle_delay,
    )

"""Owner-only API routes."""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from custodia.api.auth import authenticated_address
from custodia.api.dependencies import get_bank
from custodia.core.bank import Bank
from custodia.errors import InvalidParameterError, UnauthorizedError

router = APIRouter(prefix="/admin", tags=["admin"])


class OracleDelayRequest(BaseModel):
    """Request body for updating the oracle staleness window."""

    seconds: int = Field(..., description="New maximum oracle delay in seconds")


class AdminResponse(BaseModel):
    """Ledger flags after an owner operation."""

    paused: bool
    max_oracle_delay: int


def _response(bank: Bank) -> AdminResponse:
    return AdminResponse(paused=bank.paused, max_oracle_delay=bank.max_oracle_delay)


@router.post("/pause", response_model=AdminResponse)
async def pause(
    caller: str = Depends(authenticated_address),
    bank: Bank = Depends(get_bank),
) -> AdminResponse:
    """Pause all ledger operations."""
    try:
        bank.pause(caller)
    except UnauthorizedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    return _response(bank)


@router.post("/unpause", response_model=AdminResponse)
async def unpause(
    caller: str = Depends(authenticated_address),
    bank: Bank = Depends(get_bank),
) -> AdminResponse:
    """Resume ledger operations."""
    try:
        bank.unpause(caller)
    except UnauthorizedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    return _response(bank)


@router.post("/oracle-delay", response_model=AdminResponse)
async def set_oracle_delay(
    request: OracleDelayRequest,
    caller: str = Depends(authenticated_address),
    bank: Bank = Depends(get_bank),
) -> AdminResponse:
    """Update the maximum age of an accepted price reading."""
    try:
        bank.set_max_oracle_delay(caller, request.seconds)
    except UnauthorizedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except InvalidParameterError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _response(bank)

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class EventType(Enum):
    """Notifications emitted after an operation commits."""

    DEPOSIT = "deposit"  # Native deposit completed
    WITHDRAWAL = "withdrawal"  # Native withdrawal completed
    TOKEN_DEPOSIT = "token_deposit"
    TOKEN_WITHDRAWAL = "token_withdrawal"
    SWAP_NATIVE_TO_TOKEN = "swap_native_to_token"
    SWAP_TOKEN_TO_NATIVE = "swap_token_to_native"
    ORACLE_DELAY_UPDATED = "oracle_delay_updated"
    PAUSED = "paused"
    UNPAUSED = "unpaused"


@dataclass
class Notification:
    """
    A committed ledger event.

    For deposits and withdrawals only ``amount`` is set. Swaps carry
    ``amount`` (input) and ``amount_out``. Oracle delay updates carry the
    old value in ``amount`` and the new one in ``amount_out``.
    """

    type: EventType
    actor: str
    amount: int = 0
    amount_out: Optional[int] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

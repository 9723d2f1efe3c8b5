"""Typed failures raised by the ledger engine.

Every error carries the diagnostic fields needed to explain the rejection
(requested vs. cap, have vs. need) and a stable ``code`` that the message
handler and API surface to callers.
"""

from typing import Optional


class LedgerError(Exception):
    """Base exception for all ledger failures."""

    code = "ledger_error"


class ZeroDepositError(LedgerError):
    """Raised when a deposit of zero is attempted."""

    code = "ZeroDeposit"

    def __init__(self) -> None:
        super().__init__("Deposit amount must be greater than zero")


class ZeroAmountError(LedgerError):
    """Raised when a withdrawal or swap of zero is attempted."""

    code = "ZeroAmount"

    def __init__(self) -> None:
        super().__init__("Amount must be greater than zero")


class CapExceededError(LedgerError):
    """Raised when a withdrawal exceeds the per-withdrawal cap."""

    code = "CapExceeded"

    def __init__(self, requested: int, cap: int):
        self.requested = requested
        self.cap = cap
        super().__init__(f"Withdrawal cap exceeded: requested {requested}, cap {cap}")


class DepositCapReachedError(LedgerError):
    """Raised when the global deposit count cap has been reached."""

    code = "DepositCapReached"

    def __init__(self, count: int, cap: int):
        self.count = count
        self.cap = cap
        super().__init__(f"Deposit cap reached: {count} of {cap} deposits used")


class AggregateCapExceededError(LedgerError):
    """Raised when a deposit would push aggregate liability over its cap."""

    code = "AggregateCapExceeded"

    def __init__(self, attempted: int, cap: int):
        self.attempted = attempted
        self.cap = cap
        super().__init__(
            f"Aggregate valuation cap exceeded: attempted {attempted}, cap {cap}"
        )


class InsufficientBalanceError(LedgerError):
    """Raised when a user's tracked balance cannot cover a debit."""

    code = "InsufficientBalance"

    def __init__(self, have: int, need: int):
        self.have = have
        self.need = need
        super().__init__(f"Insufficient balance: have {have}, need {need}")


class InsufficientLiquidityError(LedgerError):
    """Raised when the shared pool cannot fund a swap output."""

    code = "InsufficientLiquidity"

    def __init__(self, available: int, needed: int):
        self.available = available
        self.needed = needed
        super().__init__(
            f"Insufficient liquidity: available {available}, needed {needed}"
        )


class InvalidPriceError(LedgerError):
    """Raised when a price reading fails validation."""

    code = "InvalidPrice"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid price: {reason}")


class TransferFailedError(LedgerError):
    """Raised when an asset transfer to or from the custodian fails."""

    code = "TransferFailed"

    def __init__(
        self,
        asset: str,
        to: str,
        amount: int,
        reason: Optional[str] = None,
    ):
        self.asset = asset
        self.to = to
        self.amount = amount
        self.reason = reason
        message = f"Transfer of {amount} {asset} to {to} failed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class InsufficientAllowanceError(TransferFailedError):
    """Raised when the caller has not approved enough tokens for a pull."""

    def __init__(self, owner: str, spender: str, have: int, need: int):
        self.owner = owner
        self.spender = spender
        self.have = have
        self.need = need
        super().__init__(
            asset="token",
            to=spender,
            amount=need,
            reason=f"insufficient allowance: have {have}, need {need}",
        )


class ReentrancyError(LedgerError):
    """Raised when a guarded operation is entered while another is in flight."""

    code = "Reentrancy"

    def __init__(self) -> None:
        super().__init__("Reentrant call rejected")


class UnauthorizedError(LedgerError):
    """Raised when a non-owner invokes an owner-only operation."""

    code = "Unauthorized"

    def __init__(self, caller: str):
        self.caller = caller
        super().__init__(f"Caller is not the owner: {caller}")


class PausedError(LedgerError):
    """Raised when a state-mutating operation is invoked while paused."""

    code = "Paused"

    def __init__(self) -> None:
        super().__init__("Ledger is paused")


class InvalidParameterError(LedgerError):
    """Raised when an owner-supplied parameter is out of range."""

    code = "InvalidParameter"

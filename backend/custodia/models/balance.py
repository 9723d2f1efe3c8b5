from dataclasses import dataclass, field
from enum import Enum

from custodia.errors import InsufficientBalanceError


class AssetKind(Enum):
    """Asset classes held by the ledger."""

    NATIVE = "native"  # Chain settlement asset
    TOKEN = "token"  # Designated fungible token


@dataclass
class UserBalance:
    """
    Balance of a single asset in its smallest unit.

    Never negative: a debit that cannot be covered is rejected before
    the amount changes.
    """

    amount: int = 0

    def can_debit(self, amount: int) -> bool:
        """Check if the balance covers this amount."""
        return self.amount >= amount

    def credit(self, amount: int) -> None:
        """Add funds to the balance."""
        self.amount += amount

    def debit(self, amount: int) -> None:
        """Remove funds from the balance."""
        if not self.can_debit(amount):
            raise InsufficientBalanceError(have=self.amount, need=amount)
        self.amount -= amount


@dataclass
class Account:
    """
    User account with balances for both asset kinds.
    """

    address: str
    native: UserBalance = field(default_factory=UserBalance)
    token: UserBalance = field(default_factory=UserBalance)

    def get_balance(self, kind: AssetKind) -> UserBalance:
        """Get balance for the specified asset kind."""
        if kind == AssetKind.NATIVE:
            return self.native
        elif kind == AssetKind.TOKEN:
            return self.token
        else:
            raise ValueError(f"Invalid asset: {kind}")

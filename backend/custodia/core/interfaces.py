"""Interfaces of the external collaborators consumed by the ledger."""

from typing import Protocol

from custodia.models.oracle import FeedRound


class TokenCollaborator(Protocol):
    """The designated fungible token, as seen by the custodian."""

    def balance_of(self, holder: str) -> int:
        """Token balance of ``holder``."""
        ...

    def transfer(self, to: str, amount: int) -> bool:
        """Send ``amount`` from the custodian to ``to``. Returns success."""
        ...

    def transfer_from(self, owner: str, to: str, amount: int) -> bool:
        """Pull ``amount`` from ``owner`` using the custodian's allowance. Returns success."""
        ...

    def allowance(self, owner: str, spender: str) -> int:
        """Amount ``spender`` may still pull from ``owner``."""
        ...


class NativeTransport(Protocol):
    """Push transfers of the native asset out of the custodian."""

    def send(self, to: str, amount: int) -> bool:
        """Send ``amount`` of native asset to ``to``. Returns success."""
        ...


class PriceFeed(Protocol):
    """An external price feed reporting the latest round."""

    def latest_round(self) -> FeedRound:
        """Latest round data. May be stale or inconsistent; callers validate."""
        ...

from custodia.core.bank import Bank
from custodia.core.ledger import BankStats
from custodia.core.interfaces import NativeTransport, PriceFeed, TokenCollaborator

__all__ = [
    "Bank",
    "BankStats",
    "NativeTransport",
    "PriceFeed",
    "TokenCollaborator",
]

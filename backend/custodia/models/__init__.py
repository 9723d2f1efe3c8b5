from custodia.models.balance import Account, AssetKind, UserBalance
from custodia.models.event import EventType, Notification
from custodia.models.message import Message, MessageStatus, MessageType
from custodia.models.oracle import PRICE_DECIMALS, PRICE_SCALE, FeedRound, OracleReading

__all__ = [
    "Account",
    "AssetKind",
    "UserBalance",
    "EventType",
    "Notification",
    "Message",
    "MessageStatus",
    "MessageType",
    "PRICE_DECIMALS",
    "PRICE_SCALE",
    "FeedRound",
    "OracleReading",
]

from custodia.blockchain.client import SorobanClient
from custodia.blockchain.event_listener import NativeEventListener
from custodia.blockchain.mock import MockNativeTransport, MockPriceFeed, MockToken
from custodia.blockchain.native import TokenNativeTransport
from custodia.blockchain.price_feed import SorobanPriceFeed
from custodia.blockchain.token import SorobanToken

__all__ = [
    "SorobanClient",
    "NativeEventListener",
    "MockNativeTransport",
    "MockPriceFeed",
    "MockToken",
    "TokenNativeTransport",
    "SorobanPriceFeed",
    "SorobanToken",
]

import pytest

from custodia.blockchain.mock import MockNativeTransport, MockPriceFeed, MockToken
from custodia.config import BankConfig
from custodia.core.bank import Bank
from custodia.models.oracle import PRICE_SCALE

OWNER = "owner"
CUSTODIAN = "custodian"
ALICE = "alice"
BOB = "bob"

NATIVE_PRICE = 2000 * PRICE_SCALE
TOKEN_PRICE = 1 * PRICE_SCALE


class FakeClock:
    """Manually advanced clock shared by feeds and the oracle gateway."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def native_feed(clock: FakeClock) -> MockPriceFeed:
    return MockPriceFeed(NATIVE_PRICE, clock=clock)


@pytest.fixture
def token_feed(clock: FakeClock) -> MockPriceFeed:
    return MockPriceFeed(TOKEN_PRICE, clock=clock)


@pytest.fixture
def token() -> MockToken:
    return MockToken(custodian=CUSTODIAN)


@pytest.fixture
def native_transport() -> MockNativeTransport:
    return MockNativeTransport()


@pytest.fixture
def config() -> BankConfig:
    return BankConfig(
        owner=OWNER,
        custodian_address=CUSTODIAN,
        native_withdraw_cap=50_000,
        deposit_count_cap=20,
        native_decimals=9,
    )


@pytest.fixture
def bank(
    config: BankConfig,
    token: MockToken,
    native_transport: MockNativeTransport,
    native_feed: MockPriceFeed,
    token_feed: MockPriceFeed,
    clock: FakeClock,
) -> Bank:
    return Bank(
        config=config,
        token=token,
        native_transport=native_transport,
        native_feed=native_feed,
        token_feed=token_feed,
        clock=clock,
    )


def fund_tokens(token: MockToken, user: str, amount: int) -> None:
    """Mint tokens to a user and approve the custodian to pull them."""
    token.mint(user, amount)
    token.approve(user, CUSTODIAN, amount)

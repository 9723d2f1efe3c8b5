import pytest

from custodia.blockchain.mock import MockNativeTransport, MockPriceFeed, MockToken
from custodia.config import BankConfig
from custodia.core.bank import Bank
from custodia.errors import (
    AggregateCapExceededError,
    CapExceededError,
    DepositCapReachedError,
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InvalidPriceError,
    TransferFailedError,
    ZeroAmountError,
    ZeroDepositError,
)
from custodia.models.balance import AssetKind
from custodia.models.event import EventType, Notification
from custodia.models.oracle import PRICE_SCALE, FeedRound

from conftest import ALICE, BOB, CUSTODIAN, OWNER, FakeClock, fund_tokens


def make_bank(
    clock: FakeClock,
    token: MockToken,
    native_transport: MockNativeTransport,
    native_feed: MockPriceFeed,
    token_feed: MockPriceFeed,
    **overrides,
) -> Bank:
    values = dict(
        owner=OWNER,
        custodian_address=CUSTODIAN,
        native_withdraw_cap=50_000,
        deposit_count_cap=20,
        native_decimals=9,
    )
    values.update(overrides)
    return Bank(
        config=BankConfig(**values),
        token=token,
        native_transport=native_transport,
        native_feed=native_feed,
        token_feed=token_feed,
        clock=clock,
    )


def snapshot(bank: Bank, user: str = ALICE) -> tuple:
    return (
        bank.balance_of(AssetKind.NATIVE, user),
        bank.balance_of(AssetKind.TOKEN, user),
        bank.bank_stats(),
        bank.aggregate_liability,
        bank.native_pool,
    )


class TestNativeLedger:
    """Tests for native deposits and withdrawals."""

    def test_deposit_withdraw_scenario(
        self,
        bank: Bank,
        native_transport: MockNativeTransport,
    ) -> None:
        """Deposit 10000 at 2000.00000000, withdraw 5000, then exceed the cap."""
        bank.deposit_native(ALICE, 10_000)

        assert bank.balance_of(AssetKind.NATIVE, ALICE) == 10_000
        assert bank.bank_stats().deposit_count == 1
        assert bank.aggregate_liability == 2_000_000
        assert bank.native_pool == 10_000

        bank.withdraw_native(ALICE, 5_000)

        assert bank.balance_of(AssetKind.NATIVE, ALICE) == 5_000
        assert bank.bank_stats().withdrawal_count == 1
        assert bank.aggregate_liability == 1_000_000
        assert native_transport.sent == [(ALICE, 5_000)]

        with pytest.raises(CapExceededError) as exc_info:
            bank.withdraw_native(ALICE, 60_000)
        assert exc_info.value.requested == 60_000
        assert exc_info.value.cap == 50_000
        assert bank.balance_of(AssetKind.NATIVE, ALICE) == 5_000

    def test_zero_deposit_rejected(self, bank: Bank) -> None:
        with pytest.raises(ZeroDepositError):
            bank.deposit_native(ALICE, 0)
        assert bank.bank_stats().deposit_count == 0

    def test_zero_withdrawal_rejected(self, bank: Bank) -> None:
        bank.deposit_native(ALICE, 100)
        with pytest.raises(ZeroAmountError):
            bank.withdraw_native(ALICE, 0)
        assert bank.bank_stats().withdrawal_count == 0

    def test_negative_amount_rejected(self, bank: Bank) -> None:
        with pytest.raises(ValueError):
            bank.deposit_native(ALICE, -1)
        assert bank.native_pool == 0

    def test_insufficient_balance(self, bank: Bank) -> None:
        bank.deposit_native(ALICE, 100)
        before = snapshot(bank)

        with pytest.raises(InsufficientBalanceError) as exc_info:
            bank.withdraw_native(ALICE, 101)

        assert exc_info.value.have == 100
        assert exc_info.value.need == 101
        assert snapshot(bank) == before

    def test_withdraw_full_balance(self, bank: Bank) -> None:
        bank.deposit_native(ALICE, 100)
        bank.withdraw_native(ALICE, 100)
        assert bank.balance_of(AssetKind.NATIVE, ALICE) == 0
        assert bank.aggregate_liability == 0

    def test_deposit_count_cap(
        self,
        clock: FakeClock,
        token: MockToken,
        native_transport: MockNativeTransport,
        native_feed: MockPriceFeed,
        token_feed: MockPriceFeed,
    ) -> None:
        bank = make_bank(
            clock, token, native_transport, native_feed, token_feed,
            deposit_count_cap=2,
        )
        bank.deposit_native(ALICE, 10)
        bank.deposit_native(BOB, 10)

        with pytest.raises(DepositCapReachedError) as exc_info:
            bank.deposit_native(ALICE, 10)

        assert exc_info.value.count == 2
        assert exc_info.value.cap == 2
        assert bank.balance_of(AssetKind.NATIVE, ALICE) == 10

    def test_deposit_count_cap_includes_token_deposits(
        self,
        clock: FakeClock,
        token: MockToken,
        native_transport: MockNativeTransport,
        native_feed: MockPriceFeed,
        token_feed: MockPriceFeed,
    ) -> None:
        bank = make_bank(
            clock, token, native_transport, native_feed, token_feed,
            deposit_count_cap=1,
        )
        fund_tokens(token, ALICE, 100)
        bank.deposit_token(ALICE, 100)

        with pytest.raises(DepositCapReachedError):
            bank.deposit_native(ALICE, 10)

    def test_aggregate_cap(
        self,
        clock: FakeClock,
        token: MockToken,
        native_transport: MockNativeTransport,
        native_feed: MockPriceFeed,
        token_feed: MockPriceFeed,
    ) -> None:
        bank = make_bank(
            clock, token, native_transport, native_feed, token_feed,
            aggregate_valuation_cap=1_000_000,
        )
        # 5000 units at 2000.00000000 are valued at exactly the cap
        bank.deposit_native(ALICE, 5_000)
        assert bank.aggregate_liability == 1_000_000

        # one unit at 10.00000000 is worth one valuation unit
        native_feed.set_price(10 * PRICE_SCALE)
        before = snapshot(bank)

        with pytest.raises(AggregateCapExceededError) as exc_info:
            bank.deposit_native(ALICE, 1)

        assert exc_info.value.attempted == 1_000_001
        assert exc_info.value.cap == 1_000_000
        assert snapshot(bank) == before

    def test_aggregate_cap_disabled_by_default(
        self,
        bank: Bank,
        config: BankConfig,
        native_feed: MockPriceFeed,
    ) -> None:
        assert not config.aggregate_cap_enabled
        native_feed.set_price(10**12 * PRICE_SCALE)

        bank.deposit_native(ALICE, 50_000)

        assert bank.aggregate_liability == 50_000 * 10**12 * PRICE_SCALE // 10**9

    def test_liability_floored_at_zero(
        self,
        bank: Bank,
        native_feed: MockPriceFeed,
    ) -> None:
        bank.deposit_native(ALICE, 10_000)
        native_feed.set_price(4000 * PRICE_SCALE)

        bank.withdraw_native(ALICE, 10_000)

        assert bank.aggregate_liability == 0

    def test_stale_price_blocks_native_deposit(
        self,
        bank: Bank,
        clock: FakeClock,
    ) -> None:
        clock.advance(3601)
        with pytest.raises(InvalidPriceError):
            bank.deposit_native(ALICE, 100)
        assert snapshot(bank) == (0, 0, (0, 0), 0, 0)
        assert not bank.locked

    def test_stale_price_blocks_native_withdrawal(
        self,
        bank: Bank,
        clock: FakeClock,
        native_transport: MockNativeTransport,
    ) -> None:
        bank.deposit_native(ALICE, 100)
        clock.advance(3601)

        with pytest.raises(InvalidPriceError):
            bank.withdraw_native(ALICE, 50)

        assert bank.balance_of(AssetKind.NATIVE, ALICE) == 100
        assert native_transport.sent == []

    def test_failed_transfer_rolls_back(
        self,
        bank: Bank,
        native_transport: MockNativeTransport,
    ) -> None:
        bank.deposit_native(ALICE, 1_000)
        before = snapshot(bank)
        native_transport.fail_sends = True

        with pytest.raises(TransferFailedError):
            bank.withdraw_native(ALICE, 400)

        assert snapshot(bank) == before
        assert not bank.locked

    def test_raising_transport_rolls_back(
        self,
        bank: Bank,
        native_transport: MockNativeTransport,
    ) -> None:
        bank.deposit_native(ALICE, 1_000)
        before = snapshot(bank)

        def explode(to: str, amount: int) -> None:
            raise RuntimeError("recipient rejected value")

        native_transport.on_send = explode

        with pytest.raises(TransferFailedError) as exc_info:
            bank.withdraw_native(ALICE, 400)

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert snapshot(bank) == before

    def test_balances_are_per_user(self, bank: Bank) -> None:
        bank.deposit_native(ALICE, 300)
        bank.deposit_native(BOB, 700)

        with pytest.raises(InsufficientBalanceError):
            bank.withdraw_native(ALICE, 301)

        assert bank.balance_of(AssetKind.NATIVE, BOB) == 700
        assert bank.native_pool == 1_000


class TestTokenLedger:
    """Tests for token deposits and withdrawals."""

    def test_deposit_pulls_then_credits(self, bank: Bank, token: MockToken) -> None:
        fund_tokens(token, ALICE, 1_000)

        bank.deposit_token(ALICE, 600)

        assert bank.balance_of(AssetKind.TOKEN, ALICE) == 600
        assert bank.token_pool() == 600
        assert token.balance_of(ALICE) == 400
        assert token.allowance(ALICE, CUSTODIAN) == 400
        assert bank.bank_stats().deposit_count == 1

    def test_token_deposit_does_not_touch_liability(
        self,
        bank: Bank,
        token: MockToken,
    ) -> None:
        fund_tokens(token, ALICE, 1_000)
        bank.deposit_token(ALICE, 1_000)
        assert bank.aggregate_liability == 0

    def test_deposit_without_allowance(self, bank: Bank, token: MockToken) -> None:
        token.mint(ALICE, 1_000)
        token.approve(ALICE, CUSTODIAN, 10)

        with pytest.raises(InsufficientAllowanceError) as exc_info:
            bank.deposit_token(ALICE, 100)

        assert isinstance(exc_info.value, TransferFailedError)
        assert exc_info.value.have == 10
        assert exc_info.value.need == 100
        assert bank.balance_of(AssetKind.TOKEN, ALICE) == 0
        assert bank.bank_stats().deposit_count == 0
        assert token.balance_of(ALICE) == 1_000

    def test_zero_token_deposit(self, bank: Bank) -> None:
        with pytest.raises(ZeroDepositError):
            bank.deposit_token(ALICE, 0)

    def test_withdraw_token(self, bank: Bank, token: MockToken) -> None:
        fund_tokens(token, ALICE, 1_000)
        bank.deposit_token(ALICE, 1_000)

        bank.withdraw_token(ALICE, 250)

        assert bank.balance_of(AssetKind.TOKEN, ALICE) == 750
        assert token.balance_of(ALICE) == 250
        assert bank.bank_stats().withdrawal_count == 1

    def test_token_cap_disabled_by_default(self, bank: Bank, token: MockToken) -> None:
        fund_tokens(token, ALICE, 1_000_000)
        bank.deposit_token(ALICE, 1_000_000)
        bank.withdraw_token(ALICE, 1_000_000)
        assert bank.balance_of(AssetKind.TOKEN, ALICE) == 0

    def test_token_cap_enforced(
        self,
        clock: FakeClock,
        token: MockToken,
        native_transport: MockNativeTransport,
        native_feed: MockPriceFeed,
        token_feed: MockPriceFeed,
    ) -> None:
        bank = make_bank(
            clock, token, native_transport, native_feed, token_feed,
            token_withdraw_cap=500,
        )
        fund_tokens(token, ALICE, 1_000)
        bank.deposit_token(ALICE, 1_000)

        with pytest.raises(CapExceededError) as exc_info:
            bank.withdraw_token(ALICE, 501)

        assert exc_info.value.cap == 500
        bank.withdraw_token(ALICE, 500)

    def test_failed_token_transfer_rolls_back(
        self,
        bank: Bank,
        token: MockToken,
    ) -> None:
        fund_tokens(token, ALICE, 1_000)
        bank.deposit_token(ALICE, 1_000)
        before = snapshot(bank)
        token.fail_transfers = True

        with pytest.raises(TransferFailedError):
            bank.withdraw_token(ALICE, 100)

        assert snapshot(bank) == before
        assert token.balance_of(CUSTODIAN) == 1_000

    def test_token_withdrawal_needs_no_price(
        self,
        bank: Bank,
        token: MockToken,
        clock: FakeClock,
    ) -> None:
        fund_tokens(token, ALICE, 100)
        bank.deposit_token(ALICE, 100)
        clock.advance(10_000)

        bank.withdraw_token(ALICE, 100)

        assert token.balance_of(ALICE) == 100


class TestNotifications:
    """Tests for committed-operation notifications."""

    def test_events_emitted_after_commit(self, bank: Bank, token: MockToken) -> None:
        events: list[Notification] = []
        bank.subscribe(events.append)
        fund_tokens(token, ALICE, 50)

        bank.deposit_native(ALICE, 100)
        bank.withdraw_native(ALICE, 40)
        bank.deposit_token(ALICE, 50)
        bank.withdraw_token(ALICE, 20)

        assert [(e.type, e.actor, e.amount) for e in events] == [
            (EventType.DEPOSIT, ALICE, 100),
            (EventType.WITHDRAWAL, ALICE, 40),
            (EventType.TOKEN_DEPOSIT, ALICE, 50),
            (EventType.TOKEN_WITHDRAWAL, ALICE, 20),
        ]

    def test_no_event_on_failure(self, bank: Bank) -> None:
        events: list[Notification] = []
        bank.subscribe(events.append)

        with pytest.raises(InsufficientBalanceError):
            bank.withdraw_native(ALICE, 1)

        assert events == []

    def test_failing_listener_does_not_affect_operation(self, bank: Bank) -> None:
        def broken(notification: Notification) -> None:
            raise RuntimeError("observer crashed")

        bank.subscribe(broken)
        bank.deposit_native(ALICE, 100)

        assert bank.balance_of(AssetKind.NATIVE, ALICE) == 100

    def test_unsubscribe(self, bank: Bank) -> None:
        events: list[Notification] = []
        unsubscribe = bank.subscribe(events.append)
        unsubscribe()

        bank.deposit_native(ALICE, 100)

        assert events == []


BALANCE_SEQUENCES = {
    "interleaved_rejections": [
        ("deposit", 1_000),
        ("withdraw", 60_000),
        ("withdraw", 0),
        ("deposit", 0),
        ("withdraw", 1_500),
        ("withdraw", 400),
        ("deposit", 2_500),
        ("withdraw", 3_100),
        ("withdraw", 1),
    ],
    "deposit_count_reached": [("deposit", 100)] * 6 + [
        ("withdraw", 500),
        ("deposit", 1),
        ("withdraw", 1),
    ],
    "drain_and_refill": [
        ("deposit", 50_000),
        ("withdraw", 50_000),
        ("withdraw", 1),
        ("deposit", 49_999),
        ("withdraw", 50_001),
        ("withdraw", 49_999),
    ],
}


class TestBalanceSequences:
    """Balances equal successful deposits minus successful withdrawals."""

    @pytest.mark.parametrize("kind", [AssetKind.NATIVE, AssetKind.TOKEN])
    @pytest.mark.parametrize(
        "steps", list(BALANCE_SEQUENCES.values()), ids=list(BALANCE_SEQUENCES)
    )
    def test_running_balance(
        self,
        clock: FakeClock,
        token: MockToken,
        native_transport: MockNativeTransport,
        native_feed: MockPriceFeed,
        token_feed: MockPriceFeed,
        kind: AssetKind,
        steps: list[tuple[str, int]],
    ) -> None:
        cap, count_cap = 50_000, 5
        bank = make_bank(
            clock, token, native_transport, native_feed, token_feed,
            token_withdraw_cap=cap,
            deposit_count_cap=count_cap,
        )
        if kind == AssetKind.NATIVE:
            deposit, withdraw = bank.deposit_native, bank.withdraw_native
        else:
            deposit, withdraw = bank.deposit_token, bank.withdraw_token

        expected = deposits = withdrawals = 0
        for op, amount in steps:
            if op == "deposit":
                if kind == AssetKind.TOKEN:
                    fund_tokens(token, ALICE, amount)
                if amount == 0:
                    error = ZeroDepositError
                elif deposits >= count_cap:
                    error = DepositCapReachedError
                else:
                    error = None
                call = deposit
            else:
                if amount == 0:
                    error = ZeroAmountError
                elif amount > cap:
                    error = CapExceededError
                elif amount > expected:
                    error = InsufficientBalanceError
                else:
                    error = None
                call = withdraw

            if error is None:
                call(ALICE, amount)
                if op == "deposit":
                    expected += amount
                    deposits += 1
                else:
                    expected -= amount
                    withdrawals += 1
            else:
                with pytest.raises(error):
                    call(ALICE, amount)

            assert expected >= 0
            assert bank.balance_of(kind, ALICE) == expected
            assert bank.bank_stats() == (deposits, withdrawals)
            assert bank.aggregate_liability >= 0
            if kind == AssetKind.NATIVE:
                assert bank.native_pool == expected
            else:
                assert bank.token_pool() == expected
            assert not bank.locked


def corrupt_feed(feed: MockPriceFeed, fault: str, clock: FakeClock) -> None:
    now = int(clock())
    if fault == "zero_price":
        feed.set_price(0)
    elif fault == "negative_price":
        feed.set_price(-PRICE_SCALE)
    elif fault == "inconsistent_round":
        feed.set_round(FeedRound(
            round_id=7, answer=PRICE_SCALE, started_at=now, updated_at=now,
            answered_in_round=6,
        ))
    elif fault == "future_timestamp":
        feed.set_round(FeedRound(
            round_id=7, answer=PRICE_SCALE, started_at=now, updated_at=now + 60,
            answered_in_round=7,
        ))
    else:
        raise ValueError(fault)


class TestInvalidPriceLeavesStateUnchanged:
    """Price-dependent operations fail atomically on a bad feed reading."""

    @pytest.mark.parametrize(
        "fault",
        ["zero_price", "negative_price", "inconsistent_round", "future_timestamp"],
    )
    @pytest.mark.parametrize(
        "operation,amount,feed_name",
        [
            ("deposit_native", 100, "native"),
            ("withdraw_native", 100, "native"),
            ("swap_native_for_token", 1, "native"),
            ("swap_native_for_token", 1, "token"),
            ("swap_token_for_native", 2_000, "native"),
            ("swap_token_for_native", 2_000, "token"),
        ],
    )
    def test_operation_rejected(
        self,
        bank: Bank,
        token: MockToken,
        native_transport: MockNativeTransport,
        native_feed: MockPriceFeed,
        token_feed: MockPriceFeed,
        clock: FakeClock,
        fault: str,
        operation: str,
        amount: int,
        feed_name: str,
    ) -> None:
        bank.deposit_native(BOB, 100)
        bank.deposit_native(ALICE, 1_000)
        token.mint(CUSTODIAN, 1_000_000)
        fund_tokens(token, ALICE, 20_000)

        def observed() -> tuple:
            return (
                snapshot(bank, ALICE),
                snapshot(bank, BOB),
                bank.token_pool(),
                token.balance_of(ALICE),
                list(native_transport.sent),
            )

        before = observed()
        feed = native_feed if feed_name == "native" else token_feed
        corrupt_feed(feed, fault, clock)

        with pytest.raises(InvalidPriceError):
            getattr(bank, operation)(ALICE, amount)

        assert observed() == before
        assert not bank.locked

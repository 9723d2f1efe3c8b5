"""FastAPI application for the Custodia ledger API."""

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from stellar_sdk import Keypair

from custodia.api.dependencies import get_app_state
from custodia.api.routes import admin, deposits, status, swaps, withdrawals
from custodia.blockchain.client import TESTNET_RPC_URL, SorobanClient
from custodia.blockchain.event_listener import NativeEventListener
from custodia.blockchain.mock import MockNativeTransport, MockPriceFeed, MockToken
from custodia.blockchain.native import TokenNativeTransport
from custodia.blockchain.price_feed import SorobanPriceFeed
from custodia.blockchain.token import SorobanToken
from custodia.config import load_config_from_env
from custodia.core.bank import Bank
from custodia.core.interfaces import NativeTransport
from custodia.executor.message_handler import MessageHandler
from custodia.models.oracle import PRICE_SCALE
from custodia.queues.message_queue import MessageQueue
from custodia.storage.message_store import MessageStore

logger = logging.getLogger(__name__)

SOROBAN_RPC_URL = os.environ.get("SOROBAN_RPC_URL", TESTNET_RPC_URL)
CUSTODIAN_CONTRACT_ID = os.environ.get("CUSTODIAN_CONTRACT_ID")
TOKEN_CONTRACT_ID = os.environ.get("TOKEN_CONTRACT_ID")
NATIVE_CONTRACT_ID = os.environ.get("NATIVE_CONTRACT_ID")
NATIVE_FEED_ID = os.environ.get("NATIVE_FEED_ID")
TOKEN_FEED_ID = os.environ.get("TOKEN_FEED_ID")
# Custodian secret key for signing outbound transfers
ADMIN_SECRET_KEY = os.environ.get("ADMIN_SECRET_KEY")


def _onchain_configured() -> bool:
    return all(
        [ADMIN_SECRET_KEY, TOKEN_CONTRACT_ID, NATIVE_CONTRACT_ID, NATIVE_FEED_ID, TOKEN_FEED_ID]
    )


def build_bank(client: Optional[SorobanClient] = None) -> tuple[Bank, NativeTransport]:
    """
    Build a Bank from environment configuration.

    With a Soroban client and all contract ids set, the bank talks to
    real contracts. Otherwise it runs against in-memory mocks.

    Returns:
        The bank and the native transport used for refunds
    """
    config = load_config_from_env()

    if client is not None and _onchain_configured():
        custodian = Keypair.from_secret(ADMIN_SECRET_KEY)
        token = SorobanToken(client, TOKEN_CONTRACT_ID, custodian)
        native = TokenNativeTransport(SorobanToken(client, NATIVE_CONTRACT_ID, custodian))
        native_feed = SorobanPriceFeed(client, NATIVE_FEED_ID, custodian.public_key)
        token_feed = SorobanPriceFeed(client, TOKEN_FEED_ID, custodian.public_key)
        logger.info(f"Using Soroban collaborators with custodian: {custodian.public_key}")
    else:
        token = MockToken(custodian=config.custodian_address)
        native = MockNativeTransport()
        native_feed = MockPriceFeed(PRICE_SCALE)
        token_feed = MockPriceFeed(PRICE_SCALE)
        logger.warning("Contract configuration incomplete, using mock collaborators")

    bank = Bank(
        config=config,
        token=token,
        native_transport=native,
        native_feed=native_feed,
        token_feed=token_feed,
    )
    return bank, native


def create_app(
    bank: Optional[Bank] = None,
    message_store: Optional[MessageStore] = None,
    message_queue: Optional[MessageQueue] = None,
    run_handlers: bool = True,
    refund_transport: Optional[NativeTransport] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        bank: Bank instance (built from the environment at startup if not provided)
        message_store: MessageStore instance (created if not provided)
        message_queue: MessageQueue instance (created if not provided)
        run_handlers: Whether to run the MessageHandler and event listener in background
        refund_transport: Transport for bouncing rejected native messages

    Returns:
        Configured FastAPI application
    """
    message_store = message_store or MessageStore()
    message_queue = message_queue or MessageQueue()

    handler: Optional[MessageHandler] = None
    event_listener: Optional[NativeEventListener] = None
    tasks: list[asyncio.Task] = []

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        nonlocal bank, refund_transport, handler, event_listener

        soroban_client: Optional[SorobanClient] = None
        if CUSTODIAN_CONTRACT_ID:
            soroban_client = SorobanClient(rpc_url=SOROBAN_RPC_URL)

        if bank is None:
            bank, native = build_bank(soroban_client)
            refund_transport = refund_transport or native

        app_state = get_app_state()
        app_state.bank = bank
        app_state.message_store = message_store
        app_state.message_queue = message_queue

        if run_handlers:
            handler = MessageHandler(
                message_queue=message_queue,
                bank=bank,
                message_store=message_store,
                refund_transport=refund_transport,
            )
            tasks.append(asyncio.create_task(handler.start()))

            if soroban_client is not None:

                async def on_message(message):
                    """Handle native value observed on-chain."""
                    message_store.add(message)
                    await message_queue.put(message)

                event_listener = NativeEventListener(
                    client=soroban_client,
                    contract_id=CUSTODIAN_CONTRACT_ID,
                    on_message=on_message,
                )
                tasks.append(asyncio.create_task(event_listener.start()))
                logger.info(f"Listening to custodian contract {CUSTODIAN_CONTRACT_ID}")
            else:
                logger.warning("No CUSTODIAN_CONTRACT_ID provided, native deposits disabled")

            logger.info("Message handler started")

        yield

        if handler:
            await handler.stop()
        if event_listener:
            await event_listener.stop()
        for task in tasks:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        tasks.clear()

        if run_handlers:
            logger.info("Message handler and event listener stopped")

    app = FastAPI(
        title="Custodia",
        description="Custodial two-asset ledger with oracle-priced swaps on Stellar",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(deposits.router)
    app.include_router(withdrawals.router)
    app.include_router(swaps.router)
    app.include_router(status.router)
    app.include_router(admin.router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


# Default app instance for uvicorn
app = create_app()

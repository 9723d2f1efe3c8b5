import json

import httpx
import pytest
from stellar_sdk import Keypair

from custodia.api.auth import signing_payload, verify_signature
from custodia_client import (
    AuthenticationError,
    CustodiaClient,
    ForbiddenError,
    NotFoundError,
    RequestRejectedError,
    TimeoutError,
)


class RecordingServer:
    """Answers client requests from a route table and records them."""

    def __init__(self, routes: dict[tuple[str, str], httpx.Response]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.routes.get((request.method, request.url.path))
        if response is None:
            return httpx.Response(404, json={"detail": "Not Found"})
        return response


@pytest.fixture
def keypair() -> Keypair:
    return Keypair.random()


def make_client(keypair: Keypair, server: RecordingServer) -> CustodiaClient:
    return CustodiaClient(
        "http://custodia.test",
        keypair,
        transport=httpx.MockTransport(server),
    )


def status_body(status: str, **extra) -> dict:
    body = {
        "message_id": "m1",
        "type": "swap_token_for_native",
        "status": status,
        "rejection_reason": None,
        "error_code": None,
        "created_at": "2026-01-01T00:00:00Z",
        "processed_at": None,
        "amount_out": None,
    }
    body.update(extra)
    return body


class TestSigning:
    @pytest.mark.asyncio
    async def test_requests_carry_verifiable_signature(self, keypair: Keypair) -> None:
        server = RecordingServer(
            {("POST", "/deposits"): httpx.Response(200, json={"message_id": "m1"})}
        )

        async with make_client(keypair, server) as client:
            message_id = await client.deposit_token(500)

        assert message_id == "m1"
        request = server.requests[0]
        assert json.loads(request.content) == {"amount": "500"}
        payload = signing_payload(
            "POST",
            "/deposits",
            request.content,
            int(request.headers["X-Timestamp"]),
        )
        assert request.headers["X-Stellar-Address"] == keypair.public_key
        assert verify_signature(
            keypair.public_key, payload, request.headers["X-Stellar-Signature"]
        )


class TestResponses:
    @pytest.mark.asyncio
    async def test_status_parsing(self, keypair: Keypair) -> None:
        server = RecordingServer(
            {
                ("GET", "/messages/m1"): httpx.Response(
                    200,
                    json=status_body(
                        "accepted",
                        amount_out="10",
                        processed_at="2026-01-01T00:00:01Z",
                    ),
                )
            }
        )

        async with make_client(keypair, server) as client:
            status = await client.wait_for_acceptance("m1")

        assert status.is_accepted
        assert status.amount_out == 10
        assert status.processed_at is not None

    @pytest.mark.asyncio
    async def test_rejection_raises(self, keypair: Keypair) -> None:
        server = RecordingServer(
            {
                ("GET", "/messages/m1"): httpx.Response(
                    200,
                    json=status_body(
                        "rejected",
                        rejection_reason="Insufficient liquidity: available 0, needed 10",
                        error_code="InsufficientLiquidity",
                    ),
                )
            }
        )

        async with make_client(keypair, server) as client:
            with pytest.raises(RequestRejectedError) as exc_info:
                await client.wait_for_acceptance("m1")

        assert exc_info.value.error_code == "InsufficientLiquidity"

    @pytest.mark.asyncio
    async def test_pending_times_out(self, keypair: Keypair) -> None:
        server = RecordingServer(
            {("GET", "/messages/m1"): httpx.Response(200, json=status_body("pending"))}
        )

        async with make_client(keypair, server) as client:
            with pytest.raises(TimeoutError):
                await client.wait_for_acceptance("m1", timeout=0.05, poll_interval=0.01)

    @pytest.mark.asyncio
    async def test_balance(self, keypair: Keypair) -> None:
        path = f"/balances/{keypair.public_key}"
        server = RecordingServer(
            {
                ("GET", path): httpx.Response(
                    200,
                    json={"user_address": keypair.public_key, "native": "7", "token": "9"},
                )
            }
        )

        async with make_client(keypair, server) as client:
            balance = await client.get_balance()

        assert (balance.native, balance.token) == (7, 9)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status_code,error",
        [(401, AuthenticationError), (403, ForbiddenError), (404, NotFoundError)],
    )
    async def test_error_mapping(self, keypair: Keypair, status_code: int, error) -> None:
        server = RecordingServer(
            {("POST", "/admin/pause"): httpx.Response(status_code, json={"detail": "no"})}
        )

        async with make_client(keypair, server) as client:
            with pytest.raises(error):
                await client.pause()

"""Custodia client for interacting with the ledger API."""

import asyncio
import hashlib
import json
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

import httpx
from stellar_sdk import Keypair

from custodia_client.exceptions import (
    AuthenticationError,
    ForbiddenError,
    NetworkError,
    NotFoundError,
    RequestRejectedError,
    TimeoutError,
)


def _parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    if not raw:
        return None
    return datetime.fromisoformat(raw.replace("Z", "+00:00"))


@dataclass
class StatusResponse:
    """Response from message status query."""

    message_id: str
    type: str
    status: str
    rejection_reason: Optional[str] = None
    error_code: Optional[str] = None
    created_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None
    amount_out: Optional[int] = None

    @property
    def is_pending(self) -> bool:
        return self.status in ("pending", "processing")

    @property
    def is_accepted(self) -> bool:
        return self.status == "accepted"

    @property
    def is_rejected(self) -> bool:
        return self.status == "rejected"


def _parse_status(response: dict[str, Any]) -> StatusResponse:
    amount_out = response.get("amount_out")
    return StatusResponse(
        message_id=response["message_id"],
        type=response["type"],
        status=response["status"],
        rejection_reason=response.get("rejection_reason"),
        error_code=response.get("error_code"),
        created_at=_parse_timestamp(response.get("created_at")),
        processed_at=_parse_timestamp(response.get("processed_at")),
        amount_out=int(amount_out) if amount_out is not None else None,
    )


@dataclass
class BalanceResponse:
    """Tracked balances of a user, in base units."""

    user_address: str
    native: int
    token: int


@dataclass
class StatsResponse:
    """Global ledger counters and flags."""

    deposit_count: int
    withdrawal_count: int
    aggregate_liability: int
    native_pool: int
    paused: bool
    max_oracle_delay: int


class CustodiaClient:
    """
    Client for interacting with a Custodia ledger.

    All requests are signed using the provided Stellar keypair. Amounts
    are integers in the asset's smallest unit.
    """

    def __init__(
        self,
        base_url: str,
        keypair: Keypair,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: Base URL of the Custodia API
            keypair: Stellar keypair for signing requests
            timeout: Request timeout in seconds
            transport: Optional httpx transport (e.g. for an in-process app)
        """
        self._base_url = base_url.rstrip("/")
        self._keypair = keypair
        self._timeout = timeout
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @property
    def address(self) -> str:
        return self._keypair.public_key

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "CustodiaClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _sign_request(
        self,
        method: str,
        path: str,
        body: bytes,
    ) -> dict[str, str]:
        """Sign a request and return the authentication headers."""
        timestamp = int(time.time())
        body_hash = hashlib.sha256(body).hexdigest()
        payload = f"{method}|{path}|{body_hash}|{timestamp}".encode("utf-8")

        return {
            "X-Stellar-Address": self._keypair.public_key,
            "X-Stellar-Signature": self._keypair.sign(payload).hex(),
            "X-Timestamp": str(timestamp),
        }

    async def _request(
        self,
        method: str,
        path: str,
        body_json: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Make an authenticated request to the API."""
        url = f"{self._base_url}{path}"
        body = b""
        if body_json is not None:
            body = json.dumps(body_json).encode("utf-8")

        headers = self._sign_request(method, path, body)
        headers["Content-Type"] = "application/json"

        try:
            if method == "GET":
                response = await self._client.get(url, headers=headers)
            elif method == "POST":
                response = await self._client.post(url, headers=headers, content=body)
            else:
                raise ValueError(f"Unsupported method: {method}")
        except httpx.RequestError as e:
            raise NetworkError(f"Request failed: {e}") from e

        if response.status_code == 401:
            raise AuthenticationError(response.text)
        elif response.status_code == 403:
            raise ForbiddenError(response.text)
        elif response.status_code == 404:
            raise NotFoundError(response.text)
        elif response.status_code >= 400:
            raise NetworkError(f"HTTP {response.status_code}: {response.text}")

        return response.json()

    # -- Operations ---------------------------------------------------------

    async def deposit_token(self, amount: int) -> str:
        """
        Deposit tokens the custodian is allowed to pull.

        The caller must have approved the custodian on the token contract
        for at least ``amount`` beforehand.

        Returns:
            Message ID for tracking the deposit
        """
        response = await self._request("POST", "/deposits", {"amount": str(amount)})
        return response["message_id"]

    async def request_withdrawal(self, asset: str, amount: int) -> str:
        """
        Request a withdrawal.

        Args:
            asset: "native" or "token"
            amount: Amount in base units

        Returns:
            Message ID for tracking the withdrawal
        """
        response = await self._request(
            "POST",
            "/withdrawals",
            {"asset": asset, "amount": str(amount)},
        )
        return response["message_id"]

    async def swap_token_for_native(self, amount: int) -> str:
        """
        Sell tokens for native at oracle prices.

        Returns:
            Message ID; the native received is the status' amount_out
        """
        response = await self._request("POST", "/swaps", {"amount": str(amount)})
        return response["message_id"]

    # -- Reads --------------------------------------------------------------

    async def get_status(self, message_id: str) -> StatusResponse:
        """Get the status of a message."""
        response = await self._request("GET", f"/messages/{message_id}")
        return _parse_status(response)

    async def get_messages(self, status: Optional[str] = None) -> list[StatusResponse]:
        """List this client's operations, oldest first."""
        path = f"/users/{self._keypair.public_key}/messages"
        if status is not None:
            path = f"{path}?status={status}"
        response = await self._request("GET", path)
        return [_parse_status(item) for item in response]

    async def get_balance(self, user_address: Optional[str] = None) -> BalanceResponse:
        """
        Get a user's tracked balances.

        Args:
            user_address: Address to query (defaults to client's address)
        """
        address = user_address or self._keypair.public_key
        response = await self._request("GET", f"/balances/{address}")

        return BalanceResponse(
            user_address=response["user_address"],
            native=int(response["native"]),
            token=int(response["token"]),
        )

    async def get_stats(self) -> StatsResponse:
        """Get global ledger statistics."""
        response = await self._request("GET", "/stats")
        return StatsResponse(
            deposit_count=response["deposit_count"],
            withdrawal_count=response["withdrawal_count"],
            aggregate_liability=int(response["aggregate_liability"]),
            native_pool=int(response["native_pool"]),
            paused=response["paused"],
            max_oracle_delay=response["max_oracle_delay"],
        )

    async def wait_for_acceptance(
        self,
        message_id: str,
        timeout: float = 30.0,
        poll_interval: float = 0.5,
    ) -> StatusResponse:
        """
        Wait for a message to be processed.

        Raises:
            TimeoutError: If message is not processed within timeout
            RequestRejectedError: If message is rejected
        """
        start_time = time.time()

        while True:
            status = await self.get_status(message_id)

            if status.is_accepted:
                return status
            elif status.is_rejected:
                raise RequestRejectedError(
                    message_id=message_id,
                    reason=status.rejection_reason or "Unknown reason",
                    error_code=status.error_code,
                )

            if time.time() - start_time > timeout:
                raise TimeoutError(message_id)

            await asyncio.sleep(poll_interval)

    # -- Owner --------------------------------------------------------------

    async def pause(self) -> StatsResponse:
        """Pause the ledger. Owner only."""
        await self._request("POST", "/admin/pause")
        return await self.get_stats()

    async def unpause(self) -> StatsResponse:
        """Resume the ledger. Owner only."""
        await self._request("POST", "/admin/unpause")
        return await self.get_stats()

    async def set_max_oracle_delay(self, seconds: int) -> StatsResponse:
        """Update the oracle staleness window. Owner only."""
        await self._request("POST", "/admin/oracle-delay", {"seconds": seconds})
        return await self.get_stats()

"""Signed-request authentication.

Every mutating request is signed with the caller's Stellar key. The
verified public key is the caller identity the ledger sees.
"""

import hashlib
import time

from fastapi import Header, HTTPException, Request
from stellar_sdk import Keypair
from stellar_sdk.exceptions import BadSignatureError, Ed25519PublicKeyInvalidError

# Signature validity window (5 minutes)
SIGNATURE_WINDOW_SECONDS = 300


def signing_payload(method: str, path: str, body: bytes, timestamp: int) -> bytes:
    """
    Bytes a client signs for a request.

    Format: METHOD|PATH|SHA256(BODY)|TIMESTAMP
    """
    body_hash = hashlib.sha256(body).hexdigest()
    return f"{method}|{path}|{body_hash}|{timestamp}".encode("utf-8")


def verify_signature(public_key: str, payload: bytes, signature_hex: str) -> bool:
    """Check a hex-encoded ed25519 signature against a Stellar public key."""
    try:
        keypair = Keypair.from_public_key(public_key)
        keypair.verify(payload, bytes.fromhex(signature_hex))
    except (BadSignatureError, Ed25519PublicKeyInvalidError, ValueError):
        return False
    return True


async def authenticated_address(
    request: Request,
    x_stellar_address: str = Header(...),
    x_stellar_signature: str = Header(...),
    x_timestamp: str = Header(...),
) -> str:
    """
    FastAPI dependency returning the verified caller address.

    Required headers:
    - X-Stellar-Address: Caller's Stellar public key
    - X-Stellar-Signature: Hex-encoded signature of the signing payload
    - X-Timestamp: Unix timestamp used in the payload

    Raises:
        HTTPException 401 if the timestamp or signature is invalid
    """
    try:
        timestamp = int(x_timestamp)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid timestamp format")

    if abs(int(time.time()) - timestamp) > SIGNATURE_WINDOW_SECONDS:
        raise HTTPException(
            status_code=401,
            detail="Timestamp expired or too far in future",
        )

    payload = signing_payload(
        method=request.method,
        path=request.url.path,
        body=await request.body(),
        timestamp=timestamp,
    )
    if not verify_signature(x_stellar_address, payload, x_stellar_signature):
        raise HTTPException(status_code=401, detail="Invalid signature")

    return x_stellar_address

from custodia_client.client import (
    BalanceResponse,
    CustodiaClient,
    StatsResponse,
    StatusResponse,
)
from custodia_client.exceptions import (
    AuthenticationError,
    CustodiaError,
    ForbiddenError,
    NetworkError,
    NotFoundError,
    RequestRejectedError,
    TimeoutError,
)

__all__ = [
    "CustodiaClient",
    "StatusResponse",
    "BalanceResponse",
    "StatsResponse",
    "CustodiaError",
    "AuthenticationError",
    "ForbiddenError",
    "RequestRejectedError",
    "TimeoutError",
    "NotFoundError",
    "NetworkError",
]

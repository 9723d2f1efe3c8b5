"""Price feed backed by an aggregator contract on Soroban."""

import logging
from typing import Any

from stellar_sdk import scval
from stellar_sdk import xdr as stellar_xdr

from custodia.blockchain.client import SorobanClient
from custodia.models.oracle import FeedRound

logger = logging.getLogger(__name__)

ROUND_FIELDS = ("round_id", "answer", "started_at", "updated_at", "answered_in_round")

_INT_DECODERS = {
    "SCV_U32": scval.from_uint32,
    "SCV_I32": scval.from_int32,
    "SCV_U64": scval.from_uint64,
    "SCV_I64": scval.from_int64,
    "SCV_U128": scval.from_uint128,
    "SCV_I128": scval.from_int128,
}


def scval_to_int(val: stellar_xdr.SCVal) -> int:
    """Decode any integer ScVal."""
    decoder = _INT_DECODERS.get(val.type.name)
    if decoder is None:
        raise ValueError(f"Expected an integer ScVal, got {val.type.name}")
    return decoder(val)


def decode_round(val: stellar_xdr.SCVal) -> FeedRound:
    """
    Decode the result of ``latest_round_data``.

    Accepts either a map keyed by field name or a vec of the five values
    in order (round_id, answer, started_at, updated_at, answered_in_round).
    """
    values: dict[str, Any] = {}

    if val.type.name == "SCV_MAP":
        for key, item in scval.from_map(val).items():
            values[scval.from_symbol(key)] = item
    elif val.type.name == "SCV_VEC":
        items = scval.from_vec(val)
        if len(items) < len(ROUND_FIELDS):
            raise ValueError(f"Round data has {len(items)} fields, expected 5")
        values = dict(zip(ROUND_FIELDS, items))
    else:
        raise ValueError(f"Unexpected round data type: {val.type.name}")

    missing = [name for name in ROUND_FIELDS if name not in values]
    if missing:
        raise ValueError(f"Round data missing fields: {missing}")

    return FeedRound(**{name: scval_to_int(values[name]) for name in ROUND_FIELDS})


class SorobanPriceFeed:
    """
    Reads the latest round from an aggregator contract.

    Answers are expected in 8-decimal fixed point; the gateway validates
    freshness and round consistency.
    """

    def __init__(
        self,
        client: SorobanClient,
        contract_id: str,
        source_public_key: str,
    ) -> None:
        self._client = client
        self._contract_id = contract_id
        self._source = source_public_key

    def latest_round(self) -> FeedRound:
        result = self._client.read(self._source, self._contract_id, "latest_round_data")
        round_data = decode_round(result)
        logger.debug(
            f"Feed {self._contract_id}: answer={round_data.answer} "
            f"round={round_data.round_id} updated_at={round_data.updated_at}"
        )
        return round_data

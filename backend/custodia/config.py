"""Ledger configuration fixed at initialization."""

import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# Default staleness window for oracle readings (1 hour)
DEFAULT_MAX_ORACLE_DELAY = 3600

ENV_PREFIX = "CUSTODIA_"


class BankConfig(BaseModel):
    """
    Immutable parameters of a ledger instance.

    Caps are fixed for the lifetime of the ledger. A zero
    ``token_withdraw_cap`` or ``aggregate_valuation_cap`` disables that cap.
    ``max_oracle_delay`` is only the initial value; the owner may adjust it.
    """

    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., min_length=1, description="Owner identity")
    custodian_address: str = Field(
        ..., min_length=1, description="Identity holding the pooled assets"
    )
    native_withdraw_cap: int = Field(..., gt=0, description="Max native per withdrawal")
    deposit_count_cap: int = Field(..., gt=0, description="Max number of deposits")
    token_withdraw_cap: int = Field(0, ge=0, description="Max token per withdrawal (0 = off)")
    aggregate_valuation_cap: int = Field(
        0, ge=0, description="Max aggregate native liability in valuation units (0 = off)"
    )
    max_oracle_delay: int = Field(
        DEFAULT_MAX_ORACLE_DELAY, gt=0, description="Initial staleness window in seconds"
    )
    native_decimals: int = Field(18, ge=0, description="Decimals of the native asset")
    token_unit_scale: int = Field(
        1, ge=1, description="Token base units per native base unit of equal face value"
    )

    @property
    def native_unit_scale(self) -> int:
        return 10**self.native_decimals

    @property
    def token_cap_enabled(self) -> bool:
        return self.token_withdraw_cap > 0

    @property
    def aggregate_cap_enabled(self) -> bool:
        return self.aggregate_valuation_cap > 0


def _env(name: str) -> Optional[str]:
    return os.environ.get(f"{ENV_PREFIX}{name}")


def load_config_from_env() -> BankConfig:
    """
    Build a BankConfig from CUSTODIA_* environment variables.

    Required: CUSTODIA_OWNER, CUSTODIA_CUSTODIAN_ADDRESS,
    CUSTODIA_NATIVE_WITHDRAW_CAP, CUSTODIA_DEPOSIT_COUNT_CAP.
    Missing or invalid values raise pydantic's ValidationError.
    """
    values: dict[str, object] = {}
    for field_name in BankConfig.model_fields:
        raw = _env(field_name.upper())
        if raw is not None:
            values[field_name] = raw
    return BankConfig.model_validate(values)

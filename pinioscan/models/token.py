"""Evidence gathered about a token before scoring."""

from __future__ import annotations

from typing import Any

from pydantic import ConfigDict, Field

from pinioscan.models.base import CamelModel


class TokenEvidence(CamelModel):
    """Identity and contract facts for one token. Built once per scan, never mutated."""

    model_config = ConfigDict(frozen=True)

    address: str  # checksum form
    name: str = "Unknown"
    symbol: str = "???"
    decimals: int = 18
    total_supply: str = "0"  # raw integer units as decimal string
    is_verified: bool = False
    source_code: str | None = Field(default=None, repr=False)
    compiler: str | None = None
    owner: str | None = None  # None = renounced or no owner() getter
    creator: str | None = None
    creation_timestamp: int | None = None  # unix seconds of first tx
    contract_age: str | None = None


class HolderInfo(CamelModel):
    address: str
    balance: str  # token units, decimal string
    percentage: float  # 0-100, two decimals
    label: str | None = None


class LiquidityInfo(CamelModel):
    pair: str
    dex: str
    token0: str
    token1: str
    liquidity_usd: float = Field(default=0.0, alias="liquidityUSD")
    is_locked: bool = False
    lock_expiry: int | None = None


class LPLockInfo(CamelModel):
    is_locked: bool = False
    locked_percent: float = 0.0
    lock_platform: str | None = None
    lock_expiry: int | None = None


class ContractPatterns(CamelModel):
    has_proxy: bool = False
    has_mint_function: bool = False
    has_blacklist: bool = False
    has_pausable: bool = False
    has_fee_modification: bool = False
    has_max_tx_limit: bool = False
    has_anti_bot: bool = False
    has_hidden_owner: bool = False
    suspicious_patterns: list[str] = Field(default_factory=list)


class PriceData(CamelModel):
    price_usd: float = 0.0
    price_change_24h: float = 0.0
    market_cap_usd: float = 0.0


class TransferRecord(CamelModel):
    """ERC-20 transfer row from the explorer ``tokentx`` action (raw units)."""

    model_config = ConfigDict(extra="ignore")

    hash: str = ""
    from_address: str = Field(default="", alias="from")
    to_address: str = Field(default="", alias="to")
    value: str = "0"
    token_decimal: int = 18
    block_number: int = 0
    time_stamp: int = 0


class DeployerTransaction(CamelModel):
    """Decoded first transaction sent by the contract creator."""

    model_config = ConfigDict(extra="ignore")

    function_name: str | None = None
    args: Any = None
    value: str | None = None


class EvidenceBundle(CamelModel):
    """Everything the synthesizer sees about one token."""

    token: TokenEvidence
    holders: list[HolderInfo] = Field(default_factory=list)
    liquidity: list[LiquidityInfo] = Field(default_factory=list)
    transfers: list[TransferRecord] = Field(default_factory=list)
    patterns: ContractPatterns = Field(default_factory=ContractPatterns)
    lp_lock: LPLockInfo = Field(default_factory=LPLockInfo)
    is_canonical: bool = False
    price: PriceData | None = None
    deployer_tx: DeployerTransaction | None = None

    @property
    def total_liquidity_usd(self) -> float:
        return sum(pool.liquidity_usd for pool in self.liquidity)

    @property
    def top10_holder_pct(self) -> float:
        return sum(h.percentage for h in self.holders[:10])

    @property
    def burned_pct(self) -> float:
        return sum(
            h.percentage for h in self.holders
            if h.label and ("Burn" in h.label or "Dead" in h.label)
        )

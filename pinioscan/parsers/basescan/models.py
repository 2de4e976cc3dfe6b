"""Data models for BaseScan (Etherscan-family) API responses."""

from dataclasses import dataclass


@dataclass
class SourceInfo:
    """Verification status from ``getsourcecode``."""

    is_verified: bool = False
    source_code: str | None = None
    compiler: str | None = None


@dataclass
class ContractCreation:
    creator: str
    tx_hash: str | None = None


@dataclass
class RawHolder:
    """One ``tokenholderlist`` row; quantity in raw token units."""

    address: str
    quantity: int


@dataclass
class AccountTx:
    """One ``txlist`` row (only the fields the scanner reads)."""

    hash: str
    timestamp: int  # unix seconds
    from_address: str = ""
    to_address: str = ""

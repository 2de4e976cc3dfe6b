"""Data models for Pinion skill responses."""

from pydantic import BaseModel


class WalletBalance(BaseModel):
    ethBalance: str = "0"
    usdcBalance: str = "0"
    totalUsdValue: float = 0.0

    model_config = {"extra": "ignore"}

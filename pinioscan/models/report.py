"""Risk report produced by the synthesizer and recorded on the ledger."""

from __future__ import annotations

import time
from enum import Enum
from typing import Any

from pydantic import Field, field_validator

from pinioscan.models.base import CamelModel
from pinioscan.models.token import HolderInfo, LiquidityInfo, TokenEvidence


class RiskLevel(str, Enum):
    SAFE = "SAFE"
    CAUTION = "CAUTION"
    DANGER = "DANGER"
    CRITICAL = "CRITICAL"

    @property
    def category_level(self) -> "CategoryLevel":
        return CategoryLevel(self.value.lower())


class CategoryLevel(str, Enum):
    SAFE = "safe"
    CAUTION = "caution"
    DANGER = "danger"
    CRITICAL = "critical"


CATEGORY_NAMES = {
    "contract": "Contract Safety",
    "concentration": "Holder Concentration",
    "liquidity": "Liquidity Health",
    "trading": "Trading Patterns",
}


def clamp_score(value: Any) -> int:
    """Coerce a numeric score into an int within [0, 100]."""
    if isinstance(value, bool):
        raise ValueError("score must be numeric")
    return max(0, min(100, int(float(value))))


def level_for_score(score: int) -> RiskLevel:
    """SAFE 70-100, CAUTION 50-69, DANGER 25-49, CRITICAL 0-24."""
    if score >= 70:
        return RiskLevel.SAFE
    if score >= 50:
        return RiskLevel.CAUTION
    if score >= 25:
        return RiskLevel.DANGER
    return RiskLevel.CRITICAL


class RiskCategory(CamelModel):
    name: str
    score: int
    level: CategoryLevel = CategoryLevel.CAUTION
    findings: list[str] = Field(default_factory=list)

    @field_validator("score", mode="before")
    @classmethod
    def clamp_category_score(cls, value: Any) -> int:
        return clamp_score(value)


class ReportCategories(CamelModel):
    contract: RiskCategory
    concentration: RiskCategory
    liquidity: RiskCategory
    trading: RiskCategory


class PinioscanReport(CamelModel):
    token: TokenEvidence
    overall_score: int
    risk_level: RiskLevel
    summary: str
    categories: ReportCategories
    top_holders: list[HolderInfo] = Field(default_factory=list)
    liquidity: list[LiquidityInfo] = Field(default_factory=list)
    flags: list[str] = Field(default_factory=list)
    recommendation: str = ""
    timestamp: int = Field(default_factory=lambda: int(time.time() * 1000))  # epoch ms
    attestation_tx: str | None = None

    @field_validator("overall_score", mode="before")
    @classmethod
    def clamp_overall_score(cls, value: Any) -> int:
        return clamp_score(value)

"""Schema for the JSON object the model is asked to return.

Lenient by construction: absent or malformed fields fall back to defaults
so a partly-formed answer still produces a report.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from pinioscan.models.report import CategoryLevel, RiskLevel, clamp_score

DEFAULT_SUMMARY = "Analysis could not be completed."
DEFAULT_RECOMMENDATION = "Do your own research."


def _lenient_score(value: Any) -> int:
    try:
        return clamp_score(value)
    except (TypeError, ValueError):
        return 50


class CategoryPayload(BaseModel):
    model_config = {"extra": "ignore"}

    score: int = 50
    level: CategoryLevel = CategoryLevel.CAUTION
    findings: list[str] = Field(default_factory=list)

    @field_validator("score", mode="before")
    @classmethod
    def coerce_score(cls, value: Any) -> int:
        return _lenient_score(value)

    @field_validator("level", mode="before")
    @classmethod
    def coerce_level(cls, value: Any) -> CategoryLevel:
        if isinstance(value, str) and value.lower() in CategoryLevel._value2member_map_:
            return CategoryLevel(value.lower())
        return CategoryLevel.CAUTION

    @field_validator("findings", mode="before")
    @classmethod
    def coerce_findings(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [str(item) for item in value if item is not None]


class AnalysisPayload(BaseModel):
    model_config = {"extra": "ignore"}

    overallScore: int = 50
    riskLevel: RiskLevel = RiskLevel.CAUTION
    summary: str = DEFAULT_SUMMARY
    recommendation: str = DEFAULT_RECOMMENDATION
    contract: CategoryPayload = Field(default_factory=CategoryPayload)
    concentration: CategoryPayload = Field(default_factory=CategoryPayload)
    liquidity: CategoryPayload = Field(default_factory=CategoryPayload)
    trading: CategoryPayload = Field(default_factory=CategoryPayload)
    flags: list[str] = Field(default_factory=list)

    @field_validator("overallScore", mode="before")
    @classmethod
    def coerce_overall(cls, value: Any) -> int:
        return _lenient_score(value)

    @field_validator("riskLevel", mode="before")
    @classmethod
    def coerce_risk_level(cls, value: Any) -> RiskLevel:
        if isinstance(value, str) and value.upper() in RiskLevel._value2member_map_:
            return RiskLevel(value.upper())
        return RiskLevel.CAUTION

    @field_validator("summary", "recommendation", mode="before")
    @classmethod
    def coerce_text(cls, value: Any, info) -> str:
        if isinstance(value, str) and value.strip():
            return value
        return DEFAULT_SUMMARY if info.field_name == "summary" else DEFAULT_RECOMMENDATION

    @field_validator("contract", "concentration", "liquidity", "trading", mode="before")
    @classmethod
    def coerce_category(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else {}

    @field_validator("flags", mode="before")
    @classmethod
    def coerce_flags(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [str(item) for item in value if item is not None]

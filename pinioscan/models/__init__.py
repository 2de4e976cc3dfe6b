from pinioscan.models.report import (
    CATEGORY_NAMES,
    CategoryLevel,
    PinioscanReport,
    ReportCategories,
    RiskCategory,
    RiskLevel,
    clamp_score,
    level_for_score,
)
from pinioscan.models.token import (
    ContractPatterns,
    DeployerTransaction,
    EvidenceBundle,
    HolderInfo,
    LiquidityInfo,
    LPLockInfo,
    PriceData,
    TokenEvidence,
    TransferRecord,
)

__all__ = [
    "CATEGORY_NAMES",
    "CategoryLevel",
    "ContractPatterns",
    "DeployerTransaction",
    "EvidenceBundle",
    "HolderInfo",
    "LiquidityInfo",
    "LPLockInfo",
    "PinioscanReport",
    "PriceData",
    "ReportCategories",
    "RiskCategory",
    "RiskLevel",
    "TokenEvidence",
    "TransferRecord",
    "clamp_score",
    "level_for_score",
]

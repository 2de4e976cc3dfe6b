"""Risk synthesizer: evidence bundle in, scored PinioscanReport out.

The AI path asks the model for a scored assessment; any failure there
(no key, timeout, transport error, unparseable reply) produces the
deterministic fallback report instead. Neither path raises.
"""

from __future__ import annotations

import asyncio
import json
import re
import time
from dataclasses import dataclass

from loguru import logger
from pydantic import ValidationError

from pinioscan.models import (
    CATEGORY_NAMES,
    CategoryLevel,
    EvidenceBundle,
    PinioscanReport,
    ReportCategories,
    RiskCategory,
    RiskLevel,
    level_for_score,
)
from pinioscan.parsers.openrouter.client import OpenRouterClient
from pinioscan.parsers.openrouter.models import AnalysisPayload, CategoryPayload
from pinioscan.parsers.prompt_builder import build_analysis_prompt

DEFAULT_TIMEOUT_SEC = 45.0

NO_POOL_LIQUIDITY_CAP = 10
NO_HOLDER_CONCENTRATION_SCORE = 30
SIGNIFICANT_LIQUIDITY_USD = 10_000

FALLBACK_OVERALL_SCORE = 30
FALLBACK_MARKER_FLAG = "⚠️ AI analysis failed: scores are based on raw data only"
FALLBACK_RECOMMENDATION = (
    "AI analysis failed to complete. The raw data has been presented "
    "but do your own research before investing."
)

_FENCE = re.compile(r"```(?:json)?\n?")


@dataclass(frozen=True)
class ParsedAnalysis:
    payload: AnalysisPayload


@dataclass(frozen=True)
class UnparsableAnalysis:
    reason: str


def parse_analysis_response(text: str) -> ParsedAnalysis | UnparsableAnalysis:
    """Decode the model reply, tolerating code fences and partial fields."""
    cleaned = _FENCE.sub("", text or "").strip()
    if not cleaned:
        return UnparsableAnalysis("empty response")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        return UnparsableAnalysis(f"invalid JSON: {e.msg}")
    if not isinstance(data, dict):
        return UnparsableAnalysis(f"expected object, got {type(data).__name__}")
    try:
        return ParsedAnalysis(AnalysisPayload.model_validate(data))
    except ValidationError as e:
        return UnparsableAnalysis(f"schema mismatch: {e.error_count()} errors")


def _now_ms() -> int:
    return int(time.time() * 1000)


def _category(key: str, payload: CategoryPayload) -> RiskCategory:
    return RiskCategory(
        name=CATEGORY_NAMES[key],
        score=payload.score,
        level=payload.level,
        findings=payload.findings,
    )


def report_from_analysis(
    payload: AnalysisPayload,
    bundle: EvidenceBundle,
    *,
    timestamp: int | None = None,
) -> PinioscanReport:
    """Build the report from a parsed reply, capping scores the evidence cannot back."""
    contract = _category("contract", payload.contract)
    concentration = _category("concentration", payload.concentration)
    liquidity = _category("liquidity", payload.liquidity)
    trading = _category("trading", payload.trading)

    if not bundle.liquidity and liquidity.score > NO_POOL_LIQUIDITY_CAP:
        capped = NO_POOL_LIQUIDITY_CAP
        liquidity = liquidity.model_copy(
            update={"score": capped, "level": level_for_score(capped).category_level}
        )

    if not bundle.holders:
        concentration = RiskCategory(
            name=CATEGORY_NAMES["concentration"],
            score=NO_HOLDER_CONCENTRATION_SCORE,
            level=level_for_score(NO_HOLDER_CONCENTRATION_SCORE).category_level,
            findings=["No holder data available"],
        )

    return PinioscanReport(
        token=bundle.token,
        overall_score=payload.overallScore,
        risk_level=payload.riskLevel,
        summary=payload.summary,
        categories=ReportCategories(
            contract=contract,
            concentration=concentration,
            liquidity=liquidity,
            trading=trading,
        ),
        top_holders=bundle.holders,
        liquidity=bundle.liquidity,
        flags=payload.flags,
        recommendation=payload.recommendation,
        timestamp=timestamp if timestamp is not None else _now_ms(),
    )


def create_fallback_report(bundle: EvidenceBundle, *, timestamp: int | None = None) -> PinioscanReport:
    """Deterministic report from raw evidence alone.

    Identical bundles always give identical scores, levels, findings and
    flags; only ``timestamp`` varies unless it is passed in.
    """
    token = bundle.token
    total_liquidity = bundle.total_liquidity_usd
    top10 = bundle.top10_holder_pct
    holder_count = len(bundle.holders)

    contract_findings = [
        "Contract is verified on BaseScan" if token.is_verified
        else "Contract is NOT verified: major red flag",
        f"Owner: {token.owner[:10]}..." if token.owner else "Owner: Renounced or unknown",
    ]
    if token.contract_age:
        contract_findings.append(f"Contract age: {token.contract_age}")

    if holder_count:
        concentration_findings = [
            f"Top 10 holders control {top10:.1f}% of supply",
            f"{holder_count} holders analyzed",
        ]
        if top10 > 50:
            concentration_score = 20
        elif top10 > 20:
            concentration_score = 40
        else:
            concentration_score = 60
    else:
        concentration_findings = ["No holder data available"]
        concentration_score = NO_HOLDER_CONCENTRATION_SCORE

    if bundle.liquidity:
        liquidity_findings = [
            f"Found {len(bundle.liquidity)} liquidity pool(s), total ${total_liquidity:.0f} USD"
        ]
        liquidity_findings += [
            f"{pool.dex}: ${pool.liquidity_usd:.0f} (locked: {'Yes' if pool.is_locked else 'Unknown'})"
            for pool in bundle.liquidity
        ]
        liquidity_score = 60 if total_liquidity > SIGNIFICANT_LIQUIDITY_USD else 40
    else:
        liquidity_findings = ["No liquidity found on Uniswap V3 or Aerodrome"]
        liquidity_score = NO_POOL_LIQUIDITY_CAP

    flags = [FALLBACK_MARKER_FLAG]
    flags.append("🟢 Contract is verified on BaseScan" if token.is_verified else "🔴 Contract is unverified")
    if total_liquidity > SIGNIFICANT_LIQUIDITY_USD:
        flags.append("🟢 Has significant liquidity")
    elif total_liquidity > 0:
        flags.append("🟡 Low liquidity")
    else:
        flags.append("🔴 No liquidity found")

    summary = (
        f"AI analysis failed but raw data was collected. {token.name} ({token.symbol}) is "
        f"{'verified' if token.is_verified else 'unverified'} with ${total_liquidity:.0f} "
        f"liquidity and {holder_count} holders tracked. Exercise caution."
    )

    return PinioscanReport(
        token=token,
        overall_score=FALLBACK_OVERALL_SCORE,
        risk_level=RiskLevel.DANGER,
        summary=summary,
        categories=ReportCategories(
            contract=RiskCategory(
                name=CATEGORY_NAMES["contract"],
                score=50 if token.is_verified else 10,
                level=CategoryLevel.CAUTION if token.is_verified else CategoryLevel.CRITICAL,
                findings=contract_findings,
            ),
            concentration=RiskCategory(
                name=CATEGORY_NAMES["concentration"],
                score=concentration_score,
                level=CategoryLevel.CAUTION if concentration_score >= 50 else CategoryLevel.DANGER,
                findings=concentration_findings,
            ),
            liquidity=RiskCategory(
                name=CATEGORY_NAMES["liquidity"],
                score=liquidity_score,
                level=CategoryLevel.CAUTION if liquidity_score >= 40 else CategoryLevel.CRITICAL,
                findings=liquidity_findings,
            ),
            trading=RiskCategory(
                name=CATEGORY_NAMES["trading"],
                score=50,
                level=CategoryLevel.CAUTION,
                findings=["AI analysis failed, trading patterns not evaluated"],
            ),
        ),
        top_holders=bundle.holders,
        liquidity=bundle.liquidity,
        flags=flags,
        recommendation=FALLBACK_RECOMMENDATION,
        timestamp=timestamp if timestamp is not None else _now_ms(),
    )


class RiskSynthesizer:
    """Scores an evidence bundle via the LLM, falling back to raw-data scoring."""

    def __init__(
        self,
        client: OpenRouterClient | None,
        *,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        source_char_budget: int = 8000,
    ) -> None:
        self._client = client
        self._timeout = timeout
        self._source_char_budget = source_char_budget

    async def synthesize(self, bundle: EvidenceBundle) -> PinioscanReport:
        symbol = bundle.token.symbol
        if self._client is None:
            logger.info(f"[SYNTH] No inference key, fallback report for {symbol}")
            return create_fallback_report(bundle)

        prompt = build_analysis_prompt(bundle, self._source_char_budget)
        start = time.monotonic()
        try:
            text = await asyncio.wait_for(self._client.complete(prompt), timeout=self._timeout)
        except TimeoutError:
            logger.warning(f"[SYNTH] Inference timed out after {self._timeout:.0f}s for {symbol}")
            return create_fallback_report(bundle)
        except Exception as e:
            logger.warning(f"[SYNTH] Inference failed for {symbol}: {e}")
            return create_fallback_report(bundle)

        result = parse_analysis_response(text)
        if isinstance(result, UnparsableAnalysis):
            logger.warning(f"[SYNTH] Unparseable reply for {symbol}: {result.reason}")
            return create_fallback_report(bundle)

        report = report_from_analysis(result.payload, bundle)
        logger.info(
            f"[SYNTH] {symbol} scored {report.overall_score} {report.risk_level.value} "
            f"in {time.monotonic() - start:.1f}s"
        )
        return report

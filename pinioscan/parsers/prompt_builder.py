"""Analysis prompt for the risk synthesizer.

Renders an EvidenceBundle into a plain-text evidence document followed by
the scoring rules and the JSON response contract.
"""

from __future__ import annotations

import json

from pinioscan.models import ContractPatterns, EvidenceBundle, LPLockInfo, PriceData, TransferRecord

LARGE_TRANSFER_SHARE = 0.01
MAX_HOLDER_LINES = 15
MAX_TRANSFER_LINES = 10

PATTERN_LINES = (
    ("has_proxy", "🚨 Proxy/Upgradeable contract (logic can be changed)"),
    ("has_mint_function", "⚠️ Has mint function (can create new tokens)"),
    ("has_blacklist", "⚠️ Has blacklist functionality (can block addresses)"),
    ("has_pausable", "⚠️ Pausable (can freeze all transfers)"),
    ("has_fee_modification", "⚠️ Fees can be modified by owner"),
    ("has_max_tx_limit", "Has max transaction limit"),
    ("has_anti_bot", "Has anti-bot mechanisms"),
    ("has_hidden_owner", "🚨 Hidden owner pattern detected"),
)

SCORING_RULES = """SCORING RULES (follow strictly):
1. If unverified contract → contract score ≤ 30
2. If proxy/upgradeable contract → contract score ≤ 40 (unless well-known project)
3. If owner can mint → contract score ≤ 50
4. If top non-burn holder > 50% → concentration score ≤ 20
5. If top non-burn holder > 20% → concentration score ≤ 50
6. If no liquidity → liquidity score ≤ 10
7. If liquidity < $5,000 → liquidity score ≤ 30
8. If liquidity < $10,000 → liquidity score ≤ 40
9. If LP not locked/burned → liquidity score ≤ 60
10. If contract age < 7 days → additional -10 to overall score
11. If market cap < $10,000 → additional -15 to overall score (extremely high rug risk)

TAX TOKEN RULES (Base tokens can have transfer taxes):
- Buy+sell tax 0-5% combined → trading score 80-100
- Buy+sell tax 5-10% combined → trading score 60-80 (moderate)
- Buy+sell tax 10-20% combined → trading score 40-60 (high, rare on Base, yellow flag)
- Buy+sell tax > 20% combined → trading score ≤ 30 (very high, red flag on Base)

BLUE-CHIP DIFFERENTIATION (avoid flat 100s):
- WETH/ETH: 95-98 (native wrapped asset)
- Canonical stablecoins (USDC, USDbC): 90-95 (deduct for centralization risk)
- cbETH, EURC: 85-92 (liquid staking / regulated stablecoin risk)
- Top Base DeFi protocols: 78-88 (deduct for smart contract complexity)
- Use the FULL range 0-100. Differentiate based on: liquidity depth, holder distribution, contract complexity, LP lock status, age, market cap.

NUANCE RULES:
- Proxy/upgradeable contracts used by major protocols (Coinbase, Uniswap, Aave) are NORMAL. Don't penalize unless there are other red flags.
- For tokens with low DEX liquidity but verified contracts and good holder distribution, score liquidity low but don't let it drag the overall score below 40.
- The overall score should be a WEIGHTED AVERAGE: contract 30%, concentration 25%, liquidity 25%, trading 20%.
- Scores of 5 or below are ONLY for tokens with multiple critical failures (e.g. unverified + no liquidity + extreme concentration + suspicious deployer behavior).
- Most legitimate Base tokens should score between 35-85. Reserve 90+ for canonical/blue-chip tokens only.

Risk level mapping: SAFE (70-100), CAUTION (50-69), DANGER (25-49), CRITICAL (0-24)"""

_CATEGORY_SCHEMA = """{
    "score": <0-100>,
    "level": "<safe|caution|danger|critical>",
    "findings": ["<specific finding referencing actual data>", ...]
  }"""

RESPONSE_CONTRACT = f"""Respond in EXACTLY this JSON format (no markdown, no code blocks, just raw JSON):
{{
  "overallScore": <0-100>,
  "riskLevel": "<SAFE|CAUTION|DANGER|CRITICAL>",
  "summary": "<2-3 sentence plain English summary>",
  "recommendation": "<1 sentence actionable recommendation>",
  "contract": {_CATEGORY_SCHEMA},
  "concentration": {_CATEGORY_SCHEMA},
  "liquidity": {_CATEGORY_SCHEMA},
  "trading": {_CATEGORY_SCHEMA},
  "flags": ["🔴 <red flag>", "🟢 <green flag>", ...]
}}

IMPORTANT: Be specific. Cite actual numbers, addresses, percentages. No generic statements."""

CANONICAL_NOTE = (
    "\n⚠️ IMPORTANT: This is an OFFICIAL Base canonical token (USDC, WETH, cbETH, EURC, or USDbC). "
    "It is a legitimate token. Do NOT flag it as a scam. Proxy/upgradeable patterns are normal "
    "for canonical infrastructure. Score based on actual fundamentals."
)


def _short(address: str, head: int = 10, tail: int = 6) -> str:
    return f"{address[:head]}...{address[-tail:]}"


def _to_units(raw: str, decimals: int) -> float:
    try:
        return int(raw) / 10**decimals
    except (ValueError, TypeError):
        return 0.0


def large_transfers(bundle: EvidenceBundle) -> list[TransferRecord]:
    """Transfers moving more than 1% of total supply, first ten in feed order."""
    supply = _to_units(bundle.token.total_supply, bundle.token.decimals)
    if supply <= 0:
        return []
    large = [
        tx for tx in bundle.transfers
        if _to_units(tx.value, tx.token_decimal) / supply > LARGE_TRANSFER_SHARE
    ]
    return large[:MAX_TRANSFER_LINES]


def _pattern_section(patterns: ContractPatterns) -> str:
    lines = [text for attr, text in PATTERN_LINES if getattr(patterns, attr)]
    lines += [f"🚨 {p}" for p in patterns.suspicious_patterns]
    if not lines:
        return "\nCONTRACT PATTERNS: No concerning patterns found in source code"
    return "\nCONTRACT PATTERNS DETECTED:\n" + "\n".join(f"  - {line}" for line in lines)


def _lp_lock_section(lp_lock: LPLockInfo) -> str:
    if lp_lock.locked_percent <= 0:
        return "\nLP LOCK STATUS: ⚠️ No LP tokens found in known lock contracts or burn addresses"
    via = f" via {lp_lock.lock_platform}" if lp_lock.lock_platform else ""
    state = " ✅" if lp_lock.is_locked else " (partial)"
    return f"\nLP LOCK STATUS: {lp_lock.locked_percent:.1f}% locked{via}{state}"


def _price_section(price: PriceData | None) -> str:
    if price is None:
        return "\nMARKET DATA: Not available"
    if price.market_cap_usd < 10_000:
        cap_note = " ⚠️ EXTREMELY LOW, extremely high risk"
    elif price.market_cap_usd < 100_000:
        cap_note = " ⚠️ Very low market cap"
    else:
        cap_note = ""
    sign = "+" if price.price_change_24h >= 0 else ""
    return (
        "\nMARKET DATA (Pinion):\n"
        f"  Price: ${price.price_usd:.6f} USD\n"
        f"  24h Change: {sign}{price.price_change_24h:.2f}%\n"
        f"  Market Cap: ${price.market_cap_usd:.0f} USD{cap_note}"
    )


def _deployer_section(bundle: EvidenceBundle) -> str:
    tx = bundle.deployer_tx
    if tx is None:
        return ""
    args = ""
    if tx.args:
        args = f"Args: {json.dumps(tx.args, default=str)[:200]}"
    return (
        "\nDEPLOYER FIRST TX (Pinion decoded):\n"
        f"  Function: {tx.function_name or 'unknown'}\n"
        f"  {args}\n"
        f"  Value: {tx.value or '0 ETH'}"
    )


def build_analysis_prompt(bundle: EvidenceBundle, source_char_budget: int = 8000) -> str:
    """Render the full analysis prompt for one token."""
    token = bundle.token

    holder_lines = "\n".join(
        f"  {i}. {_short(h.address)}: {h.percentage:.2f}%" + (f" ({h.label})" if h.label else "")
        for i, h in enumerate(bundle.holders[:MAX_HOLDER_LINES], start=1)
    )

    liquidity_lines = "\n".join(
        f"  {pool.dex}: ${pool.liquidity_usd:.0f} USD (Locked: {'Yes' if pool.is_locked else 'Unknown'})"
        for pool in bundle.liquidity
    ) or "  No liquidity found on Uniswap V3 or Aerodrome"

    transfer_lines = "\n".join(
        f"  {tx.from_address[:10]}→{tx.to_address[:10]} | "
        f"{_to_units(tx.value, tx.token_decimal):.2f} tokens | Block {tx.block_number}"
        for tx in large_transfers(bundle)
    ) or "  No large transfers detected"

    if token.is_verified and token.source_code:
        source_section = (
            f"\nCONTRACT SOURCE CODE (first {source_char_budget} chars):\n"
            f"```solidity\n{token.source_code[:source_char_budget]}\n```"
        )
    else:
        source_section = "\nCONTRACT SOURCE: ⚠️ NOT VERIFIED on BaseScan. This is a red flag."

    age_section = f"\nCONTRACT AGE: {token.contract_age}" if token.contract_age else ""
    canonical = CANONICAL_NOTE if bundle.is_canonical else ""

    return f"""You are Pinioscan, an AI token safety auditor for Base (ERC-20 on Base) tokens. New tokens launch on Base every hour and most are scams. Analyze this token and provide a safety assessment.{canonical}

TOKEN: {token.name} ({token.symbol})
ADDRESS: {token.address}
TOTAL SUPPLY: {token.total_supply}
OWNER: {token.owner or 'Unknown / Renounced'}
CREATOR: {token.creator or 'Unknown'}
VERIFIED: {'Yes' if token.is_verified else 'No'}{age_section}
{_price_section(bundle.price)}{_deployer_section(bundle)}
{source_section}
{_pattern_section(bundle.patterns)}

TOP HOLDERS:
{holder_lines}
  Top 10 hold: {bundle.top10_holder_pct:.1f}% | Burned: {bundle.burned_pct:.1f}%

LIQUIDITY (Uniswap V3 / Aerodrome on Base):
{liquidity_lines}
  Total: ${bundle.total_liquidity_usd:.0f} USD{_lp_lock_section(bundle.lp_lock)}

RECENT LARGE TRANSFERS (>1% supply):
{transfer_lines}

{SCORING_RULES}

{RESPONSE_CONTRACT}"""

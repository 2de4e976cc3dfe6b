"""Static pattern scan of verified Solidity source.

Regex heuristics over the lowercased source text. Advisory only: a match is a
signal for the synthesizer, not a verdict, and both false positives (a
pattern in a comment or a dead library) and false negatives (obfuscated
names) are expected.
"""

from __future__ import annotations

import re

from pinioscan.models import ContractPatterns

# flag name -> rule; a flag is set when its rule matches
FLAG_RULES: dict[str, re.Pattern[str]] = {
    "has_proxy": re.compile(r"delegatecall|upgradeable|transparent.*proxy|beacon.*proxy"),
    "has_blacklist": re.compile(
        r"blacklist|blocklist|isblacklisted|_isexcluded|isbotaddress|isbot"
    ),
    "has_pausable": re.compile(r"whennotpaused|pausable|function\s+pause\s*\("),
    "has_fee_modification": re.compile(
        r"setfee|settax|updatefee|_taxfee|_liquidityfee|setsellfee|setbuyfee"
    ),
    "has_max_tx_limit": re.compile(r"maxtxamount|_maxtxamount|maxtransaction|maxwalletsize"),
    "has_anti_bot": re.compile(r"antibot|antibotactive|tradingactive|tradingopen|cantradestart"),
    "has_hidden_owner": re.compile(r"transferownership.*internal|_previousowner"),
}

_MINT_SIGNATURE = re.compile(r"function\s+mint\s*\(")
_COMMENTS = re.compile(r"//[^\n]*|/\*[\s\S]*?\*/")

_SELFDESTRUCT = re.compile(r"selfdestruct|suicide")
_ASSEMBLY_SSTORE = re.compile(r"assembly\s*\{[\s\S]*?sstore")
_BLOCK_NUMBER_GATE = re.compile(r"block\.number\s*[<>]")
_REQUIRE = re.compile(r"require")
_UNLIMITED_APPROVAL = (
    re.compile(r"approve.*type\(uint256\)\.max"),
    re.compile(r"approve.*115792"),
)


def analyze_contract_patterns(source_code: str | None) -> ContractPatterns:
    """Derive pattern flags from contract source. Never raises.

    No source (unverified contract) yields all flags false.
    """
    if not source_code:
        return ContractPatterns()

    code = source_code.lower()
    flags = {name: bool(rule.search(code)) for name, rule in FLAG_RULES.items()}

    # Commented-out or documented-only mint() does not count
    flags["has_mint_function"] = bool(_MINT_SIGNATURE.search(_COMMENTS.sub(" ", code)))

    suspicious: list[str] = []
    if _SELFDESTRUCT.search(code):
        suspicious.append("Contains selfdestruct")
    if _ASSEMBLY_SSTORE.search(code):
        suspicious.append("Uses raw assembly storage writes")
    if _BLOCK_NUMBER_GATE.search(code) and _REQUIRE.search(code):
        suspicious.append(
            "Block-number-based restrictions (possible sniper protection or time bomb)"
        )
    if any(rule.search(code) for rule in _UNLIMITED_APPROVAL):
        suspicious.append("Unlimited approval patterns detected")

    return ContractPatterns(**flags, suspicious_patterns=suspicious)

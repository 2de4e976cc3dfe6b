"""Tests for the analysis prompt document."""

from pinioscan.models import ContractPatterns, DeployerTransaction, LPLockInfo, PriceData, TransferRecord
from pinioscan.parsers.prompt_builder import build_analysis_prompt, large_transfers


class TestPromptSections:
    def test_identity_and_rules(self, make_bundle) -> None:
        prompt = build_analysis_prompt(make_bundle(holder_pcts=[40.0, 10.0], pool_usd=[25_000]))

        assert "TOKEN: Test Token (TST)" in prompt
        assert "VERIFIED: Yes" in prompt
        assert "CONTRACT AGE: 3 months, 2 days" in prompt
        assert "Top 10 hold: 50.0% | Burned: 0.0%" in prompt
        assert "Total: $25000 USD" in prompt
        assert "SCORING RULES (follow strictly):" in prompt
        assert "Risk level mapping: SAFE (70-100), CAUTION (50-69), DANGER (25-49), CRITICAL (0-24)" in prompt
        assert '"overallScore": <0-100>' in prompt

    def test_unverified_source(self, make_bundle) -> None:
        prompt = build_analysis_prompt(make_bundle(verified=False))
        assert "NOT VERIFIED on BaseScan" in prompt
        assert "```solidity" not in prompt

    def test_source_truncated_to_budget(self, make_bundle) -> None:
        bundle = make_bundle(source_code="a" * 9000 + "TAIL")
        prompt = build_analysis_prompt(bundle, source_char_budget=8000)
        assert "a" * 8000 + "\n```" in prompt
        assert "TAIL" not in prompt

    def test_no_liquidity_line(self, make_bundle) -> None:
        prompt = build_analysis_prompt(make_bundle(pool_usd=[]))
        assert "No liquidity found on Uniswap V3 or Aerodrome" in prompt
        assert "No LP tokens found in known lock contracts" in prompt

    def test_holder_list_bounded(self, make_bundle) -> None:
        prompt = build_analysis_prompt(make_bundle(holder_pcts=[1.0] * 20))
        assert "  15. " in prompt
        assert "  16. " not in prompt

    def test_pattern_flags(self, make_bundle) -> None:
        bundle = make_bundle().model_copy(update={
            "patterns": ContractPatterns(
                has_proxy=True,
                has_mint_function=True,
                suspicious_patterns=["Contains selfdestruct"],
            ),
            "lp_lock": LPLockInfo(is_locked=True, locked_percent=95.5, lock_platform="Unicrypt"),
        })
        prompt = build_analysis_prompt(bundle)
        assert "  - 🚨 Proxy/Upgradeable contract (logic can be changed)" in prompt
        assert "  - ⚠️ Has mint function (can create new tokens)" in prompt
        assert "  - 🚨 Contains selfdestruct" in prompt
        assert "LP LOCK STATUS: 95.5% locked via Unicrypt ✅" in prompt

    def test_market_data_warnings(self, make_bundle) -> None:
        tiny = make_bundle().model_copy(update={"price": PriceData(price_usd=0.0001, market_cap_usd=5_000)})
        small = make_bundle().model_copy(update={"price": PriceData(price_usd=0.01, market_cap_usd=50_000)})
        large = make_bundle().model_copy(update={"price": PriceData(price_usd=1.0, market_cap_usd=5_000_000)})

        assert "EXTREMELY LOW" in build_analysis_prompt(tiny)
        assert "Very low market cap" in build_analysis_prompt(small)
        large_prompt = build_analysis_prompt(large)
        assert "Market Cap: $5000000 USD\n" in large_prompt
        assert "MARKET DATA: Not available" in build_analysis_prompt(make_bundle())

    def test_canonical_and_deployer(self, make_bundle) -> None:
        bundle = make_bundle().model_copy(update={
            "is_canonical": True,
            "deployer_tx": DeployerTransaction(function_name="addLiquidityETH", value="2 ETH"),
        })
        prompt = build_analysis_prompt(bundle)
        assert "OFFICIAL Base canonical token" in prompt
        assert "Function: addLiquidityETH" in prompt
        assert "Value: 2 ETH" in prompt


class TestLargeTransfers:
    def test_over_one_percent_of_supply(self, make_bundle) -> None:
        # supply is 1000 tokens; 1% = 10 tokens
        transfers = [
            TransferRecord(hash="0x1", value=str(50 * 10**18), block_number=1),
            TransferRecord(hash="0x2", value=str(10 * 10**18), block_number=2),
            TransferRecord(hash="0x3", value=str(11 * 10**18), block_number=3),
        ]
        bundle = make_bundle().model_copy(update={"transfers": transfers})

        assert [tx.hash for tx in large_transfers(bundle)] == ["0x1", "0x3"]

    def test_capped_at_ten(self, make_bundle) -> None:
        transfers = [TransferRecord(hash=f"0x{i}", value=str(100 * 10**18)) for i in range(15)]
        bundle = make_bundle().model_copy(update={"transfers": transfers})
        assert len(large_transfers(bundle)) == 10

    def test_zero_supply(self, make_bundle) -> None:
        bundle = make_bundle()
        token = bundle.token.model_copy(update={"total_supply": "0"})
        bundle = bundle.model_copy(update={
            "token": token,
            "transfers": [TransferRecord(value="1")],
        })
        assert large_transfers(bundle) == []
        assert "No large transfers detected" in build_analysis_prompt(bundle)

"""Attestation submission to the Pinioscan ledger contract on Base.

The deployer key is loaded once and never logged; only the derived account
address appears in log lines.
"""

from __future__ import annotations

import json

from loguru import logger
from web3 import AsyncWeb3

from pinioscan.chain.constants import PINIOSCAN_ABI
from pinioscan.chain.rpc import make_web3, to_checksum
from pinioscan.models import PinioscanReport

RECEIPT_TIMEOUT_SEC = 120


class ConfigurationError(Exception):
    """Signing key or ledger contract address is not configured."""


class AttestationError(Exception):
    """Attestation transaction failed or reverted."""


def canonical_report_json(report: PinioscanReport) -> str:
    """Compact JSON of the attested subset, in fixed field order."""
    payload = {
        "score": report.overall_score,
        "riskLevel": report.risk_level.value,
        "summary": report.summary,
        "categories": {
            key: {
                "name": cat.name,
                "score": cat.score,
                "level": cat.level.value,
                "findings": list(cat.findings),
            }
            for key, cat in (
                ("contract", report.categories.contract),
                ("concentration", report.categories.concentration),
                ("liquidity", report.categories.liquidity),
                ("trading", report.categories.trading),
            )
        },
        "flags": list(report.flags),
        "recommendation": report.recommendation,
        "timestamp": report.timestamp,
    }
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def report_hash(report: PinioscanReport) -> str:
    """keccak-256 of the canonical report JSON, 0x-prefixed hex."""
    return AsyncWeb3.to_hex(AsyncWeb3.keccak(text=canonical_report_json(report)))


class AttestationSubmitter:
    """Signs and sends ``submitAttestation`` for a finished report. One attempt per call."""

    def __init__(
        self,
        *,
        rpc_url: str,
        chain_id: int,
        private_key: str,
        contract_address: str,
        w3: AsyncWeb3 | None = None,
    ) -> None:
        self._rpc_url = rpc_url
        self._chain_id = chain_id
        self._private_key = private_key.strip()
        self._contract_address = contract_address.strip()
        self._w3 = w3

    @property
    def skip_reason(self) -> str | None:
        """Why submission cannot run, or None when fully configured."""
        if not self._contract_address:
            return "no_contract_address"
        if not self._private_key:
            return "no_deployer_key"
        return None

    @property
    def is_configured(self) -> bool:
        return self.skip_reason is None

    def __repr__(self) -> str:
        return f"AttestationSubmitter(contract={self._contract_address or '-'})"

    async def submit(self, report: PinioscanReport) -> str:
        """Record the report on-chain and return the confirmed tx hash."""
        if not self._private_key:
            raise ConfigurationError("DEPLOYER_PRIVATE_KEY not set")
        if not self._contract_address:
            raise ConfigurationError("PINIOSCAN_CONTRACT_ADDRESS not set")

        w3 = self._get_w3()
        account = w3.eth.account.from_key(self._private_key)
        contract = w3.eth.contract(address=to_checksum(self._contract_address), abi=PINIOSCAN_ABI)
        digest = report_hash(report)

        nonce = await w3.eth.get_transaction_count(account.address, "pending")
        tx = await contract.functions.submitAttestation(
            to_checksum(report.token.address),
            report.overall_score,
            report.risk_level.value,
            digest,
        ).build_transaction({
            "from": account.address,
            "nonce": nonce,
            "chainId": self._chain_id,
        })
        signed = account.sign_transaction(tx)
        tx_hash = await w3.eth.send_raw_transaction(signed.raw_transaction)
        logger.info(
            f"[ATTEST] Sent {AsyncWeb3.to_hex(tx_hash)[:12]} for {report.token.address[:10]} "
            f"score={report.overall_score} from={account.address[:10]}"
        )

        receipt = await w3.eth.wait_for_transaction_receipt(tx_hash, timeout=RECEIPT_TIMEOUT_SEC)
        if receipt.get("status") != 1:
            raise AttestationError(f"Attestation reverted: {AsyncWeb3.to_hex(tx_hash)}")
        return AsyncWeb3.to_hex(receipt["transactionHash"])

    def _get_w3(self) -> AsyncWeb3:
        if self._w3 is None:
            self._w3 = make_web3(self._rpc_url)
        return self._w3

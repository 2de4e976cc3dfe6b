"""Read side of the Pinioscan ledger contract (history is authoritative here, not in cache)."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from loguru import logger
from web3 import AsyncWeb3

from pinioscan.chain.constants import PINIOSCAN_ABI, ZERO_ADDRESS
from pinioscan.chain.rpc import to_checksum


@dataclass
class Attestation:
    token: str
    score: int
    risk_level: str
    report_cid: str
    timestamp: int
    scanner: str


@dataclass
class LatestScore:
    score: int
    risk_level: str
    timestamp: int


class LedgerReader:
    def __init__(self, w3: AsyncWeb3, contract_address: str) -> None:
        self._address = to_checksum(contract_address)
        self._contract = w3.eth.contract(address=self._address, abi=PINIOSCAN_ABI)

    @property
    def address(self) -> str:
        return self._address

    async def get_attestations(self, token: str) -> list[Attestation]:
        rows = await self._contract.functions.getAttestations(to_checksum(token)).call()
        return [
            Attestation(
                token=row[0],
                score=int(row[1]),
                risk_level=row[2],
                report_cid=row[3],
                timestamp=int(row[4]),
                scanner=row[5],
            )
            for row in rows
        ]

    async def get_latest_score(self, token: str) -> LatestScore:
        score, risk_level, timestamp = await self._contract.functions.getLatestScore(
            to_checksum(token)
        ).call()
        return LatestScore(score=int(score), risk_level=risk_level, timestamp=int(timestamp))

    async def total_scans(self) -> int:
        return int(await self._contract.functions.totalScans().call())

    async def get_recent_tokens(self, count: int) -> list[str]:
        tokens = await self._contract.functions.getRecentTokens(count).call()
        return [to_checksum(t) for t in tokens if t and t != ZERO_ADDRESS]

    async def latest_per_token(self, count: int = 20) -> list[dict]:
        """Latest attestation of each recent token, skipping tokens whose read fails."""

        async def _latest(token: str) -> dict | None:
            try:
                attestations = await self.get_attestations(token)
            except Exception as e:
                logger.warning(f"[LEDGER] getAttestations failed for {token[:10]}: {e}")
                return None
            if not attestations:
                return None
            latest = attestations[-1]
            return {
                "token": token,
                "score": latest.score,
                "riskLevel": latest.risk_level,
                "timestamp": latest.timestamp,
                "totalAttestations": len(attestations),
            }

        tokens = await self.get_recent_tokens(count)
        results = await asyncio.gather(*[_latest(t) for t in tokens])
        return [r for r in results if r is not None]

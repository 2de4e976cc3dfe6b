"""Runtime wiring: builds the scan pipeline and its collaborators from settings.

Built once by the API lifespan (or ``main``) and shared by every request;
everything runs on a single event loop.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from config.settings import Settings
from pinioscan.chain.attester import AttestationSubmitter
from pinioscan.chain.ledger import LedgerReader
from pinioscan.chain.rpc import ChainReader
from pinioscan.db.cache import MemoryResultCache, RedisResultCache, ResultCache
from pinioscan.parsers.basescan.client import BasescanClient
from pinioscan.parsers.collector import EvidenceCollector
from pinioscan.parsers.metrics import ScanMetrics, metrics
from pinioscan.parsers.openrouter.client import OpenRouterClient
from pinioscan.parsers.pinion.client import PinionClient
from pinioscan.parsers.scan_pipeline import ScanOrchestrator
from pinioscan.parsers.synthesizer import RiskSynthesizer


@dataclass
class Services:
    orchestrator: ScanOrchestrator
    cache: ResultCache
    ledger: LedgerReader | None = None
    metrics: ScanMetrics = field(default_factory=lambda: metrics)
    # Anything with an async close(), closed in reverse order
    closeables: list[Any] = field(default_factory=list)

    async def close(self) -> None:
        await self.orchestrator.wait_background()
        for resource in reversed(self.closeables):
            try:
                await resource.close()
            except Exception as e:
                logger.warning(f"[SERVICES] Close failed for {type(resource).__name__}: {e}")


def build_cache(cfg: Settings) -> ResultCache:
    if cfg.cache_backend == "redis":
        logger.info("[SERVICES] Result cache: redis")
        return RedisResultCache.from_url(cfg.redis_url)
    if cfg.cache_backend != "memory":
        raise ValueError(f"Unknown cache backend: {cfg.cache_backend}")
    return MemoryResultCache(max_entries=cfg.cache_max_entries, evict_batch=cfg.cache_evict_batch)


def build_services(cfg: Settings) -> Services:
    chain = ChainReader(cfg.base_rpc_url)
    explorer = BasescanClient(
        cfg.basescan_api_key,
        base_url=cfg.basescan_api_url,
        max_rps=cfg.basescan_max_rps,
    )
    closeables: list[Any] = [chain, explorer]

    pinion = None
    if cfg.pinion_api_url:
        pinion = PinionClient(cfg.pinion_api_url, cfg.pinion_api_key, max_rps=cfg.pinion_max_rps)
        closeables.append(pinion)
    else:
        logger.warning("[SERVICES] PINION_API_URL not set: no price data, pool USD depth reported as 0")

    inference = None
    if cfg.openrouter_api_key:
        inference = OpenRouterClient(cfg.openrouter_api_key, cfg.llm_model, cfg.llm_max_tokens)
        closeables.append(inference)
    else:
        logger.warning("[SERVICES] OPENROUTER_API_KEY not set: every scan uses the fallback report")

    attester = AttestationSubmitter(
        rpc_url=cfg.base_rpc_url,
        chain_id=cfg.base_chain_id,
        private_key=cfg.deployer_private_key,
        contract_address=cfg.pinioscan_contract_address,
        w3=chain.w3,
    )
    if attester.skip_reason:
        logger.info(f"[SERVICES] Attestation disabled ({attester.skip_reason})")

    ledger = None
    if cfg.pinioscan_contract_address.strip():
        ledger = LedgerReader(chain.w3, cfg.pinioscan_contract_address)

    cache = build_cache(cfg)
    closeables.append(cache)

    orchestrator = ScanOrchestrator(
        EvidenceCollector(
            chain,
            explorer,
            pinion,
            holder_limit=cfg.holder_limit,
            transfer_limit=cfg.transfer_limit,
            max_concurrency=cfg.rpc_max_concurrency,
        ),
        RiskSynthesizer(
            inference,
            timeout=cfg.llm_timeout_sec,
            source_char_budget=cfg.source_char_budget,
        ),
        attester,
        cache,
        cache_ttl=cfg.cache_ttl_sec,
        concurrency_policy=cfg.scan_concurrency_policy,
    )
    return Services(orchestrator=orchestrator, cache=cache, ledger=ledger, closeables=closeables)

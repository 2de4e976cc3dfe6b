"""Scan orchestrator: cache -> collect -> synthesize -> attest -> cache, streamed as events.

Every stream ends with exactly one terminal event (``complete`` or
``error``). Once a report exists, attestation and the cache write run in a
shielded task, so a client disconnect abandons collection and synthesis
but never a started attestation.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from loguru import logger

from pinioscan.chain.attester import AttestationSubmitter
from pinioscan.chain.rpc import to_checksum
from pinioscan.db.cache import DEFAULT_TTL_SEC, ResultCache, scan_cache_key
from pinioscan.models import PinioscanReport
from pinioscan.parsers.collector import CollectionError, EvidenceCollector
from pinioscan.parsers.metrics import ScanMetrics
from pinioscan.parsers.metrics import metrics as default_metrics
from pinioscan.parsers.scan_state import ScanEvent, ScanEventType, ScanStateMachine
from pinioscan.parsers.synthesizer import FALLBACK_MARKER_FLAG, RiskSynthesizer
from pinioscan.utils.sanitize import sanitize_error

ALLOW_DUPLICATE = "allow_duplicate"
SERIALIZE_BY_KEY = "serialize_by_key"
CONCURRENCY_POLICIES = (ALLOW_DUPLICATE, SERIALIZE_BY_KEY)


@dataclass
class _Finalized:
    report: dict
    attestation_error: str | None = None


def collection_error_message(address: str, error: Exception) -> str:
    detail = str(error)[:120] or "Unknown error"
    return (
        f"Failed to fetch token data for {address}. The contract may not be a standard "
        f"ERC20 token, may be self-destructed, or may not exist. ({detail})"
    )


class ScanOrchestrator:
    """Drives one scan per ``scan()`` call and yields its phase events."""

    def __init__(
        self,
        collector: EvidenceCollector,
        synthesizer: RiskSynthesizer,
        attester: AttestationSubmitter,
        cache: ResultCache,
        *,
        cache_ttl: int = DEFAULT_TTL_SEC,
        concurrency_policy: str = ALLOW_DUPLICATE,
        metrics: ScanMetrics | None = None,
    ) -> None:
        if concurrency_policy not in CONCURRENCY_POLICIES:
            raise ValueError(f"Unknown scan concurrency policy: {concurrency_policy}")
        self._collector = collector
        self._synthesizer = synthesizer
        self._attester = attester
        self._cache = cache
        self._cache_ttl = cache_ttl
        self._policy = concurrency_policy
        self._metrics = metrics or default_metrics
        self._key_locks: dict[str, asyncio.Lock] = {}
        self._key_waiters: dict[str, int] = {}
        # Strong refs so shielded tasks outlive a cancelled caller
        self._background: set[asyncio.Task] = set()

    @property
    def cache(self) -> ResultCache:
        return self._cache

    async def wait_background(self) -> None:
        """Wait for shielded attest/store tasks (shutdown and tests)."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def analyze(self, address: str) -> PinioscanReport:
        """Collect and synthesize only: no cache read or write, no attestation.

        Backs the paid one-shot endpoint. Raises CollectionError when the
        token cannot be read.
        """
        address = to_checksum(address)
        self._metrics.record_scan_started()
        try:
            bundle = await self._collector.collect(address)
        except CollectionError:
            self._metrics.record_scan_failed()
            raise
        report = await self._synthesizer.synthesize(bundle)
        is_fallback = bool(report.flags) and report.flags[0] == FALLBACK_MARKER_FLAG
        self._metrics.record_scan_completed(fallback=is_fallback)
        logger.info(f"[SCAN] One-shot {bundle.token.symbol} {address[:10]} -> {report.overall_score}")
        return report

    async def scan(self, address: str) -> AsyncIterator[ScanEvent]:
        """Yield phase events for one scan of ``address``."""
        state = ScanStateMachine()
        self._metrics.record_scan_started()

        def emit(event: ScanEvent) -> ScanEvent:
            if event.phase is not state.phase:
                state.advance(event.phase)
            return event

        try:
            address = to_checksum(address)
            async with self._key_guard(address):
                async for event in self._run(address):
                    yield emit(event)
        except (asyncio.CancelledError, GeneratorExit):
            logger.info(f"[SCAN] Client left during {state.phase.value} for {address[:10]}")
            raise
        except Exception as e:
            logger.exception(f"[SCAN] Unhandled error for {address[:10]}: {e}")
            if not state.is_terminal:
                self._metrics.record_scan_failed()
                yield emit(ScanEvent(ScanEventType.ERROR, error=sanitize_error(e)))

    @asynccontextmanager
    async def _key_guard(self, address: str):
        if self._policy != SERIALIZE_BY_KEY:
            yield
            return
        lock = self._key_locks.setdefault(address, asyncio.Lock())
        self._key_waiters[address] = self._key_waiters.get(address, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._key_waiters[address] -= 1
            if self._key_waiters[address] == 0:
                del self._key_waiters[address]
                self._key_locks.pop(address, None)

    async def _run(self, address: str) -> AsyncIterator[ScanEvent]:
        key = scan_cache_key(address)
        cached = await self._cache.get(key)
        if cached is not None:
            async for event in self._replay_cached(key, cached):
                yield event
            return

        yield ScanEvent(ScanEventType.FETCHING)
        start = time.monotonic()
        try:
            bundle = await self._collector.collect(address)
        except CollectionError as e:
            logger.warning(f"[SCAN] Collection failed for {address[:10]}: {e}")
            self._metrics.record_scan_failed()
            yield ScanEvent(ScanEventType.ERROR, error=collection_error_message(address, e))
            return
        self._metrics.record_latency("collect", (time.monotonic() - start) * 1000)
        yield ScanEvent(
            ScanEventType.FETCHING_DONE,
            token_name=bundle.token.name,
            token_symbol=bundle.token.symbol,
        )

        yield ScanEvent(ScanEventType.ANALYZING)
        start = time.monotonic()
        report = await self._synthesizer.synthesize(bundle)
        self._metrics.record_latency("synthesize", (time.monotonic() - start) * 1000)
        yield ScanEvent(ScanEventType.ANALYZING_DONE)

        skip_reason = self._attester.skip_reason
        finalize = self._spawn(self._finalize(key, report, attest=skip_reason is None))
        if skip_reason is None:
            yield ScanEvent(ScanEventType.ATTESTING)
        else:
            self._metrics.record_attestation("skipped")
            yield ScanEvent(ScanEventType.ATTESTATION_SKIPPED, reason=skip_reason)

        result = await asyncio.shield(finalize)
        if result.attestation_error is not None:
            yield ScanEvent(ScanEventType.ATTESTATION_ERROR, error=result.attestation_error)

        is_fallback = bool(report.flags) and report.flags[0] == FALLBACK_MARKER_FLAG
        self._metrics.record_scan_completed(fallback=is_fallback)
        logger.info(
            f"[SCAN] {bundle.token.symbol} {address[:10]} -> {report.overall_score} "
            f"{report.risk_level.value}{' (fallback)' if is_fallback else ''}"
        )
        yield ScanEvent(ScanEventType.COMPLETE, data=result.report)

    async def _replay_cached(self, key: str, cached: dict) -> AsyncIterator[ScanEvent]:
        token = cached.get("token") or {}
        yield ScanEvent(ScanEventType.FETCHING)
        yield ScanEvent(
            ScanEventType.FETCHING_DONE,
            token_name=token.get("name"),
            token_symbol=token.get("symbol"),
        )
        yield ScanEvent(ScanEventType.ANALYZING)
        yield ScanEvent(ScanEventType.ANALYZING_DONE)

        data = cached
        if not cached.get("attestationTx") and self._attester.is_configured:
            report = PinioscanReport.model_validate(cached)
            finalize = self._spawn(self._finalize(key, report, attest=True, store_unattested=False))
            yield ScanEvent(ScanEventType.ATTESTING)
            result = await asyncio.shield(finalize)
            if result.attestation_error is not None:
                yield ScanEvent(ScanEventType.ATTESTATION_ERROR, error=result.attestation_error)
            data = result.report

        self._metrics.record_scan_completed(cache_hit=True)
        logger.info(f"[SCAN] Cache hit for {key}")
        yield ScanEvent(ScanEventType.COMPLETE, data=data)

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def _finalize(
        self,
        key: str,
        report: PinioscanReport,
        *,
        attest: bool,
        store_unattested: bool = True,
    ) -> _Finalized:
        """Attest (when configured) then store. Attestation failure is non-fatal.

        A replayed cache entry is only rewritten once it gains an attestation.
        """
        error: str | None = None
        if attest:
            start = time.monotonic()
            try:
                report.attestation_tx = await self._attester.submit(report)
                self._metrics.record_attestation("sent")
                logger.info(f"[SCAN] Attested {key}: {report.attestation_tx}")
            except Exception as e:
                self._metrics.record_attestation("failed")
                logger.warning(f"[SCAN] Attestation failed for {key} (non-fatal): {e}")
                error = str(e)[:200]
            self._metrics.record_latency("attest", (time.monotonic() - start) * 1000)

        data = report.to_wire()
        if error is not None and not store_unattested:
            return _Finalized(report=data, attestation_error=error)
        try:
            await self._cache.set(key, data, self._cache_ttl)
        except Exception as e:
            logger.warning(f"[SCAN] Cache store failed for {key}: {e}")
        return _Finalized(report=data, attestation_error=error)

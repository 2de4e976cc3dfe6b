"""Scan pipeline metrics: outcomes, cache hits, fallbacks, attestation results.

Counters accumulate for the process lifetime and are read by the health
endpoint.
"""

import time
from dataclasses import dataclass
from threading import Lock


@dataclass
class PhaseMetrics:
    """Latency of one pipeline phase (collect, synthesize, attest)."""

    total_runs: int = 0
    total_latency_ms: float = 0.0
    max_latency_ms: float = 0.0

    @property
    def avg_latency_ms(self) -> float:
        if self.total_runs == 0:
            return 0.0
        return self.total_latency_ms / self.total_runs


class ScanMetrics:
    """Global metrics accumulator for the scan pipeline."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._phases: dict[str, PhaseMetrics] = {}
        self._scans_started = 0
        self._scans_completed = 0
        self._scans_failed = 0
        self._cache_hits = 0
        self._fallback_reports = 0
        self._attestations_sent = 0
        self._attestations_failed = 0
        self._attestations_skipped = 0
        self._start_time = time.monotonic()

    def record_latency(self, phase: str, latency_ms: float) -> None:
        with self._lock:
            pm = self._phases.setdefault(phase, PhaseMetrics())
            pm.total_runs += 1
            pm.total_latency_ms += latency_ms
            if latency_ms > pm.max_latency_ms:
                pm.max_latency_ms = latency_ms

    def record_scan_started(self) -> None:
        with self._lock:
            self._scans_started += 1

    def record_scan_completed(self, *, cache_hit: bool = False, fallback: bool = False) -> None:
        with self._lock:
            self._scans_completed += 1
            if cache_hit:
                self._cache_hits += 1
            if fallback:
                self._fallback_reports += 1

    def record_scan_failed(self) -> None:
        with self._lock:
            self._scans_failed += 1

    def record_attestation(self, outcome: str) -> None:
        """``outcome`` is one of ``sent``, ``failed``, ``skipped``."""
        with self._lock:
            if outcome == "sent":
                self._attestations_sent += 1
            elif outcome == "failed":
                self._attestations_failed += 1
            elif outcome == "skipped":
                self._attestations_skipped += 1

    def get_summary(self) -> dict:
        with self._lock:
            return {
                "uptime_sec": round(time.monotonic() - self._start_time),
                "scans": {
                    "started": self._scans_started,
                    "completed": self._scans_completed,
                    "failed": self._scans_failed,
                    "cache_hits": self._cache_hits,
                    "fallback_reports": self._fallback_reports,
                },
                "attestations": {
                    "sent": self._attestations_sent,
                    "failed": self._attestations_failed,
                    "skipped": self._attestations_skipped,
                },
                "phases": {
                    name: {
                        "runs": pm.total_runs,
                        "avg_latency_ms": round(pm.avg_latency_ms, 1),
                        "max_latency_ms": round(pm.max_latency_ms, 1),
                    }
                    for name, pm in self._phases.items()
                },
            }

    def format_stats_line(self) -> str:
        with self._lock:
            return (
                f"scans={self._scans_completed}/{self._scans_started} "
                f"failed={self._scans_failed} cache_hits={self._cache_hits} "
                f"fallback={self._fallback_reports} attested={self._attestations_sent}"
            )


metrics = ScanMetrics()

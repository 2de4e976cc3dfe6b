"""Scan phases, their legal transitions, and the stream events emitted per phase."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any


class ScanPhase(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    ANALYZING = "analyzing"
    ATTESTING = "attesting"
    COMPLETE = "complete"
    ERROR = "error"


TERMINAL_PHASES = frozenset({ScanPhase.COMPLETE, ScanPhase.ERROR})

TRANSITIONS: dict[ScanPhase, frozenset[ScanPhase]] = {
    ScanPhase.IDLE: frozenset({ScanPhase.FETCHING, ScanPhase.ERROR}),
    ScanPhase.FETCHING: frozenset({ScanPhase.ANALYZING, ScanPhase.ERROR}),
    # analyzing -> complete when attestation is skipped
    ScanPhase.ANALYZING: frozenset({ScanPhase.ATTESTING, ScanPhase.COMPLETE, ScanPhase.ERROR}),
    ScanPhase.ATTESTING: frozenset({ScanPhase.COMPLETE, ScanPhase.ERROR}),
    ScanPhase.COMPLETE: frozenset(),
    ScanPhase.ERROR: frozenset(),
}


class InvalidTransitionError(Exception):
    def __init__(self, current: ScanPhase, target: ScanPhase) -> None:
        super().__init__(f"Illegal scan transition {current.value} -> {target.value}")
        self.current = current
        self.target = target


class ScanStateMachine:
    """Tracks the phase of one scan; every move is checked against TRANSITIONS."""

    def __init__(self) -> None:
        self._phase = ScanPhase.IDLE

    @property
    def phase(self) -> ScanPhase:
        return self._phase

    @property
    def is_terminal(self) -> bool:
        return self._phase in TERMINAL_PHASES

    def can_advance(self, target: ScanPhase) -> bool:
        return target in TRANSITIONS[self._phase]

    def advance(self, target: ScanPhase) -> None:
        if not self.can_advance(target):
            raise InvalidTransitionError(self._phase, target)
        self._phase = target


class ScanEventType(str, Enum):
    FETCHING = "fetching"
    FETCHING_DONE = "fetching_done"
    ANALYZING = "analyzing"
    ANALYZING_DONE = "analyzing_done"
    ATTESTING = "attesting"
    ATTESTATION_SKIPPED = "attestation_skipped"
    ATTESTATION_ERROR = "attestation_error"
    COMPLETE = "complete"
    ERROR = "error"


# Phase each event is emitted in. Every ScanEventType must appear here.
EVENT_PHASE: dict[ScanEventType, ScanPhase] = {
    ScanEventType.FETCHING: ScanPhase.FETCHING,
    ScanEventType.FETCHING_DONE: ScanPhase.FETCHING,
    ScanEventType.ANALYZING: ScanPhase.ANALYZING,
    ScanEventType.ANALYZING_DONE: ScanPhase.ANALYZING,
    ScanEventType.ATTESTING: ScanPhase.ATTESTING,
    ScanEventType.ATTESTATION_SKIPPED: ScanPhase.ANALYZING,
    ScanEventType.ATTESTATION_ERROR: ScanPhase.ATTESTING,
    ScanEventType.COMPLETE: ScanPhase.COMPLETE,
    ScanEventType.ERROR: ScanPhase.ERROR,
}


@dataclass(frozen=True)
class ScanEvent:
    type: ScanEventType
    token_name: str | None = None
    token_symbol: str | None = None
    data: dict[str, Any] | None = None
    error: str | None = None
    reason: str | None = None

    @property
    def phase(self) -> ScanPhase:
        return EVENT_PHASE[self.type]

    @property
    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"status": self.type.value}
        if self.type is ScanEventType.FETCHING_DONE:
            payload["tokenName"] = self.token_name or "Unknown"
            payload["tokenSymbol"] = self.token_symbol or "???"
        elif self.type is ScanEventType.COMPLETE:
            payload["data"] = self.data
        elif self.type in (ScanEventType.ERROR, ScanEventType.ATTESTATION_ERROR):
            payload["error"] = self.error or ""
        elif self.type is ScanEventType.ATTESTATION_SKIPPED:
            payload["reason"] = self.reason
        return payload


def format_sse(event: ScanEvent) -> str:
    """One server-sent-events frame: ``data: <json>`` plus a blank line."""
    return f"data: {json.dumps(event.to_dict(), ensure_ascii=False)}\n\n"

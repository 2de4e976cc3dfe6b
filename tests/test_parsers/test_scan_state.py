"""Tests for scan phases, transitions and stream events."""

import json

import pytest

from pinioscan.parsers.scan_state import (
    EVENT_PHASE,
    TRANSITIONS,
    InvalidTransitionError,
    ScanEvent,
    ScanEventType,
    ScanPhase,
    ScanStateMachine,
    format_sse,
)


class TestTransitions:
    def test_happy_path(self) -> None:
        sm = ScanStateMachine()
        for phase in (ScanPhase.FETCHING, ScanPhase.ANALYZING, ScanPhase.ATTESTING, ScanPhase.COMPLETE):
            sm.advance(phase)
        assert sm.phase is ScanPhase.COMPLETE
        assert sm.is_terminal

    def test_skip_attesting(self) -> None:
        sm = ScanStateMachine()
        sm.advance(ScanPhase.FETCHING)
        sm.advance(ScanPhase.ANALYZING)
        sm.advance(ScanPhase.COMPLETE)
        assert sm.is_terminal

    @pytest.mark.parametrize("start", [ScanPhase.IDLE, ScanPhase.FETCHING, ScanPhase.ANALYZING, ScanPhase.ATTESTING])
    def test_error_reachable_from_non_terminal(self, start) -> None:
        assert ScanPhase.ERROR in TRANSITIONS[start]

    @pytest.mark.parametrize("terminal", [ScanPhase.COMPLETE, ScanPhase.ERROR])
    def test_terminal_accepts_nothing(self, terminal) -> None:
        assert TRANSITIONS[terminal] == frozenset()

    def test_illegal_skip(self) -> None:
        sm = ScanStateMachine()
        with pytest.raises(InvalidTransitionError):
            sm.advance(ScanPhase.ANALYZING)

    def test_no_event_after_complete(self) -> None:
        sm = ScanStateMachine()
        sm.advance(ScanPhase.FETCHING)
        sm.advance(ScanPhase.ANALYZING)
        sm.advance(ScanPhase.COMPLETE)
        with pytest.raises(InvalidTransitionError):
            sm.advance(ScanPhase.ERROR)

    def test_every_phase_has_a_row(self) -> None:
        assert set(TRANSITIONS) == set(ScanPhase)


class TestEvents:
    def test_every_event_type_has_a_phase(self) -> None:
        assert set(EVENT_PHASE) == set(ScanEventType)

    def test_wire_statuses(self) -> None:
        assert {t.value for t in ScanEventType} == {
            "fetching", "fetching_done", "analyzing", "analyzing_done", "attesting",
            "attestation_skipped", "attestation_error", "complete", "error",
        }

    def test_payloads(self) -> None:
        assert ScanEvent(ScanEventType.FETCHING).to_dict() == {"status": "fetching"}
        assert ScanEvent(ScanEventType.FETCHING_DONE, token_name="Test", token_symbol="TST").to_dict() == {
            "status": "fetching_done", "tokenName": "Test", "tokenSymbol": "TST",
        }
        assert ScanEvent(ScanEventType.FETCHING_DONE).to_dict()["tokenSymbol"] == "???"
        assert ScanEvent(ScanEventType.ATTESTATION_SKIPPED, reason="no_deployer_key").to_dict() == {
            "status": "attestation_skipped", "reason": "no_deployer_key",
        }
        assert ScanEvent(ScanEventType.COMPLETE, data={"overallScore": 30}).to_dict() == {
            "status": "complete", "data": {"overallScore": 30},
        }
        assert ScanEvent(ScanEventType.ERROR, error="boom").to_dict() == {"status": "error", "error": "boom"}

    def test_terminal_events(self) -> None:
        terminal = {t for t in ScanEventType if ScanEvent(t).is_terminal}
        assert terminal == {ScanEventType.COMPLETE, ScanEventType.ERROR}

    def test_format_sse(self) -> None:
        frame = format_sse(ScanEvent(ScanEventType.ERROR, error="Scan failed ⚠️"))
        assert frame.startswith("data: ")
        assert frame.endswith("\n\n")
        assert json.loads(frame[len("data: "):]) == {"status": "error", "error": "Scan failed ⚠️"}

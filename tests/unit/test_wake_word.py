"""
Unit tests for WakeWordMatcher and the session state table
"""

import pytest

from src.voice_session.state import ALLOWED_TRANSITIONS, SessionState, can_transition
from src.voice_session.wake_word import WakeWordMatcher


class TestWakeWordMatcher:
    """Test wake word detection and removal"""

    @pytest.fixture
    def matcher(self):
        return WakeWordMatcher("sp")

    @pytest.mark.parametrize("transcript", [
        "sp",
        "SP",
        "  sp  ",
        "sp open the file",
        "hey sp",
        "okay sp what time is it",
    ])
    def test_contains_standalone(self, matcher, transcript):
        assert matcher.contains(transcript)

    @pytest.mark.parametrize("transcript", [
        "",
        "speak",
        "spain is lovely",
        "wasp nest",
        "s p",
        "sp.",
    ])
    def test_ignores_embedded(self, matcher, transcript):
        assert not matcher.contains(transcript)

    def test_strip_removes_every_whole_word(self, matcher):
        assert matcher.strip("sp open sp the file") == "open the file"

    def test_strip_keeps_words_containing_wake_word(self, matcher):
        assert matcher.strip("SP speak about spain") == "speak about spain"

    def test_strip_only_wake_word(self, matcher):
        assert matcher.strip("sp") == ""
        assert matcher.strip("") == ""

    def test_custom_wake_word(self):
        matcher = WakeWordMatcher("Jarvis")

        assert matcher.contains("hello jarvis")
        assert matcher.strip("jarvis lights on") == "lights on"

    def test_empty_wake_word_rejected(self):
        with pytest.raises(ValueError):
            WakeWordMatcher("  ")


class TestStateTable:
    """Test legal session transitions"""

    def test_every_state_has_transitions(self):
        assert set(ALLOWED_TRANSITIONS) == set(SessionState)

    def test_every_state_can_go_idle(self):
        for state in SessionState:
            assert can_transition(state, SessionState.IDLE)

    @pytest.mark.parametrize("current,target", [
        (SessionState.IDLE, SessionState.PROCESSING),
        (SessionState.STANDBY, SessionState.PROCESSING),
        (SessionState.STANDBY, SessionState.SPEAKING),
        (SessionState.ACTIVE, SessionState.SPEAKING),
        (SessionState.SPEAKING, SessionState.PROCESSING),
    ])
    def test_illegal_transitions(self, current, target):
        assert not can_transition(current, target)

    def test_self_transition_allowed(self):
        assert can_transition(SessionState.ACTIVE, SessionState.ACTIVE)

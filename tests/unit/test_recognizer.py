"""
Unit tests for recognizer error classification and the console recognizer
"""

import io

import pytest
from unittest.mock import Mock, call

from src.voice_session.recognizer import (
    ConsoleRecognizer, ErrorAction, RecognizerErrorCode, RecognizerStartError, classify_error,
)


class TestClassifyError:

    @pytest.mark.parametrize("code,action,notice", [
        ("not-allowed", ErrorAction.TERMINATE, "mic_denied"),
        ("service-not-allowed", ErrorAction.TERMINATE, "service_blocked"),
        ("no-speech", ErrorAction.IGNORE, None),
        ("aborted", ErrorAction.RECONNECT, None),
        ("network", ErrorAction.RECONNECT, "network_error"),
        ("audio-capture", ErrorAction.RECONNECT, None),
    ])
    def test_policies(self, code, action, notice):
        policy = classify_error(code)

        assert policy.action == action
        assert policy.notice == notice

    def test_only_aborted_skips_count_on_manual_stop(self):
        assert classify_error("aborted").count_unless_manual
        assert not classify_error("network").count_unless_manual

    def test_unknown_code_parses(self):
        assert RecognizerErrorCode.parse("something-new") == RecognizerErrorCode.UNKNOWN


def control_hook(seen):
    def on_line(text):
        if text.startswith("/"):
            seen.append(text)
            return True
        return False
    return on_line


class TestConsoleRecognizer:

    @pytest.mark.asyncio
    async def test_lines_become_final_results(self):
        control = []
        session = Mock()
        recognizer = ConsoleRecognizer(stream=io.StringIO("sp hello there\n/test\n\nopen mail\n"),
                                       on_line=control_hook(control))
        recognizer.attach(session)

        recognizer.start()
        await recognizer._reader

        session.on_start.assert_called_once()
        assert session.on_result.call_args_list == [
            call("sp hello there", is_final=True, confidence=1.0),
            call("open mail", is_final=True, confidence=1.0),
        ]
        # End of input asks the owner to quit
        assert control == ["/test", "/quit"]

    @pytest.mark.asyncio
    async def test_lines_dropped_while_stopped(self):
        control = []
        session = Mock()
        recognizer = ConsoleRecognizer(stream=io.StringIO("hello\n/restart\n"), on_line=control_hook(control))
        recognizer.attach(session)

        recognizer.start()
        recognizer.stop()
        await recognizer._reader

        session.on_end.assert_called_once()
        session.on_result.assert_not_called()
        assert control == ["/restart", "/quit"]

    @pytest.mark.asyncio
    async def test_start_requires_session(self):
        with pytest.raises(RecognizerStartError):
            ConsoleRecognizer(stream=io.StringIO("")).start()

    @pytest.mark.asyncio
    async def test_double_start_rejected(self):
        recognizer = ConsoleRecognizer(stream=io.StringIO(""))
        recognizer.attach(Mock())
        recognizer.start()

        with pytest.raises(RecognizerStartError):
            recognizer.start()

        recognizer.close()

    def test_start_outside_event_loop(self):
        recognizer = ConsoleRecognizer(stream=io.StringIO(""))
        recognizer.attach(Mock())

        with pytest.raises(RecognizerStartError):
            recognizer.start()

    def test_stop_when_not_running_is_noop(self):
        session = Mock()
        recognizer = ConsoleRecognizer(stream=io.StringIO(""))
        recognizer.attach(session)

        recognizer.stop()

        session.on_end.assert_not_called()

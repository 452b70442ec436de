"""
Unit tests for the VoiceAssistant orchestrator
"""

import asyncio

import pytest
from unittest.mock import AsyncMock, Mock

from src.voice_session.api_keys import ApiKeys
from src.voice_session.assistant import SilentPlayer, VoiceAssistant
from src.voice_session.client import CommandFailedError, CommandResult
from src.voice_session.config import AssistantConfig
from src.voice_session.state import SessionState
from tests.utils.session_fakes import FakeRecognizer, FakeScheduler


@pytest.fixture
def keys():
    return ApiKeys(openai="sk-test", elevenlabs="el-key")


@pytest.fixture
def key_store(keys):
    store = Mock()
    store.load.return_value = keys
    store.save.return_value = True
    return store


@pytest.fixture
def client():
    client = Mock()
    client.process_command = AsyncMock(return_value=CommandResult(
        response="It is noon.",
        audio_url="/api/audio/abc",
        tools_used=["openai_gpt"],
    ))
    client.fetch_audio = AsyncMock(return_value=b"mp3")
    client.test_keys = AsyncMock(return_value={"openai": {"status": "success", "message": "ok"}})
    client.close = AsyncMock()
    return client


@pytest.fixture
def player():
    player = Mock()
    player.enabled = True
    player.play = AsyncMock(return_value=True)
    return player


@pytest.fixture
def recognizer():
    return FakeRecognizer()


@pytest.fixture
def assistant(recognizer, client, player, key_store):
    """Create VoiceAssistant with every collaborator faked"""
    return VoiceAssistant(
        AssistantConfig(),
        recognizer=recognizer,
        scheduler=FakeScheduler(),
        client=client,
        player=player,
        ui=Mock(),
        key_store=key_store,
    )


async def settle(assistant):
    """Wait for command tasks spawned by the session"""
    while assistant._tasks:
        await asyncio.gather(*list(assistant._tasks))


def notice_kinds(assistant):
    return [c.args[0].kind for c in assistant.ui.show_notice.call_args_list]


class TestHandleCommand:

    @pytest.mark.asyncio
    async def test_reply_with_audio(self, assistant, client, player, keys):
        assert assistant.session.submit_text("what time is it")
        assert assistant.session.state == SessionState.PROCESSING

        await settle(assistant)

        client.process_command.assert_awaited_once_with("what time is it", keys)
        client.fetch_audio.assert_awaited_once_with("/api/audio/abc")
        player.play.assert_awaited_once_with(b"mp3")
        assert assistant.session.state == SessionState.ACTIVE

        messages = assistant.transcript.messages
        assert [m.type for m in messages] == ["user", "assistant"]
        assert messages[1].content == "It is noon."
        assert messages[1].audio_url == "/api/audio/abc"

        states = [c.args[0] for c in assistant.ui.show_state.call_args_list]
        assert SessionState.SPEAKING in states

    @pytest.mark.asyncio
    async def test_reply_without_audio(self, assistant, client):
        client.process_command.return_value = CommandResult(response="Done.")

        assistant.session.submit_text("do it")
        await settle(assistant)

        client.fetch_audio.assert_not_awaited()
        assert assistant.session.state == SessionState.ACTIVE

    @pytest.mark.asyncio
    async def test_audio_disabled(self, assistant, client, player):
        player.enabled = False

        assistant.session.submit_text("do it")
        await settle(assistant)

        client.fetch_audio.assert_not_awaited()
        player.play.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_audio_fetch_failure_ends_speaking(self, assistant, client, player):
        client.fetch_audio.side_effect = CommandFailedError("Audio unavailable (HTTP 404)", 404)

        assistant.session.submit_text("do it")
        await settle(assistant)

        player.play.assert_not_awaited()
        assert assistant.session.state == SessionState.ACTIVE

    @pytest.mark.asyncio
    async def test_command_failure(self, assistant, client):
        client.process_command.side_effect = CommandFailedError("OpenAI quota exceeded", 500)

        assistant.session.submit_text("do it")
        await settle(assistant)

        assert assistant.transcript.messages[-1].content == "❌ Error: OpenAI quota exceeded"
        assert "command_failed" in notice_kinds(assistant)
        assert assistant.session.state == SessionState.ACTIVE

    @pytest.mark.asyncio
    async def test_unexpected_error_releases_session(self, assistant, client):
        client.process_command.side_effect = AttributeError("'list' object has no attribute 'get'")

        assistant.session.submit_text("what time is it")
        await settle(assistant)

        assert "command_failed" in notice_kinds(assistant)
        assert assistant.session.state == SessionState.ACTIVE

        client.process_command.side_effect = None
        assert assistant.session.submit_text("what time is it")
        await settle(assistant)
        assert assistant.transcript.messages[-1].content == "It is noon."

    @pytest.mark.asyncio
    async def test_missing_openai_key_refused_locally(self, assistant, client):
        assistant.keys.openai = ""

        assistant.session.submit_text("do it")
        await settle(assistant)

        client.process_command.assert_not_awaited()
        assert "config_required" in notice_kinds(assistant)
        assert assistant.transcript.messages == []
        assert assistant.session.state == SessionState.ACTIVE


class TestKeys:

    def test_set_key_saves(self, assistant, key_store):
        assert assistant.set_key("SerpAPI", " serp-key ")

        assert assistant.keys.serpapi == "serp-key"
        key_store.save.assert_called_once_with(assistant.keys)

    def test_unknown_provider(self, assistant, key_store):
        assert not assistant.set_key("cohere", "x")

        key_store.save.assert_not_called()
        assistant.ui.show_error.assert_called_once()

    @pytest.mark.asyncio
    async def test_test_api_keys(self, assistant, client):
        await assistant.test_api_keys()

        client.test_keys.assert_awaited_once_with(assistant.keys)
        assistant.ui.show_key_results.assert_called_once_with({"openai": {"status": "success", "message": "ok"}})

    @pytest.mark.asyncio
    async def test_test_api_keys_failure(self, assistant, client):
        client.test_keys.side_effect = CommandFailedError("Could not reach server")

        await assistant.test_api_keys()

        assistant.ui.show_key_results.assert_not_called()
        assistant.ui.show_error.assert_called_once()


class TestControlLines:

    def test_plain_text_not_consumed(self, assistant):
        assert not assistant.handle_control_line("open the file")

    def test_stop_and_restart(self, assistant, recognizer):
        assistant.session.start()
        assistant.session.on_start()

        assert assistant.handle_control_line("/stop")
        assert assistant.session.state == SessionState.IDLE
        assert assistant.session.manual_stop

        assistant.session.on_end()
        assert assistant.handle_control_line("/restart")
        assert recognizer.start_calls == 2

    def test_keys_command(self, assistant):
        assert assistant.handle_control_line("/keys openai sk-new")

        assert assistant.keys.openai == "sk-new"

    def test_keys_listing(self, assistant):
        assistant.handle_control_line("/keys")

        assert assistant.ui.show_info.call_count == 3

    @pytest.mark.asyncio
    async def test_say_dispatches(self, assistant, client):
        assistant.handle_control_line("/say what is the weather")
        await settle(assistant)

        client.process_command.assert_awaited_once()
        assert client.process_command.call_args.args[0] == "what is the weather"

    @pytest.mark.asyncio
    async def test_test_command(self, assistant, client):
        assistant.handle_control_line("/test")
        await settle(assistant)

        client.test_keys.assert_awaited_once()

    def test_unknown_command(self, assistant):
        assert assistant.handle_control_line("/dance")

        assistant.ui.show_error.assert_called_once()

    def test_clear(self, assistant):
        assistant.transcript.add_user_message("hi")

        assistant.handle_control_line("/clear")

        assert assistant.transcript.messages == []


class TestRun:

    @pytest.mark.asyncio
    async def test_run_until_quit(self, assistant, recognizer, client):
        task = asyncio.create_task(assistant.run())
        await asyncio.sleep(0)

        assert recognizer.start_calls == 1
        assistant.ui.show_banner.assert_called_once_with(assistant.config.client.server_url, "sp")

        assistant.handle_control_line("/quit")
        await task

        client.close.assert_awaited_once()
        assert assistant.session.state == SessionState.IDLE
        assert "config_required" not in notice_kinds(assistant)

    @pytest.mark.asyncio
    async def test_run_without_openai_key_warns(self, assistant):
        assistant.keys.openai = ""

        task = asyncio.create_task(assistant.run())
        await asyncio.sleep(0)
        assistant.handle_control_line("/quit")
        await task

        assert notice_kinds(assistant)[0] == "config_required"


class TestPlayerSelection:

    def test_no_audio_uses_silent_player(self, recognizer, client, key_store):
        config = AssistantConfig()
        config.client.play_audio = False

        assistant = VoiceAssistant(
            config,
            recognizer=recognizer,
            scheduler=FakeScheduler(),
            client=client,
            ui=Mock(),
            key_store=key_store,
        )

        assert isinstance(assistant.player, SilentPlayer)
        assert not assistant.player.enabled

"""Main voice client orchestrator"""

import asyncio
import logging
from dataclasses import fields
from typing import Optional, Set

from .config import AssistantConfig
from .api_keys import ApiKeys, KeyStore
from .client import AssistantClient, CommandFailedError
from .recognizer import ConsoleRecognizer, Recognizer
from .session import Notice, VoiceSession
from .state import SessionState
from .timers import AsyncioScheduler, Scheduler
from .transcript import ChatTranscript
from .ui.console import AssistantUI

log = logging.getLogger(__name__)

CONFIG_REQUIRED = Notice(
    kind="config_required",
    title="Configuration Required",
    description="Please set your OpenAI API key with /keys openai <key>",
)

PROVIDERS = [f.name for f in fields(ApiKeys)]


class SilentPlayer:
    """Stands in for AudioPlayer when playback is off"""

    enabled = False

    async def play(self, audio: bytes) -> bool:
        return False

    def stop(self):
        pass


def _default_player(play_audio: bool):
    if not play_audio:
        # sounddevice needs PortAudio at import time
        return SilentPlayer()
    from .audio.player import AudioPlayer
    return AudioPlayer(enabled=True)


class VoiceAssistant:
    """Wires the voice session to the server, the transcript and the UI"""

    def __init__(
        self,
        config: AssistantConfig,
        recognizer: Optional[Recognizer] = None,
        scheduler: Optional[Scheduler] = None,
        client: Optional[AssistantClient] = None,
        player=None,
        ui: Optional[AssistantUI] = None,
        key_store: Optional[KeyStore] = None,
    ):
        """
        Initialize voice assistant

        Args:
            config: Assistant configuration
            recognizer: Speech recognizer, defaults to reading lines from stdin
            scheduler: Timer source, defaults to the running event loop
            client: Server client
            player: Reply audio player
            ui: Console UI
            key_store: Persistent API key storage
        """
        self.config = config
        self.ui = ui or AssistantUI()

        self.key_store = key_store or KeyStore(config.client.storage_path)
        self.keys = self.key_store.load()

        self.client = client or AssistantClient(config.client.server_url, timeout=config.client.request_timeout)
        if player is None:
            player = _default_player(config.client.play_audio)
        self.player = player
        self.transcript = ChatTranscript()

        self.recognizer = recognizer or ConsoleRecognizer(on_line=self.handle_control_line)
        self.session = VoiceSession(
            recognizer=self.recognizer,
            scheduler=scheduler or AsyncioScheduler(),
            on_command=self._on_command,
            config=config.session,
            on_notice=self.ui.show_notice,
            on_state_change=self._on_state_change,
        )
        if hasattr(self.recognizer, "attach"):
            self.recognizer.attach(self.session)

        self._tasks: Set[asyncio.Task] = set()
        self._done = asyncio.Event()

        log.info("Voice assistant initialized")

    def _on_state_change(self, old: SessionState, new: SessionState):
        self.ui.show_state(new)

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _on_command(self, command: str):
        self._spawn(self.handle_command(command))

    async def handle_command(self, command: str):
        """Send a dispatched command to the server and present the reply"""
        if not self.keys.openai:
            self.ui.show_notice(CONFIG_REQUIRED)
            self.session.finish_processing()
            return

        self.ui.show_user_message(command)
        self.transcript.add_user_message(command)

        try:
            result = await self.client.process_command(command, self.keys)
        except CommandFailedError as e:
            log.error(f"Command failed: {e}")
            self._command_failed(str(e))
            return
        except Exception as e:
            log.exception(f"Unexpected error handling command: {e}")
            self._command_failed("Unexpected error while processing the command")
            return

        self.transcript.add_assistant_message(result.response, audio_url=result.audio_url)
        self.ui.show_assistant_message(result.response, tools_used=result.tools_used)

        has_audio = bool(result.audio_url) and self.player.enabled
        self.session.finish_processing(has_audio=has_audio)
        if not has_audio:
            return

        try:
            audio = await self.client.fetch_audio(result.audio_url)
            await self.player.play(audio)
        except CommandFailedError as e:
            log.warning(f"Could not play reply audio: {e}")
        except Exception as e:
            log.exception(f"Error playing reply audio: {e}")
        finally:
            self.session.finish_speaking()

    def _command_failed(self, message: str):
        self.transcript.add_error_message(message)
        self.ui.show_notice(Notice(kind="command_failed", title="Command Failed", description=message))
        self.session.finish_processing()

    def set_key(self, provider: str, value: str) -> bool:
        """Set one provider key and persist the key set"""
        provider = provider.lower()
        if provider not in PROVIDERS:
            self.ui.show_error(f"Unknown provider '{provider}', expected one of: {', '.join(PROVIDERS)}")
            return False

        setattr(self.keys, provider, value.strip())
        if self.key_store.save(self.keys):
            self.ui.show_info("API keys saved")
        return True

    async def test_api_keys(self):
        """Ask the server to verify every configured key"""
        self.ui.show_info("Testing API keys...")
        try:
            results = await self.client.test_keys(self.keys)
        except CommandFailedError as e:
            self.ui.show_error(f"Key test failed: {e}")
            return
        self.ui.show_key_results(results)

    def _show_keys(self):
        for provider in PROVIDERS:
            status = "set" if getattr(self.keys, provider) else "not set"
            self.ui.show_info(f"{provider}: {status}")

    def handle_control_line(self, line: str) -> bool:
        """
        Handle a slash command typed on the console

        Returns:
            True if the line was a control command
        """
        if not line.startswith("/"):
            return False

        parts = line.split(maxsplit=2)
        command = parts[0].lower()

        if command in ("/quit", "/exit"):
            self._done.set()
        elif command == "/stop":
            self.session.stop()
            self.ui.show_info("Listening stopped, type /restart to resume")
        elif command == "/restart":
            self.session.manual_restart()
        elif command == "/keys":
            if len(parts) == 3:
                self.set_key(parts[1], parts[2])
            else:
                self._show_keys()
        elif command == "/test":
            self._spawn(self.test_api_keys())
        elif command == "/say":
            text = line[len(parts[0]):].strip()
            if not self.session.submit_text(text):
                self.ui.show_info("Command not sent, still working on the last one")
        elif command == "/clear":
            self.transcript.clear()
        else:
            self.ui.show_error(f"Unknown command: {command}")

        return True

    async def run(self):
        """Run until /quit or end of input"""
        self.ui.show_banner(self.config.client.server_url, self.config.session.wake_word)

        if not self.keys.openai:
            self.ui.show_notice(CONFIG_REQUIRED)

        self.session.start()

        try:
            await self._done.wait()
        finally:
            await self.shutdown()

    async def shutdown(self):
        """Stop listening and release resources"""
        log.info("Cleaning up resources...")

        self.session.close()
        if hasattr(self.recognizer, "close"):
            self.recognizer.close()

        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

        await self.client.close()
        log.info("Cleanup complete")

"""Configuration management for the SP.AI voice client"""

import os
from pathlib import Path
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional
from dotenv import load_dotenv
from .config_loader import load_voice_profile

# Load environment variables
load_dotenv()

API_KEYS_STORAGE_KEY = "sp-ai-api-keys"


@dataclass
class VoiceSessionConfig:
    """Wake word, debounce and reconnect tuning"""
    wake_word: str = "sp"
    debounce_seconds: float = 2.0
    inactivity_timeout: float = 600.0
    max_reconnect_attempts: int = 3
    reconnect_delay: float = 1.0
    start_retry_delay: float = 2.0
    min_confidence: float = 0.7
    # Transcripts must be longer than these to arm the debounce timer / dispatch
    min_transcript_length: int = 1
    min_command_length: int = 2

    def update(self, overrides: Dict[str, Any]) -> None:
        """Apply known keys from a profile, ignoring anything else"""
        known = {f.name for f in fields(self)}
        for key, value in overrides.items():
            if key in known:
                setattr(self, key, type(getattr(self, key))(value))


@dataclass
class ClientConfig:
    """Where the server lives and where keys are kept"""
    server_url: str = field(default_factory=lambda: os.getenv("SP_AI_SERVER_URL", "http://localhost:8000"))
    storage_path: Path = field(
        default_factory=lambda: Path(
            os.getenv("SP_AI_STORAGE_PATH", str(Path.home() / ".local/share/sp-ai/storage.json"))
        )
    )
    request_timeout: float = field(default_factory=lambda: float(os.getenv("SP_AI_REQUEST_TIMEOUT", "60")))
    play_audio: bool = field(default_factory=lambda: os.getenv("SP_AI_PLAY_AUDIO", "true").lower() == "true")


@dataclass
class AssistantConfig:
    """Main voice client configuration"""
    session: VoiceSessionConfig = field(default_factory=VoiceSessionConfig)
    client: ClientConfig = field(default_factory=ClientConfig)

    environment: str = field(default_factory=lambda: os.getenv("ENVIRONMENT", "development"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", ""))

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors"""
        errors = []

        if not self.client.server_url.startswith(("http://", "https://")):
            errors.append("SP_AI_SERVER_URL must be an http(s) URL")

        if not 0.0 <= self.session.min_confidence <= 1.0:
            errors.append("min_confidence must be between 0 and 1")

        if self.session.max_reconnect_attempts < 0:
            errors.append("max_reconnect_attempts cannot be negative")

        if self.session.debounce_seconds <= 0 or self.session.inactivity_timeout <= 0:
            errors.append("Timer durations must be positive")

        return errors


def create_default_config(
    profile: Optional[str] = None,
    server_url: Optional[str] = None,
    wake_word: Optional[str] = None,
    play_audio: Optional[bool] = None,
) -> AssistantConfig:
    """
    Create a configuration with optional overrides

    Args:
        profile: Name of a voice profile to load (default, patient, quick)
        server_url: Base URL of the SP.AI server
        wake_word: Wake word override (applied after the profile)
        play_audio: Whether to play reply audio
    """
    config = AssistantConfig()

    if profile:
        config.session.update(load_voice_profile(profile))

    if server_url:
        config.client.server_url = server_url.rstrip("/")

    if wake_word:
        config.session.wake_word = wake_word

    if play_audio is not None:
        config.client.play_audio = play_audio

    return config

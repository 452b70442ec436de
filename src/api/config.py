"""Configuration management for the SP.AI API server"""

import os
from dataclasses import dataclass, field
from typing import Dict, List

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


@dataclass
class ProviderKeys:
    """Server-side fallback keys for the hosted providers"""
    openai: str = field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""))
    elevenlabs: str = field(default_factory=lambda: os.getenv("ELEVENLABS_API_KEY", ""))
    serpapi: str = field(default_factory=lambda: os.getenv("SERPAPI_KEY", ""))

    def status(self) -> Dict[str, bool]:
        """Which providers have a key configured"""
        return {
            "openai": bool(self.openai),
            "elevenlabs": bool(self.elevenlabs),
            "serpapi": bool(self.serpapi),
        }


@dataclass
class RateLimitConfig:
    """Fixed window rate limit settings"""
    max_requests: int = field(default_factory=lambda: int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100")))
    window_seconds: float = field(default_factory=lambda: float(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60")))


@dataclass
class ServerConfig:
    """Main server configuration"""
    keys: ProviderKeys = field(default_factory=ProviderKeys)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)

    environment: str = field(default_factory=lambda: os.getenv("ENVIRONMENT", "development"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", ""))
    version: str = field(default_factory=lambda: os.getenv("APP_VERSION", "1.0.0"))

    openai_model: str = field(default_factory=lambda: os.getenv("OPENAI_MODEL", "gpt-4o"))
    elevenlabs_voice_id: str = field(
        default_factory=lambda: os.getenv("ELEVENLABS_VOICE_ID", "21m00Tcm4TlvDq8ikWAM")
    )
    audio_clip_ttl_minutes: int = field(default_factory=lambda: int(os.getenv("AUDIO_CLIP_TTL_MINUTES", "10")))

    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors"""
        errors = []

        if self.rate_limit.max_requests < 1:
            errors.append("RATE_LIMIT_MAX_REQUESTS must be at least 1")

        if self.rate_limit.window_seconds <= 0:
            errors.append("RATE_LIMIT_WINDOW_SECONDS must be positive")

        if self.keys.openai and not self.keys.openai.startswith("sk-"):
            errors.append("OPENAI_API_KEY must start with 'sk-'")

        return errors


# Prompt templates
SYSTEM_PROMPT = """You are SP.AI, a next-generation voice-based AI assistant inspired by Jarvis from Iron Man. You respond to voice commands with intelligence, efficiency, and a calm, professional demeanor.

Your capabilities include:
- Intelligent reasoning and conversation using GPT-4
- Web search for real-time information
- Reading and summarizing local files
- Running approved scripts and commands (with confirmation)
- Speaking responses naturally

Tools available:
- openai_gpt(query) - for intelligent reasoning
- elevenlabs_speak(text) - for voice output
- search_web(query) - for web searches
- read_file(path) - for file access
- run_script(path) - for script execution

Always:
- Confirm before running sensitive commands
- Be voice-friendly and conversational
- Speak clearly and calmly
- Provide helpful, accurate responses
- Ask for clarification when needed

Respond as SP.AI would - professional, intelligent, and ready to assist."""

COMMAND_PROMPT_TEMPLATE = """User command: "{command}"

Available tools: {tools}

Process this command and provide an appropriate response. If you need to use tools like web search, file reading, or script execution, describe what you would do and provide a helpful response."""

"""HTTP client for the SP.AI server"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from .api_keys import ApiKeys

log = logging.getLogger(__name__)


class CommandFailedError(Exception):
    """The server rejected or failed a request"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


@dataclass
class CommandResult:
    """Assistant reply to a command"""
    response: str
    audio_url: str = ""
    tools_used: List[str] = field(default_factory=list)
    api_status: Dict[str, bool] = field(default_factory=dict)


class AssistantClient:
    """Talks to the /api routes of the server"""

    def __init__(self, base_url: str, timeout: float = 60.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize client

        Args:
            base_url: Server root, e.g. http://localhost:8000
            timeout: Request timeout in seconds
            transport: Optional httpx transport, used by tests
        """
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = await self._client.post(path, json=payload)
        except httpx.RequestError as e:
            log.error(f"Request to {path} failed: {e}")
            raise CommandFailedError(f"Could not reach server: {e}") from e

        log.debug(f"API response status: {response.status_code}")
        try:
            data = response.json()
        except ValueError:
            data = {}

        if not isinstance(data, dict):
            data = {}
            if not response.is_error:
                raise CommandFailedError(f"Unexpected response from {path}", response.status_code)

        if response.is_error:
            raise CommandFailedError(data.get("error") or f"HTTP {response.status_code}", response.status_code)

        return data

    async def process_command(self, command: str, keys: ApiKeys) -> CommandResult:
        """Send a command and return the assistant reply"""
        log.info("Sending command to API", extra={"data": {"command": command[:50], **keys.summary()}})

        data = await self._post("/api/process-command", {"command": command, "apiKeys": keys.to_dict()})

        return CommandResult(
            response=data.get("response", ""),
            audio_url=data.get("audioUrl") or "",
            tools_used=data.get("toolsUsed", []),
            api_status=data.get("apiStatus", {}),
        )

    async def test_keys(self, keys: ApiKeys) -> Dict[str, Dict[str, str]]:
        """Ask the server to verify each provider key"""
        data = await self._post("/api/test-keys", {"apiKeys": keys.to_dict()})
        return data.get("results", {})

    def resolve_url(self, url: str) -> str:
        """Absolute URL for a server-relative path"""
        if url.startswith(("http://", "https://")):
            return url
        return f"{self.base_url}/{url.lstrip('/')}"

    async def fetch_audio(self, url: str) -> bytes:
        """Download reply audio"""
        try:
            response = await self._client.get(self.resolve_url(url))
        except httpx.RequestError as e:
            raise CommandFailedError(f"Could not fetch audio: {e}") from e

        if response.is_error:
            raise CommandFailedError(f"Audio unavailable (HTTP {response.status_code})", response.status_code)
        return response.content

    async def close(self):
        await self._client.aclose()

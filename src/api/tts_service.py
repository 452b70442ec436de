"""TTS service using the ElevenLabs HTTP API"""

import logging
from typing import Dict, List, Optional

import httpx

log = logging.getLogger(__name__)

ELEVENLABS_BASE_URL = "https://api.elevenlabs.io/v1"


class TTSServiceError(Exception):
    """Speech synthesis failed"""

    def __init__(self, message: str, status_code: int = 0):
        self.status_code = status_code
        super().__init__(message)


class TTSService:
    """ElevenLabs text-to-speech"""

    def __init__(
        self,
        voice_id: str = "21m00Tcm4TlvDq8ikWAM",
        model_id: str = "eleven_monolingual_v1",
        base_url: str = ELEVENLABS_BASE_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize TTS service

        Args:
            voice_id: ElevenLabs voice to synthesize with
            model_id: ElevenLabs model name
            base_url: API root, overridable for testing
            timeout: HTTP timeout in seconds
            transport: Optional httpx transport, used by tests
        """
        self.voice_id = voice_id
        self.model_id = model_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self.voice_settings = {"stability": 0.5, "similarity_boost": 0.5}

        log.info(f"TTS service initialized with voice: {voice_id}")

    async def synthesize(self, text: str, api_key: str) -> bytes:
        """
        Synthesize speech and return complete audio data

        Args:
            text: Text to synthesize
            api_key: ElevenLabs key

        Returns:
            MP3 audio as bytes

        Raises:
            TTSServiceError: on a non-2xx response or transport failure
        """
        if not text or not text.strip():
            raise TTSServiceError("No text to synthesize")

        url = f"{self.base_url}/text-to-speech/{self.voice_id}"
        headers = {
            "Accept": "audio/mpeg",
            "Content-Type": "application/json",
            "xi-api-key": api_key,
        }
        payload = {
            "text": text,
            "model_id": self.model_id,
            "voice_settings": self.voice_settings,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, headers=headers, json=payload)
        except httpx.RequestError as e:
            log.error(f"Speech generation failed: {e}")
            raise TTSServiceError(f"ElevenLabs request failed: {e}") from e

        if response.status_code != 200:
            log.error(f"Speech generation failed with status {response.status_code}")
            raise TTSServiceError(f"ElevenLabs API error: {response.status_code}", response.status_code)

        return response.content

    async def _get_voices(self, api_key: str) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.get(f"{self.base_url}/voices", headers={"xi-api-key": api_key})

        if not response.is_success:
            raise TTSServiceError(f"ElevenLabs API error: {response.status_code}", response.status_code)
        return response

    async def list_voices(self, api_key: str) -> List[Dict]:
        """Fetch the voices available to a key"""
        response = await self._get_voices(api_key)
        try:
            data = response.json()
        except ValueError as e:
            raise TTSServiceError("ElevenLabs returned an unreadable voice list", response.status_code) from e

        if not isinstance(data, dict):
            raise TTSServiceError("ElevenLabs returned an unreadable voice list", response.status_code)
        return data.get("voices", [])

    async def check_key(self, api_key: str) -> Dict[str, str]:
        """
        Verify a key by listing voices

        Returns:
            Dict with status (success, error) and message
        """
        try:
            await self._get_voices(api_key)
        except TTSServiceError as e:
            if e.status_code == 401:
                return {"status": "error", "message": "Invalid API key"}
            return {"status": "error", "message": "Connection failed"}
        except httpx.RequestError as e:
            log.warning(f"ElevenLabs key check network error: {e}")
            return {"status": "error", "message": "Network error"}

        return {"status": "success", "message": "ElevenLabs connection verified"}

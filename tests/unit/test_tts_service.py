"""
Unit tests for TTSService
"""

import json

import httpx
import pytest

from src.api.tts_service import TTSService, TTSServiceError


def service_with(handler):
    return TTSService(voice_id="voice-1", transport=httpx.MockTransport(handler))


class TestSynthesize:

    @pytest.mark.asyncio
    async def test_returns_audio(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["key"] = request.headers["xi-api-key"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, content=b"ID3mp3data")

        audio = await service_with(handler).synthesize("Hello there", "el-key")

        assert audio == b"ID3mp3data"
        assert seen["url"] == "https://api.elevenlabs.io/v1/text-to-speech/voice-1"
        assert seen["key"] == "el-key"
        assert seen["body"] == {
            "text": "Hello there",
            "model_id": "eleven_monolingual_v1",
            "voice_settings": {"stability": 0.5, "similarity_boost": 0.5},
        }

    @pytest.mark.asyncio
    async def test_error_status(self):
        service = service_with(lambda request: httpx.Response(401, json={"detail": "bad key"}))

        with pytest.raises(TTSServiceError) as exc_info:
            await service.synthesize("Hello", "el-bad")

        assert str(exc_info.value) == "ElevenLabs API error: 401"
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TTSServiceError):
            await service_with(handler).synthesize("Hello", "el-key")

    @pytest.mark.asyncio
    async def test_empty_text(self):
        with pytest.raises(TTSServiceError):
            await service_with(lambda request: httpx.Response(200)).synthesize("  ", "el-key")


class TestCheckKey:

    @pytest.mark.asyncio
    async def test_valid_key(self):
        service = service_with(lambda request: httpx.Response(200, json={"voices": [{"voice_id": "a"}]}))

        assert await service.check_key("el-key") == {"status": "success", "message": "ElevenLabs connection verified"}

    @pytest.mark.asyncio
    async def test_invalid_key(self):
        service = service_with(lambda request: httpx.Response(401))

        assert await service.check_key("el-bad") == {"status": "error", "message": "Invalid API key"}

    @pytest.mark.asyncio
    async def test_server_error(self):
        service = service_with(lambda request: httpx.Response(503))

        assert await service.check_key("el-key") == {"status": "error", "message": "Connection failed"}

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        assert await service_with(handler).check_key("el-key") == {"status": "error", "message": "Network error"}

    @pytest.mark.asyncio
    async def test_non_json_success_counts_as_valid(self):
        service = service_with(lambda request: httpx.Response(200, text="<html>ok</html>", headers={"content-type": "text/html"}))

        assert (await service.check_key("el-key"))["status"] == "success"

    @pytest.mark.asyncio
    async def test_list_voices_unreadable_body(self):
        service = service_with(lambda request: httpx.Response(200, text="<html>ok</html>"))

        with pytest.raises(TTSServiceError):
            await service.list_voices("el-key")

    @pytest.mark.asyncio
    async def test_list_voices(self):
        service = service_with(lambda request: httpx.Response(200, json={"voices": [{"voice_id": "a"}]}))

        assert await service.list_voices("el-key") == [{"voice_id": "a"}]

"""Playback of reply audio through the default output device"""

import io
import asyncio
import logging

import sounddevice as sd
import soundfile as sf

log = logging.getLogger(__name__)


class AudioPlayer:
    """Decode and play audio clips"""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self.should_stop = False

    def stop(self):
        """Stop current playback"""
        self.should_stop = True
        sd.stop()

    def _play_blocking(self, audio: bytes):
        data, samplerate = sf.read(io.BytesIO(audio))

        # Check before playing, stop() may have been called while decoding
        if self.should_stop:
            return

        sd.play(data, samplerate)
        sd.wait()

    async def play(self, audio: bytes) -> bool:
        """
        Play encoded audio (MP3 or WAV)

        Returns:
            True if playback ran to completion
        """
        if not self.enabled or not audio:
            return False

        self.should_stop = False

        try:
            await asyncio.to_thread(self._play_blocking, audio)
        except (sf.LibsndfileError, sd.PortAudioError) as e:
            log.error(f"Error playing audio: {e}")
            return False

        return not self.should_stop

"""In-memory store for synthesized speech clips served by URL"""

import uuid
import logging
import asyncio
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional
from dataclasses import dataclass

log = logging.getLogger(__name__)


@dataclass
class AudioClip:
    """Synthesized audio waiting to be fetched by the client"""
    clip_id: str
    audio: bytes
    media_type: str
    created_at: datetime
    expires_at: datetime

    @property
    def size(self) -> int:
        return len(self.audio)


class AudioClipStore:
    """Holds audio clips until they expire"""

    def __init__(
        self,
        ttl_minutes: int = 10,
        max_clips: int = 200,
        cleanup_interval: int = 60,
        now: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize audio clip store

        Args:
            ttl_minutes: Minutes a clip stays retrievable
            max_clips: Oldest clips are evicted beyond this count
            cleanup_interval: Seconds between cleanup runs
            now: Time source
        """
        self.clips: Dict[str, AudioClip] = {}
        self.ttl_minutes = ttl_minutes
        self.max_clips = max_clips
        self.cleanup_interval = cleanup_interval
        self._now = now
        self._cleanup_task: Optional[asyncio.Task] = None
        self._cleanup_hooks: List[Callable[[], object]] = []
        log.info(f"Audio clip store initialized (ttl: {ttl_minutes}m, max clips: {max_clips})")

    def add_cleanup_hook(self, hook: Callable[[], object]):
        """Run an extra callable on every cleanup pass"""
        self._cleanup_hooks.append(hook)

    async def start_cleanup_task(self):
        """Start background cleanup task"""
        if self._cleanup_task is None:
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())
            log.info("Started audio clip cleanup task")

    async def stop_cleanup_task(self):
        """Stop background cleanup task"""
        if self._cleanup_task:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None
            log.info("Stopped audio clip cleanup task")

    async def _cleanup_loop(self):
        """Background task to drop expired clips"""
        while True:
            try:
                await asyncio.sleep(self.cleanup_interval)
                self.cleanup_expired()
                for hook in self._cleanup_hooks:
                    hook()
            except asyncio.CancelledError:
                break
            except Exception as e:
                log.error(f"Error in cleanup loop: {e}")

    def cleanup_expired(self) -> int:
        """Remove expired clips, returns how many were removed"""
        now = self._now()
        expired = [clip_id for clip_id, clip in self.clips.items() if clip.expires_at < now]

        for clip_id in expired:
            del self.clips[clip_id]

        if expired:
            log.info(f"Cleaned up {len(expired)} expired audio clips")

        return len(expired)

    def add_clip(self, audio: bytes, media_type: str = "audio/mpeg") -> str:
        """Store audio and return its clip ID"""
        if len(self.clips) >= self.max_clips:
            self.cleanup_expired()
        while len(self.clips) >= self.max_clips:
            oldest = min(self.clips, key=lambda cid: self.clips[cid].created_at)
            log.info(f"Evicting oldest audio clip {oldest} to make room")
            del self.clips[oldest]

        clip_id = uuid.uuid4().hex
        now = self._now()
        self.clips[clip_id] = AudioClip(
            clip_id=clip_id,
            audio=audio,
            media_type=media_type,
            created_at=now,
            expires_at=now + timedelta(minutes=self.ttl_minutes),
        )

        log.debug(f"Stored audio clip {clip_id} ({len(audio)} bytes)")
        return clip_id

    def get_clip(self, clip_id: str) -> Optional[AudioClip]:
        """Return a clip if it exists and has not expired"""
        clip = self.clips.get(clip_id)

        if not clip:
            log.warning(f"Audio clip not found: {clip_id}")
            return None

        if clip.expires_at < self._now():
            log.warning(f"Audio clip expired: {clip_id}")
            del self.clips[clip_id]
            return None

        return clip

    def get_stats(self) -> Dict[str, int]:
        """Get store statistics"""
        now = self._now()
        return {
            "total_clips": len(self.clips),
            "active_clips": sum(1 for c in self.clips.values() if c.expires_at >= now),
            "total_bytes": sum(c.size for c in self.clips.values()),
        }

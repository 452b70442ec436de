"""Wake word matching and removal on recognizer transcripts"""

import re
import logging

log = logging.getLogger(__name__)


class WakeWordMatcher:
    """Matches a wake token spoken as a standalone word"""

    def __init__(self, wake_word: str = "sp"):
        """
        Initialize wake word matcher

        Args:
            wake_word: Token that activates the session, case-insensitive
        """
        if not wake_word or not wake_word.strip():
            raise ValueError("Wake word cannot be empty")

        self.wake_word = wake_word.strip().lower()
        escaped = re.escape(self.wake_word)

        # Exact, prefix, suffix or interior match delimited by whitespace
        self._standalone = re.compile(rf"(?:^|\s){escaped}(?:\s|$)", re.IGNORECASE)
        # Whole-word removal, so "sp" inside "speak" survives
        self._whole_word = re.compile(rf"\b{escaped}\b", re.IGNORECASE)

        log.debug(f"Wake word matcher ready for '{self.wake_word}'")

    def contains(self, transcript: str) -> bool:
        """True when the transcript holds the wake word as its own word"""
        if not transcript:
            return False
        return bool(self._standalone.search(transcript.strip()))

    def strip(self, transcript: str) -> str:
        """Remove every whole-word occurrence of the wake word and tidy whitespace"""
        if not transcript:
            return ""
        cleaned = self._whole_word.sub("", transcript)
        return " ".join(cleaned.split())

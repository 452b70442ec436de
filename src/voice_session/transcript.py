"""Chat transcript held in memory for the lifetime of the client"""

import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Dict, Any

log = logging.getLogger(__name__)


@dataclass
class Message:
    """One user utterance or assistant reply"""
    id: str
    type: str  # "user" or "assistant"
    content: str
    timestamp: datetime = field(default_factory=datetime.now)
    audio_url: Optional[str] = None


class ChatTranscript:
    """Ordered messages of the current run, never persisted"""

    def __init__(self):
        self.messages: List[Message] = []
        self._ids = itertools.count(1)

    def _next_id(self) -> str:
        return f"{int(datetime.now().timestamp() * 1000)}-{next(self._ids)}"

    def add_user_message(self, content: str) -> Message:
        """Add user message to history"""
        message = Message(id=self._next_id(), type="user", content=content)
        self.messages.append(message)
        return message

    def add_assistant_message(self, content: str, audio_url: Optional[str] = None) -> Message:
        """Add assistant message to history"""
        message = Message(id=self._next_id(), type="assistant", content=content, audio_url=audio_url or None)
        self.messages.append(message)
        return message

    def add_error_message(self, error: str) -> Message:
        """Record a failed command as an assistant message"""
        return self.add_assistant_message(f"❌ Error: {error}")

    def clear(self):
        """Clear conversation history"""
        self.messages = []
        log.info("Conversation history cleared")

    def get_summary(self) -> Dict[str, Any]:
        """Get transcript summary metadata"""
        return {
            "message_count": len(self.messages),
            "user_messages": len([m for m in self.messages if m.type == "user"]),
            "assistant_messages": len([m for m in self.messages if m.type == "assistant"]),
        }

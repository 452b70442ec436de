"""Client-side storage of provider API keys"""

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict

from .config import API_KEYS_STORAGE_KEY

log = logging.getLogger(__name__)


@dataclass
class ApiKeys:
    """Keys the client sends along with each command"""
    openai: str = ""
    elevenlabs: str = ""
    serpapi: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ApiKeys":
        names = {f.name for f in fields(cls)}
        return cls(**{k: str(v) for k, v in data.items() if k in names and v is not None})

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    def any_set(self) -> bool:
        return bool(self.openai or self.elevenlabs or self.serpapi)

    def summary(self) -> Dict[str, bool]:
        """Presence flags, safe to log"""
        return {"hasOpenAI": bool(self.openai), "hasElevenLabs": bool(self.elevenlabs), "hasSerpAPI": bool(self.serpapi)}


class KeyStore:
    """
    Persist keys as JSON under a fixed storage key

    The storage file is a JSON object of storage keys to values, the way a
    browser's local storage holds one value per key.
    """

    def __init__(self, path: Path, storage_key: str = API_KEYS_STORAGE_KEY):
        self.path = Path(path)
        self.storage_key = storage_key

    def _read_storage(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r") as f:
                storage = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            log.error(f"Failed to load saved API keys: {e}")
            return {}
        return storage if isinstance(storage, dict) else {}

    def load(self) -> ApiKeys:
        """Return saved keys, or empty keys when nothing usable is stored"""
        saved = self._read_storage().get(self.storage_key)
        if not isinstance(saved, dict):
            return ApiKeys()

        keys = ApiKeys.from_dict(saved)
        log.info("Loaded API keys from storage", extra={"data": keys.summary()})
        return keys

    def save(self, keys: ApiKeys) -> bool:
        """
        Save keys when at least one is set

        Returns:
            True if the keys were written
        """
        if not keys.any_set():
            return False

        storage = self._read_storage()
        storage[self.storage_key] = keys.to_dict()

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(storage, f, indent=2)

        log.info("Saved API keys to storage")
        return True

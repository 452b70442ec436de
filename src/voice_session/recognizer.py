"""Speech recognizer interface, error classification and a console recognizer"""

import sys
import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, TextIO

log = logging.getLogger(__name__)


class RecognizerErrorCode(Enum):
    """Error codes a speech recognizer reports"""
    NOT_ALLOWED = "not-allowed"
    SERVICE_NOT_ALLOWED = "service-not-allowed"
    NO_SPEECH = "no-speech"
    ABORTED = "aborted"
    NETWORK = "network"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, code: str) -> "RecognizerErrorCode":
        try:
            return cls(code)
        except ValueError:
            return cls.UNKNOWN


class ErrorAction(Enum):
    """How the session reacts to a recognizer error"""
    TERMINATE = "terminate"    # stop listening until the user restarts
    IGNORE = "ignore"          # keep going
    RECONNECT = "reconnect"    # count a reconnect attempt and let the end handler retry


@dataclass(frozen=True)
class ErrorPolicy:
    """Classified recognizer error"""
    action: ErrorAction
    notice: Optional[str] = None  # notice kind to surface, if any
    count_unless_manual: bool = False


ERROR_POLICIES = {
    RecognizerErrorCode.NOT_ALLOWED: ErrorPolicy(ErrorAction.TERMINATE, notice="mic_denied"),
    RecognizerErrorCode.SERVICE_NOT_ALLOWED: ErrorPolicy(ErrorAction.TERMINATE, notice="service_blocked"),
    RecognizerErrorCode.NO_SPEECH: ErrorPolicy(ErrorAction.IGNORE),
    RecognizerErrorCode.ABORTED: ErrorPolicy(ErrorAction.RECONNECT, count_unless_manual=True),
    RecognizerErrorCode.NETWORK: ErrorPolicy(ErrorAction.RECONNECT, notice="network_error"),
    RecognizerErrorCode.UNKNOWN: ErrorPolicy(ErrorAction.RECONNECT),
}


def classify_error(code: str) -> ErrorPolicy:
    """Map a raw recognizer error code to its handling policy"""
    return ERROR_POLICIES[RecognizerErrorCode.parse(code)]


class RecognizerStartError(RuntimeError):
    """The recognizer refused to start"""


class Recognizer(ABC):
    """
    Continuous speech recognizer

    Implementations report back through the session's on_start, on_result,
    on_error and on_end handlers; start() and stop() only request the change.
    """

    @abstractmethod
    def start(self) -> None:
        """Begin recognition, raising RecognizerStartError if that is impossible"""

    @abstractmethod
    def stop(self) -> None:
        """Request recognition to end, on_end follows"""


class ConsoleRecognizer(Recognizer):
    """
    Treats each line typed on stdin as a final, fully confident result

    The input reader outlives start/stop so control lines keep working while
    recognition is stopped; lines only reach the session while running.
    """

    def __init__(
        self,
        stream: TextIO = sys.stdin,
        on_line: Optional[Callable[[str], bool]] = None,
    ):
        """
        Initialize console recognizer

        Args:
            stream: Text stream to read lines from
            on_line: Optional hook for control lines, returning True consumes the line
        """
        self.stream = stream
        self.on_line = on_line
        self.session = None
        self.running = False
        self._reader: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def attach(self, session) -> None:
        """Bind the session that receives recognizer events"""
        self.session = session

    def start(self) -> None:
        if self.session is None:
            raise RecognizerStartError("Recognizer is not attached to a session")
        if self.running:
            raise RecognizerStartError("Recognizer already running")

        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError as e:
            raise RecognizerStartError("No running event loop") from e

        if self._reader is None or self._reader.done():
            self._reader = self._loop.create_task(self._read_loop())

        self.running = True
        self._loop.call_soon(self.session.on_start)

    def stop(self) -> None:
        if not self.running:
            return
        self.running = False
        self._loop.call_soon(self.session.on_end)

    async def _read_loop(self):
        while True:
            line = await asyncio.to_thread(self.stream.readline)
            if not line:
                log.info("Console input closed")
                if self.on_line:
                    self.on_line("/quit")
                return

            text = line.strip()
            if not text:
                continue
            if self.on_line and self.on_line(text):
                continue

            if self.running:
                self.session.on_result(text, is_final=True, confidence=1.0)

    def close(self) -> None:
        """Stop reading input"""
        self.running = False
        if self._reader and not self._reader.done():
            self._reader.cancel()

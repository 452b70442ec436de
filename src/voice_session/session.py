"""Wake-word gated voice session

Owns the recognizer lifecycle, wake word detection, the debounce and
inactivity timers and the bounded auto-reconnect. Everything runs on one
event loop, so state is guarded by timer cancellation rather than locks.

The debounce timer and the confident-final-result path race for the same
utterance. Each utterance has a generation number: whichever path dispatches
first bumps the generation and cancels the pending timer, and a timer that
fires for an older generation does nothing. At most one dispatch per utterance.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .config import VoiceSessionConfig
from .recognizer import ErrorAction, Recognizer, RecognizerStartError, classify_error
from .state import InvalidTransitionError, SessionState, can_transition
from .timers import Scheduler, TimerHandle
from .wake_word import WakeWordMatcher

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notice:
    """User-facing notification raised by the session"""
    kind: str
    title: str
    description: str
    action: Optional[str] = None  # name of an affordance the UI should offer


NOTICES = {
    "initialized": ("SP.AI Initialized", "Say '{wake}' to activate neural interface"),
    "activated": ("SP.AI Activated", "Neural interface online - I'm listening"),
    "hibernating": ("SP.AI Hibernating", "Neural interface entering sleep mode due to inactivity"),
    "offline": ("Speech Recognition Offline", "Click to restart neural interface"),
    "mic_denied": ("Microphone Access Required", "Grant microphone access to activate neural interface"),
    "service_blocked": ("Speech Service Blocked", "Speech recognition service is not available"),
    "network_error": ("Network Error", "Check your internet connection"),
    "start_failed": ("Initialization Failed", "Speech recognition could not be started"),
}


class VoiceSession:
    """Finite-state voice session driven by recognizer events"""

    def __init__(
        self,
        recognizer: Recognizer,
        scheduler: Scheduler,
        on_command: Callable[[str], None],
        config: Optional[VoiceSessionConfig] = None,
        on_notice: Optional[Callable[[Notice], None]] = None,
        on_state_change: Optional[Callable[[SessionState, SessionState], None]] = None,
        on_transcript: Optional[Callable[[str], None]] = None,
    ):
        """
        Initialize voice session

        Args:
            recognizer: Speech recognizer to drive
            scheduler: Source of delayed callbacks
            on_command: Called with the cleaned command text on dispatch
            config: Timing and threshold settings
            on_notice: Called with notifications for the user
            on_state_change: Called with (old, new) on every state change
            on_transcript: Called with the live transcript, empty when cleared
        """
        self.recognizer = recognizer
        self.scheduler = scheduler
        self.config = config or VoiceSessionConfig()
        self.wake_word = WakeWordMatcher(self.config.wake_word)

        self._on_command = on_command
        self._on_notice = on_notice
        self._on_state_change = on_state_change
        self._on_transcript = on_transcript

        self.state = SessionState.IDLE
        self.recognizer_active = False
        self.listening = False
        self.manual_stop = False
        self.restart_required = False
        self.reconnect_attempts = 0
        self.current_transcript = ""
        self.last_speech_time = 0.0
        self.generation = 0

        self._debounce_timer: Optional[TimerHandle] = None
        self._inactivity_timer: Optional[TimerHandle] = None
        self._reconnect_timer: Optional[TimerHandle] = None

    # State

    def _transition(self, target: SessionState):
        current = self.state
        if current == target:
            return
        if not can_transition(current, target):
            raise InvalidTransitionError(current, target)

        self.state = target
        log.debug(f"Session state {current.value} -> {target.value}")
        if self._on_state_change:
            self._on_state_change(current, target)

    def _notify(self, kind: str, action: Optional[str] = None):
        title, description = NOTICES[kind]
        notice = Notice(
            kind=kind,
            title=title,
            description=description.format(wake=self.config.wake_word.upper()),
            action=action,
        )
        log.info(f"{notice.title}: {notice.description}")
        if self._on_notice:
            self._on_notice(notice)

    def _set_transcript(self, text: str):
        self.current_transcript = text
        if self._on_transcript:
            self._on_transcript(text)

    @property
    def is_active(self) -> bool:
        """Wake word heard and session not hibernating"""
        return self.state in (SessionState.ACTIVE, SessionState.PROCESSING, SessionState.SPEAKING)

    # Timers

    def _cancel_debounce(self):
        if self._debounce_timer:
            self._debounce_timer.cancel()
            self._debounce_timer = None

    def _cancel_reconnect(self):
        if self._reconnect_timer:
            self._reconnect_timer.cancel()
            self._reconnect_timer = None

    def _cancel_inactivity(self):
        if self._inactivity_timer:
            self._inactivity_timer.cancel()
            self._inactivity_timer = None

    def _cancel_timers(self):
        self._cancel_debounce()
        self._cancel_reconnect()
        self._cancel_inactivity()

    def reset_inactivity_timer(self):
        """Restart the countdown to hibernation"""
        self._cancel_inactivity()
        self._inactivity_timer = self.scheduler.call_later(
            self.config.inactivity_timeout, self._on_inactivity
        )

    def _on_inactivity(self):
        self._inactivity_timer = None
        log.info("No commands before the inactivity timeout, hibernating")

        self.generation += 1
        self._cancel_debounce()
        self._set_transcript("")
        self.listening = False
        self._transition(SessionState.IDLE)

        # Not a manual stop: the end handler restarts into standby
        if self.recognizer_active:
            try:
                self.recognizer.stop()
            except Exception as e:
                log.warning(f"Error stopping recognition: {e}")

        self._notify("hibernating")

    # Recognizer lifecycle

    def start(self):
        """Begin listening, as requested by the user"""
        self.restart_required = False
        self._start_recognition()
        if not self.restart_required:
            self._notify("initialized")

    def _start_recognition(self):
        if self.recognizer_active:
            return

        self._reconnect_timer = None
        self.manual_stop = False

        try:
            log.info("Starting speech recognition...")
            self.recognizer.start()
        except RecognizerStartError as e:
            log.warning(f"Failed to start recognition: {e}")
            if self.reconnect_attempts < self.config.max_reconnect_attempts:
                self.reconnect_attempts += 1
                self._reconnect_timer = self.scheduler.call_later(
                    self.config.start_retry_delay, self._start_recognition
                )
            else:
                self._require_manual_restart("start_failed")

    def stop(self):
        """Stop listening at the user's request, no auto-restart follows"""
        log.info("Stopping speech recognition...")
        self.manual_stop = True
        self.generation += 1
        self._cancel_timers()
        self._set_transcript("")
        self.listening = False
        self._transition(SessionState.IDLE)

        if self.recognizer_active:
            try:
                self.recognizer.stop()
            except Exception as e:
                log.warning(f"Error stopping recognition: {e}")

    def manual_restart(self):
        """Restart after the reconnect budget ran out or a terminal error"""
        log.info("Manual restart requested")
        self.reconnect_attempts = 0
        self.restart_required = False
        self._cancel_reconnect()
        self._start_recognition()

    def _require_manual_restart(self, kind: str):
        self.restart_required = True
        self.listening = False
        self.generation += 1
        self._cancel_timers()
        self._transition(SessionState.IDLE)
        self._notify(kind, action="restart")

    def on_start(self):
        """Recognizer reports it is running"""
        log.info("Speech recognition started")
        self.recognizer_active = True
        self.reconnect_attempts = 0
        self.listening = True
        if self.state == SessionState.IDLE:
            self._transition(SessionState.STANDBY)

    def on_end(self):
        """Recognizer reports it has stopped"""
        log.info("Speech recognition ended")
        self.recognizer_active = False
        self._cancel_reconnect()

        if self.manual_stop or self.restart_required:
            return

        if self.reconnect_attempts < self.config.max_reconnect_attempts:
            self._reconnect_timer = self.scheduler.call_later(
                self.config.reconnect_delay, self._reconnect
            )
        else:
            log.warning(f"Giving up after {self.reconnect_attempts} reconnect attempts")
            self._require_manual_restart("offline")

    def _reconnect(self):
        self._reconnect_timer = None
        if not self.recognizer_active:
            self._start_recognition()

    def on_error(self, code: str):
        """Recognizer reports an error code"""
        log.info(f"Speech recognition error: {code}")
        policy = classify_error(code)

        if policy.action == ErrorAction.TERMINATE:
            self.manual_stop = True
            self._require_manual_restart(policy.notice)
            if self.recognizer_active:
                try:
                    self.recognizer.stop()
                except Exception as e:
                    log.warning(f"Error stopping recognition: {e}")
            return

        if policy.action == ErrorAction.IGNORE:
            log.debug("No speech detected, continuing...")
            return

        if not (policy.count_unless_manual and self.manual_stop):
            self.reconnect_attempts += 1

        if policy.notice:
            self._notify(policy.notice)

        # The end handler decides whether to reconnect
        if self.recognizer_active:
            try:
                self.recognizer.stop()
            except Exception as e:
                log.warning(f"Error stopping recognition: {e}")

    # Transcripts

    def on_result(self, transcript: str, is_final: bool = False, confidence: float = 0.0):
        """
        Recognizer reports the transcript of the current utterance

        Args:
            transcript: Text heard so far in this utterance
            is_final: The recognizer will not revise this text
            confidence: Recognizer confidence for the text, 0..1
        """
        self._set_transcript(transcript)
        self.last_speech_time = self.scheduler.time()

        if self.state == SessionState.STANDBY and self.wake_word.contains(transcript):
            self._activate()

        if self.state != SessionState.ACTIVE:
            return

        self._cancel_debounce()
        text = transcript.strip()

        if len(text) > self.config.min_transcript_length:
            generation = self.generation
            self._debounce_timer = self.scheduler.call_later(
                self.config.debounce_seconds,
                lambda: self._on_debounce(generation, text),
            )

        if (
            is_final
            and len(text) > self.config.min_command_length
            and confidence >= self.config.min_confidence
        ):
            self._dispatch(text)

    def _activate(self):
        self._transition(SessionState.ACTIVE)
        self.reset_inactivity_timer()
        self._notify("activated")

    def _on_debounce(self, generation: int, text: str):
        if generation != self.generation:
            log.debug("Stale debounce timer ignored")
            return

        self._debounce_timer = None
        if len(text) > self.config.min_command_length:
            self._dispatch(text)

    def _dispatch(self, text: str):
        # Claim the utterance before anything else can fire for it
        self.generation += 1
        self._cancel_debounce()
        self._set_transcript("")

        if self.state != SessionState.ACTIVE:
            log.debug(f"Ignoring command while {self.state.value}")
            return

        command = self.wake_word.strip(text)
        if not command:
            log.debug("Nothing left after removing the wake word")
            return

        log.info(f"Dispatching command: {command[:50]}")
        self._transition(SessionState.PROCESSING)
        self.reset_inactivity_timer()
        self._on_command(command)

    def submit_text(self, text: str) -> bool:
        """
        Dispatch a typed command, activating the session if needed

        Returns:
            True if the command was dispatched
        """
        text = text.strip()
        if not self.wake_word.strip(text) or self.state in (SessionState.PROCESSING, SessionState.SPEAKING):
            return False

        if self.state in (SessionState.IDLE, SessionState.STANDBY):
            self._transition(SessionState.ACTIVE)
            self.reset_inactivity_timer()

        self._dispatch(text)
        return self.state == SessionState.PROCESSING

    # Command lifecycle

    def finish_processing(self, has_audio: bool = False):
        """Backend responded, move on to playback or back to listening"""
        if self.state != SessionState.PROCESSING:
            # Inactivity or a stop won the race, stay where we are
            return
        self._transition(SessionState.SPEAKING if has_audio else SessionState.ACTIVE)

    def finish_speaking(self):
        """Reply playback ended or failed"""
        if self.state == SessionState.SPEAKING:
            self._transition(SessionState.ACTIVE)

    def close(self):
        """Release timers and stop the recognizer"""
        self.stop()

"""
State definitions for the voice session.
Defines the session states and which transitions between them are legal.
"""
from enum import Enum
from typing import Dict, FrozenSet


class SessionState(Enum):
    """Voice session states"""
    IDLE = "IDLE"              # not listening, or hibernating after inactivity
    STANDBY = "STANDBY"        # recognizer running, wake word not yet heard
    ACTIVE = "ACTIVE"          # wake word heard, commands accepted
    PROCESSING = "PROCESSING"  # command in flight
    SPEAKING = "SPEAKING"      # reply audio playing


ALLOWED_TRANSITIONS: Dict[SessionState, FrozenSet[SessionState]] = {
    SessionState.IDLE: frozenset({SessionState.STANDBY, SessionState.ACTIVE}),
    SessionState.STANDBY: frozenset({SessionState.ACTIVE, SessionState.IDLE}),
    SessionState.ACTIVE: frozenset({SessionState.PROCESSING, SessionState.IDLE}),
    SessionState.PROCESSING: frozenset({SessionState.ACTIVE, SessionState.SPEAKING, SessionState.IDLE}),
    SessionState.SPEAKING: frozenset({SessionState.ACTIVE, SessionState.IDLE}),
}


class InvalidTransitionError(RuntimeError):
    """A transition the state table does not allow"""

    def __init__(self, current: SessionState, target: SessionState):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move from {current.value} to {target.value}")


def can_transition(current: SessionState, target: SessionState) -> bool:
    return target == current or target in ALLOWED_TRANSITIONS[current]

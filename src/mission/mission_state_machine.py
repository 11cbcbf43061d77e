"""
Mission State Machine

This module implements the state machine that tracks the phases of a
single drone navigation mission: planning, exploration playback, flight,
replanning and the terminal outcomes.
"""

import time
import logging
from enum import Enum
from typing import Dict, Optional, Callable
from dataclasses import dataclass


class MissionState(Enum):
    """Enumeration of all mission states"""
    IDLE = "idle"
    PLANNING = "planning"
    EXPLORING = "exploring"
    FLYING = "flying"
    REPLANNING = "replanning"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATES = (MissionState.COMPLETED, MissionState.FAILED, MissionState.CANCELLED)


@dataclass
class StateTransition:
    """Represents a state transition with timing information"""
    from_state: MissionState
    to_state: MissionState
    timestamp: float
    reason: str


class MissionStateMachine:
    """
    Manages transitions between mission phases.

    The paused flag is orthogonal to the state: pausing freezes progress
    but does not change current_state.

    Attributes:
        current_state: Current mission state
        paused: Whether flight progression is frozen
        transition_history: Ordered record of transitions since the last reset
        failure_reason: Why the mission failed, if it did
    """

    VALID_TRANSITIONS = {
        MissionState.IDLE: [MissionState.PLANNING],
        MissionState.PLANNING: [MissionState.EXPLORING, MissionState.FAILED],
        MissionState.EXPLORING: [MissionState.FLYING],
        MissionState.FLYING: [MissionState.REPLANNING, MissionState.COMPLETED],
        MissionState.REPLANNING: [MissionState.FLYING, MissionState.FAILED],
        MissionState.COMPLETED: [MissionState.IDLE],
        MissionState.FAILED: [MissionState.IDLE],
        MissionState.CANCELLED: [MissionState.IDLE],
    }

    def __init__(self):
        """Initialize the mission state machine"""
        self.logger = logging.getLogger("MissionStateMachine")
        self.current_state = MissionState.IDLE
        self.paused = False
        self.start_time: Optional[float] = None
        self.transition_history: list[StateTransition] = []
        self.state_callbacks: Dict[MissionState, list[Callable]] = {}
        self.failure_reason: Optional[str] = None

    def start_mission(self):
        """Start the mission timer"""
        self.start_time = time.time()
        self.logger.info("Mission started")

    def transition_to(self, new_state: MissionState, reason: str = "automatic") -> bool:
        """
        Transition to a new mission state.

        Args:
            new_state: The state to transition to
            reason: Reason for the transition

        Returns:
            True if transition was successful, False otherwise
        """
        if not self._is_valid_transition(self.current_state, new_state):
            self.logger.warning(
                f"Invalid transition from {self.current_state.value} to {new_state.value}"
            )
            return False

        old_state = self.current_state
        self.current_state = new_state

        transition = StateTransition(
            from_state=old_state,
            to_state=new_state,
            timestamp=time.time(),
            reason=reason
        )
        self.transition_history.append(transition)

        self.logger.info(
            f"State transition: {old_state.value} -> {new_state.value} ({reason})"
        )

        self._execute_state_callbacks(new_state)

        return True

    def _is_valid_transition(self, from_state: MissionState, to_state: MissionState) -> bool:
        """
        Check if a state transition is valid.

        Valid transitions:
        - IDLE -> PLANNING
        - PLANNING -> EXPLORING | FAILED
        - EXPLORING -> FLYING
        - FLYING -> REPLANNING | COMPLETED
        - REPLANNING -> FLYING | FAILED
        - COMPLETED / FAILED / CANCELLED -> IDLE (reset)
        - Any non-terminal, non-idle state -> CANCELLED
        """
        if to_state == MissionState.CANCELLED:
            return self.is_active()

        return to_state in self.VALID_TRANSITIONS.get(from_state, [])

    def _execute_state_callbacks(self, state: MissionState):
        """Execute all callbacks registered for a state"""
        if state in self.state_callbacks:
            for callback in self.state_callbacks[state]:
                try:
                    callback()
                except Exception as e:
                    self.logger.error(
                        f"Error executing callback for {state.value}: {e}"
                    )

    def register_state_callback(self, state: MissionState, callback: Callable):
        """
        Register a callback to be executed when entering a state.

        Args:
            state: The state to register the callback for
            callback: The callback function to execute
        """
        if state not in self.state_callbacks:
            self.state_callbacks[state] = []
        self.state_callbacks[state].append(callback)

    def get_mission_elapsed_time(self) -> float:
        """
        Get the total elapsed time since mission start.

        Returns:
            Elapsed time in seconds, or 0 if mission not started
        """
        if self.start_time is None:
            return 0.0
        return time.time() - self.start_time

    def fail_mission(self, reason: str) -> bool:
        """
        Move to FAILED with a specific reason.

        Args:
            reason: Human readable failure description
        """
        if not self.transition_to(MissionState.FAILED, reason=reason):
            return False
        self.failure_reason = reason
        self.logger.error(f"Mission failed: {reason}")
        return True

    def cancel_mission(self, reason: str = "cancelled") -> bool:
        """Move to CANCELLED from any active state."""
        return self.transition_to(MissionState.CANCELLED, reason=reason)

    def reset(self) -> bool:
        """
        Return to IDLE from a terminal state and clear the history.

        Returns:
            True if the machine is IDLE afterwards
        """
        if self.current_state != MissionState.IDLE:
            if not self.transition_to(MissionState.IDLE, reason="reset"):
                return False

        self.paused = False
        self.start_time = None
        self.failure_reason = None
        self.transition_history = []
        return True

    def is_active(self) -> bool:
        """True while a mission is in progress (not IDLE and not terminal)."""
        return self.current_state not in TERMINAL_STATES and self.current_state != MissionState.IDLE

    def is_mission_complete(self) -> bool:
        """
        Check if the mission has ended (completed, failed or cancelled).

        Returns:
            True if mission is in a terminal state, False otherwise
        """
        return self.current_state in TERMINAL_STATES

    def get_mission_status(self) -> dict:
        """
        Get comprehensive status information about the mission.

        Returns:
            Dictionary containing mission status information
        """
        return {
            "current_state": self.current_state.value,
            "paused": self.paused,
            "elapsed_time": self.get_mission_elapsed_time(),
            "is_complete": self.is_mission_complete(),
            "failure_reason": self.failure_reason,
            "transition_count": len(self.transition_history),
        }

"""
Notepin — PIN Gate
===================

What:  Client-side guard in front of publish, edit and delete.
How:   A guarded action is requested as a GuardedAction value. Before the
       code has been entered the action is parked (at most one) and the
       gate waits for input; once the 7 digits match, the parked action is
       handed back for execution and every later request passes straight
       through for the rest of the session.

State Machine:
    IDLE ──request()──▶ AWAITING_INPUT ──7 digits, match──▶ VERIFIED
      ▲                   │      ▲                            │
      └────cancel()───────┘      └──7 digits, mismatch        └─ request() returns
                                    (buffer cleared)             the action at once

The pending action is data, not a callback: it can be logged, compared in
tests, and dropped on cancel without side effects.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from notepin.client.config import DEFAULT_PIN_CODE, PIN_LENGTH

logger = logging.getLogger(__name__)


class PinState(str, Enum):
    IDLE = "idle"
    AWAITING_INPUT = "awaiting_input"
    VERIFIED = "verified"


class ActionKind(str, Enum):
    PUBLISH = "publish"
    EDIT = "edit"
    DELETE = "delete"


@dataclass(frozen=True)
class GuardedAction:
    """What the user asked for; `post_id` is set for edit and delete."""

    kind: ActionKind
    post_id: Optional[int] = None

    @classmethod
    def publish(cls) -> "GuardedAction":
        return cls(ActionKind.PUBLISH)

    @classmethod
    def edit(cls, post_id: int) -> "GuardedAction":
        return cls(ActionKind.EDIT, post_id)

    @classmethod
    def delete(cls, post_id: int) -> "GuardedAction":
        return cls(ActionKind.DELETE, post_id)


class PinStatus(str, Enum):
    INCOMPLETE = "incomplete"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass(frozen=True)
class PinResult:
    """Outcome of one input event; `action` is set only when accepted."""

    status: PinStatus
    action: Optional[GuardedAction] = None

    @property
    def accepted(self) -> bool:
        return self.status is PinStatus.ACCEPTED


class PinGate:
    """
    Per-session PIN gate.

    Attributes:
        state:   current PinState
        buffer:  digits typed so far (0-7)
        pending: the parked GuardedAction, if any
        error:   True right after a wrong code, until the next keystroke
    """

    def __init__(self, code: str = DEFAULT_PIN_CODE):
        if len(code) != PIN_LENGTH or not code.isdigit():
            raise ValueError(f"PIN code must be exactly {PIN_LENGTH} digits")
        self._code = code
        self.state = PinState.IDLE
        self.buffer = ""
        self.pending: Optional[GuardedAction] = None
        self.error = False

    @property
    def verified(self) -> bool:
        return self.state is PinState.VERIFIED

    @property
    def overlay_open(self) -> bool:
        return self.state is PinState.AWAITING_INPUT

    @property
    def filled(self) -> int:
        """How many boxes of the 7-box input are filled."""
        return len(self.buffer)

    def request(self, action: GuardedAction) -> Optional[GuardedAction]:
        """
        Ask to run a guarded action.

        Returns the action when it may run now (session already verified);
        otherwise parks it, replacing any earlier parked action, opens the
        input and returns None.
        """
        if self.verified:
            return action

        if self.pending is not None and self.pending != action:
            logger.debug("Replacing pending %s with %s", self.pending, action)
        self.pending = action
        self.buffer = ""
        self.error = False
        self.state = PinState.AWAITING_INPUT
        return None

    def enter(self, value: str) -> PinResult:
        """
        Set the whole input value (the hidden input's contents).

        Non-digits are dropped and the value is cut to 7 characters. At
        exactly 7 digits the code is checked.
        """
        if not self.overlay_open:
            return PinResult(PinStatus.INCOMPLETE)

        digits = "".join(ch for ch in value if ch.isdigit())[:PIN_LENGTH]
        self.buffer = digits
        self.error = False

        if len(digits) < PIN_LENGTH:
            return PinResult(PinStatus.INCOMPLETE)

        if digits == self._code:
            action = self.pending
            self.pending = None
            self.buffer = ""
            self.state = PinState.VERIFIED
            logger.info("PIN accepted; guarded actions unlocked for this session")
            return PinResult(PinStatus.ACCEPTED, action)

        logger.info("PIN rejected")
        self.buffer = ""
        self.error = True
        return PinResult(PinStatus.REJECTED)

    def press(self, key: str) -> PinResult:
        """Append one keystroke to the buffer."""
        return self.enter(self.buffer + key)

    def backspace(self) -> None:
        if self.overlay_open:
            self.buffer = self.buffer[:-1]
            self.error = False

    def cancel(self) -> Optional[GuardedAction]:
        """
        Close the input without running anything.

        Returns the discarded action (None if nothing was pending).
        """
        if not self.overlay_open:
            return None
        discarded = self.pending
        self.pending = None
        self.buffer = ""
        self.error = False
        self.state = PinState.IDLE
        if discarded is not None:
            logger.debug("PIN entry cancelled; dropped %s", discarded)
        return discarded

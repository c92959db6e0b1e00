"""
Async stage state machine.

One generic reducer shared by every pipeline stage:

    idle -> loading -> success | error
    reset: any -> idle

Statuses are immutable; each transition replaces the tracker's status with a
new value.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, List, Optional, TypeVar

from ..models import StageState


logger = logging.getLogger(__name__)

T = TypeVar("T")


class StageAction(str, Enum):
    start = "start"
    success = "success"
    error = "error"
    reset = "reset"


@dataclass(frozen=True)
class StageStatus(Generic[T]):
    is_loading: bool = False
    is_error: bool = False
    is_success: bool = False
    payload: Optional[T] = None
    error: Optional[str] = None

    def __post_init__(self):
        if sum((self.is_loading, self.is_error, self.is_success)) > 1:
            raise ValueError("At most one of is_loading, is_error, is_success may be set")
        if self.is_success != (self.payload is not None):
            raise ValueError("payload must be set exactly when is_success is set")
        if self.error is not None and not self.is_error:
            raise ValueError("error message is only allowed in the error state")

    @property
    def state(self) -> StageState:
        if self.is_loading:
            return StageState.loading
        if self.is_success:
            return StageState.success
        if self.is_error:
            return StageState.error
        return StageState.idle


IDLE = StageStatus()


def reduce_stage(
    status: StageStatus,
    action: StageAction,
    payload: Optional[T] = None,
    error: Optional[str] = None,
) -> StageStatus:
    """
    Compute the status that follows ``action``.

    The previous status is ignored beyond identity: every action fully
    determines its resulting state.

    Raises:
        ValueError: On ``success`` without a payload
    """
    if action == StageAction.start:
        return StageStatus(is_loading=True)
    if action == StageAction.success:
        if payload is None:
            raise ValueError("A successful stage requires a payload")
        return StageStatus(is_success=True, payload=payload)
    if action == StageAction.error:
        return StageStatus(is_error=True, error=error or "Stage failed")
    if action == StageAction.reset:
        return IDLE
    return status


TransitionListener = Callable[[str, StageAction, StageStatus], None]


class StageTracker(Generic[T]):
    """Owns the status of one named stage."""

    def __init__(self, name: str, listener: Optional[TransitionListener] = None):
        self.name = name
        self.status: StageStatus[T] = IDLE
        self.history: List[StageAction] = []
        self._listener = listener

    def start(self) -> None:
        self._dispatch(StageAction.start)

    def succeed(self, payload: T) -> None:
        self._dispatch(StageAction.success, payload=payload)

    def fail(self, error: str) -> None:
        self._dispatch(StageAction.error, error=error)

    def reset(self) -> None:
        self._dispatch(StageAction.reset)

    def _dispatch(self, action: StageAction, payload: Optional[T] = None, error: Optional[str] = None) -> None:
        self.status = reduce_stage(self.status, action, payload=payload, error=error)
        self.history.append(action)
        logger.debug(f"Stage {self.name}: {action.value} -> {self.status.state.value}")
        if self._listener:
            self._listener(self.name, action, self.status)

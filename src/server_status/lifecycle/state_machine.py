"""Status page lifecycle state machine.

Merges the three signal sources of a status page into one snapshot:

  countdown timer  -> apply_countdown_elapsed
  status poller    -> apply_poll_result
  user stop action -> open/cancel_stop_confirmation, begin/complete/fail_stop

Phase flow:
  provisioning -> ready | inactive
  ready -> inactive            (confirmed user stop, silent)
  ready -> alerted_inactive    (running -> stopped edge, no user stop)
  inactive, alerted_inactive   terminal; later poll results are ignored

Every transition is a pure function returning a new frozen snapshot. The
modal prompts are a single ``Dialog`` value, so at most one is ever open.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from types import MappingProxyType


class Phase(str, Enum):
    PROVISIONING = 'provisioning'
    READY = 'ready'
    INACTIVE = 'inactive'
    ALERTED_INACTIVE = 'alerted_inactive'


class RemoteState(str, Enum):
    UNKNOWN = 'unknown'
    RUNNING = 'running'
    STOPPED = 'stopped'


class Dialog(str, Enum):
    NONE = 'none'
    CONFIRM_STOP = 'confirm_stop'
    STOP_SUCCEEDED = 'stop_succeeded'
    INACTIVITY_ALERT = 'inactivity_alert'


TERMINAL_PHASES = frozenset({Phase.INACTIVE, Phase.ALERTED_INACTIVE})

ALLOWED_TRANSITIONS = MappingProxyType(
    {
        Phase.PROVISIONING: frozenset({Phase.READY, Phase.INACTIVE}),
        Phase.READY: frozenset({Phase.INACTIVE, Phase.ALERTED_INACTIVE}),
        Phase.INACTIVE: frozenset(),
        Phase.ALERTED_INACTIVE: frozenset(),
    }
)


@dataclass(frozen=True, slots=True)
class LifecycleState:
    """Snapshot of one status page's lifecycle."""

    phase: Phase = Phase.PROVISIONING
    remote_state: RemoteState = RemoteState.UNKNOWN
    previous_remote_state: RemoteState = RemoteState.UNKNOWN
    local_intent: bool = False
    details_visible: bool = False
    dialog: Dialog = Dialog.NONE
    is_stopping: bool = False
    stop_error: str | None = None
    exit_requested: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES

    @property
    def show_confirm(self) -> bool:
        return self.dialog is Dialog.CONFIRM_STOP

    @property
    def show_success_alert(self) -> bool:
        return self.dialog is Dialog.STOP_SUCCEEDED

    @property
    def show_inactivity_alert(self) -> bool:
        return self.dialog is Dialog.INACTIVITY_ALERT

    @property
    def can_request_stop(self) -> bool:
        return (
            not self.is_terminal
            and not self.local_intent
            and not self.is_stopping
            and self.dialog is Dialog.NONE
        )


class InvalidStateTransition(ValueError):
    """Raised for invalid lifecycle transitions."""

    def __init__(self, from_state: str, to_state: str) -> None:
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f'invalid state transition: {from_state!r} -> {to_state!r}'
        )


def create_initial_state(*, countdown_elapsed: bool = False) -> LifecycleState:
    """Create the snapshot a page starts from at mount."""
    if countdown_elapsed:
        return LifecycleState(phase=Phase.READY, details_visible=True)
    return LifecycleState()


def apply_countdown_elapsed(state: LifecycleState) -> LifecycleState:
    """Reveal details once the provisioning wait is over. Idempotent."""
    if state.details_visible:
        return state
    if state.phase is not Phase.PROVISIONING:
        raise InvalidStateTransition(state.phase.value, 'details_visible')

    to_phase = Phase.INACTIVE if state.local_intent else Phase.READY
    return _transition(state, to_phase=to_phase, details_visible=True)


def apply_poll_result(
    state: LifecycleState,
    remote_state: RemoteState,
) -> LifecycleState:
    """Record a classified poll result and fire the inactivity edge.

    The alert fires only on a ``running -> stopped`` edge while ready and
    without a user stop. Results are not applied in terminal phases or while
    a stop request is in flight.
    """
    if state.is_terminal or state.is_stopping:
        return state

    previous = state.remote_state
    state = replace(
        state,
        previous_remote_state=previous,
        remote_state=remote_state,
    )

    is_stop_edge = (
        previous is RemoteState.RUNNING
        and remote_state is RemoteState.STOPPED
    )
    if is_stop_edge and not state.local_intent and state.phase is Phase.READY:
        return _transition(
            state,
            to_phase=Phase.ALERTED_INACTIVE,
            dialog=Dialog.INACTIVITY_ALERT,
            stop_error=None,
        )
    return state


def open_stop_confirmation(state: LifecycleState) -> LifecycleState:
    """Open the stop confirmation prompt; no-op when a stop is not possible."""
    if not state.can_request_stop:
        return state
    return replace(state, dialog=Dialog.CONFIRM_STOP, stop_error=None)


def cancel_stop_confirmation(state: LifecycleState) -> LifecycleState:
    if state.dialog is not Dialog.CONFIRM_STOP or state.is_stopping:
        return state
    return replace(state, dialog=Dialog.NONE)


def begin_stop(state: LifecycleState) -> LifecycleState:
    """Mark the confirmed stop request as in flight."""
    if state.dialog is not Dialog.CONFIRM_STOP or state.is_stopping:
        raise InvalidStateTransition(state.dialog.value, 'stopping')
    return replace(state, is_stopping=True, stop_error=None)


def complete_stop(state: LifecycleState) -> LifecycleState:
    """Apply a successful stop: sticky local intent plus a success notice.

    During provisioning the phase is kept (details are still hidden); the
    countdown then lands in ``inactive`` instead of ``ready``.
    """
    if not state.is_stopping:
        raise InvalidStateTransition(state.phase.value, 'stopped')

    state = replace(
        state,
        local_intent=True,
        is_stopping=False,
        dialog=Dialog.STOP_SUCCEEDED,
        stop_error=None,
    )
    if state.phase is Phase.READY:
        return _transition(state, to_phase=Phase.INACTIVE)
    return state


def fail_stop(state: LifecycleState, *, message: str) -> LifecycleState:
    """Surface a stop failure; remote state and local intent are untouched."""
    if not state.is_stopping:
        raise InvalidStateTransition(state.phase.value, 'stop_failed')
    return replace(
        state,
        is_stopping=False,
        dialog=Dialog.NONE,
        stop_error=message,
    )


def dismiss_success_alert(state: LifecycleState) -> LifecycleState:
    """Close the success notice and ask to leave for the overview."""
    if state.dialog is not Dialog.STOP_SUCCEEDED:
        return state
    return replace(state, dialog=Dialog.NONE, exit_requested=True)


def dismiss_inactivity_alert(state: LifecycleState) -> LifecycleState:
    if state.dialog is not Dialog.INACTIVITY_ALERT:
        return state
    return replace(state, dialog=Dialog.NONE)


def _transition(
    state: LifecycleState,
    *,
    to_phase: Phase,
    **changes,
) -> LifecycleState:
    allowed = ALLOWED_TRANSITIONS.get(state.phase, frozenset())
    if to_phase not in allowed:
        raise InvalidStateTransition(state.phase.value, to_phase.value)
    return replace(state, phase=to_phase, **changes)

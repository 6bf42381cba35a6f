"""Status page lifecycle: countdown, poller, reconciler, stop flow, view."""

from .coordinator import StopActionCoordinator, StopAlreadyInFlight, StopResult
from .countdown import CountdownTimer, format_remaining
from .poller import StatusPoller, classify_remote_state
from .presentation import StatusView, derive_view
from .session import StatusPageSession
from .state_machine import (
    ALLOWED_TRANSITIONS,
    TERMINAL_PHASES,
    Dialog,
    InvalidStateTransition,
    LifecycleState,
    Phase,
    RemoteState,
    apply_countdown_elapsed,
    apply_poll_result,
    begin_stop,
    cancel_stop_confirmation,
    complete_stop,
    create_initial_state,
    dismiss_inactivity_alert,
    dismiss_success_alert,
    fail_stop,
    open_stop_confirmation,
)
from .store import LifecycleStore

__all__ = [
    'ALLOWED_TRANSITIONS',
    'TERMINAL_PHASES',
    'CountdownTimer',
    'Dialog',
    'InvalidStateTransition',
    'LifecycleState',
    'LifecycleStore',
    'Phase',
    'RemoteState',
    'StatusPageSession',
    'StatusPoller',
    'StatusView',
    'StopActionCoordinator',
    'StopAlreadyInFlight',
    'StopResult',
    'apply_countdown_elapsed',
    'apply_poll_result',
    'begin_stop',
    'cancel_stop_confirmation',
    'classify_remote_state',
    'complete_stop',
    'create_initial_state',
    'derive_view',
    'dismiss_inactivity_alert',
    'dismiss_success_alert',
    'fail_stop',
    'format_remaining',
    'open_stop_confirmation',
]

"""Derive what a status page shows from its lifecycle snapshot.

Pure functions only: the view holds no state of its own and is rebuilt
from (snapshot, server reference, countdown remaining) on every read.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from ..launch import ServerReference
from .countdown import format_remaining
from .state_machine import LifecycleState, Phase

MISSING_VALUE = 'N/A'

COST_WARNING = (
    'This server costs ~$0.02/hour ($0.50/day if running 24/7). '
    'Remember to stop or terminate it when not in use!'
)

INACTIVITY_MESSAGE = (
    'Your server is no longer running. It was stopped outside of this page.'
)
STOP_SUCCESS_MESSAGE = 'Server stopped successfully.'

# (label, remaining-seconds threshold); a step is done once the countdown
# drops below its threshold. None means always done.
PROVISIONING_STEPS: tuple[tuple[str, int | None], ...] = (
    ('Launching instance', None),
    ('Installing Docker', 150),
    ('Starting Minecraft server', 60),
    ('Server ready!', 1),
)


@dataclass(frozen=True, slots=True)
class ProgressStep:
    label: str
    done: bool


@dataclass(frozen=True, slots=True)
class StatusView:
    phase: Phase
    view: str
    status_label: str | None
    time_remaining: str
    progress: tuple[ProgressStep, ...]
    server_name: str
    server_address: str
    public_ip: str
    minecraft_version: str
    server_type: str
    connect_instructions: tuple[str, ...]
    cost_warning: str | None
    can_stop: bool
    is_stopping: bool
    stop_error: str | None
    show_confirm: bool
    show_success_alert: bool
    show_inactivity_alert: bool
    alert_message: str | None
    navigate_to: str | None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data['phase'] = self.phase.value
        return data


def progress_steps(remaining: int) -> tuple[ProgressStep, ...]:
    return tuple(
        ProgressStep(label=label, done=threshold is None or remaining < threshold)
        for label, threshold in PROVISIONING_STEPS
    )


def status_label(state: LifecycleState) -> str | None:
    if state.phase is Phase.PROVISIONING:
        return None
    return 'Active' if state.phase is Phase.READY else 'Inactive'


def connect_instructions(reference: ServerReference) -> tuple[str, ...]:
    return (
        'Open Minecraft Java Edition',
        'Go to Multiplayer -> Add Server',
        f'Server Address: {reference.public_ip or MISSING_VALUE}',
        'Click Done -> Join Server',
    )


def derive_view(
    state: LifecycleState,
    reference: ServerReference,
    *,
    remaining_seconds: int,
    overview_path: str = '/dashboard',
) -> StatusView:
    details = state.phase is not Phase.PROVISIONING

    if state.show_inactivity_alert:
        alert_message = INACTIVITY_MESSAGE
    elif state.show_success_alert:
        alert_message = STOP_SUCCESS_MESSAGE
    else:
        alert_message = None

    return StatusView(
        phase=state.phase,
        view='details' if details else 'provisioning',
        status_label=status_label(state),
        time_remaining=format_remaining(remaining_seconds),
        progress=progress_steps(remaining_seconds),
        server_name=reference.server_name or MISSING_VALUE,
        server_address=reference.server_address or MISSING_VALUE,
        public_ip=reference.public_ip or MISSING_VALUE,
        minecraft_version=reference.minecraft_version or MISSING_VALUE,
        server_type=reference.server_type or MISSING_VALUE,
        connect_instructions=connect_instructions(reference) if details else (),
        cost_warning=COST_WARNING if state.phase is Phase.READY else None,
        can_stop=state.can_request_stop,
        is_stopping=state.is_stopping,
        stop_error=state.stop_error,
        show_confirm=state.show_confirm,
        show_success_alert=state.show_success_alert,
        show_inactivity_alert=state.show_inactivity_alert,
        alert_message=alert_message,
        navigate_to=overview_path if state.exit_requested else None,
    )

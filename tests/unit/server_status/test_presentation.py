"""Tests for the presentation gate."""

from __future__ import annotations

from dataclasses import replace

import pytest

from server_status.launch import ServerReference
from server_status.lifecycle.presentation import (
    COST_WARNING,
    INACTIVITY_MESSAGE,
    MISSING_VALUE,
    STOP_SUCCESS_MESSAGE,
    derive_view,
    progress_steps,
)
from server_status.lifecycle.state_machine import (
    Dialog,
    LifecycleState,
    Phase,
    create_initial_state,
)


@pytest.mark.parametrize(
    'remaining, done',
    [
        (180, [True, False, False, False]),
        (150, [True, False, False, False]),
        (149, [True, True, False, False]),
        (59, [True, True, True, False]),
        (1, [True, True, True, False]),
        (0, [True, True, True, True]),
    ],
)
def test_progress_steps(remaining, done):
    assert [step.done for step in progress_steps(remaining)] == done


def test_provisioning_view_hides_details(reference):
    view = derive_view(create_initial_state(), reference, remaining_seconds=180)

    assert view.view == 'provisioning'
    assert view.time_remaining == '3:00'
    assert view.status_label is None
    assert view.connect_instructions == ()
    assert view.cost_warning is None
    assert view.progress[0].label == 'Launching instance'


def test_ready_view(reference):
    view = derive_view(
        create_initial_state(countdown_elapsed=True), reference, remaining_seconds=0
    )

    assert view.view == 'details'
    assert view.status_label == 'Active'
    assert view.server_name == 'minecraft-1739452800'
    assert view.server_address == '3.91.10.20:25565'
    assert 'Server Address: 3.91.10.20' in view.connect_instructions
    assert view.cost_warning == COST_WARNING
    assert view.can_stop is True
    assert view.alert_message is None
    assert view.navigate_to is None


def test_missing_reference_fields_render_placeholder():
    view = derive_view(
        create_initial_state(countdown_elapsed=True),
        ServerReference(instance_id='i-1'),
        remaining_seconds=0,
    )
    assert view.server_name == MISSING_VALUE
    assert view.public_ip == MISSING_VALUE
    assert f'Server Address: {MISSING_VALUE}' in view.connect_instructions


def test_inactive_after_stop(reference):
    state = LifecycleState(
        phase=Phase.INACTIVE,
        details_visible=True,
        local_intent=True,
        dialog=Dialog.STOP_SUCCEEDED,
    )
    view = derive_view(state, reference, remaining_seconds=0)

    assert view.status_label == 'Inactive'
    assert view.cost_warning is None
    assert view.can_stop is False
    assert view.show_success_alert is True
    assert view.alert_message == STOP_SUCCESS_MESSAGE


def test_inactivity_alert(reference):
    state = LifecycleState(
        phase=Phase.ALERTED_INACTIVE,
        details_visible=True,
        dialog=Dialog.INACTIVITY_ALERT,
    )
    view = derive_view(state, reference, remaining_seconds=0)

    assert view.show_inactivity_alert is True
    assert view.alert_message == INACTIVITY_MESSAGE
    assert view.status_label == 'Inactive'


def test_exit_requested_navigates_to_overview(reference):
    state = LifecycleState(
        phase=Phase.INACTIVE, details_visible=True, exit_requested=True
    )
    view = derive_view(
        state, reference, remaining_seconds=0, overview_path='/servers'
    )
    assert view.navigate_to == '/servers'


def test_to_dict_is_json_ready(reference):
    state = replace(create_initial_state(countdown_elapsed=True), stop_error='boom')
    data = derive_view(state, reference, remaining_seconds=0).to_dict()

    assert data['phase'] == 'ready'
    assert data['stop_error'] == 'boom'
    assert data['progress'][0] == {'label': 'Launching instance', 'done': True}

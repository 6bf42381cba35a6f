"""In-memory instance service for local development and tests.

Satisfies the InstanceService protocol but keeps instance state in a dict.
Failures can be scripted per call so tests can reproduce flaky networks and
rejected stop requests.
"""

from __future__ import annotations

from typing import Any

from .errors import NetworkFailureError, RemoteRejectedError


class InMemoryInstanceService:
    def __init__(self, states: dict[str, str] | None = None) -> None:
        self._states: dict[str, str] = dict(states or {})
        self.status_failures: list[Exception] = []
        self.stop_failures: list[Exception] = []
        self.calls: list[tuple[str, str, str]] = []

    def set_state(self, instance_id: str, state: str) -> None:
        self._states[instance_id] = state

    def fail_next_status(self, exc: Exception | None = None) -> None:
        self.status_failures.append(exc or NetworkFailureError("connection reset"))

    def fail_next_stop(self, exc: Exception | None = None) -> None:
        self.stop_failures.append(exc or RemoteRejectedError(500))

    async def get_instance(self, instance_id: str, *, token: str) -> dict[str, Any]:
        self.calls.append(("get_instance", instance_id, token))
        if self.status_failures:
            raise self.status_failures.pop(0)
        if instance_id not in self._states:
            raise RemoteRejectedError(404, f"instance {instance_id} not found")
        return {"instance_id": instance_id, "state": self._states[instance_id]}

    async def stop_instance(self, instance_id: str, *, token: str) -> None:
        self.calls.append(("stop_instance", instance_id, token))
        if self.stop_failures:
            raise self.stop_failures.pop(0)
        if instance_id not in self._states:
            raise RemoteRejectedError(404, f"instance {instance_id} not found")
        self._states[instance_id] = "stopping"

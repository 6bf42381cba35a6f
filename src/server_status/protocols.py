"""Collaborator protocol interfaces for dependency injection.

These protocols define the contracts that concrete implementations (InMemory
for local dev and tests, the httpx client for real deployments) must satisfy.
Status page sessions accept any implementation that matches them.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class TokenProvider(Protocol):
    """Supplies a fresh bearer token, or None when the user has no session."""

    async def get_token(self) -> str | None: ...


@runtime_checkable
class InstanceService(Protocol):
    """Status query and stop request against the instance API."""

    async def get_instance(self, instance_id: str, *, token: str) -> Any: ...
    async def stop_instance(self, instance_id: str, *, token: str) -> None: ...

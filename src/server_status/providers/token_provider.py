"""Token providers for authenticated instance API calls.

Identity and token issuance live outside this package; these adapters only
hand over whatever token the surrounding session already holds.
"""

from __future__ import annotations

import os
from typing import Awaitable, Callable


class StaticTokenProvider:
    """Returns the same token on every call (None or empty means signed out)."""

    def __init__(self, token: str | None) -> None:
        self._token = token or None

    async def get_token(self) -> str | None:
        return self._token


class EnvTokenProvider:
    """Reads the token from an environment variable on every call."""

    def __init__(self, variable: str = "STATUS_API_TOKEN") -> None:
        self._variable = variable

    async def get_token(self) -> str | None:
        return os.environ.get(self._variable) or None


class CallableTokenProvider:
    """Adapts an async callable (e.g. a session refresh hook)."""

    def __init__(self, fetch: Callable[[], Awaitable[str | None]]) -> None:
        self._fetch = fetch

    async def get_token(self) -> str | None:
        return (await self._fetch()) or None

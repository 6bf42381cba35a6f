"""Status page configuration settings.

StatusPageSettings is the single configuration object accepted by create_app()
and the CLI. It is a plain dataclass (not env-coupled) so tests can inject
config without touching os.environ.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from urllib.parse import urlparse


class SettingsError(ValueError):
    """Raised when an environment variable cannot be parsed."""


@dataclass(frozen=True, slots=True)
class StatusPageSettings:
    """Configuration for status page sessions and the HTTP surface.

    All fields have sensible defaults for local development.
    Non-local environments must supply an HTTPS api_base_url.
    """

    # ── Environment ────────────────────────────────────────────────
    environment: str = "local"
    """One of: local, dev, staging, production."""

    # ── Instance API ───────────────────────────────────────────────
    api_base_url: str = "http://localhost:8080"
    """Base URL of the instance API (status and stop endpoints)."""

    api_token: str = ""
    """Static bearer token used when a page has no session token. Never log this."""

    status_path: str = "/instances/{instance_id}"
    """Path template for the status query (GET)."""

    stop_path: str = "/instances/{instance_id}"
    """Path template for the stop request (DELETE)."""

    # ── Lifecycle timing ───────────────────────────────────────────
    provisioning_seconds: int = 180
    """Fixed simulated provisioning wait before details are shown."""

    tick_seconds: float = 1.0
    """Countdown tick period."""

    poll_interval_seconds: float = 5.0
    """Status poll period."""

    # ── Pages ──────────────────────────────────────────────────────
    overview_path: str = "/dashboard"
    """Where the page navigates after the stop success notice is dismissed."""

    max_pages: int = 100
    """Maximum number of concurrently open status pages."""

    page_idle_ttl_seconds: float = 300.0
    """Pages not read or acted on for this long are closed by the registry."""

    cors_origins: tuple[str, ...] = (
        "http://localhost:5173",
        "http://localhost:3000",
    )
    """Allowed CORS origins."""

    @property
    def is_local(self) -> bool:
        return self.environment == "local"

    def validate(self) -> list[str]:
        """Return a list of configuration errors. Empty means valid."""
        errors: list[str] = []
        if self.provisioning_seconds < 0:
            errors.append("provisioning_seconds must be >= 0")
        if self.tick_seconds <= 0:
            errors.append("tick_seconds must be > 0")
        if self.poll_interval_seconds <= 0:
            errors.append("poll_interval_seconds must be > 0")
        if self.max_pages < 1:
            errors.append("max_pages must be >= 1")
        if self.page_idle_ttl_seconds <= 0:
            errors.append("page_idle_ttl_seconds must be > 0")
        for name in ("status_path", "stop_path"):
            template = getattr(self, name)
            if "{instance_id}" not in template:
                errors.append(f"{name} must contain '{{instance_id}}'")

        parsed = urlparse(self.api_base_url)
        if not parsed.scheme or not parsed.netloc:
            errors.append(
                f"api_base_url must include scheme and host, got {self.api_base_url!r}"
            )
        elif not self.is_local and parsed.scheme != "https":
            errors.append(
                f"{self.environment}: api_base_url must use HTTPS"
            )
        return errors

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None) -> StatusPageSettings:
        """Build settings from environment variables.

        This is a convenience factory for production use. Tests should
        construct StatusPageSettings directly.
        """
        if env is None:
            env = dict(os.environ)

        defaults = cls()
        cors_raw = env.get("CORS_ORIGINS", "")
        cors = (
            tuple(o.strip() for o in cors_raw.split(",") if o.strip())
            if cors_raw
            else defaults.cors_origins
        )

        return cls(
            environment=env.get("ENVIRONMENT", "local"),
            api_base_url=env.get("STATUS_API_URL", defaults.api_base_url).rstrip("/"),
            api_token=env.get("STATUS_API_TOKEN", ""),
            status_path=env.get("STATUS_PATH_TEMPLATE", defaults.status_path),
            stop_path=env.get("STOP_PATH_TEMPLATE", defaults.stop_path),
            provisioning_seconds=_env_int(
                env, "PROVISIONING_SECONDS", defaults.provisioning_seconds
            ),
            tick_seconds=_env_float(env, "TICK_SECONDS", defaults.tick_seconds),
            poll_interval_seconds=_env_float(
                env, "POLL_INTERVAL_SECONDS", defaults.poll_interval_seconds
            ),
            overview_path=env.get("OVERVIEW_PATH", defaults.overview_path),
            max_pages=_env_int(env, "MAX_STATUS_PAGES", defaults.max_pages),
            page_idle_ttl_seconds=_env_float(
                env, "PAGE_IDLE_TTL_SECONDS", defaults.page_idle_ttl_seconds
            ),
            cors_origins=cors,
        )


def _env_int(env: dict[str, str], name: str, default: int) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise SettingsError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(env: dict[str, str], name: str, default: float) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise SettingsError(f"{name} must be a number, got {raw!r}") from None

"""Shared configuration for the auth service E2E harness.

Values come from environment variables, falling back to `.env.defaults`:

- BASE_URL / CYPRESS_BASE_URL: target base URL (default http://localhost:3000)
- AUTH_BASE_URL: auth API base URL (defaults to the base URL)
- APP_BASE_URL: application UI base URL (default http://localhost:8000)
- CI: enables CI retry/worker counts
- AUTH_E2E_TARGET: "mock" runs an in-process stand-in service, "live" uses BASE_URL
"""
from __future__ import annotations

from contextlib import contextmanager
from copy import deepcopy
from dataclasses import dataclass
from typing import Dict, Iterator, List, Literal
from urllib.parse import urljoin

from auth_e2e.env_defaults import getenv

TargetMode = Literal["mock", "live"]

DEFAULT_BASE_URL = "http://localhost:3000"
DEFAULT_APP_BASE_URL = "http://localhost:8000"


def _truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class TargetProfile:
    """One addressable target (the auth API or the rendered app)."""

    name: str
    base_url: str

    def url(self, path: str = "/") -> str:
        return urljoin(self.base_url.rstrip("/") + "/", path.lstrip("/"))


class HarnessSettings:
    """Configuration loaded from the environment.

    Re-read with `reload()`; the pytest plugin does this once at session start
    after applying command line overrides.
    """

    def __init__(self) -> None:
        self.reload()

    def reload(self) -> None:
        base_url = getenv("BASE_URL") or getenv("CYPRESS_BASE_URL") or DEFAULT_BASE_URL
        target = (getenv("AUTH_E2E_TARGET", "mock") or "mock").lower()
        if target not in {"mock", "live"}:
            raise ValueError(f"AUTH_E2E_TARGET must be 'mock' or 'live', got {target!r}")

        self.target: TargetMode = target  # type: ignore[assignment]
        self.ci: bool = _truthy(getenv("CI"))
        self.max_attempts: int = int(getenv("AUTH_E2E_MAX_ATTEMPTS", "30"))
        self.poll_interval_ms: int = int(getenv("AUTH_E2E_POLL_INTERVAL_MS", "1000"))
        self.request_timeout: float = float(getenv("AUTH_E2E_REQUEST_TIMEOUT", "10"))
        self.playwright_headless: bool = (getenv("PLAYWRIGHT_HEADLESS", "true") or "true").lower() in {"true", "1"}
        self.playwright_browser: str = getenv("PLAYWRIGHT_BROWSER", "firefox") or "firefox"

        auth = TargetProfile(name="auth", base_url=getenv("AUTH_BASE_URL") or base_url)
        app = TargetProfile(name="app", base_url=getenv("APP_BASE_URL") or DEFAULT_APP_BASE_URL)
        self._base_url = base_url
        self._profiles: Dict[str, TargetProfile] = {auth.name: auth, app.name: app}
        self._active: TargetProfile = auth

    def override_base_url(self, base_url: str) -> None:
        """Point the harness (auth profile included) at another service."""
        self._base_url = base_url
        self._profiles["auth"].base_url = base_url
        if self._active.name == "auth":
            self._active.base_url = base_url

    # ---- CI-dependent runner knobs ----------------------------------------------
    @property
    def retries(self) -> int:
        return 2 if self.ci else 0

    @property
    def workers(self) -> int | None:
        return 2 if self.ci else None

    # ---- active profile helpers -------------------------------------------------
    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def auth_base_url(self) -> str:
        return self._profiles["auth"].base_url

    @property
    def app_base_url(self) -> str:
        return self._profiles["app"].base_url

    def profiles(self) -> List[TargetProfile]:
        return list(self._profiles.values())

    def profile(self, name: str) -> TargetProfile:
        return self._profiles[name]

    @contextmanager
    def use_profile(self, profile: TargetProfile) -> Iterator[TargetProfile]:
        """Temporarily switch the active profile.

        A copy is activated so changes made inside the block never leak into
        the configured profile.
        """
        previous = self._active
        self._active = deepcopy(profile)
        try:
            yield self._active
        finally:
            self._active = previous

    def url(self, path: str = "/") -> str:
        """Return an absolute URL on the active profile."""
        return self._active.url(path)


# Singleton instance - initialized on first import
settings = HarnessSettings()

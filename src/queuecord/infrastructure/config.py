"""Configuration constants, .env parsing, and delivery tuning."""

from __future__ import annotations

import os
from pathlib import Path

_KEYS = (
    "QUEUECORD_STORE_DIR",
    "QUEUECORD_PROBE_HOST",
    "QUEUECORD_PROBE_PORT",
    "QUEUECORD_PROBE_INTERVAL",
    "QUEUECORD_PROBE_TIMEOUT",
    "QUEUECORD_SEND_TIMEOUT",
    "QUEUECORD_STORE_POLL_INTERVAL",
    "QUEUECORD_RETRY_BASE",
    "QUEUECORD_RETRY_MAX_ATTEMPTS",
    "QUEUECORD_SHUTDOWN_GRACE",
)

_QUOTES = ('"', "'")


def read_env_file(keys: list[str] | tuple[str, ...], env_file: Path | None = None) -> dict[str, str]:
    """Return the non-empty values of ``keys`` found in ``./.env``.

    Nothing is exported to os.environ.
    """
    try:
        lines = (env_file or Path.cwd() / ".env").read_text().splitlines()
    except OSError:
        return {}

    values: dict[str, str] = {}
    for line in lines:
        key, sep, value = line.strip().partition("=")
        key = key.strip()
        if not sep or key.startswith("#") or key not in keys:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] in _QUOTES and value[-1] == value[0]:
            value = value[1:-1]
        if value:
            values[key] = value
    return values


_env_config = read_env_file(_KEYS)


def _setting(key: str, default: str) -> str:
    """os.environ wins over .env."""
    return os.environ.get(key) or _env_config.get(key, default)


STORE_DIR: Path = Path(_setting("QUEUECORD_STORE_DIR", str(Path.cwd() / "store"))).expanduser().resolve()
DB_FILENAME: str = "queuecord.db"

# Connectivity probe: a TCP connect to a well-known host decides "deliverable".
CONNECTIVITY_PROBE_HOST: str = _setting("QUEUECORD_PROBE_HOST", "discord.com")
CONNECTIVITY_PROBE_PORT: int = int(_setting("QUEUECORD_PROBE_PORT", "443"))
CONNECTIVITY_POLL_INTERVAL: float = float(_setting("QUEUECORD_PROBE_INTERVAL", "5.0"))  # seconds
CONNECTIVITY_PROBE_TIMEOUT: float = float(_setting("QUEUECORD_PROBE_TIMEOUT", "3.0"))

SEND_TIMEOUT: float = float(_setting("QUEUECORD_SEND_TIMEOUT", "15.0"))
STORE_POLL_INTERVAL: float = float(_setting("QUEUECORD_STORE_POLL_INTERVAL", "2.0"))
RETRY_BASE_S: float = float(_setting("QUEUECORD_RETRY_BASE", "5.0"))
RETRY_MAX_ATTEMPTS: int = max(0, int(_setting("QUEUECORD_RETRY_MAX_ATTEMPTS", "5")))
SHUTDOWN_GRACE_S: float = float(_setting("QUEUECORD_SHUTDOWN_GRACE", "5.0"))


class DeliveryConfig:
    """Tunables for the delivery coordinator."""

    def __init__(
        self,
        retry_base_s: float = RETRY_BASE_S,
        retry_max_attempts: int = RETRY_MAX_ATTEMPTS,
        store_poll_interval_s: float = STORE_POLL_INTERVAL,
        shutdown_grace_s: float = SHUTDOWN_GRACE_S,
    ) -> None:
        self.retry_base_s = retry_base_s
        self.retry_max_attempts = retry_max_attempts
        self.store_poll_interval_s = store_poll_interval_s
        self.shutdown_grace_s = shutdown_grace_s

    def retry_delay(self, attempt: int) -> float | None:
        """Backoff delay for the given retry attempt (1-based), or None once retries are exhausted."""
        if attempt < 1 or attempt > self.retry_max_attempts:
            return None
        return self.retry_base_s * 2 ** (attempt - 1)

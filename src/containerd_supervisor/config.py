# src/containerd_supervisor/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole supervisor.
- No runtime connection required at import time.
- Every timing the lifecycle uses is overridable without code changes.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .core.context import DEFAULT_NAMESPACE
from .tasks.task_models import StatusFailurePolicy

ENV_PREFIX = "CTRD_SUPERVISOR"

logger = logging.getLogger(__name__)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_float(name: str, default: float, *, minimum: float = 0.0) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number, using %s", name, raw, default)
        return default
    return max(minimum, value)


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _env_policy(name: str, default: StatusFailurePolicy) -> StatusFailurePolicy:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return StatusFailurePolicy(raw.strip().lower())
    except ValueError:
        logger.warning("Ignoring %s=%r: expected abort|escalate, using %s", name, raw, default.value)
        return default


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    log_dir: Path

    # ---- Runtime ----
    namespace: str

    # ---- Lifecycle timings (seconds) ----
    startup_grace_seconds: float
    shutdown_timeout_seconds: float

    # ---- Shutdown policy ----
    status_failure_policy: StatusFailurePolicy

    @staticmethod
    def from_env(*, load_env_file: bool = True) -> Settings:
        if load_env_file:
            load_dotenv(override=False)

        return Settings(
            app_name=_env(_k("APP_NAME"), "containerd-supervisor"),
            log_level=_env(_k("LOG_LEVEL"), "INFO").upper(),
            log_dir=_env_path(_k("LOG_DIR"), Path(".local/supervisor")),
            namespace=_env(_k("NAMESPACE"), DEFAULT_NAMESPACE).strip() or DEFAULT_NAMESPACE,
            # Gives the exit monitor time to attach before the task starts.
            startup_grace_seconds=_env_float(_k("STARTUP_GRACE_SECONDS"), 5.0),
            shutdown_timeout_seconds=_env_float(_k("SHUTDOWN_TIMEOUT_SECONDS"), 5.0),
            status_failure_policy=_env_policy(_k("STATUS_FAILURE_POLICY"), StatusFailurePolicy.ABORT),
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Process-wide settings, built from the environment on first use."""
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    global _SETTINGS
    _SETTINGS = None

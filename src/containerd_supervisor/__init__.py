# src/containerd_supervisor/__init__.py

"""Orchestrator-side supervisor for one containerd container/task pair."""

from __future__ import annotations

from .core.context import CallContext
from .tasks.errors import (
    CancelledCallError,
    RuntimeNotFoundError,
    SupervisorError,
    TaskLifecycleError,
    UnsupportedSignalError,
)
from .tasks.handle import TaskHandle
from .tasks.monitor import ExitMonitor
from .tasks.task_models import (
    ExitResult,
    ProcessStatus,
    RuntimeStatus,
    StatusFailurePolicy,
    TaskConfig,
    TaskState,
    TaskStatusSnapshot,
    UnsupportedStats,
)

__all__ = [
    "CallContext",
    "CancelledCallError",
    "ExitMonitor",
    "ExitResult",
    "ProcessStatus",
    "RuntimeNotFoundError",
    "RuntimeStatus",
    "StatusFailurePolicy",
    "SupervisorError",
    "TaskConfig",
    "TaskHandle",
    "TaskLifecycleError",
    "TaskState",
    "TaskStatusSnapshot",
    "UnsupportedSignalError",
    "UnsupportedStats",
]

# src/containerd_supervisor/tasks/errors.py

from __future__ import annotations


class SupervisorError(Exception):
    """Base class for errors raised by the supervisor."""


class TaskLifecycleError(SupervisorError):
    """
    A runtime call made by a lifecycle operation failed.

    The runtime's exception is kept unchanged as __cause__; this wrapper only
    adds which phase failed and for which task.
    """

    def __init__(self, message: str, *, phase: str, task_id: str) -> None:
        super().__init__(message)
        self.phase = phase
        self.task_id = task_id


class UnsupportedSignalError(SupervisorError, ValueError):
    """A signal value has no equivalent in the runtime's signal model."""

    def __init__(self, value: object) -> None:
        super().__init__(f"unsupported signal: {value!r}")
        self.value = value


class RuntimeNotFoundError(SupervisorError):
    """
    Raised by runtime clients when the object no longer exists.

    cleanup() treats it as "already deleted" on the task-deletion step.
    """


class CancelledCallError(SupervisorError):
    """The CallContext was cancelled before the operation could proceed."""

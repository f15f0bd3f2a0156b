# src/containerd_supervisor/tasks/task_models.py

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any

CONTAINER_NAME_ATTR = "containerName"


class TaskState(StrEnum):
    """Process state as seen by the orchestrator."""

    PENDING = "pending"
    RUNNING = "running"
    EXITED = "exited"


class RuntimeStatus(StrEnum):
    """
    Task status as reported by the container runtime.

    Mirrors containerd's ProcessStatus values. Only RUNNING matters for
    shutdown escalation; everything else counts as "not running".
    """

    CREATED = "created"
    RUNNING = "running"
    STOPPED = "stopped"
    PAUSED = "paused"
    PAUSING = "pausing"
    UNKNOWN = ""


class StatusFailurePolicy(StrEnum):
    """
    What shutdown does when the post-grace status query fails.

    - ABORT: raise the status error, no forceful kill (the task may be left running)
    - ESCALATE: log the error and send SIGKILL anyway (fail closed)
    """

    ABORT = "abort"
    ESCALATE = "escalate"


@dataclass(slots=True, frozen=True)
class ProcessStatus:
    status: RuntimeStatus
    exit_status: int = 0
    exited_at: datetime | None = None


@dataclass(slots=True, frozen=True)
class ExitResult:
    exit_code: int = 0
    signal: int = 0
    oom_killed: bool = False
    err: str | None = None


@dataclass(slots=True, frozen=True)
class TaskConfig:
    """The part of the orchestrator's task configuration the handle needs."""

    id: str
    name: str


@dataclass(slots=True, frozen=True)
class TaskStatusSnapshot:
    """
    Point-in-time copy of a handle's state.

    Snapshots are eventually consistent: a read racing a lifecycle call may
    see the state from just before the transition.
    """

    id: str
    name: str
    state: TaskState
    started_at: datetime | None
    completed_at: datetime | None
    exit_result: ExitResult | None
    driver_attributes: dict[str, str]


@dataclass(slots=True, frozen=True)
class UnsupportedStats:
    """
    Resource usage stream for a driver that does not collect stats.

    Iterating yields nothing, ever. `supported` lets callers tell
    "no data will arrive" apart from "nothing arrived yet".
    """

    task_id: str
    interval: float
    supported: bool = False
    reason: str = "resource usage stats are not collected for containerd tasks"

    def __iter__(self) -> Iterator[Any]:
        return iter(())

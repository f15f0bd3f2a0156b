# src/containerd_supervisor/tasks/handle.py

from __future__ import annotations

"""
Per-task lifecycle handle.

A TaskHandle owns the in-memory state of one containerd task and drives the
runtime through the TaskClient/ContainerClient ports:
- status reads (task_status / is_running) take the shared side of the lock
- state transitions (mark_running / record_exit) take the exclusive side
- runtime calls and grace-period waits run outside the lock, so a status poll
  never waits on the runtime

Exactly one lifecycle driver calls run/shutdown/cleanup; status reads may come
from any thread at any time.
"""

import logging
import signal
import threading
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from ..core.context import CallContext
from ..core.locks import ReadWriteLock
from ..core.ports import ContainerClient, TaskClient
from .errors import CancelledCallError, RuntimeNotFoundError, TaskLifecycleError
from .signals import FORCEFUL_SIGNAL, signal_name, to_runtime_signal
from .task_models import (
    CONTAINER_NAME_ATTR,
    ExitResult,
    RuntimeStatus,
    StatusFailurePolicy,
    TaskConfig,
    TaskState,
    TaskStatusSnapshot,
    UnsupportedStats,
)

if TYPE_CHECKING:
    from ..config import Settings

logger = logging.getLogger(__name__)

DEFAULT_STARTUP_GRACE_SECONDS = 5.0
DEFAULT_SHUTDOWN_TIMEOUT_SECONDS = 5.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskHandle:
    def __init__(
            self,
            task_config: TaskConfig,
            *,
            container_name: str,
            container: ContainerClient,
            task: TaskClient,
            state: TaskState = TaskState.PENDING,
            started_at: datetime | None = None,
            exit_result: ExitResult | None = None,
            completed_at: datetime | None = None,
            startup_grace_seconds: float = DEFAULT_STARTUP_GRACE_SECONDS,
            shutdown_timeout_seconds: float = DEFAULT_SHUTDOWN_TIMEOUT_SECONDS,
            status_failure_policy: StatusFailurePolicy = StatusFailurePolicy.ABORT,
            log: logging.Logger | None = None,
    ) -> None:
        if (state == TaskState.EXITED) != (exit_result is not None):
            raise ValueError("an exited handle needs an exit_result, and only an exited one may have it")

        self._state_lock = ReadWriteLock()

        self._task_config = task_config
        self._proc_state = state
        self._started_at = started_at
        self._exit_result = exit_result
        self._completed_at = (completed_at or _utcnow()) if exit_result is not None else None
        self._container_name = container_name

        self._container = container
        self._task = task

        self._startup_grace_seconds = max(0.0, float(startup_grace_seconds))
        self._shutdown_timeout_seconds = max(0.0, float(shutdown_timeout_seconds))
        self._status_failure_policy = status_failure_policy
        self._monitor_ready: threading.Event | None = None
        self._logger = log or logger

    @classmethod
    def from_settings(
            cls,
            settings: Settings,
            task_config: TaskConfig,
            *,
            container_name: str,
            container: ContainerClient,
            task: TaskClient,
            log: logging.Logger | None = None,
    ) -> TaskHandle:
        return cls(
            task_config,
            container_name=container_name,
            container=container,
            task=task,
            startup_grace_seconds=settings.startup_grace_seconds,
            shutdown_timeout_seconds=settings.shutdown_timeout_seconds,
            status_failure_policy=settings.status_failure_policy,
            log=log,
        )

    @property
    def id(self) -> str:
        return self._task_config.id

    @property
    def name(self) -> str:
        return self._task_config.name

    # ---- status (read side) ----

    def task_status(self) -> TaskStatusSnapshot:
        with self._state_lock.read():
            return TaskStatusSnapshot(
                id=self._task_config.id,
                name=self._task_config.name,
                state=self._proc_state,
                started_at=self._started_at,
                completed_at=self._completed_at,
                exit_result=self._exit_result,
                driver_attributes={CONTAINER_NAME_ATTR: self._container_name},
            )

    def is_running(self) -> bool:
        with self._state_lock.read():
            return self._proc_state == TaskState.RUNNING

    # ---- state transitions (write side) ----

    def mark_running(self, started_at: datetime | None = None) -> None:
        with self._state_lock.write():
            if self._proc_state == TaskState.EXITED:
                self._logger.debug("Task %s already exited; not marking running", self.id)
                return
            self._proc_state = TaskState.RUNNING
            self._started_at = started_at or self._started_at or _utcnow()

    def record_exit(self, exit_result: ExitResult, completed_at: datetime | None = None) -> bool:
        """
        Deliver the task's terminal status.

        State, exit result and completion time change together, so no reader
        can observe EXITED without the other two. Only the first call wins;
        returns False for later ones.
        """
        with self._state_lock.write():
            if self._exit_result is not None:
                duplicate = True
            else:
                duplicate = False
                self._exit_result = exit_result
                self._completed_at = completed_at or _utcnow()
                self._proc_state = TaskState.EXITED

        if duplicate:
            self._logger.warning("Ignoring repeated exit notification for task %s", self.id)
            return False

        self._logger.info(
            "Task %s exited code=%s signal=%s err=%s",
            self.id,
            exit_result.exit_code,
            exit_result.signal,
            exit_result.err,
        )
        return True

    def attach_monitor(self, ready: threading.Event) -> None:
        """Gate run() on the exit monitor's readiness instead of the bare grace period."""
        with self._state_lock.write():
            self._monitor_ready = ready

    # ---- lifecycle (driver side) ----

    def run(self, ctx: CallContext) -> None:
        """
        Start the task once something is watching for its exit.

        With a monitor attached, waits for its readiness (bounded by the startup
        grace period); otherwise sleeps the full grace period.
        """
        with self._state_lock.read():
            ready = self._monitor_ready

        if ready is None:
            gate_passed = ctx.sleep(self._startup_grace_seconds)
        else:
            gate_passed = ctx.wait_for(ready, self._startup_grace_seconds)
            if not gate_passed and not ctx.cancelled:
                self._logger.warning(
                    "Exit monitor for task %s not ready after %.1fs; starting anyway",
                    self.id,
                    self._startup_grace_seconds,
                )
                gate_passed = True

        if not gate_passed:
            raise TaskLifecycleError(
                f"start of task {self.id} cancelled",
                phase="start",
                task_id=self.id,
            ) from CancelledCallError("context cancelled before start")

        # A failed exit wait marks the task exited; starting it now would leave it unwatched.
        with self._state_lock.read():
            exited = self._proc_state == TaskState.EXITED
            exit_err = self._exit_result.err if self._exit_result is not None else None
        if exited:
            self._logger.warning("Not starting task %s: already exited (%s)", self.id, exit_err)
            raise TaskLifecycleError(
                f"task {self.id} already exited before start: {exit_err}",
                phase="start",
                task_id=self.id,
            )

        try:
            self._task.start(ctx)
        except Exception as e:
            self._logger.warning("Failed to start task %s: %s", self.id, e)
            raise TaskLifecycleError(
                f"failed to start task {self.id}: {e}",
                phase="start",
                task_id=self.id,
            ) from e

        self._logger.info("Started task %s (container %s)", self.id, self._container_name)

    def shutdown(
            self,
            ctx: CallContext,
            timeout: float | None,
            sig: signal.Signals | int | str,
    ) -> None:
        """
        Graceful-then-forceful stop.

        - send `sig` and give the task `timeout` seconds to exit
          (None -> the handle's configured shutdown timeout)
        - ask the runtime whether it is still running
        - still running -> SIGKILL

        Cancelling `ctx` cuts the grace period short; the status check and
        escalation still happen.
        """
        sig = to_runtime_signal(sig)
        if timeout is None:
            timeout = self._shutdown_timeout_seconds
        try:
            self._task.kill(ctx, sig)
        except Exception as e:
            self._logger.warning("Failed to send %s to task %s: %s", signal_name(sig), self.id, e)
            raise TaskLifecycleError(
                f"failed to signal task {self.id} with {signal_name(sig)}: {e}",
                phase="signal",
                task_id=self.id,
            ) from e

        if not ctx.sleep(timeout):
            self._logger.info("Shutdown grace period for task %s cut short by cancellation", self.id)

        try:
            status = self._task.status(ctx)
        except Exception as e:
            if self._status_failure_policy != StatusFailurePolicy.ESCALATE:
                self._logger.warning("Status check for task %s failed; not escalating: %s", self.id, e)
                raise TaskLifecycleError(
                    f"failed to query status of task {self.id}: {e}",
                    phase="status",
                    task_id=self.id,
                ) from e
            self._logger.warning("Status check for task %s failed; escalating to SIGKILL: %s", self.id, e)
        else:
            if status.status != RuntimeStatus.RUNNING:
                self._logger.info("Task is not running anymore, no need to SIGKILL")
                return

        try:
            self._task.kill(ctx, FORCEFUL_SIGNAL)
        except Exception as e:
            self._logger.warning("Failed to SIGKILL task %s: %s", self.id, e)
            raise TaskLifecycleError(
                f"failed to force kill task {self.id}: {e}",
                phase="force_kill",
                task_id=self.id,
            ) from e

        self._logger.info("Sent SIGKILL to task %s after %.1fs grace period", self.id, timeout)

    def cleanup(self, ctx: CallContext) -> None:
        """
        Delete the task, then the container and its snapshot.

        A task that is already gone (RuntimeNotFoundError) counts as deleted,
        so cleanup can be retried after a failed container delete.
        """
        try:
            self._task.delete(ctx)
        except RuntimeNotFoundError:
            self._logger.info("Task %s already deleted", self.id)
        except Exception as e:
            self._logger.warning("Failed to delete task %s: %s", self.id, e)
            raise TaskLifecycleError(
                f"failed to delete task {self.id}: {e}",
                phase="delete_task",
                task_id=self.id,
            ) from e

        try:
            self._container.delete(ctx, snapshot_cleanup=True)
        except Exception as e:
            self._logger.warning("Failed to delete container %s: %s", self._container_name, e)
            raise TaskLifecycleError(
                f"failed to delete container {self._container_name}: {e}",
                phase="delete_container",
                task_id=self.id,
            ) from e

        self._logger.info("Cleaned up task %s and container %s", self.id, self._container_name)

    def stats(self, ctx: CallContext, interval: float) -> UnsupportedStats:
        return UnsupportedStats(task_id=self.id, interval=float(interval))

    def signal(self, ctx: CallContext, sig: object) -> None:
        runtime_sig = to_runtime_signal(sig)
        try:
            self._task.kill(ctx, runtime_sig)
        except Exception as e:
            self._logger.warning("Failed to send %s to task %s: %s", signal_name(runtime_sig), self.id, e)
            raise TaskLifecycleError(
                f"failed to signal task {self.id} with {signal_name(runtime_sig)}: {e}",
                phase="signal",
                task_id=self.id,
            ) from e

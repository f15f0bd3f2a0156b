# src/containerd_supervisor/tasks/monitor.py

from __future__ import annotations

"""
Exit monitor.

A background thread per task that:
- registers a wait on the runtime task,
- signals readiness so TaskHandle.run() may start the task,
- blocks until the task exits,
- delivers the exit into the handle (record_exit).

To stop the monitor, call stop(); the pending wait is abandoned and no exit
is recorded.
"""

import logging
import threading
from concurrent.futures import CancelledError

from ..core.context import CallContext
from ..core.ports import TaskClient
from .handle import TaskHandle
from .task_models import ExitResult

logger = logging.getLogger(__name__)

# result() is polled in slices so stop() is noticed without the runtime's help.
_POLL_SECONDS = 0.1


class ExitMonitor:
    def __init__(self, handle: TaskHandle, task: TaskClient, ctx: CallContext) -> None:
        self._handle = handle
        self._task = task
        # Own child context: stopping the monitor must not cancel the driver's calls.
        self._ctx = ctx.child()
        self.ready = threading.Event()
        self._thread: threading.Thread | None = None

    def attach(self) -> ExitMonitor:
        """Make the handle's run() wait for this monitor instead of a bare sleep."""
        self._handle.attach_monitor(self.ready)
        return self

    def start(self) -> ExitMonitor:
        if self._thread is not None:
            raise RuntimeError(f"exit monitor for task {self._handle.id} already started")
        self._thread = threading.Thread(
            target=self._run,
            name=f"exit-monitor-{self._handle.id}",
            daemon=True,
        )
        self._thread.start()
        return self

    def stop(self) -> None:
        self._ctx.cancel()

    def join(self, timeout: float | None = None) -> bool:
        """Returns True if the monitor thread has finished."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def _run(self) -> None:
        task_id = self._handle.id
        try:
            waiter = self._task.wait(self._ctx)
        except Exception as e:
            logger.exception("Failed to wait on task %s", task_id)
            # Without a waiter the exit can never be observed; fail the task now.
            self._handle.record_exit(ExitResult(exit_code=-1, err=f"wait failed: {e}"))
            return
        finally:
            # run() must not block on a monitor that will never become ready.
            self.ready.set()

        logger.debug("Exit monitor for task %s ready", task_id)

        while not self._ctx.cancelled:
            try:
                result = waiter.result(timeout=_POLL_SECONDS)
            except TimeoutError:
                continue
            except CancelledError:
                logger.info("Wait on task %s was cancelled", task_id)
                return
            except Exception as e:
                logger.exception("Waiting on task %s failed", task_id)
                self._handle.record_exit(ExitResult(exit_code=-1, err=f"wait failed: {e}"))
                return

            self._handle.record_exit(result)
            return

        logger.debug("Exit monitor for task %s stopped", task_id)

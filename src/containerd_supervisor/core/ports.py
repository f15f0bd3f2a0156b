# src/containerd_supervisor/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The handle depends on Protocols instead of a concrete containerd client.
This keeps the runtime swappable and makes testing easier: tests drive the
handle with recording fakes.
"""

import signal
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..tasks.task_models import ExitResult, ProcessStatus
    from .context import CallContext


class ExitWaiter(Protocol):
    """
    Pending exit notification returned by TaskClient.wait().

    concurrent.futures.Future satisfies this protocol.
    """

    def result(self, timeout: float | None = None) -> ExitResult: ...


class TaskClient(Protocol):
    """The runtime's task object (the process inside the container)."""

    def start(self, ctx: CallContext) -> None: ...

    def kill(self, ctx: CallContext, sig: signal.Signals | int) -> None: ...

    def status(self, ctx: CallContext) -> ProcessStatus: ...

    def delete(self, ctx: CallContext) -> ExitResult | None: ...

    def wait(self, ctx: CallContext) -> ExitWaiter:
        """
        Register interest in the task's exit and return immediately.

        Once this returns, an exit of the task can no longer be missed.
        """
        ...


class ContainerClient(Protocol):
    """The runtime's container object (the envelope hosting the task)."""

    def delete(self, ctx: CallContext, *, snapshot_cleanup: bool) -> None: ...

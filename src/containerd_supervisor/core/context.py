# src/containerd_supervisor/core/context.py

"""
Call context passed to every runtime call.

Carries the containerd namespace the objects live in and a cancellation
token. Waits inside lifecycle operations go through CallContext.sleep() so
that a driver can cut a grace period short by cancelling the context.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field

DEFAULT_NAMESPACE = "nomad"

# wait_for() has to notice cancellation while blocked on a foreign event.
_POLL_SECONDS = 0.05


@dataclass(slots=True)
class CallContext:
    namespace: str = DEFAULT_NAMESPACE
    _cancelled: threading.Event = field(default_factory=threading.Event, repr=False)

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def sleep(self, seconds: float) -> bool:
        """
        Block for up to `seconds`.

        Returns True if the full period elapsed, False if the context was
        cancelled first.
        """
        if seconds <= 0:
            return not self.cancelled
        return not self._cancelled.wait(timeout=seconds)

    def wait_for(self, event: threading.Event, timeout: float) -> bool:
        """
        Wait until `event` is set, the timeout expires or the context is cancelled.

        Returns True only if `event` was set and the context is not cancelled.
        """
        deadline = time.monotonic() + max(0.0, float(timeout))
        while not self.cancelled:
            if event.is_set():
                return True
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            event.wait(min(_POLL_SECONDS, remaining))
        return False

    def child(self) -> CallContext:
        """New context in the same namespace with its own cancellation."""
        return CallContext(namespace=self.namespace)

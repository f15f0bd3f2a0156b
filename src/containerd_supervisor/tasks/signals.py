# src/containerd_supervisor/tasks/signals.py

from __future__ import annotations

import signal

from .errors import UnsupportedSignalError

FORCEFUL_SIGNAL = signal.SIGKILL
DEFAULT_KILL_SIGNAL = signal.SIGTERM

RuntimeSignal = signal.Signals | int

# Realtime signals between SIGRTMIN and SIGRTMAX are plain ints, not Signals members.
_RT_RANGE: range | None = (
    range(int(signal.SIGRTMIN), int(signal.SIGRTMAX) + 1) if hasattr(signal, "SIGRTMIN") else None
)


def _realtime(number: int) -> RuntimeSignal | None:
    if _RT_RANGE is None or number not in _RT_RANGE:
        return None
    try:
        return signal.Signals(number)
    except ValueError:
        return number


def _parse_realtime_name(name: str) -> RuntimeSignal | None:
    """SIGRTMIN+N / SIGRTMAX-N, as written by kill(1)."""
    for base_name, sign in (("SIGRTMIN+", 1), ("SIGRTMAX-", -1)):
        if name.startswith(base_name):
            offset = name[len(base_name):]
            if not offset.isdigit() or not hasattr(signal, base_name[:-1]):
                return None
            return _realtime(int(getattr(signal, base_name[:-1])) + sign * int(offset))
    return None


def signal_name(sig: RuntimeSignal) -> str:
    if isinstance(sig, signal.Signals):
        return sig.name
    return f"SIGRTMIN+{sig - int(signal.SIGRTMIN)}"


def to_runtime_signal(value: object) -> RuntimeSignal:
    """
    Convert an orchestrator-level signal into a runtime signal.

    Accepts:
    - signal.Signals members
    - plain ints that are valid signal numbers on this platform, including
      Linux realtime signals (SIGRTMIN..SIGRTMAX)
    - names such as "SIGHUP", "hup", "HUP" or "SIGRTMIN+3"

    Realtime signals without their own Signals member come back as ints.
    Anything else raises UnsupportedSignalError.
    """
    if isinstance(value, signal.Signals):
        return value

    # bool is an int subclass, but True is not a signal.
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return signal.Signals(value)
        except ValueError:
            pass
        rt = _realtime(value)
        if rt is None:
            raise UnsupportedSignalError(value)
        return rt

    if isinstance(value, str):
        name = value.strip().upper()
        if not name:
            raise UnsupportedSignalError(value)
        if not name.startswith("SIG"):
            name = "SIG" + name
        # Reject SIG_DFL / SIG_IGN style handler constants.
        if name.startswith("SIG_"):
            raise UnsupportedSignalError(value)
        try:
            return signal.Signals[name]
        except KeyError:
            pass
        rt = _parse_realtime_name(name)
        if rt is None:
            raise UnsupportedSignalError(value)
        return rt

    raise UnsupportedSignalError(value)

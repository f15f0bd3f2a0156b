# tests/test_signals_and_locks.py

from __future__ import annotations

import signal
import threading
import time

import pytest

from containerd_supervisor.core.locks import ReadWriteLock
from containerd_supervisor.tasks.errors import UnsupportedSignalError
from containerd_supervisor.tasks.signals import signal_name, to_runtime_signal


def test_to_runtime_signal_accepts_names_numbers_and_members() -> None:
    assert to_runtime_signal(signal.SIGTERM) is signal.SIGTERM
    assert to_runtime_signal(int(signal.SIGKILL)) is signal.SIGKILL
    assert to_runtime_signal(" sigint ") is signal.SIGINT
    assert to_runtime_signal("USR2") is signal.SIGUSR2


@pytest.mark.parametrize("value", [True, -1, "SIG_DFL", "TERMINATE", b"SIGTERM"])
def test_to_runtime_signal_rejects_unrepresentable(value: object) -> None:
    with pytest.raises(UnsupportedSignalError) as excinfo:
        to_runtime_signal(value)
    assert excinfo.value.value == value
    assert isinstance(excinfo.value, ValueError)


def test_readers_share_the_lock() -> None:
    lock = ReadWriteLock()
    inside = threading.Barrier(2, timeout=2)

    def reader() -> None:
        with lock.read():
            inside.wait()

    threads = [threading.Thread(target=reader) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=2)
    assert not any(t.is_alive() for t in threads)


def test_writer_excludes_readers() -> None:
    lock = ReadWriteLock()
    order: list[str] = []

    lock.acquire_write()

    def reader() -> None:
        with lock.read():
            order.append("read")

    t = threading.Thread(target=reader)
    t.start()
    time.sleep(0.05)
    order.append("write-done")
    lock.release_write()
    t.join(timeout=2)

    assert order == ["write-done", "read"]


def test_waiting_writer_blocks_new_readers() -> None:
    lock = ReadWriteLock()
    order: list[str] = []

    lock.acquire_read()

    def writer() -> None:
        with lock.write():
            order.append("write")

    def late_reader() -> None:
        with lock.read():
            order.append("read")

    w = threading.Thread(target=writer)
    w.start()
    time.sleep(0.05)
    r = threading.Thread(target=late_reader)
    r.start()
    time.sleep(0.05)
    assert order == []

    lock.release_read()
    w.join(timeout=2)
    r.join(timeout=2)

    assert order == ["write", "read"]


def test_unbalanced_release_raises() -> None:
    lock = ReadWriteLock()
    with pytest.raises(RuntimeError):
        lock.release_read()
    with pytest.raises(RuntimeError):
        lock.release_write()


@pytest.mark.skipif(not hasattr(signal, "SIGRTMIN"), reason="realtime signals are Linux-only")
def test_to_runtime_signal_accepts_realtime_signals() -> None:
    rt3 = int(signal.SIGRTMIN) + 3

    assert int(to_runtime_signal(rt3)) == rt3
    assert int(to_runtime_signal("SIGRTMIN+3")) == rt3
    assert int(to_runtime_signal("rtmax-1")) == int(signal.SIGRTMAX) - 1
    assert signal_name(to_runtime_signal(rt3)) == "SIGRTMIN+3"


@pytest.mark.skipif(not hasattr(signal, "SIGRTMIN"), reason="realtime signals are Linux-only")
@pytest.mark.parametrize("value", ["SIGRTMIN+x", "SIGRTMAX+1", "SIGRTMIN+500"])
def test_to_runtime_signal_rejects_bad_realtime_names(value: str) -> None:
    with pytest.raises(UnsupportedSignalError):
        to_runtime_signal(value)


@pytest.mark.skipif(not hasattr(signal, "SIGRTMIN"), reason="realtime signals are Linux-only")
def test_realtime_signal_forwarded_through_handle(handle, task_client, ctx) -> None:
    rt5 = int(signal.SIGRTMIN) + 5

    handle.signal(ctx, rt5)

    assert [int(c.args[0]) for c in task_client.calls_named("kill")] == [rt5]

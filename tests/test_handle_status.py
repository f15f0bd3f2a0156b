# tests/test_handle_status.py

from __future__ import annotations

import threading
import time
from datetime import datetime, timezone

import pytest

from containerd_supervisor.tasks.handle import TaskHandle
from containerd_supervisor.tasks.task_models import ExitResult, TaskState


def test_status_snapshot_reports_identity_and_container_name(handle: TaskHandle) -> None:
    status = handle.task_status()

    assert status.id == "task-1"
    assert status.name == "redis"
    assert status.state == TaskState.PENDING
    assert status.completed_at is None
    assert status.exit_result is None
    assert status.driver_attributes == {"containerName": "redis-task-1"}
    assert handle.is_running() is False


def test_mark_running_then_exit_keeps_invariant(handle: TaskHandle) -> None:
    started = datetime(2026, 1, 1, tzinfo=timezone.utc)
    handle.mark_running(started)
    assert handle.is_running()
    assert handle.task_status().started_at == started

    assert handle.record_exit(ExitResult(exit_code=3)) is True

    status = handle.task_status()
    assert status.state == TaskState.EXITED
    assert status.exit_result == ExitResult(exit_code=3)
    assert status.completed_at is not None
    assert handle.is_running() is False


def test_exit_result_is_set_only_once(handle: TaskHandle) -> None:
    handle.record_exit(ExitResult(exit_code=0))
    first = handle.task_status()

    assert handle.record_exit(ExitResult(exit_code=137, signal=9)) is False
    assert handle.task_status().exit_result == first.exit_result
    assert handle.task_status().completed_at == first.completed_at


def test_mark_running_after_exit_is_ignored(handle: TaskHandle) -> None:
    handle.record_exit(ExitResult(exit_code=1))
    handle.mark_running()
    assert handle.task_status().state == TaskState.EXITED


def test_concurrent_readers_never_see_exited_without_result(handle: TaskHandle) -> None:
    violations: list[object] = []
    stop = threading.Event()

    def poll() -> None:
        while not stop.is_set():
            s = handle.task_status()
            if s.state == TaskState.EXITED and (s.exit_result is None or s.completed_at is None):
                violations.append(s)

    readers = [threading.Thread(target=poll) for _ in range(4)]
    for t in readers:
        t.start()

    handle.mark_running()
    time.sleep(0.02)
    handle.record_exit(ExitResult(exit_code=0))
    time.sleep(0.02)

    stop.set()
    for t in readers:
        t.join(timeout=2)

    assert violations == []
    assert handle.task_status().state == TaskState.EXITED


def test_status_reads_do_not_block_while_run_waits(handle: TaskHandle, ctx) -> None:
    runner = threading.Thread(target=handle.run, args=(ctx,))
    runner.start()
    try:
        time.sleep(0.02)
        t0 = time.monotonic()
        handle.task_status()
        handle.is_running()
        assert time.monotonic() - t0 < 0.1
    finally:
        runner.join(timeout=2)


def test_stats_is_explicitly_unsupported(handle: TaskHandle, ctx) -> None:
    stream = handle.stats(ctx, 1.0)

    assert stream.supported is False
    assert stream.task_id == "task-1"
    assert list(stream) == []


def test_exited_handle_requires_exit_result(task_config, task_client, container_client) -> None:
    with pytest.raises(ValueError):
        TaskHandle(
            task_config,
            container_name="redis-task-1",
            container=container_client,
            task=task_client,
            state=TaskState.EXITED,
        )


def test_exit_result_without_exited_state_is_rejected(task_config, task_client, container_client) -> None:
    with pytest.raises(ValueError):
        TaskHandle(
            task_config,
            container_name="redis-task-1",
            container=container_client,
            task=task_client,
            exit_result=ExitResult(exit_code=0),
        )


def test_restored_exited_handle_keeps_invariant(task_config, task_client, container_client) -> None:
    h = TaskHandle(
        task_config,
        container_name="redis-task-1",
        container=container_client,
        task=task_client,
        state=TaskState.EXITED,
        exit_result=ExitResult(exit_code=2),
    )

    status = h.task_status()
    assert status.state == TaskState.EXITED
    assert status.exit_result == ExitResult(exit_code=2)
    assert status.completed_at is not None

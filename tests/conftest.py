# tests/conftest.py

from __future__ import annotations

import pytest

from containerd_supervisor.core.context import CallContext
from containerd_supervisor.tasks.handle import TaskHandle
from containerd_supervisor.tasks.task_models import TaskConfig

from .fakes import FakeContainerClient, FakeTaskClient

# Short enough to keep the suite fast, long enough to measure.
GRACE_SECONDS = 0.2


@pytest.fixture()
def ctx() -> CallContext:
    return CallContext(namespace="test")


@pytest.fixture()
def task_client() -> FakeTaskClient:
    return FakeTaskClient()


@pytest.fixture()
def container_client() -> FakeContainerClient:
    return FakeContainerClient()


@pytest.fixture()
def task_config() -> TaskConfig:
    return TaskConfig(id="task-1", name="redis")


@pytest.fixture()
def handle(
    task_config: TaskConfig,
    task_client: FakeTaskClient,
    container_client: FakeContainerClient,
) -> TaskHandle:
    """
    Handle wired to recording fakes.

    Uses a short startup grace period; tests that care about the exact value
    build their own handle.
    """
    return TaskHandle(
        task_config,
        container_name="redis-task-1",
        container=container_client,
        task=task_client,
        startup_grace_seconds=GRACE_SECONDS,
    )

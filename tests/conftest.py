"""Shared test fixtures for the Cadence test suite."""

import asyncio
import os
from collections.abc import Awaitable, Callable, Generator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest

from cadence.clock import SystemClock, VirtualClock
from cadence.frames.base import NoOpFrame
from cadence.hooks.base import TaskHook
from cadence.hooks.events import TaskHookEvent
from cadence.schedule.immediate import ImmediateSchedule
from cadence.task.context import TaskContext
from cadence.task.task import Task

VIRTUAL_START = datetime(2024, 1, 1, tzinfo=UTC)


class EventRecorder(TaskHook):
    """Hook that records every event it receives."""

    def __init__(self) -> None:
        self.events: list[TaskHookEvent] = []

    async def on_event(self, event: TaskHookEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: type[TaskHookEvent]) -> list[TaskHookEvent]:
        return [event for event in self.events if isinstance(event, event_type)]

    @property
    def keys(self) -> list[str]:
        return [event.event_key for event in self.events]


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory for testing."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def mock_toml_files(test_config_dir: Path) -> Callable[[dict[str, str]], None]:
    """Factory fixture to create TOML files in the test config directory.

    Usage:
        def test_something(mock_toml_files):
            mock_toml_files({
                "default.toml": "app_name = 'test'",
                "development.toml": "[scheduler]\\nclock = 'virtual'",
            })
    """

    def _create_toml_files(files: dict[str, str]) -> None:
        for filename, content in files.items():
            (test_config_dir / filename).write_text(content)

    return _create_toml_files


class EnvOverrideContext:
    """Context manager for temporarily setting environment variables."""

    def __init__(self, overrides: dict[str, str]) -> None:
        self.overrides = overrides
        self.original_env: dict[str, str | None] = {}

    def __enter__(self) -> None:
        for key, value in self.overrides.items():
            self.original_env[key] = os.environ.get(key)
            os.environ[key] = value

    def __exit__(self, *args: Any) -> None:
        for key in self.overrides:
            original = self.original_env[key]
            if original is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = original


@pytest.fixture
def env_override() -> Generator[Callable[[dict[str, str]], EnvOverrideContext], None, None]:
    """Temporarily set environment variables.

    Usage:
        def test_something(env_override):
            with env_override({"CADENCE_APP_NAME": "test"}):
                ...
    """

    def _env_override(overrides: dict[str, str]) -> EnvOverrideContext:
        return EnvOverrideContext(overrides)

    yield _env_override


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Clear the settings cache and loaded TOML before and after each test."""
    from cadence.config import get_settings
    from cadence.config.settings import set_toml_config

    get_settings.cache_clear()
    set_toml_config({})
    yield
    get_settings.cache_clear()
    set_toml_config({})


@pytest.fixture
def virtual_clock() -> VirtualClock:
    """Virtual clock starting at a fixed instant."""
    return VirtualClock(VIRTUAL_START)


@pytest.fixture
def system_clock() -> SystemClock:
    return SystemClock()


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


@pytest.fixture
def make_context(recorder: EventRecorder) -> Callable[..., Awaitable[TaskContext]]:
    """Factory for a TaskContext whose task records every emitted event."""
    from cadence.hooks.events import ALL_EVENTS

    async def _make(clock: Any = None, task: Task | None = None) -> TaskContext:
        task = task or Task(NoOpFrame(), ImmediateSchedule(), name="under-test")
        await task.hooks.attach(recorder, ALL_EVENTS)
        recorder.events.clear()
        return TaskContext(task, clock or SystemClock())

    return _make


@pytest.fixture
def eventually() -> Callable[..., Awaitable[None]]:
    """Poll a condition until it holds, failing after ``timeout`` real seconds."""

    async def _eventually(condition: Callable[[], bool], timeout: float = 2.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not condition():
            if loop.time() > deadline:
                raise AssertionError("condition not met before timeout")
            await asyncio.sleep(0.005)

    return _eventually


@pytest.fixture
def settle() -> Callable[[int], Awaitable[None]]:
    """Yield to the event loop a number of times."""

    async def _settle(rounds: int = 20) -> None:
        for _ in range(rounds):
            await asyncio.sleep(0)

    return _settle

from __future__ import annotations

import logging
from typing import Dict, List, Set

import pytest

from publishing.clients.base import PUBLISHED, ClientSpec, PackageTarget, PublishResult
from publishing.errors import PublishError


class FakeRegistry:
    def __init__(self, published: Set[str] | None = None) -> None:
        self.published: Set[str] = set(published or ())


class RecordingClient:
    """Publishes into a FakeRegistry and records every call alongside the waits."""

    spec = ClientSpec(name="fake", version="0", registry="fake", command=[])

    def __init__(self, registry: FakeRegistry, events: List[tuple], fail_on: Dict[str, str] | None = None) -> None:
        self.registry = registry
        self.events = events
        self.fail_on = fail_on or {}
        self.calls: List[str] = []

    def publish(self, target: PackageTarget) -> PublishResult:
        self.calls.append(target.name)
        self.events.append(("publish", target.name))
        if target.name in self.fail_on:
            raise PublishError(target.name, self.fail_on[target.name], returncode=101)
        self.registry.published.add(target.name)
        return PublishResult(package=target.name, status=PUBLISHED)


@pytest.fixture()
def events() -> List[tuple]:
    return []


@pytest.fixture()
def sleep(events: List[tuple]):
    def _sleep(seconds: float) -> None:
        events.append(("sleep", seconds))

    return _sleep


@pytest.fixture()
def registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture()
def client(registry: FakeRegistry, events: List[tuple]) -> RecordingClient:
    return RecordingClient(registry, events)


@pytest.fixture()
def failing_client(registry: FakeRegistry, events: List[tuple]):
    def _make(**fail_on: str) -> RecordingClient:
        return RecordingClient(registry, events, fail_on=fail_on)

    return _make


@pytest.fixture(autouse=True)
def _reset_cli_logging():
    yield
    logging.getLogger("publishing").handlers.clear()

"""Ordered, rate-limited publication of interdependent packages.

Each package is published only after the one before it, with a short wait
before every publish and a longer one after every success so the registry can
make the new version resolvable for the next crate. The first failure stops the
run; packages already published stay published.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Protocol, Sequence

from publishing import PublishOutcome
from publishing.clients.base import ALREADY_PUBLISHED, PackageTarget, PublishClient, PublishResult
from publishing.errors import PlanError, PublishError, RegistryLookupError
from publishing.plan import DEFAULT_POST_DELAY, DEFAULT_PRE_DELAY, validate_packages

logger = logging.getLogger(__name__)


class VersionIndex(Protocol):
    def is_published(self, name: str, version: str) -> bool:
        ...


def _as_target(item: PackageTarget | str) -> PackageTarget:
    return item if isinstance(item, PackageTarget) else PackageTarget(name=item)


class SequentialPublisher:
    def __init__(
        self,
        client: PublishClient,
        pre_delay: float = DEFAULT_PRE_DELAY,
        post_delay: float = DEFAULT_POST_DELAY,
        *,
        index: VersionIndex | None = None,
        settle_after_last: bool = True,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if pre_delay < 0 or post_delay < 0:
            raise PlanError("Delays must not be negative")
        self.client = client
        self.pre_delay = pre_delay
        self.post_delay = post_delay
        self.index = index
        self.settle_after_last = settle_after_last
        self.sleep = sleep

    def _wait(self, seconds: float, reason: str) -> None:
        if seconds > 0:
            logger.debug("Waiting %.1fs %s", seconds, reason)
            self.sleep(seconds)

    def _already_published(self, target: PackageTarget) -> bool:
        if self.index is None or not target.version:
            return False
        try:
            return self.index.is_published(target.name, target.version)
        except RegistryLookupError as exc:
            # Fall through to the client; the registry rejects duplicates anyway.
            logger.warning("Could not check %s %s on the registry: %s", target.name, target.version, exc)
            return False

    def run(self, packages: Sequence[PackageTarget | str]) -> PublishOutcome:
        targets = validate_packages(_as_target(item) for item in packages)
        results: List[PublishResult] = []

        for position, target in enumerate(targets, start=1):
            is_last = position == len(targets)

            if self._already_published(target):
                logger.info("[%d/%d] %s %s is already published, skipping", position, len(targets), target.name, target.version)
                results.append(PublishResult(package=target.name, status=ALREADY_PUBLISHED, detail="found in registry index"))
                continue

            self._wait(self.pre_delay, f"before publishing {target.name}")
            logger.info("[%d/%d] Publishing %s", position, len(targets), target.name)
            try:
                result = self.client.publish(target)
            except PublishError as exc:
                logger.error("Publishing %s failed, stopping before %d remaining package(s): %s", target.name, len(targets) - position, exc)
                return PublishOutcome(results=results, failed_package=target.name, error=str(exc))

            results.append(result)
            logger.info("[%d/%d] %s: %s", position, len(targets), target.name, result.status)

            if not is_last or self.settle_after_last:
                self._wait(self.post_delay, f"for the registry to index {target.name}")

        return PublishOutcome(results=results)

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Protocol

PUBLISHED = "published"
ALREADY_PUBLISHED = "already_published"
DRY_RUN = "dry_run"


@dataclass(frozen=True)
class PackageTarget:
    name: str
    version: str | None = None


@dataclass(frozen=True)
class ClientSpec:
    name: str
    version: str
    registry: str
    command: List[str]


@dataclass(frozen=True)
class PublishResult:
    package: str
    status: str
    detail: str | None = None

    def to_dict(self) -> Dict[str, Any]:
        return {"package": self.package, "status": self.status, "detail": self.detail}


class PublishClient(Protocol):
    spec: ClientSpec

    def publish(self, target: PackageTarget) -> PublishResult:
        """Publish one package, raising ``PublishError`` on failure."""
        ...

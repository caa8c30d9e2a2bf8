from __future__ import annotations

from typing import Any, Dict

from .base import ClientSpec, PackageTarget, PublishClient, PublishResult
from .cargo import CargoPublishClient
from publishing.errors import PlanError

CLIENTS = {
    CargoPublishClient.spec.name: CargoPublishClient,
}


def build_client(name: str, options: Dict[str, Any] | None = None) -> PublishClient:
    factory = CLIENTS.get(name)
    if factory is None:
        raise PlanError(f"Unknown publish client: {name}")
    try:
        return factory(**(options or {}))
    except TypeError as exc:
        raise PlanError(f"Invalid options for publish client {name}: {exc}") from exc


__all__ = ["CLIENTS", "ClientSpec", "PackageTarget", "PublishClient", "PublishResult", "build_client"]

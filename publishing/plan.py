from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple

import yaml

from publishing.clients.base import PackageTarget
from publishing.errors import PlanError

DEFAULT_PRE_DELAY = 2.0
DEFAULT_POST_DELAY = 30.0
DEFAULT_CLIENT = "cargo"

# Earliest first: each crate depends on the ones listed before it.
DEFAULT_PACKAGES = ("l1x-sys", "l1x-sdk-macro", "l1x-sdk")


@dataclass(frozen=True)
class PublishPlan:
    packages: Tuple[PackageTarget, ...]
    pre_delay: float = DEFAULT_PRE_DELAY
    post_delay: float = DEFAULT_POST_DELAY
    client: str = DEFAULT_CLIENT
    client_options: Dict[str, Any] = field(default_factory=dict)
    version: int = 1

    @property
    def names(self) -> List[str]:
        return [target.name for target in self.packages]


DEFAULT_PLAN = PublishPlan(packages=tuple(PackageTarget(name) for name in DEFAULT_PACKAGES))


def _parse_target(item: Any, position: int) -> PackageTarget:
    if isinstance(item, str):
        name, version = item, None
    elif isinstance(item, dict):
        name, version = item.get("name"), item.get("version")
    else:
        raise PlanError(f"Package entry {position} must be a name or a mapping, got {type(item).__name__}")

    if not isinstance(name, str) or not name.strip():
        raise PlanError(f"Package entry {position} has no name")
    return PackageTarget(name=name.strip(), version=str(version) if version is not None else None)


def _parse_delay(payload: Dict[str, Any], key: str, default: float) -> float:
    value = payload.get(key, default)
    try:
        delay = float(value)
    except (TypeError, ValueError) as exc:
        raise PlanError(f"{key} must be a number of seconds, got {value!r}") from exc
    if delay < 0:
        raise PlanError(f"{key} must not be negative, got {delay}")
    return delay


def validate_packages(packages: Iterable[PackageTarget]) -> Tuple[PackageTarget, ...]:
    targets = tuple(packages)
    if not targets:
        raise PlanError("Publish plan lists no packages")
    seen = set()
    for target in targets:
        if target.name in seen:
            raise PlanError(f"Package {target.name} is listed more than once")
        seen.add(target.name)
    return targets


def parse_plan(payload: Dict[str, Any]) -> PublishPlan:
    raw_packages = payload.get("packages") or []
    if not isinstance(raw_packages, list):
        raise PlanError("packages must be a list")
    packages = validate_packages(_parse_target(item, position) for position, item in enumerate(raw_packages, start=1))
    client_options = payload.get("client_options") or {}
    if not isinstance(client_options, dict):
        raise PlanError("client_options must be a mapping")

    return PublishPlan(
        packages=packages,
        pre_delay=_parse_delay(payload, "pre_delay", DEFAULT_PRE_DELAY),
        post_delay=_parse_delay(payload, "post_delay", DEFAULT_POST_DELAY),
        client=str(payload.get("client", DEFAULT_CLIENT)),
        client_options=dict(client_options),
        version=int(payload.get("version", 1)),
    )


def load_plan(path: str | Path = "publish_plan.yaml") -> PublishPlan:
    path = Path(path)
    if not path.exists():
        raise PlanError(f"Publish plan not found: {path}")
    with path.open("r", encoding="utf-8") as fh:
        try:
            payload = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise PlanError(f"Publish plan {path} is not valid YAML: {exc}") from exc
    if not isinstance(payload, dict):
        raise PlanError(f"Publish plan {path} must be a mapping")
    return parse_plan(payload)


def select_packages(plan: PublishPlan, names: Iterable[str]) -> PublishPlan:
    """Narrow ``plan`` to ``names``, keeping the plan's own order."""
    wanted = set(names)
    unknown = sorted(wanted - set(plan.names))
    if unknown:
        raise PlanError(f"Packages not in the publish plan: {', '.join(unknown)}")
    return replace(plan, packages=tuple(target for target in plan.packages if target.name in wanted))


def workspace_versions(metadata: Dict[str, Any]) -> Dict[str, str]:
    return {pkg["name"]: pkg["version"] for pkg in metadata.get("packages", []) if pkg.get("name")}


def with_versions(plan: PublishPlan, versions: Dict[str, str]) -> PublishPlan:
    """Fill in package versions the plan leaves unset."""
    return replace(
        plan,
        packages=tuple(
            target if target.version else replace(target, version=versions.get(target.name))
            for target in plan.packages
        ),
    )


def _is_publishable(pkg: Dict[str, Any]) -> bool:
    # `publish = false` in Cargo.toml shows up as an empty registry list.
    return pkg.get("publish") != []


def check_plan(plan: PublishPlan, metadata: Dict[str, Any]) -> Tuple[List[str], List[str]]:
    """Compare a plan with workspace metadata; returns (errors, warnings)."""
    errors: List[str] = []
    warnings: List[str] = []
    members = {pkg["name"]: pkg for pkg in metadata.get("packages", []) if pkg.get("name")}
    position = {name: index for index, name in enumerate(plan.names)}

    for name in plan.names:
        pkg = members.get(name)
        if pkg is None:
            errors.append(f"Package {name} is not a workspace member")
            continue
        if not _is_publishable(pkg):
            errors.append(f"Package {name} has publish = false")

        for dep in pkg.get("dependencies", []):
            if dep.get("kind") == "dev":
                continue
            dep_name = dep.get("name")
            if dep_name in position and position[dep_name] > position[name]:
                warnings.append(f"Package {name} depends on {dep_name}, which is published after it")
            elif dep_name in members and dep_name not in position:
                warnings.append(f"Package {name} depends on workspace member {dep_name}, which is not in the plan")

    for name in sorted(set(members) - set(position)):
        if _is_publishable(members[name]):
            warnings.append(f"Publishable workspace member {name} is not in the plan")

    return errors, warnings

from __future__ import annotations

import pytest

from publishing.clients.base import PackageTarget
from publishing.errors import PlanError
from publishing.plan import (
    DEFAULT_PLAN,
    check_plan,
    load_plan,
    parse_plan,
    select_packages,
    with_versions,
    workspace_versions,
)


def _metadata(*packages: dict) -> dict:
    return {"packages": list(packages)}


def _pkg(name: str, version: str = "0.1.0", deps: tuple = (), publish=None) -> dict:
    return {
        "name": name,
        "version": version,
        "publish": publish,
        "dependencies": [{"name": dep, "kind": kind} for dep, kind in deps],
    }


def test_default_plan_matches_release_order() -> None:
    assert DEFAULT_PLAN.names == ["l1x-sys", "l1x-sdk-macro", "l1x-sdk"]
    assert DEFAULT_PLAN.pre_delay == 2.0
    assert DEFAULT_PLAN.post_delay == 30.0
    assert DEFAULT_PLAN.client == "cargo"


def test_parse_plan_accepts_names_and_mappings() -> None:
    plan = parse_plan(
        {
            "pre_delay": 0.5,
            "post_delay": "10",
            "packages": ["core", {"name": "macros", "version": "1.2.0"}],
            "client_options": {"allow_dirty": True},
        }
    )

    assert plan.packages == (PackageTarget("core"), PackageTarget("macros", "1.2.0"))
    assert plan.pre_delay == 0.5
    assert plan.post_delay == 10.0
    assert plan.client_options == {"allow_dirty": True}


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"packages": []},
        {"packages": "core"},
        {"packages": ["core", "core"]},
        {"packages": [{"version": "1.0.0"}]},
        {"packages": [42]},
        {"packages": ["core"], "post_delay": -1},
        {"packages": ["core"], "pre_delay": "soon"},
        {"packages": ["core"], "client_options": ["dry_run"]},
    ],
)
def test_parse_plan_rejects_invalid_payloads(payload: dict) -> None:
    with pytest.raises(PlanError):
        parse_plan(payload)


def test_load_plan_reads_yaml(tmp_path) -> None:
    path = tmp_path / "plan.yaml"
    path.write_text("post_delay: 5\npackages:\n  - a\n  - b\n", encoding="utf-8")

    plan = load_plan(path)

    assert plan.names == ["a", "b"]
    assert plan.post_delay == 5.0
    assert plan.pre_delay == 2.0


def test_load_plan_missing_or_malformed(tmp_path) -> None:
    with pytest.raises(PlanError):
        load_plan(tmp_path / "absent.yaml")

    bad = tmp_path / "bad.yaml"
    bad.write_text("packages: [a, b\n", encoding="utf-8")
    with pytest.raises(PlanError):
        load_plan(bad)


def test_select_packages_keeps_plan_order() -> None:
    selected = select_packages(DEFAULT_PLAN, ["l1x-sdk", "l1x-sys"])

    assert selected.names == ["l1x-sys", "l1x-sdk"]
    assert selected.post_delay == DEFAULT_PLAN.post_delay


def test_select_packages_rejects_unknown_names() -> None:
    with pytest.raises(PlanError, match="not-a-crate"):
        select_packages(DEFAULT_PLAN, ["l1x-sys", "not-a-crate"])


def test_with_versions_only_fills_missing() -> None:
    plan = parse_plan({"packages": ["a", {"name": "b", "version": "2.0.0"}]})
    versions = workspace_versions(_metadata(_pkg("a", "1.0.0"), _pkg("b", "9.9.9")))

    filled = with_versions(plan, versions)

    assert filled.packages == (PackageTarget("a", "1.0.0"), PackageTarget("b", "2.0.0"))


def test_check_plan_accepts_dependency_order() -> None:
    metadata = _metadata(
        _pkg("l1x-sys"),
        _pkg("l1x-sdk-macro"),
        _pkg("l1x-sdk", deps=(("l1x-sys", None), ("l1x-sdk-macro", None), ("serde", None))),
    )

    assert check_plan(DEFAULT_PLAN, metadata) == ([], [])


def test_check_plan_reports_problems() -> None:
    plan = parse_plan({"packages": ["sdk", "sys", "ghost"]})
    metadata = _metadata(
        _pkg("sys"),
        _pkg("sdk", deps=(("sys", None), ("helpers", "build"), ("testkit", "dev"))),
        _pkg("helpers"),
        _pkg("testkit"),
        _pkg("examples", publish=[]),
    )

    errors, warnings = check_plan(plan, metadata)

    assert errors == ["Package ghost is not a workspace member"]
    assert "Package sdk depends on sys, which is published after it" in warnings
    assert "Package sdk depends on workspace member helpers, which is not in the plan" in warnings
    assert "Publishable workspace member testkit is not in the plan" in warnings
    assert not any("examples" in item for item in warnings)
    assert not any("testkit, which" in item for item in warnings)

#!/usr/bin/env python
from __future__ import annotations

import argparse
from typing import List

from publishing.common import cargo_metadata
from publishing.errors import ReleaseError
from publishing.plan import PublishPlan, check_plan, load_plan


def run(plan_path: str, manifest_path: str | None = None, fail_on_warning: bool = False) -> int:
    try:
        plan = load_plan(plan_path)
        metadata = cargo_metadata(manifest_path)
    except ReleaseError as exc:
        print(f"Cannot check publish plan {plan_path}: {exc}")
        return 1

    errors, warnings = check_plan(plan, metadata)
    return report(plan_path, plan, errors, warnings, fail_on_warning)


def report(plan_path: str, plan: PublishPlan, errors: List[str], warnings: List[str], fail_on_warning: bool = False) -> int:
    print(f"Publish plan {plan_path}: {' -> '.join(plan.names)}")
    for item in errors:
        print(f"- ERROR: {item}")
    for item in warnings:
        print(f"- WARNING: {item}")

    failed = bool(errors) or (fail_on_warning and bool(warnings))
    verdict = "not publishable" if failed else "ok"
    print(f"{verdict} ({len(errors)} error(s), {len(warnings)} warning(s))")
    return 1 if failed else 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Check a publish plan against the cargo workspace")
    parser.add_argument("--plan", default="publish_plan.yaml")
    parser.add_argument("--manifest-path", default=None)
    parser.add_argument("--fail-on-warning", action="store_true", default=False)
    args = parser.parse_args()

    raise SystemExit(run(args.plan, args.manifest_path, args.fail_on_warning))


if __name__ == "__main__":
    main()

from __future__ import annotations

import argparse
import json
import logging
import time
from dataclasses import replace
from pathlib import Path
from typing import Callable, List

from publishing import PublishOutcome
from publishing.clients import PublishClient, build_client
from publishing.common import cargo_metadata, setup_logging
from publishing.errors import ReleaseError
from publishing.plan import DEFAULT_PLAN, PublishPlan, load_plan, select_packages, with_versions, workspace_versions
from publishing.registry import CratesIoIndex
from publishing.sequence import SequentialPublisher, VersionIndex

logger = logging.getLogger(__name__)

DEFAULT_PLAN_PATH = "publish_plan.yaml"

EXIT_OK = 0
EXIT_PUBLISH_FAILED = 1
EXIT_BAD_PLAN = 2


def resolve_plan(plan_path: str | None = None) -> PublishPlan:
    if plan_path:
        return load_plan(plan_path)
    if Path(DEFAULT_PLAN_PATH).exists():
        return load_plan(DEFAULT_PLAN_PATH)
    logger.info("No %s found, using the built-in package list", DEFAULT_PLAN_PATH)
    return DEFAULT_PLAN


def run_publish(
    plan_path: str | None = None,
    selected_packages: List[str] | None = None,
    pre_delay: float | None = None,
    post_delay: float | None = None,
    dry_run: bool = False,
    skip_published: bool = False,
    settle_after_last: bool = True,
    client: PublishClient | None = None,
    index: VersionIndex | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> PublishOutcome:
    plan = resolve_plan(plan_path)
    if selected_packages:
        plan = select_packages(plan, selected_packages)
    if pre_delay is not None:
        plan = replace(plan, pre_delay=pre_delay)
    if post_delay is not None:
        plan = replace(plan, post_delay=post_delay)

    if client is None:
        options = dict(plan.client_options)
        if dry_run:
            options["dry_run"] = True
        client = build_client(plan.client, options)

    if skip_published:
        if any(target.version is None for target in plan.packages):
            options = plan.client_options
            metadata = cargo_metadata(
                options.get("manifest_path"),
                cargo=options.get("cargo", "cargo"),
                cwd=options.get("cwd"),
            )
            plan = with_versions(plan, workspace_versions(metadata))
        index = index or CratesIoIndex()
    else:
        index = None

    logger.info(
        "Publishing %s (pre-delay %.1fs, post-delay %.1fs)",
        " -> ".join(plan.names),
        plan.pre_delay,
        plan.post_delay,
    )
    publisher = SequentialPublisher(
        client,
        plan.pre_delay,
        plan.post_delay,
        index=index,
        settle_after_last=settle_after_last,
        sleep=sleep,
    )
    return publisher.run(plan.packages)


def main(argv: List[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Publish workspace crates one at a time, in plan order")
    parser.add_argument("--plan", default=None, help=f"publish plan yaml (default: {DEFAULT_PLAN_PATH})")
    parser.add_argument("--package", action="append", help="publish only the named package(s), in plan order")
    parser.add_argument("--pre-delay", type=float, default=None, help="seconds to wait before each publish")
    parser.add_argument("--post-delay", type=float, default=None, help="seconds to wait after each publish")
    parser.add_argument("--dry-run", action="store_true", default=False)
    parser.add_argument("--skip-published", action="store_true", default=False, help="skip versions already on crates.io")
    parser.add_argument("--no-settle-after-last", action="store_true", default=False, help="do not wait after the last package")
    parser.add_argument("--verbose", "-v", action="store_true", default=False)
    args = parser.parse_args(argv)

    setup_logging(args.verbose)
    try:
        outcome = run_publish(
            plan_path=args.plan,
            selected_packages=args.package,
            pre_delay=args.pre_delay,
            post_delay=args.post_delay,
            dry_run=args.dry_run,
            skip_published=args.skip_published,
            settle_after_last=not args.no_settle_after_last,
        )
    except ReleaseError as exc:
        logger.error("Cannot start publishing: %s", exc)
        raise SystemExit(EXIT_BAD_PLAN)

    print(json.dumps(outcome.to_dict(), indent=2))
    raise SystemExit(EXIT_OK if outcome.ok else EXIT_PUBLISH_FAILED)


if __name__ == "__main__":
    main()

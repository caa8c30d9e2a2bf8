from __future__ import annotations

import logging
import os
import re
import subprocess
from pathlib import Path
from typing import Dict, List

from .base import ALREADY_PUBLISHED, DRY_RUN, PUBLISHED, ClientSpec, PackageTarget, PublishResult
from publishing.common import getenv
from publishing.errors import PublishError

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_ENV = "CARGO_REGISTRY_TOKEN"

# The registry rejection as cargo prints it, either directly or under "Caused by:".
ALREADY_PUBLISHED_PATTERN = re.compile(
    r"^error: crate \S+@\S+ already exists on \S+ index$"
    r"|^(?:error: |\s+the remote server responded with an error.*?: )crate version `[^`]+` is already uploaded",
    re.MULTILINE,
)


def _last_line(output: str) -> str | None:
    lines = [line.strip() for line in output.splitlines() if line.strip()]
    return lines[-1] if lines else None


class CargoPublishClient:
    spec = ClientSpec(
        name="cargo",
        version="0.1.0",
        registry="crates.io",
        command=["cargo", "publish", "-p", "<package>"],
    )

    def __init__(
        self,
        cargo: str = "cargo",
        manifest_path: str | None = None,
        registry: str | None = None,
        dry_run: bool = False,
        allow_dirty: bool = False,
        no_verify: bool = False,
        token_env: str = DEFAULT_TOKEN_ENV,
        cwd: str | None = None,
    ) -> None:
        self.cargo = cargo
        self.manifest_path = manifest_path
        self.registry = registry
        self.dry_run = dry_run
        self.allow_dirty = allow_dirty
        self.no_verify = no_verify
        self.token_env = token_env
        self.cwd = Path(cwd) if cwd else None

    def command(self, target: PackageTarget) -> List[str]:
        cmd = [self.cargo, "publish", "-p", target.name]
        if self.manifest_path:
            cmd += ["--manifest-path", str(self.manifest_path)]
        if self.registry:
            cmd += ["--registry", self.registry]
        if self.dry_run:
            cmd.append("--dry-run")
        if self.allow_dirty:
            cmd.append("--allow-dirty")
        if self.no_verify:
            cmd.append("--no-verify")
        return cmd

    def _env(self) -> Dict[str, str] | None:
        # cargo reads CARGO_REGISTRY_TOKEN on its own; only a renamed variable needs forwarding.
        if self.token_env == DEFAULT_TOKEN_ENV:
            return None
        token = getenv(self.token_env)
        if not token:
            logger.warning("Token variable %s is not set; cargo falls back to its own credentials", self.token_env)
            return None
        env = dict(os.environ)
        env[DEFAULT_TOKEN_ENV] = token
        return env

    def publish(self, target: PackageTarget) -> PublishResult:
        cmd = self.command(target)
        logger.info("+ %s", " ".join(cmd))
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                cwd=self.cwd,
                env=self._env(),
                check=False,
            )
        except FileNotFoundError as exc:
            raise PublishError(target.name, f"cargo executable not found: {self.cargo}") from exc

        output = (proc.stdout or "") + (proc.stderr or "")
        if output:
            logger.debug(output.rstrip())

        if proc.returncode == 0:
            status = DRY_RUN if self.dry_run else PUBLISHED
            return PublishResult(package=target.name, status=status, detail=_last_line(output))

        if ALREADY_PUBLISHED_PATTERN.search(proc.stderr or ""):
            logger.info("%s is already on %s", target.name, self.registry or self.spec.registry)
            return PublishResult(package=target.name, status=ALREADY_PUBLISHED, detail=_last_line(output))

        raise PublishError(
            target.name,
            f"cargo publish exited with status {proc.returncode}: {_last_line(output) or 'no output'}",
            returncode=proc.returncode,
            output=output,
        )

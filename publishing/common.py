from __future__ import annotations

import json
import logging
import os
import subprocess
from pathlib import Path
from typing import Any, Dict

from publishing.errors import ReleaseError

VERBOSE_FORMAT = "[%(asctime)s - %(pathname)s:%(lineno)d - %(levelname)s] %(message)s"


def getenv(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


def setup_logging(verbose: bool = False) -> logging.Logger:
    logger = logging.getLogger("publishing")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    formatter = logging.Formatter(VERBOSE_FORMAT if verbose else "%(message)s")
    if not logger.handlers:
        logger.addHandler(logging.StreamHandler())
    for handler in logger.handlers:
        handler.setFormatter(formatter)
    logger.propagate = False
    return logger


def cargo_metadata(
    manifest_path: str | Path | None = None,
    cargo: str = "cargo",
    cwd: str | Path | None = None,
) -> Dict[str, Any]:
    """Return ``cargo metadata`` for the workspace members, without dependencies."""
    cmd = [cargo, "metadata", "--no-deps", "--format-version", "1"]
    if manifest_path:
        cmd += ["--manifest-path", str(manifest_path)]
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, cwd=cwd, check=True)
    except FileNotFoundError as exc:
        raise ReleaseError(f"cargo executable not found: {cargo}") from exc
    except subprocess.CalledProcessError as exc:
        raise ReleaseError(f"cargo metadata failed: {(exc.stderr or '').strip()}") from exc
    return json.loads(proc.stdout)

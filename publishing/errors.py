from __future__ import annotations


class ReleaseError(Exception):
    """Base class for every error raised by the release tooling."""


class PlanError(ReleaseError):
    """The publish plan is missing, malformed or selects unknown packages."""


class PublishError(ReleaseError):
    """A publish client could not publish a package."""

    def __init__(self, package: str, message: str, returncode: int | None = None, output: str = "") -> None:
        super().__init__(f"{package}: {message}")
        self.package = package
        self.returncode = returncode
        self.output = output


class RegistryLookupError(ReleaseError):
    """The registry index could not answer a version lookup."""

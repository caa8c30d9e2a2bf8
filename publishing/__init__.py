"""Sequential crate publication to a single package registry."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class PublishOutcome:
    results: List[Any] = field(default_factory=list)
    failed_package: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.failed_package is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": "ok" if self.ok else "failed",
            "results": [result.to_dict() for result in self.results],
            "failed_package": self.failed_package,
            "error": self.error,
        }

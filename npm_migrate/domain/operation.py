"""
Migration result domain objects.

Provides the per-version and per-package result types that migration
jobs hand back to the coordinator instead of exiting the process.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional


class OperationStatus(Enum):
    """Status of an individual version migration."""
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class VersionOutcome:
    """
    What happened to one version of a package.

    ``stage`` names the last pipeline stage the version reached:
    "select", "transfer" or "publish".
    """
    version: str
    status: OperationStatus
    stage: str
    tarball_url: Optional[str] = None
    archive_path: Optional[str] = None
    message: Optional[str] = None
    output: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            'version': self.version,
            'status': self.status.value,
            'stage': self.stage,
        }
        if self.tarball_url:
            result['tarball'] = self.tarball_url
        if self.archive_path:
            result['archive'] = self.archive_path
        if self.message:
            result['message'] = self.message
        if self.output:
            result['output'] = self.output
        if self.error:
            result['error'] = self.error
        return result


@dataclass
class JobResult:
    """
    Summary of migrating one package.

    Collects per-version outcomes. A job-level ``error`` is set when the
    job failed before any version reached the transfer stage.
    """
    package: str
    successful: int = 0
    skipped: int = 0
    failed: int = 0
    cancelled: int = 0
    outcomes: List[VersionOutcome] = field(default_factory=list)
    error: Optional[Exception] = None

    @property
    def success(self) -> bool:
        """True if nothing failed."""
        return self.error is None and self.failed == 0 and self.cancelled == 0

    @property
    def total(self) -> int:
        return len(self.outcomes)

    def add_outcome(self, outcome: VersionOutcome) -> None:
        """Add a version outcome and update counts."""
        self.outcomes.append(outcome)

        if outcome.status == OperationStatus.SUCCESS:
            self.successful += 1
        elif outcome.status == OperationStatus.SKIPPED:
            self.skipped += 1
        elif outcome.status == OperationStatus.FAILED:
            self.failed += 1
        elif outcome.status == OperationStatus.CANCELLED:
            self.cancelled += 1

    def outputs(self) -> List[str]:
        """Captured publish output, in outcome order."""
        return [o.output for o in self.outcomes if o.output]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'type': 'job',
            'package': self.package,
            'success': self.success,
            'total': self.total,
            'successful': self.successful,
            'skipped': self.skipped,
            'failed': self.failed,
            'cancelled': self.cancelled,
            'error': str(self.error) if self.error else None,
            'versions': [o.to_dict() for o in self.outcomes],
        }

"""Core result data structures for the scanner."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .errors import DetectorError, TraversalWarning
from .severity import Severity

SEVERITY_ORDER: Sequence[Severity] = (
    Severity.CRITICAL,
    Severity.HIGH,
    Severity.MEDIUM,
    Severity.LOW,
    Severity.GAS,
    Severity.NC,
)


@dataclass(frozen=True)
class Location:
    """One matched site in a scanned file (1-indexed line and column)."""

    file: str
    line: int
    column: int
    snippet: Optional[str] = None

    @property
    def sort_key(self) -> Tuple[str, int, int, str]:
        return (self.file, self.line, self.column, self.snippet or "")

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


@dataclass(frozen=True)
class Finding:
    """One detector's complete result for a run."""

    detector_id: str
    name: str
    severity: Severity
    description: str
    locations: Tuple[Location, ...]
    gas_savings: Optional[int] = None
    example: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.locations:
            raise ValueError(f"Finding for '{self.detector_id}' has no locations")

    @property
    def sort_key(self) -> Tuple[int, str]:
        return (-self.severity.rank, self.detector_id)

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {
            "detector_id": self.detector_id,
            "name": self.name,
            "severity": self.severity.value,
            "description": self.description,
            "locations": [location.to_dict() for location in self.locations],
        }
        if self.gas_savings is not None:
            data["gas_savings"] = self.gas_savings
        if self.example is not None:
            data["example"] = self.example
        return data


@dataclass
class Summary:
    """Aggregate finding counts by severity."""

    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    gas: int = 0
    nc: int = 0

    def increment(self, severity: Severity) -> None:
        attr = severity.value.lower()
        setattr(self, attr, getattr(self, attr) + 1)

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)

    def as_rows(self) -> List[Tuple[str, int]]:
        """Return severity/count pairs ordered for reporting."""

        return [(severity.value, getattr(self, severity.value.lower())) for severity in SEVERITY_ORDER]

    @property
    def total(self) -> int:
        return sum(getattr(self, severity.value.lower()) for severity in SEVERITY_ORDER)


@dataclass
class ScanResult:
    """Bundle ordered findings with the non-fatal records of a run."""

    findings: List[Finding] = field(default_factory=list)
    errors: List[DetectorError] = field(default_factory=list)
    warnings: List[TraversalWarning] = field(default_factory=list)
    files_scanned: int = 0
    summary: Summary = field(default_factory=Summary)

    @property
    def passed(self) -> bool:
        return self.summary.critical == 0 and self.summary.high == 0 and self.summary.medium == 0

    @property
    def total_locations(self) -> int:
        return sum(len(finding.locations) for finding in self.findings)

    def add_finding(self, finding: Finding) -> None:
        self.summary.increment(finding.severity)
        self.findings.append(finding)

    def finding(self, detector_id: str) -> Optional[Finding]:
        for finding in self.findings:
            if finding.detector_id == detector_id:
                return finding
        return None

    def detector_ids(self) -> List[str]:
        return [finding.detector_id for finding in self.findings]

    def to_dict(self) -> Dict[str, object]:
        return {
            "summary": self.summary.to_dict(),
            "files_scanned": self.files_scanned,
            "findings": [finding.to_dict() for finding in self.findings],
            "errors": [error.to_dict() for error in self.errors],
            "warnings": [warning.to_dict() for warning in self.warnings],
            "passed": self.passed,
        }

    def exit_code(self) -> int:
        if self.summary.critical > 0 or self.summary.high > 0:
            return 2
        if self.summary.medium > 0:
            return 1
        return 0


def format_summary_table(result: ScanResult, max_findings: int = 10) -> str:
    """Create a human-readable summary table for console output."""

    lines: List[str] = []
    lines.append("Scan Summary")
    lines.append("=" * 40)
    header = f"{'Severity':<10} | {'Count':>5}"
    lines.append(header)
    lines.append("-" * len(header))
    for severity, count in result.summary.as_rows():
        lines.append(f"{severity:<10} | {count:>5}")
    lines.append("-" * len(header))
    status = "PASS" if result.passed else "FAIL"
    lines.append(f"Status    : {status}")
    lines.append(f"Files     : {result.files_scanned}")
    lines.append(f"Findings  : {result.summary.total} ({result.total_locations} locations)")
    if result.errors:
        lines.append(f"Errors    : {len(result.errors)}")
    if result.warnings:
        lines.append(f"Warnings  : {len(result.warnings)}")

    findings = result.findings[:max_findings]
    if findings:
        lines.append("")
        lines.append("Top Findings")
        lines.append("-" * 40)
        for finding in findings:
            lines.append(f"[{finding.severity.value}] {finding.detector_id} {finding.name}")
            for location in finding.locations[:3]:
                lines.append(f"  Location: {location.file}:{location.line}:{location.column}")
            remaining = len(finding.locations) - 3
            if remaining > 0:
                lines.append(f"  ... and {remaining} more")
    return "\n".join(lines)

"""
Vulnerability scan gating for the CI pipeline.

The build stage scans the service image with Trivy and writes a JSON report.
``ScanGate`` reads that report and fails the pipeline when any finding is at
or above the configured severity threshold.
"""

import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Union

from eksblueprint.errors import ScanReportError

logger = logging.getLogger(__name__)


class Severity(IntEnum):
    UNKNOWN = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @classmethod
    def parse(cls, value: Union[str, "Severity"]) -> "Severity":
        if isinstance(value, Severity):
            return value
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            raise ValueError(
                f"Unknown severity {value!r}; expected one of {', '.join(s.name for s in cls)}"
            ) from None


@dataclass(frozen=True)
class Finding:
    vulnerability_id: str
    package: str
    severity: Severity
    target: str = ""
    title: str = ""


@dataclass
class ScanResult:
    passed: bool
    threshold: Severity
    blocking: List[Finding] = field(default_factory=list)
    counts: Dict[str, int] = field(default_factory=dict)

    def summary(self) -> str:
        counts = ", ".join(
            f"{s.name}={self.counts.get(s.name, 0)}" for s in sorted(Severity, reverse=True)
        )
        verdict = "passed" if self.passed else f"failed ({len(self.blocking)} at or above {self.threshold.name})"
        return f"Scan {verdict}: {counts}"


def parse_trivy_report(report: Dict[str, Any]) -> List[Finding]:
    """Extract findings from a decoded Trivy JSON report."""
    findings = []
    for result in report.get("Results") or []:
        target = result.get("Target", "")
        # Trivy writes "Vulnerabilities": null for clean targets
        for vuln in result.get("Vulnerabilities") or []:
            try:
                severity = Severity.parse(vuln.get("Severity", "UNKNOWN"))
            except ValueError:
                severity = Severity.UNKNOWN
            findings.append(
                Finding(
                    vulnerability_id=vuln.get("VulnerabilityID", ""),
                    package=vuln.get("PkgName", ""),
                    severity=severity,
                    target=target,
                    title=vuln.get("Title", ""),
                )
            )
    return findings


def load_trivy_report(path: Union[str, Path]) -> List[Finding]:
    """
    Load findings from a Trivy JSON report file.

    Raises:
        ScanReportError: If the file is missing or is not a Trivy JSON report
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            report = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ScanReportError(f"Could not read scan report {path}: {e}") from e

    if not isinstance(report, dict):
        raise ScanReportError(f"Scan report {path} is not a Trivy JSON object")
    return parse_trivy_report(report)


class ScanGate:
    """Fails when any finding reaches the severity threshold."""

    def __init__(self, threshold: Union[str, Severity] = Severity.HIGH):
        self.threshold = Severity.parse(threshold)

    def evaluate(self, findings: Iterable[Finding]) -> ScanResult:
        findings = list(findings)
        blocking = [f for f in findings if f.severity >= self.threshold]
        counts = Counter(f.severity.name for f in findings)

        result = ScanResult(
            passed=not blocking,
            threshold=self.threshold,
            blocking=sorted(blocking, key=lambda f: (-f.severity, f.vulnerability_id)),
            counts=dict(counts),
        )
        if result.passed:
            logger.info(result.summary())
        else:
            logger.error(result.summary())
        return result

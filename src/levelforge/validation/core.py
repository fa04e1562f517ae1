"""
Validation result types.

A check produces one ValidationResult holding zero or more issues. Only
FAIL issues stop a generation run; WARN and INFO issues travel along with
the result so the caller can show them.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional


class Severity(Enum):
    """How much an issue matters.

    - INFO: reported, never blocks
    - WARN: reported, the run goes ahead
    - FAIL: the run is refused
    """
    INFO = auto()
    WARN = auto()
    FAIL = auto()

    def __str__(self) -> str:
        return self.name


class ValidationStage(Enum):
    """What was checked."""
    PARAMETERS = "parameters"  # a generation request
    TILESET = "tileset"        # a constraint catalog and its rules
    LEVEL = "level"            # a generated or loaded level

    def __str__(self) -> str:
        return self.value


@dataclass
class ValidationIssue:
    """One finding.

    Attributes:
        severity: INFO, WARN or FAIL
        code: Stable rule code such as "PARAM-003"
        message: What is wrong, in words
        remediation: Suggested fix, if there is an obvious one
        location: Parameter name, tile id or entity id the issue is about
    """
    severity: Severity
    code: str
    message: str
    remediation: Optional[str] = None
    location: Optional[str] = None

    def format(self) -> str:
        """``[SEVERITY] CODE at=LOCATION :: message :: fix=REMEDIATION``"""
        return (f"[{self.severity}] {self.code} at={self.location or '-'} :: "
                f"{self.message} :: fix={self.remediation or 'N/A'}")

    def __str__(self) -> str:
        return self.format()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'severity': str(self.severity),
            'code': self.code,
            'message': self.message,
            'remediation': self.remediation,
            'location': self.location,
        }


@dataclass
class ValidationResult:
    """Issues found by one or more checks."""
    issues: List[ValidationIssue] = field(default_factory=list)
    stage: Optional[ValidationStage] = None

    def _with(self, severity: Severity) -> List[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == severity]

    @property
    def failed(self) -> bool:
        return any(issue.severity == Severity.FAIL for issue in self.issues)

    @property
    def passed(self) -> bool:
        return not self.failed

    @property
    def errors(self) -> List[ValidationIssue]:
        return self._with(Severity.FAIL)

    @property
    def warnings(self) -> List[ValidationIssue]:
        return self._with(Severity.WARN)

    @property
    def infos(self) -> List[ValidationIssue]:
        return self._with(Severity.INFO)

    def codes(self) -> List[str]:
        """Rule codes in the order the issues were found"""
        return [issue.code for issue in self.issues]

    def add(self, severity: Severity, code: str, message: str,
            remediation: Optional[str] = None, location: Optional[str] = None) -> None:
        self.issues.append(ValidationIssue(severity, code, message, remediation, location))

    def merge(self, other: 'ValidationResult') -> 'ValidationResult':
        """Append the issues of ``other``; returns self."""
        self.issues.extend(other.issues)
        return self

    def report(self) -> str:
        """Multi-line summary, failures first."""
        if not self.issues:
            return "Validation passed: No issues found"

        stage = f" ({self.stage})" if self.stage else ""
        lines = [
            f"Validation {'PASSED' if self.passed else 'FAILED'}{stage}: {len(self.issues)} issue(s)"
        ]
        for severity in (Severity.FAIL, Severity.WARN, Severity.INFO):
            found = self._with(severity)
            if found:
                lines.append(f"{severity.name} ({len(found)}):")
                lines.extend(f"  {issue.format()}" for issue in found)
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'passed': self.passed,
            'stage': str(self.stage) if self.stage else None,
            'issue_count': len(self.issues),
            'fail_count': len(self.errors),
            'warn_count': len(self.warnings),
            'info_count': len(self.infos),
            'issues': [issue.to_dict() for issue in self.issues],
        }

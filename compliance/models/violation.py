from collections import Counter
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from compliance.core.constants import sort_by_severity
from compliance.models.license import LicenseSource
from compliance.models.package import Identifier


class Severity(str, Enum):
    ERROR = "ERROR"
    WARNING = "WARNING"
    HINT = "HINT"


class RuleTrigger(str, Enum):
    """When a rule emits a violation."""

    MATCH = "match"  # the matcher describes a forbidden situation
    NO_MATCH = "no_match"  # the matcher describes a required condition


class RuleViolation(BaseModel):
    """
    A policy violation emitted by one rule for one dependency tree position.

    The tree position fields (project, scope, level, ancestors) make violations of
    the same package at different positions distinguishable for consumers that
    deduplicate.
    """

    rule: str = Field(..., description="Name of the rule that was violated")
    package: Identifier
    license: Optional[str] = None
    license_source: Optional[LicenseSource] = None
    severity: Severity
    message: str
    how_to_fix: str = ""

    project: Optional[Identifier] = None
    scope: Optional[str] = None
    level: int = 0
    ancestors: Tuple[Identifier, ...] = ()

    model_config = ConfigDict(frozen=True)


class RuleFailure(BaseModel):
    """A (rule, context) pair that could not be evaluated because the context lacked data."""

    rule: str
    package: Identifier
    message: str
    project: Optional[Identifier] = None
    scope: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class EvaluatorRun(BaseModel):
    """The outcome of evaluating a list of rules against one analysis result."""

    start_time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    end_time: Optional[datetime] = None
    violations: Tuple[RuleViolation, ...] = ()
    failures: Tuple[RuleFailure, ...] = ()

    model_config = ConfigDict(frozen=True)

    @property
    def severity_counts(self) -> Dict[str, int]:
        counts = Counter(v.severity.value for v in self.violations)
        return {severity.value: counts.get(severity.value, 0) for severity in Severity}

    @property
    def has_errors(self) -> bool:
        """True if at least one ERROR violation was found; callers map this to the exit status."""
        return any(v.severity == Severity.ERROR for v in self.violations)

    def violations_by_severity(self) -> list:
        return sort_by_severity(list(self.violations))

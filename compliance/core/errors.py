"""
Exception hierarchy for the evaluator.

Data defects inside the analysis result are recovered where they occur (malformed
license expressions) or turned into values (RuleFailure). Exceptions are left for
configuration defects in rule definitions and for broken invariants in the input.
"""


class ComplianceError(Exception):
    """Base class for all errors raised by this package."""


class InvalidRuleError(ComplianceError):
    """A rule definition references something that does not exist or is malformed."""

    def __init__(self, message: str, rule: str = ""):
        self.rule = rule
        super().__init__(f"Rule '{rule}': {message}" if rule else message)


class MissingContextError(ComplianceError):
    """A matcher needs a context field (project, scope, license) the context lacks."""


class InvalidLicenseExpressionError(ComplianceError):
    """A string could not be parsed as an SPDX license expression."""

    def __init__(self, expression: str, reason: str = ""):
        self.expression = expression
        message = f"Invalid license expression '{expression}'"
        super().__init__(f"{message}: {reason}" if reason else message)


class DanglingReferenceError(ComplianceError, LookupError):
    """A dependency reference points at an identifier that is neither a package nor a project."""

from dataclasses import dataclass
from string import Formatter
from typing import Optional

from compliance.core.constants import MESSAGE_PLACEHOLDERS
from compliance.core.errors import InvalidRuleError
from compliance.models.license import LicenseView
from compliance.models.violation import RuleTrigger, Severity
from compliance.services.evaluator.matchers import RuleMatcher


def template_fields(template: str) -> set:
    return {field for _, field, _, _ in Formatter().parse(template) if field is not None}


@dataclass(frozen=True)
class Rule:
    """
    A named policy rule.

    If ``license_view`` is set the rule is a license rule: it is evaluated once for
    every (license, source) pair the view resolves for a package, and the pair is
    available to ``is_license`` / ``is_license_source`` and to the message as
    ``{license}`` / ``{license_source}``.
    """

    name: str
    matcher: RuleMatcher
    message: str
    severity: Severity = Severity.ERROR
    how_to_fix: str = ""
    trigger: RuleTrigger = RuleTrigger.MATCH
    license_view: Optional[LicenseView] = None

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise InvalidRuleError("rule name must not be blank")
        if not isinstance(self.matcher, RuleMatcher):
            raise InvalidRuleError(f"matcher must be a RuleMatcher, got {type(self.matcher).__name__}", self.name)

        # Accept plain strings for the enum fields, the dataclass is frozen so convert in place
        for field, enum in (("severity", Severity), ("trigger", RuleTrigger), ("license_view", LicenseView)):
            value = getattr(self, field)
            if value is None and field == "license_view":
                continue
            try:
                object.__setattr__(self, field, enum(value))
            except ValueError as e:
                raise InvalidRuleError(f"invalid {field} {value!r}", self.name) from e

        for text in (self.message, self.how_to_fix):
            try:
                unknown = template_fields(text) - MESSAGE_PLACEHOLDERS
            except ValueError as e:
                raise InvalidRuleError(f"invalid message template: {e}", self.name) from e
            if unknown:
                raise InvalidRuleError(
                    f"unknown message placeholder(s): {', '.join(sorted(unknown))}", self.name
                )

    @property
    def is_license_rule(self) -> bool:
        return self.license_view is not None

    def is_violated(self, matched: bool) -> bool:
        return matched if self.trigger == RuleTrigger.MATCH else not matched

"""
Rule Evaluator

Applies rules to every dependency tree node of a rule set and collects the
violations. Rules run in declaration order and each rule sees every context; the
evaluator does not deduplicate.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from compliance.core import metrics
from compliance.core.config import Settings
from compliance.core.errors import InvalidRuleError, MissingContextError
from compliance.models.license import LicenseView
from compliance.models.package import Identifier
from compliance.models.violation import EvaluatorRun, RuleFailure, RuleViolation
from compliance.services.evaluator.context import DependencyRule
from compliance.services.evaluator.rule_set import RuleSet
from compliance.services.evaluator.rules import Rule
from compliance.services.licenses.views import ResolvedLicense

logger = logging.getLogger(__name__)

_LicenseCache = Dict[Tuple[LicenseView, Identifier], List[ResolvedLicense]]


class Evaluator:
    def __init__(self, rule_set: RuleSet, rules: Sequence[Rule], config: Optional[Settings] = None):
        names = set()
        for rule in rules:
            if not isinstance(rule, Rule):
                raise InvalidRuleError(f"expected a Rule, got {type(rule).__name__}")
            if rule.name in names:
                raise InvalidRuleError("duplicate rule name", rule.name)
            names.add(rule.name)

        self.config = config or rule_set.config
        # Matchers and the license resolver read the config through the rule set
        self.rule_set = rule_set.with_config(self.config)
        self.rules = list(rules)

    def run(self) -> EvaluatorRun:
        start_time = datetime.now(timezone.utc)
        violations: List[RuleViolation] = []
        failures: List[RuleFailure] = []
        # Resolved licenses only depend on the curated package and its findings
        license_cache: _LicenseCache = {}

        walker = self.rule_set.walker()
        with metrics.track_evaluation_duration(self.config.METRICS_ENABLED):
            for rule in self.rules:
                logger.debug(f"Evaluating rule '{rule.name}': {rule.matcher.description}")
                before = len(violations)

                for context in walker:
                    for bound in self._bind(rule, context, license_cache):
                        self._evaluate(rule, bound, violations, failures)

                logger.debug(f"Rule '{rule.name}' produced {len(violations) - before} violations")

        run = EvaluatorRun(
            start_time=start_time,
            end_time=datetime.now(timezone.utc),
            violations=tuple(violations),
            failures=tuple(failures),
        )
        logger.info(
            f"Evaluated {len(self.rules)} rules: {len(run.violations)} violations "
            f"({run.severity_counts}), {len(run.failures)} failures"
        )
        return run

    def _bind(self, rule: Rule, context: DependencyRule, cache: _LicenseCache) -> Iterator[DependencyRule]:
        if not rule.is_license_rule:
            yield context
            return

        key = (rule.license_view, context.package.id)
        if key not in cache:
            cache[key] = context.resolve_licenses(rule.license_view)
        for resolved in cache[key]:
            yield context.with_license(resolved.license, resolved.source)

    def _evaluate(
        self,
        rule: Rule,
        context: DependencyRule,
        violations: List[RuleViolation],
        failures: List[RuleFailure],
    ) -> None:
        if self.config.METRICS_ENABLED:
            metrics.rules_evaluated_total.labels(rule=rule.name).inc()

        try:
            matched = rule.matcher.matches(context)
        except MissingContextError as e:
            logger.warning(f"Rule '{rule.name}' could not be evaluated for {context}: {e}")
            if self.config.METRICS_ENABLED:
                metrics.rule_failures_total.labels(rule=rule.name).inc()
            failures.append(
                RuleFailure(
                    rule=rule.name,
                    package=context.package.id,
                    message=str(e),
                    project=context.project.id if context.project else None,
                    scope=context.scope.name if context.scope else None,
                )
            )
            return

        if not rule.is_violated(matched):
            return

        values = context.template_values(rule.name)
        violations.append(
            RuleViolation(
                rule=rule.name,
                package=context.package.id,
                license=context.license,
                license_source=context.license_source,
                severity=rule.severity,
                message=rule.message.format(**values),
                how_to_fix=rule.how_to_fix.format(**values),
                project=context.project.id if context.project else None,
                scope=context.scope.name if context.scope else None,
                level=context.level,
                ancestors=tuple(ancestor.id for ancestor in context.ancestors),
            )
        )
        if self.config.METRICS_ENABLED:
            metrics.rule_violations_total.labels(rule=rule.name, severity=rule.severity.value).inc()


def evaluate_rules(
    rule_set: RuleSet, rules: Sequence[Rule], config: Optional[Settings] = None
) -> List[RuleViolation]:
    """Evaluate ``rules`` against ``rule_set`` and return the violations in evaluation order."""
    return list(Evaluator(rule_set, rules, config).run().violations)

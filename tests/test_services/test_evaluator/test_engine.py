"""Tests for the rule evaluator."""

import logging

import pytest

from compliance.core.config import Settings
from compliance.core.errors import InvalidRuleError
from compliance.models.analysis import PackageFindings
from compliance.models.license import LicenseSource, LicenseView
from compliance.models.project import Project, Scope
from compliance.models.violation import RuleTrigger, Severity
from compliance.services.evaluator import matchers
from compliance.services.evaluator.engine import Evaluator, evaluate_rules
from compliance.services.evaluator.loader import load_rules_from_string
from compliance.services.evaluator.matchers import Predicate
from compliance.services.evaluator.rule_set import RuleSet
from compliance.services.evaluator.rules import Rule
from tests.mocks.analysis import (
    DETECTED_LICENSES,
    PACKAGE_DYNAMICALLY_LINKED,
    PACKAGE_STATICALLY_LINKED,
    PACKAGE_WITH_ONLY_DECLARED_LICENSE,
    PACKAGE_WITHOUT_LICENSE,
    PROJECT_INCLUDED,
    make_id,
    make_package,
    make_result,
    ref,
)


def _rule(name="RULE", matcher=None, **kwargs):
    kwargs.setdefault("message", "{package} violates {rule}")
    return Rule(name=name, matcher=matcher or matchers.is_statically_linked(), **kwargs)


class TestRule:
    def test_blank_name(self):
        with pytest.raises(InvalidRuleError):
            _rule(name=" ")

    def test_matcher_type(self):
        with pytest.raises(InvalidRuleError):
            Rule(name="R", matcher="is_project", message="m")

    def test_bad_template(self):
        with pytest.raises(InvalidRuleError, match="invalid message template"):
            _rule(message="{package")

    def test_enum_fields_from_strings(self):
        rule = _rule(severity="WARNING", trigger="no_match", license_view="ONLY_DECLARED")
        assert rule.severity is Severity.WARNING
        assert rule.trigger is RuleTrigger.NO_MATCH
        assert rule.license_view is LicenseView.ONLY_DECLARED
        assert rule.is_license_rule

    @pytest.mark.parametrize(
        "field,value",
        [("license_view", "NOPE"), ("severity", "FATAL"), ("trigger", "sometimes")],
    )
    def test_invalid_enum_fields_fail_at_construction(self, field, value):
        with pytest.raises(InvalidRuleError, match=f"invalid {field}") as exc_info:
            _rule(name="BAD", **{field: value})
        assert exc_info.value.rule == "BAD"

    def test_string_severity_reaches_violation(self):
        rule = _rule(name="NO_STATIC", severity="WARNING")
        violations = evaluate_rules(RuleSet(make_result()), [rule])
        assert violations[0].severity == Severity.WARNING

    def test_polarity(self):
        assert _rule().is_violated(True)
        assert not _rule().is_violated(False)
        assert _rule(trigger=RuleTrigger.NO_MATCH).is_violated(False)
        assert not _rule(trigger=RuleTrigger.NO_MATCH).is_violated(True)


class TestEvaluator:
    def setup_method(self):
        self.rule_set = RuleSet(make_result())

    def test_static_linking_rule(self):
        violations = evaluate_rules(self.rule_set, [_rule(name="NO_STATIC")])
        assert len(violations) == 1
        violation = violations[0]
        assert violation.rule == "NO_STATIC"
        assert violation.package == PACKAGE_STATICALLY_LINKED.id
        assert violation.severity == Severity.ERROR
        assert violation.message == f"{PACKAGE_STATICALLY_LINKED.id} violates NO_STATIC"
        assert violation.project == PROJECT_INCLUDED.id
        assert violation.scope == "compile"
        assert violation.level == 0
        assert violation.license is None

    def test_no_match_trigger(self):
        rule = _rule(name="NEEDS_LICENSE", matcher=matchers.has_license(), trigger=RuleTrigger.NO_MATCH)
        violations = evaluate_rules(self.rule_set, [rule])
        assert [v.package for v in violations] == [PACKAGE_WITHOUT_LICENSE.id]

    def test_rules_run_in_declaration_order(self):
        rules = [
            _rule(name="SECOND", matcher=matchers.is_type("Maven"), severity=Severity.HINT),
            _rule(name="FIRST", matcher=matchers.is_statically_linked()),
        ]
        violations = evaluate_rules(self.rule_set, rules)
        assert [v.rule for v in violations] == ["SECOND"] * 4 + ["FIRST"]

    def test_excluded_scopes_are_visited(self):
        rule = _rule(name="EXCLUDED", matcher=matchers.is_excluded(), severity=Severity.HINT)
        violations = evaluate_rules(self.rule_set, [rule])
        assert [(v.package, v.scope) for v in violations] == [(PACKAGE_WITH_ONLY_DECLARED_LICENSE.id, "test")]

    def test_license_rule_binds_each_license(self):
        rule = _rule(
            name="DECLARED",
            matcher=matchers.is_license_source("DECLARED"),
            license_view=LicenseView.ONLY_DECLARED,
            message="{package}: {license} ({license_source})",
            severity=Severity.WARNING,
        )
        violations = evaluate_rules(self.rule_set, [rule])
        pairs = [(v.package, v.license, v.license_source) for v in violations]
        assert pairs == [
            (PACKAGE_STATICALLY_LINKED.id, "GPL-2.0-only", LicenseSource.DECLARED),
            (PACKAGE_DYNAMICALLY_LINKED.id, "MIT", LicenseSource.DECLARED),
            (PACKAGE_WITH_ONLY_DECLARED_LICENSE.id, "Apache-2.0", LicenseSource.DECLARED),
            (PACKAGE_WITH_ONLY_DECLARED_LICENSE.id, "MIT", LicenseSource.DECLARED),
        ]
        assert violations[0].message == f"{PACKAGE_STATICALLY_LINKED.id}: GPL-2.0-only (DECLARED)"

    def test_license_rule_skips_packages_without_licenses(self):
        rule = _rule(name="ANY_LICENSE", matcher=Predicate("always", lambda r: True), license_view=LicenseView.ALL)
        packages = {v.package for v in evaluate_rules(self.rule_set, [rule])}
        assert PACKAGE_WITHOUT_LICENSE.id not in packages

    def test_license_rule_sees_detected_findings(self):
        result = make_result(scan_results=(PackageFindings(id=PACKAGE_WITHOUT_LICENSE.id, findings=DETECTED_LICENSES),))
        rule = _rule(
            name="DETECTED",
            matcher=matchers.is_license("LicenseRef-a"),
            license_view=LicenseView.CONCLUDED_OR_REST,
        )
        violations = evaluate_rules(RuleSet(result), [rule])
        assert [(v.package, v.license_source) for v in violations] == [(PACKAGE_WITHOUT_LICENSE.id, LicenseSource.DETECTED)]

    def test_missing_context_becomes_failure(self, caplog):
        # is_license needs a bound license, which only license rules provide
        rule = _rule(name="BROKEN", matcher=matchers.is_license("MIT"))
        with caplog.at_level(logging.WARNING, logger="compliance.services.evaluator.engine"):
            run = Evaluator(self.rule_set, [rule, _rule(name="NO_STATIC")]).run()

        assert len(run.failures) == 4
        assert {f.rule for f in run.failures} == {"BROKEN"}
        assert run.failures[0].project == PROJECT_INCLUDED.id
        assert [v.rule for v in run.violations] == ["NO_STATIC"]
        assert "could not be evaluated" in caplog.text

    def test_run_summary(self):
        run = Evaluator(self.rule_set, [_rule(name="NO_STATIC")]).run()
        assert run.has_errors
        assert run.severity_counts == {"ERROR": 1, "WARNING": 0, "HINT": 0}
        assert run.end_time >= run.start_time

    def test_evaluation_is_repeatable(self):
        rules = [_rule(name="NO_STATIC"), _rule(name="ALL_TYPES", matcher=matchers.is_type("Maven"))]
        assert evaluate_rules(self.rule_set, rules) == evaluate_rules(self.rule_set, rules)

    def test_duplicate_rule_names(self):
        with pytest.raises(InvalidRuleError, match="duplicate rule name"):
            Evaluator(self.rule_set, [_rule(name="R"), _rule(name="R")])

    def test_rejects_non_rules(self):
        with pytest.raises(InvalidRuleError):
            Evaluator(self.rule_set, [{"name": "R"}])

    def test_no_rules(self):
        run = Evaluator(self.rule_set, []).run()
        assert run.violations == ()
        assert not run.has_errors

    def test_config_sets_default_view_for_matchers(self):
        rule = _rule(name="NEEDS_LICENSE", matcher=matchers.has_license(), trigger=RuleTrigger.NO_MATCH)
        config = Settings(DEFAULT_LICENSE_VIEW="ONLY_DETECTED")
        violations = evaluate_rules(self.rule_set, [rule], config)
        # Nothing in the default analysis result has detected findings
        assert len(violations) == 4
        assert self.rule_set.config is not config

    def test_config_controls_malformed_expression_logging(self, caplog):
        package = make_package("NPM::broken:1.0", declared=["MIT"], concluded="MIT OR ()")
        scope = Scope(name="dependencies", dependencies=(ref(package),))
        project = Project(id=make_id("NPM:here:app:1.0"), scopes=(scope,))
        rule_set = RuleSet(make_result(projects=(project,), packages=(package,)))
        rule = _rule(name="MIT_ONLY", matcher=matchers.contains_license("MIT"))

        with caplog.at_level(logging.WARNING, logger="compliance.services.licenses.views"):
            violations = evaluate_rules(rule_set, [rule], Settings(LOG_MALFORMED_LICENSE_EXPRESSIONS=False))
        assert len(violations) == 1
        assert "Ignoring concluded license" not in caplog.text

        with caplog.at_level(logging.WARNING, logger="compliance.services.licenses.views"):
            evaluate_rules(rule_set, [rule])
        assert "Ignoring concluded license" in caplog.text

    def test_metrics_can_be_disabled(self):
        config = Settings(METRICS_ENABLED=False)
        violations = evaluate_rules(self.rule_set, [_rule(name="NO_STATIC")], config)
        assert len(violations) == 1


class TestDeclarativeRules:
    def test_yaml_rules_end_to_end(self):
        rules = load_rules_from_string(
            """
rules:
  - name: NO_STATIC_COPYLEFT
    license_view: CONCLUDED_OR_REST
    message: "{package} links {license} statically in scope {scope}."
    matcher:
      all:
        - is_statically_linked
        - is_license: GPL-2.0-only
        - not: is_excluded
        - is_project_from_org: here
  - name: UNLICENSED
    severity: hint
    trigger: no_match
    message: "{package} has no license."
    matcher: has_license
"""
        )
        violations = evaluate_rules(RuleSet(make_result()), rules)

        assert [(v.rule, v.package) for v in violations] == [
            ("NO_STATIC_COPYLEFT", PACKAGE_STATICALLY_LINKED.id),
            ("UNLICENSED", PACKAGE_WITHOUT_LICENSE.id),
        ]
        assert violations[0].message == f"{PACKAGE_STATICALLY_LINKED.id} links GPL-2.0-only statically in scope compile."
        assert violations[1].severity == Severity.HINT

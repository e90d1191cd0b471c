"""
Rule Matcher Engine

Matchers are side-effect free predicates over a DependencyRule context. Atoms test
a single property of the package, its dependency edge, its license or its position
in the tree; AllOf / AnyOf / Not combine them. ``&``, ``|`` and ``~`` are shortcuts
for the combinators:

    rule_matcher = is_statically_linked() & ~is_excluded() & is_license("GPL-2.0-only")
"""

import re
from abc import ABC, abstractmethod
from typing import Callable, NamedTuple, Optional, Union

from compliance.models.license import LicenseSource, LicenseView
from compliance.services.evaluator.context import DependencyRule
from compliance.services.licenses.spdx import is_valid_expression, license_key

ViewLike = Union[LicenseView, str, None]


class MatchResult(NamedTuple):
    matched: bool
    message: str


class RuleMatcher(ABC):
    description: str = ""

    @abstractmethod
    def matches(self, rule: DependencyRule) -> bool:
        """Return True if the context satisfies this matcher. Must not modify anything."""

    def evaluate(self, rule: DependencyRule) -> MatchResult:
        matched = self.matches(rule)
        return MatchResult(matched, self.description if matched else f"not {self.description}")

    def __and__(self, other: "RuleMatcher") -> "RuleMatcher":
        return AllOf(self, other)

    def __or__(self, other: "RuleMatcher") -> "RuleMatcher":
        return AnyOf(self, other)

    def __invert__(self) -> "RuleMatcher":
        return Not(self)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.description}>"


class Predicate(RuleMatcher):
    """An atom: a described test function over a context."""

    def __init__(self, description: str, test: Callable[[DependencyRule], bool]):
        self.description = description
        self._test = test

    def matches(self, rule: DependencyRule) -> bool:
        return bool(self._test(rule))


class AllOf(RuleMatcher):
    def __init__(self, *matchers: RuleMatcher):
        if not matchers:
            raise ValueError("AllOf needs at least one matcher")
        self.matchers = matchers
        self.description = "(" + " and ".join(m.description for m in matchers) + ")"

    def matches(self, rule: DependencyRule) -> bool:
        return all(m.matches(rule) for m in self.matchers)


class AnyOf(RuleMatcher):
    def __init__(self, *matchers: RuleMatcher):
        if not matchers:
            raise ValueError("AnyOf needs at least one matcher")
        self.matchers = matchers
        self.description = "(" + " or ".join(m.description for m in matchers) + ")"

    def matches(self, rule: DependencyRule) -> bool:
        return any(m.matches(rule) for m in self.matchers)


class Not(RuleMatcher):
    def __init__(self, matcher: RuleMatcher):
        self.matcher = matcher
        self.description = f"not {matcher.description}"

    def matches(self, rule: DependencyRule) -> bool:
        return not self.matcher.matches(rule)


def _to_view(view: ViewLike) -> Optional[LicenseView]:
    if view is None or isinstance(view, LicenseView):
        return view
    try:
        return LicenseView(str(view).upper())
    except ValueError:
        raise ValueError(f"Unknown license view '{view}'") from None


def _view_for(rule: DependencyRule, view: Optional[LicenseView]) -> LicenseView:
    return view or rule.rule_set.config.DEFAULT_LICENSE_VIEW


def _names(values, what: str) -> tuple:
    if not values:
        raise ValueError(f"At least one {what} is required")
    return tuple(str(v) for v in values)


# =============================================================================
# Tree position and edge atoms
# =============================================================================


def is_at_tree_level(level: int) -> RuleMatcher:
    if isinstance(level, bool) or not isinstance(level, int) or level < 0:
        raise ValueError(f"Tree level must be a non-negative integer, got {level!r}")
    return Predicate(f"is at tree level {level}", lambda rule: rule.level == level)


def is_project_from_org(*orgs: str) -> RuleMatcher:
    orgs = _names(orgs, "organization")
    return Predicate(
        f"is project from org {', '.join(orgs)}",
        lambda rule: rule.require_project().id.organization in orgs,
    )


def is_statically_linked() -> RuleMatcher:
    return Predicate("is statically linked", lambda rule: rule.dependency.linkage.is_static)


def is_project() -> RuleMatcher:
    return Predicate(
        "is project",
        lambda rule: rule.dependency.linkage.is_project or rule.rule_set.is_project(rule.package.id),
    )


def is_in_scope(*patterns: str) -> RuleMatcher:
    compiled = [re.compile(p) for p in _names(patterns, "scope pattern")]
    return Predicate(
        f"is in scope {', '.join(p.pattern for p in compiled)}",
        lambda rule: any(p.fullmatch(rule.require_scope().name) for p in compiled),
    )


def is_excluded() -> RuleMatcher:
    return Predicate(
        "is excluded",
        lambda rule: rule.scope is not None and rule.rule_set.is_scope_excluded(rule.scope),
    )


def has_ancestor(matcher: RuleMatcher) -> RuleMatcher:
    if not isinstance(matcher, RuleMatcher):
        raise TypeError(f"has_ancestor needs a matcher, got {type(matcher).__name__}")
    return Predicate(
        f"has ancestor that {matcher.description}",
        lambda rule: any(matcher.matches(ancestor) for ancestor in rule.ancestor_rules()),
    )


# =============================================================================
# Package atoms
# =============================================================================


def is_from_org(*orgs: str) -> RuleMatcher:
    orgs = _names(orgs, "organization")
    return Predicate(
        f"is from org {', '.join(orgs)}",
        lambda rule: rule.package.id.organization in orgs,
    )


def is_type(*types: str) -> RuleMatcher:
    wanted = {t.lower() for t in _names(types, "package type")}
    return Predicate(
        f"is of type {', '.join(sorted(wanted))}",
        lambda rule: rule.package.id.type.lower() in wanted,
    )


def has_concluded_license() -> RuleMatcher:
    return Predicate(
        "has concluded license",
        lambda rule: is_valid_expression(rule.package.concluded_license),
    )


def has_license(view: ViewLike = None) -> RuleMatcher:
    license_view = _to_view(view)
    label = license_view.value if license_view else "default view"
    return Predicate(
        f"has license in {label}",
        lambda rule: bool(rule.resolve_licenses(_view_for(rule, license_view))),
    )


def contains_license(*licenses: str, view: ViewLike = None) -> RuleMatcher:
    keys = {license_key(lic) for lic in _names(licenses, "license")}
    license_view = _to_view(view)
    label = license_view.value if license_view else "default view"
    return Predicate(
        f"contains license {', '.join(sorted(keys))} in {label}",
        lambda rule: any(
            license_key(resolved.license) in keys
            for resolved in rule.resolve_licenses(_view_for(rule, license_view))
        ),
    )


# =============================================================================
# License atoms (only valid inside license rules)
# =============================================================================


def is_license(*licenses: str) -> RuleMatcher:
    keys = {license_key(lic) for lic in _names(licenses, "license")}
    return Predicate(
        f"is license {', '.join(sorted(keys))}",
        lambda rule: license_key(rule.require_license()[0]) in keys,
    )


def is_license_source(*sources: Union[LicenseSource, str]) -> RuleMatcher:
    if not sources:
        raise ValueError("At least one license source is required")
    wanted = {LicenseSource(str(getattr(s, "value", s)).upper()) for s in sources}
    return Predicate(
        f"is license source {', '.join(sorted(s.value for s in wanted))}",
        lambda rule: rule.require_license()[1] in wanted,
    )

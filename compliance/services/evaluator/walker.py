"""
Dependency Tree Walker

Visits every node of every dependency tree of an analysis result and produces one
DependencyRule context per (project, scope, node).
"""

import logging
from typing import TYPE_CHECKING, Iterator, List, Tuple

from compliance.models.package import Package, PackageReference
from compliance.models.project import Project, Scope
from compliance.services.evaluator.context import DependencyRule

if TYPE_CHECKING:
    from compliance.services.evaluator.rule_set import RuleSet

logger = logging.getLogger(__name__)

# (reference, ancestor packages, ancestor references, level)
_StackEntry = Tuple[PackageReference, Tuple[Package, ...], Tuple[PackageReference, ...], int]


class DependencyTreeWalker:
    """
    Depth-first walker over all dependency trees of a rule set.

    Projects and scopes are visited in the order of the analysis result and
    children in the order of their reference. A package that occurs at several
    positions yields one context per position. Every call to ``iter()`` starts a
    new traversal, so the walker can be consumed as often as needed.
    """

    def __init__(self, rule_set: "RuleSet"):
        self.rule_set = rule_set

    def __iter__(self) -> Iterator[DependencyRule]:
        for project in self.rule_set.projects:
            for scope in project.scopes:
                yield from self.walk_scope(project, scope)

    def walk_scope(self, project: Project, scope: Scope) -> Iterator[DependencyRule]:
        # Explicit stack instead of recursion; children are pushed in reverse to
        # keep the declaration order when popping.
        stack: List[_StackEntry] = [(ref, (), (), 0) for ref in reversed(scope.dependencies)]

        while stack:
            ref, ancestors, ancestor_refs, level = stack.pop()
            package = self.rule_set.get_package(ref.id)

            yield DependencyRule(
                rule_set=self.rule_set,
                package=package,
                dependency=ref,
                ancestors=ancestors,
                level=level,
                scope=scope,
                project=project,
                ancestor_dependencies=ancestor_refs,
                detected_licenses=self.rule_set.get_detected_findings(ref.id),
                curations=self.rule_set.get_curations(ref.id),
            )

            child_ancestors = ancestors + (package,)
            child_ancestor_refs = ancestor_refs + (ref,)
            for child in reversed(ref.dependencies):
                stack.append((child, child_ancestors, child_ancestor_refs, level + 1))

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional, Tuple

from compliance.core.errors import MissingContextError
from compliance.models.analysis import PackageCuration
from compliance.models.license import LicenseFinding, LicenseSource, LicenseView
from compliance.models.package import Package, PackageReference
from compliance.models.project import Project, Scope
from compliance.services.licenses.views import ResolvedLicense, resolve_licenses

if TYPE_CHECKING:
    from compliance.services.evaluator.rule_set import RuleSet


@dataclass(frozen=True)
class DependencyRule:
    """
    The evaluation context of one dependency tree node.

    Holds the package, the reference (edge) through which it was reached, its
    ancestors from the scope root down to its parent, its level (root dependencies
    are level 0) and the enclosing scope and project. License rules additionally
    bind one resolved (license, source) pair.
    """

    rule_set: "RuleSet"
    package: Package
    dependency: PackageReference
    ancestors: Tuple[Package, ...] = ()
    level: int = 0
    scope: Optional[Scope] = None
    project: Optional[Project] = None
    ancestor_dependencies: Tuple[PackageReference, ...] = ()
    detected_licenses: Tuple[LicenseFinding, ...] = ()
    curations: Tuple[PackageCuration, ...] = ()
    license: Optional[str] = None
    license_source: Optional[LicenseSource] = None

    def with_license(self, license: str, source: LicenseSource) -> "DependencyRule":
        return replace(self, license=license, license_source=source)

    def resolve_licenses(self, view: LicenseView) -> List[ResolvedLicense]:
        return resolve_licenses(view, self.package, self.detected_licenses, self.rule_set.config)

    def ancestor_rules(self) -> Iterator["DependencyRule"]:
        """Contexts for the ancestors, nearest to the scope root first."""
        for index, ancestor in enumerate(self.ancestors):
            if index < len(self.ancestor_dependencies):
                dependency = self.ancestor_dependencies[index]
            else:
                dependency = ancestor.to_reference()

            yield replace(
                self,
                package=ancestor,
                dependency=dependency,
                ancestors=self.ancestors[:index],
                ancestor_dependencies=self.ancestor_dependencies[:index],
                level=index,
                detected_licenses=self.rule_set.get_detected_findings(ancestor.id),
                curations=self.rule_set.get_curations(ancestor.id),
                license=None,
                license_source=None,
            )

    def require_project(self) -> Project:
        if self.project is None:
            raise MissingContextError(f"No enclosing project for '{self.package.id}'")
        return self.project

    def require_scope(self) -> Scope:
        if self.scope is None:
            raise MissingContextError(f"No enclosing scope for '{self.package.id}'")
        return self.scope

    def require_license(self) -> Tuple[str, LicenseSource]:
        if self.license is None or self.license_source is None:
            raise MissingContextError(
                f"No license bound for '{self.package.id}', the matcher needs a license rule"
            )
        return self.license, self.license_source

    def template_values(self, rule: str) -> Dict[str, object]:
        """Values available to rule message templates."""
        return {
            "rule": rule,
            "package": self.package.id.to_coordinates(),
            "license": self.license or "",
            "license_source": self.license_source.value if self.license_source else "",
            "project": self.project.id.to_coordinates() if self.project else "",
            "scope": self.scope.name if self.scope else "",
            "level": self.level,
        }

    def __str__(self) -> str:
        position = f"'{self.package.id}' at level {self.level}"
        if self.scope is not None:
            position += f" in scope '{self.scope.name}'"
        if self.project is not None:
            position += f" of project '{self.project.id}'"
        return position

import copy
import logging
from typing import Dict, List, Optional, Tuple

from compliance.core.config import Settings, settings as default_settings
from compliance.core.errors import DanglingReferenceError
from compliance.models.analysis import AnalysisResult, PackageCuration
from compliance.models.license import LicenseFinding, LicenseView
from compliance.models.package import Identifier, Package
from compliance.models.project import Project, Scope
from compliance.services.evaluator.walker import DependencyTreeWalker
from compliance.services.licenses.views import ResolvedLicense, resolve_licenses

logger = logging.getLogger(__name__)


class RuleSet:
    """
    Read-only query facade over one resolved analysis result.

    Curations are applied once when the rule set is built; nothing is mutated
    afterwards, so contexts created from the same rule set can be evaluated
    independently.
    """

    def __init__(self, result: AnalysisResult, config: Optional[Settings] = None):
        self.result = result
        self.config = config or default_settings

        self._curations: Dict[Identifier, Tuple[PackageCuration, ...]] = {}
        for curation in result.curations:
            self._curations[curation.id] = self._curations.get(curation.id, ()) + (curation,)

        self._packages: Dict[Identifier, Package] = {}
        for package in result.packages:
            self._packages[package.id] = self._curate(package)

        self._projects: Dict[Identifier, Project] = {p.id: p for p in result.projects}
        self._findings = result.findings_by_id()

        logger.debug(
            f"Rule set built with {len(self._projects)} projects, {len(self._packages)} packages "
            f"and {len(result.curations)} curations"
        )

    def with_config(self, config: Settings) -> "RuleSet":
        """A rule set over the same curated data that reads ``config`` instead."""
        if config is self.config:
            return self
        clone = copy.copy(self)
        clone.config = config
        return clone

    def _curate(self, package: Package) -> Package:
        for curation in self._curations.get(package.id, ()):
            package = curation.apply(package)
        return package

    @property
    def projects(self) -> Tuple[Project, ...]:
        return self.result.projects

    @property
    def packages(self) -> List[Package]:
        return list(self._packages.values())

    def is_project(self, id: Identifier) -> bool:
        return id in self._projects

    def get_package(self, id: Identifier) -> Package:
        """
        Return the curated package for ``id``; project ids resolve to the project as a package.

        Raises:
            DanglingReferenceError: if ``id`` is neither a known package nor a project.
        """
        package = self._packages.get(id)
        if package is not None:
            return package
        project = self._projects.get(id)
        if project is not None:
            return self._curate(project.to_package())
        raise DanglingReferenceError(f"No package or project with id '{id}' in the analysis result")

    def get_curations(self, id: Identifier) -> Tuple[PackageCuration, ...]:
        return self._curations.get(id, ())

    def get_detected_findings(self, id: Identifier) -> Tuple[LicenseFinding, ...]:
        return self._findings.get(id, ())

    def is_scope_excluded(self, scope: Scope) -> bool:
        return self.result.excludes.is_scope_excluded(scope.name)

    def resolve_licenses(self, view: LicenseView, package: Package) -> List[ResolvedLicense]:
        return resolve_licenses(view, package, self.get_detected_findings(package.id), self.config)

    def walker(self) -> DependencyTreeWalker:
        """A re-iterable walker over all dependency tree nodes of all projects."""
        return DependencyTreeWalker(self)

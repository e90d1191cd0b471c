import re
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from compliance.models.license import LicenseFinding
from compliance.models.package import Identifier, Package
from compliance.models.project import Project


class PackageCuration(BaseModel):
    """
    A manual correction of package metadata.

    Only the fields that are set override the package, so a curation can for example
    conclude a license without touching the declared ones.
    """

    id: Identifier
    concluded_license: Optional[str] = None
    declared_licenses: Optional[Tuple[str, ...]] = None
    description: Optional[str] = None
    homepage_url: Optional[str] = None
    comment: str = ""

    model_config = ConfigDict(frozen=True)

    def apply(self, package: Package) -> Package:
        if package.id != self.id:
            raise ValueError(f"Curation for '{self.id}' cannot be applied to '{package.id}'")

        update = {
            field: getattr(self, field)
            for field in ("concluded_license", "declared_licenses", "description", "homepage_url")
            if getattr(self, field) is not None
        }
        # Re-validate so the package normalizers run on the curated values
        return Package.model_validate({**package.model_dump(), **update})


class ScopeExclude(BaseModel):
    """Marks scopes whose name fully matches ``pattern`` as not distributed."""

    pattern: str
    reason: str = "TEST_DEPENDENCY_OF"
    comment: str = ""

    model_config = ConfigDict(frozen=True)

    @field_validator("pattern")
    @classmethod
    def check_pattern(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid scope exclude pattern '{v}': {e}") from e
        return v

    def matches(self, scope_name: str) -> bool:
        return re.fullmatch(self.pattern, scope_name) is not None


class Excludes(BaseModel):
    scopes: Tuple[ScopeExclude, ...] = ()

    model_config = ConfigDict(frozen=True)

    def find_scope_excludes(self, scope_name: str) -> Tuple[ScopeExclude, ...]:
        return tuple(exclude for exclude in self.scopes if exclude.matches(scope_name))

    def is_scope_excluded(self, scope_name: str) -> bool:
        return any(exclude.matches(scope_name) for exclude in self.scopes)


class PackageFindings(BaseModel):
    """Detected license findings of one package, as delivered by the scanner."""

    id: Identifier
    findings: Tuple[LicenseFinding, ...] = ()

    model_config = ConfigDict(frozen=True)


class AnalysisResult(BaseModel):
    """
    A fully resolved analysis: projects with their dependency trees, the metadata of
    all referenced packages, curations, scan findings and excludes.

    Tree depth is validated per scope when the model is built.
    """

    projects: Tuple[Project, ...] = ()
    packages: Tuple[Package, ...] = ()
    curations: Tuple[PackageCuration, ...] = ()
    scan_results: Tuple[PackageFindings, ...] = Field(
        (), description="Detected license findings per package"
    )
    excludes: Excludes = Field(default_factory=Excludes)

    model_config = ConfigDict(frozen=True)

    def findings_by_id(self) -> Dict[Identifier, Tuple[LicenseFinding, ...]]:
        result: Dict[Identifier, Tuple[LicenseFinding, ...]] = {}
        for entry in self.scan_results:
            result[entry.id] = result.get(entry.id, ()) + entry.findings
        return result

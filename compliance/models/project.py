from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from compliance.core.config import settings
from compliance.models.package import Identifier, Package, PackageReference, VcsInfo


class Scope(BaseModel):
    """A named group of dependencies of a project, e.g. ``compile`` or ``test``."""

    name: str
    dependencies: Tuple[PackageReference, ...] = ()

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_tree_depth(self) -> "Scope":
        limit = settings.MAX_DEPENDENCY_TREE_DEPTH
        for ref in self.dependencies:
            depth = ref.depth()
            if depth > limit:
                raise ValueError(
                    f"Dependency tree of scope '{self.name}' below '{ref.id}' is {depth} levels "
                    f"deep, the maximum is {limit}"
                )
        return self

    def depth(self) -> int:
        return max((ref.depth() for ref in self.dependencies), default=0)


class Project(BaseModel):
    id: Identifier
    definition_file_path: str = Field("", description="Manifest the project was analyzed from")
    declared_licenses: Tuple[str, ...] = ()
    vcs: Optional[VcsInfo] = None
    homepage_url: str = ""
    scopes: Tuple[Scope, ...] = ()

    model_config = ConfigDict(frozen=True)

    def get_scope(self, name: str) -> Optional[Scope]:
        return next((scope for scope in self.scopes if scope.name == name), None)

    def to_package(self) -> Package:
        """View this project as a package, used when another project depends on it."""
        return Package(
            id=self.id,
            declared_licenses=self.declared_licenses,
            vcs=self.vcs,
            homepage_url=self.homepage_url,
        )

from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Identifier(BaseModel):
    """
    Unique identifier of a package or project.

    Rendered as colon separated coordinates, e.g. ``Maven:com.example:lib:1.0.0``
    or ``NPM:@angular:core:16.0.0``.
    """

    type: str = Field("", description="Package manager type (e.g. Maven, NPM, PyPI)")
    namespace: str = Field("", description="Group, scope or organization of the package")
    name: str = Field("", description="Package name")
    version: str = Field("", description="Package version")

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_coordinates(cls, coordinates: str) -> "Identifier":
        parts = coordinates.strip().split(":", 3)
        parts += [""] * (4 - len(parts))
        return cls(type=parts[0], namespace=parts[1], name=parts[2], version=parts[3])

    def to_coordinates(self) -> str:
        return ":".join([self.type, self.namespace, self.name, self.version])

    @property
    def organization(self) -> str:
        """The namespace without an npm style leading '@'."""
        return self.namespace[1:] if self.namespace.startswith("@") else self.namespace

    def __str__(self) -> str:
        return self.to_coordinates()


class VcsInfo(BaseModel):
    type: str = Field("", description="VCS type, e.g. Git")
    url: str = Field("", description="Repository URL")
    revision: str = Field("", description="Commit, tag or branch")
    path: str = Field("", description="Path inside the repository")

    model_config = ConfigDict(frozen=True)


class RemoteArtifact(BaseModel):
    url: str
    hash_value: str = ""
    hash_algorithm: str = ""

    model_config = ConfigDict(frozen=True)


class PackageLinkage(str, Enum):
    DYNAMIC = "DYNAMIC"
    STATIC = "STATIC"
    PROJECT_DYNAMIC = "PROJECT_DYNAMIC"
    PROJECT_STATIC = "PROJECT_STATIC"

    @property
    def is_static(self) -> bool:
        return self in (PackageLinkage.STATIC, PackageLinkage.PROJECT_STATIC)

    @property
    def is_project(self) -> bool:
        return self in (PackageLinkage.PROJECT_DYNAMIC, PackageLinkage.PROJECT_STATIC)


class PackageReference(BaseModel):
    """An edge in a dependency tree: the referenced package and its own dependencies."""

    id: Identifier
    linkage: PackageLinkage = PackageLinkage.DYNAMIC
    dependencies: Tuple["PackageReference", ...] = ()

    model_config = ConfigDict(frozen=True)

    def depth(self) -> int:
        """
        Number of levels of this subtree, counting this reference as level one.

        Uses an explicit stack so very deep input does not hit the recursion limit.
        """
        max_depth = 0
        stack: List[Tuple["PackageReference", int]] = [(self, 1)]
        while stack:
            ref, level = stack.pop()
            max_depth = max(max_depth, level)
            stack.extend((child, level + 1) for child in ref.dependencies)
        return max_depth


class Package(BaseModel):
    """
    Metadata of a resolved package.

    ``declared_licenses`` come from the package manifest, ``concluded_license`` is an
    SPDX expression set by curation or review and takes precedence in most views.
    """

    id: Identifier
    declared_licenses: Tuple[str, ...] = ()
    concluded_license: Optional[str] = None
    description: str = ""
    homepage_url: str = ""
    binary_artifact: Optional[RemoteArtifact] = None
    source_artifact: Optional[RemoteArtifact] = None
    vcs: Optional[VcsInfo] = None

    model_config = ConfigDict(frozen=True)

    @field_validator("declared_licenses")
    @classmethod
    def normalize_declared_licenses(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        # Drop blanks and duplicates, keep the manifest order
        seen = []
        for lic in v:
            lic = lic.strip()
            if lic and lic not in seen:
                seen.append(lic)
        return tuple(seen)

    @field_validator("concluded_license")
    @classmethod
    def blank_concluded_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()

    def to_reference(
        self,
        linkage: PackageLinkage = PackageLinkage.DYNAMIC,
        dependencies: Tuple[PackageReference, ...] = (),
    ) -> PackageReference:
        return PackageReference(id=self.id, linkage=linkage, dependencies=dependencies)

"""
License Models

Contains the license evidence types shared by the view resolver and the rule atoms.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class LicenseSource(str, Enum):
    """Where a license statement comes from."""

    DECLARED = "DECLARED"  # package metadata, e.g. the manifest
    CONCLUDED = "CONCLUDED"  # curated or set by a reviewer
    DETECTED = "DETECTED"  # found by scanning file contents


class LicenseView(str, Enum):
    """
    Policies for merging license evidence of a package.

    Each view defines its own precedence between the sources, see
    ``compliance.services.licenses.views.resolve_licenses``.
    """

    ALL = "ALL"
    CONCLUDED_OR_REST = "CONCLUDED_OR_REST"
    CONCLUDED_OR_DECLARED_OR_DETECTED = "CONCLUDED_OR_DECLARED_OR_DETECTED"
    CONCLUDED_OR_DETECTED = "CONCLUDED_OR_DETECTED"
    ONLY_CONCLUDED = "ONLY_CONCLUDED"
    ONLY_DECLARED = "ONLY_DECLARED"
    ONLY_DETECTED = "ONLY_DETECTED"


class TextLocation(BaseModel):
    """A line range inside a scanned file."""

    path: str = Field(..., description="Path relative to the root of the scanned source tree")
    start_line: int = Field(..., ge=1, description="First line, 1-based")
    end_line: int = Field(..., ge=1, description="Last line, inclusive")

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_line_order(self) -> "TextLocation":
        if self.start_line > self.end_line:
            raise ValueError(
                f"start_line ({self.start_line}) must not be greater than end_line ({self.end_line})"
            )
        return self


class LicenseFinding(BaseModel):
    """A single license statement found in or declared for a package."""

    license: str = Field(..., description="SPDX license identifier or expression")
    location: TextLocation
    source: LicenseSource = LicenseSource.DETECTED

    model_config = ConfigDict(frozen=True)

    @field_validator("license")
    @classmethod
    def strip_license(cls, v: str) -> str:
        return v.strip()

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from compliance.models.license import LicenseView
from compliance.models.violation import RuleTrigger, Severity


class RuleDefinition(BaseModel):
    """Declarative form of a rule as read from a rules file."""

    name: str = Field(..., min_length=1)
    matcher: Union[str, Dict[str, Any]] = Field(
        ..., description="Atom name or single-key matcher node, e.g. {'all': [...]}"
    )
    message: str = Field(..., description="Message template for violations")
    severity: Severity = Severity.ERROR
    how_to_fix: str = ""
    trigger: RuleTrigger = RuleTrigger.MATCH
    license_view: Optional[LicenseView] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("severity", "license_view", mode="before")
    @classmethod
    def upper_case_enums(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator("trigger", mode="before")
    @classmethod
    def lower_case_trigger(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v


class RulesFile(BaseModel):
    rules: List[RuleDefinition] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

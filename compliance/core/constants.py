"""
Shared Constants

Centralized constants used across the evaluator to ensure consistency.
"""

from typing import Dict, Optional

# Severity order for sorting (higher value = more severe)
SEVERITY_ORDER: Dict[str, int] = {
    "ERROR": 3,
    "WARNING": 2,
    "HINT": 1,
}

# Placeholders available in rule messages and how-to-fix texts
MESSAGE_PLACEHOLDERS = frozenset(
    {"rule", "package", "license", "license_source", "project", "scope", "level"}
)


def get_severity_value(severity: Optional[str]) -> int:
    """Get numeric value for severity. Higher = more severe."""
    if not severity:
        return 0
    value = getattr(severity, "value", severity)
    return SEVERITY_ORDER.get(str(value).upper(), 0)


def sort_by_severity(items: list, key: str = "severity", reverse: bool = True) -> list:
    """
    Sort a list of dicts or objects by severity.

    Args:
        items: Violations (objects with a severity attribute) or dicts
        key: The attribute or key holding the severity
        reverse: If True (default), most severe first

    Returns:
        Sorted list
    """

    def _value(item) -> int:
        if isinstance(item, dict):
            return get_severity_value(item.get(key))
        return get_severity_value(getattr(item, key, None))

    return sorted(items, key=_value, reverse=reverse)

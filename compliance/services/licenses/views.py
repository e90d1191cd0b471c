"""
License View Resolver

Merges the concluded, declared and detected license evidence of a package into a
list of (license, source) pairs according to a LicenseView.
"""

import logging
from typing import Iterable, List, NamedTuple, Optional

from compliance.core import metrics
from compliance.core.config import Settings, settings as default_settings
from compliance.core.errors import InvalidLicenseExpressionError
from compliance.models.license import LicenseFinding, LicenseSource, LicenseView
from compliance.models.package import Package
from compliance.services.licenses.spdx import decompose

logger = logging.getLogger(__name__)


class ResolvedLicense(NamedTuple):
    license: str
    source: LicenseSource


def concluded_licenses(package: Package, config: Optional[Settings] = None) -> List[str]:
    """
    Leaf licenses of the concluded expression of ``package``.

    A malformed expression counts as "no concluded license": it is logged (if enabled)
    and an empty list is returned so callers fall through to the next source.
    """
    if not package.concluded_license:
        return []

    config = config or default_settings
    try:
        return [str(leaf) for leaf in decompose(package.concluded_license)]
    except InvalidLicenseExpressionError as e:
        if config.LOG_MALFORMED_LICENSE_EXPRESSIONS:
            logger.warning(f"Ignoring concluded license of '{package.id}': {e}")
        if config.METRICS_ENABLED:
            metrics.malformed_license_expressions_total.inc()
        return []


def _declared(package: Package) -> List[str]:
    return list(package.declared_licenses)


def _detected(findings: Iterable[LicenseFinding]) -> List[str]:
    return [finding.license for finding in findings]


def _tag(licenses: Iterable[str], source: LicenseSource) -> List[ResolvedLicense]:
    return [ResolvedLicense(lic.strip(), source) for lic in licenses if lic and lic.strip()]


def _unique(pairs: Iterable[ResolvedLicense]) -> List[ResolvedLicense]:
    result: List[ResolvedLicense] = []
    seen = set()
    for pair in pairs:
        if pair not in seen:
            seen.add(pair)
            result.append(pair)
    return result


def resolve_licenses(
    view: LicenseView,
    package: Package,
    detected_findings: Iterable[LicenseFinding] = (),
    config: Optional[Settings] = None,
) -> List[ResolvedLicense]:
    """
    Resolve the licenses of ``package`` as seen through ``view``.

    Args:
        view: The precedence policy to apply
        package: The (curated) package
        detected_findings: License findings from scanning the package sources
        config: Settings controlling logging of malformed expressions

    Returns:
        Unique (license, source) pairs in a stable order: concluded, declared, detected.
    """
    view = LicenseView(view)
    concluded = _tag(concluded_licenses(package, config), LicenseSource.CONCLUDED)
    declared = _tag(_declared(package), LicenseSource.DECLARED)
    detected = _tag(_detected(detected_findings), LicenseSource.DETECTED)

    if view == LicenseView.ALL:
        pairs = concluded + declared + detected
    elif view == LicenseView.CONCLUDED_OR_REST:
        pairs = concluded or declared + detected
    elif view == LicenseView.CONCLUDED_OR_DECLARED_OR_DETECTED:
        pairs = concluded or declared or detected
    elif view == LicenseView.CONCLUDED_OR_DETECTED:
        pairs = concluded or detected
    elif view == LicenseView.ONLY_CONCLUDED:
        pairs = concluded
    elif view == LicenseView.ONLY_DECLARED:
        pairs = declared
    elif view == LicenseView.ONLY_DETECTED:
        pairs = detected
    else:  # pragma: no cover - LicenseView is a closed enum
        raise ValueError(f"Unsupported license view: {view}")

    return _unique(pairs)

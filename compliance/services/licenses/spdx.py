"""
SPDX license expression handling.

Parsing is delegated to ``license-expression``. Expressions are decomposed into
their leaf license identifiers, walking through AND / OR operators; a license with
an exception (``WITH``) stays one leaf.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from license_expression import ExpressionError, LicenseWithExceptionSymbol, Licensing

from compliance.core.errors import InvalidLicenseExpressionError

logger = logging.getLogger(__name__)

# Without known symbols every token that is not an operator is taken as a license key
_licensing = Licensing()

OR_LATER_SUFFIX = "-or-later"


@dataclass(frozen=True)
class SpdxLicenseId:
    """
    A leaf of a license expression.

    A deprecated "or later" id like ``GPL-2.0+`` is stored as ``id="GPL-2.0"`` with
    ``or_later=True``. Current ids such as ``GPL-2.0-or-later`` keep their id and also
    set the flag.
    """

    id: str
    or_later: bool = False
    exception: Optional[str] = None

    @classmethod
    def from_key(cls, key: str, exception: Optional[str] = None) -> "SpdxLicenseId":
        if key.endswith("+"):
            return cls(id=key[:-1], or_later=True, exception=exception)
        return cls(id=key, or_later=key.endswith(OR_LATER_SUFFIX), exception=exception)

    @property
    def license(self) -> str:
        """The license id including a deprecated '+' suffix, without the exception."""
        if self.or_later and not self.id.endswith(OR_LATER_SUFFIX):
            return f"{self.id}+"
        return self.id

    def __str__(self) -> str:
        if self.exception:
            return f"{self.license} WITH {self.exception}"
        return self.license


def parse_expression(expression: str):
    """
    Parse an SPDX expression.

    Raises:
        InvalidLicenseExpressionError: if the expression is blank or malformed.
    """
    if not expression or not expression.strip():
        raise InvalidLicenseExpressionError(expression or "", "expression is blank")

    try:
        parsed = _licensing.parse(expression, simple=True)
    except ExpressionError as e:
        raise InvalidLicenseExpressionError(expression, str(e)) from e
    except Exception as e:
        # boolean.py raises a plain IndexError for some inputs, e.g. "MIT OR ()"
        raise InvalidLicenseExpressionError(expression, f"{type(e).__name__}: {e}") from e

    if parsed is None:
        raise InvalidLicenseExpressionError(expression, "expression is empty")
    return parsed


def decompose(expression: str) -> List[SpdxLicenseId]:
    """
    Split an expression into its unique leaf licenses, in order of appearance.

    Raises:
        InvalidLicenseExpressionError: if the expression cannot be parsed.
    """
    parsed = parse_expression(expression)

    leaves: List[SpdxLicenseId] = []
    for symbol in _licensing.license_symbols(parsed, unique=False, decompose=False):
        if isinstance(symbol, LicenseWithExceptionSymbol):
            leaf = SpdxLicenseId.from_key(
                symbol.license_symbol.key, exception=symbol.exception_symbol.key
            )
        else:
            leaf = SpdxLicenseId.from_key(symbol.key)

        if leaf.id and leaf not in leaves:
            leaves.append(leaf)

    return leaves


def is_valid_expression(expression: Optional[str]) -> bool:
    if not expression or not expression.strip():
        return False
    try:
        parse_expression(expression)
    except InvalidLicenseExpressionError:
        return False
    return True


def license_key(license_id: str) -> str:
    """
    Reduce a license string to the id used for comparisons in rules.

    ``GPL-2.0+`` becomes ``GPL-2.0`` and ``GPL-2.0-only WITH Classpath-exception-2.0``
    becomes ``GPL-2.0-only``. Strings that do not parse are compared as they are.
    """
    try:
        leaves = decompose(license_id)
    except InvalidLicenseExpressionError:
        return license_id.strip()
    if len(leaves) != 1:
        return license_id.strip()
    return leaves[0].id

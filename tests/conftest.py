"""
Shared test fixtures and configuration.

Environment variables are set BEFORE any package imports so the settings
singleton picks them up.
"""

import os
import sys

# Ensure the package is importable without installation
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["MAX_DEPENDENCY_TREE_DEPTH"] = "32"
os.environ["DEFAULT_LICENSE_VIEW"] = "CONCLUDED_OR_REST"

import pytest  # noqa: E402

from compliance.services.evaluator.context import DependencyRule  # noqa: E402
from compliance.services.evaluator.rule_set import RuleSet  # noqa: E402
from tests.mocks.analysis import (  # noqa: E402
    PROJECT_INCLUDED,
    SCOPE_INCLUDED,
    make_result,
)


@pytest.fixture
def analysis_result():
    """Analysis result with one project, an included and an excluded scope."""
    return make_result()


@pytest.fixture
def rule_set(analysis_result):
    return RuleSet(analysis_result)


@pytest.fixture
def make_rule(rule_set):
    """Factory for a DependencyRule context inside the included scope."""

    def _make(package, dependency=None, level=0, ancestors=(), scope=SCOPE_INCLUDED, project=PROJECT_INCLUDED, **kwargs):
        return DependencyRule(
            rule_set=rule_set,
            package=package,
            dependency=dependency or package.to_reference(),
            ancestors=tuple(ancestors),
            level=level,
            scope=scope,
            project=project,
            **kwargs,
        )

    return _make

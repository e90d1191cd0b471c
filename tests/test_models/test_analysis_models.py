"""Tests for curations, excludes and the analysis result model."""

import pytest
from pydantic import ValidationError

from compliance.models.analysis import AnalysisResult, Excludes, PackageCuration, PackageFindings, ScopeExclude
from tests.mocks.analysis import (
    PACKAGE_WITH_ONLY_DECLARED_LICENSE,
    PACKAGE_WITHOUT_LICENSE,
    make_finding,
    make_id,
    make_result,
)


class TestPackageCuration:
    def test_sets_concluded_license(self):
        curation = PackageCuration(id=PACKAGE_WITH_ONLY_DECLARED_LICENSE.id, concluded_license="MIT")
        curated = curation.apply(PACKAGE_WITH_ONLY_DECLARED_LICENSE)
        assert curated.concluded_license == "MIT"
        assert curated.declared_licenses == ("Apache-2.0", "MIT")

    def test_replaces_declared_licenses(self):
        curation = PackageCuration(id=PACKAGE_WITH_ONLY_DECLARED_LICENSE.id, declared_licenses=("BSD-3-Clause",))
        curated = curation.apply(PACKAGE_WITH_ONLY_DECLARED_LICENSE)
        assert curated.declared_licenses == ("BSD-3-Clause",)

    def test_does_not_modify_input_package(self):
        curation = PackageCuration(id=PACKAGE_WITHOUT_LICENSE.id, concluded_license="MIT")
        curation.apply(PACKAGE_WITHOUT_LICENSE)
        assert PACKAGE_WITHOUT_LICENSE.concluded_license is None

    def test_curated_values_are_normalized(self):
        curation = PackageCuration(id=PACKAGE_WITHOUT_LICENSE.id, declared_licenses=(" MIT", "MIT"))
        assert curation.apply(PACKAGE_WITHOUT_LICENSE).declared_licenses == ("MIT",)

    def test_wrong_package_raises(self):
        curation = PackageCuration(id=make_id("A:b:other:1"), concluded_license="MIT")
        with pytest.raises(ValueError, match="cannot be applied"):
            curation.apply(PACKAGE_WITHOUT_LICENSE)


class TestScopeExclude:
    def test_full_match(self):
        exclude = ScopeExclude(pattern="test.*")
        assert exclude.matches("test")
        assert exclude.matches("testCompile")
        assert not exclude.matches("compileTest")

    def test_invalid_pattern_is_rejected(self):
        with pytest.raises(ValidationError):
            ScopeExclude(pattern="test(")

    def test_excludes_lookup(self):
        excludes = Excludes(scopes=(ScopeExclude(pattern="test"), ScopeExclude(pattern="dev.*")))
        assert excludes.is_scope_excluded("devDependencies")
        assert not excludes.is_scope_excluded("compile")
        assert len(excludes.find_scope_excludes("test")) == 1


class TestAnalysisResult:
    def test_findings_by_id_merges_entries(self):
        id = PACKAGE_WITHOUT_LICENSE.id
        result = make_result(
            scan_results=(
                PackageFindings(id=id, findings=(make_finding("MIT"),)),
                PackageFindings(id=id, findings=(make_finding("BSD-2-Clause"),)),
            )
        )
        findings = result.findings_by_id()
        assert [f.license for f in findings[id]] == ["MIT", "BSD-2-Clause"]

    def test_from_plain_dict(self):
        result = AnalysisResult.model_validate(
            {
                "projects": [
                    {
                        "id": {"type": "NPM", "namespace": "@here", "name": "app", "version": "1.0"},
                        "scopes": [
                            {
                                "name": "dependencies",
                                "dependencies": [{"id": {"type": "NPM", "name": "left-pad", "version": "1.3.0"}}],
                            }
                        ],
                    }
                ],
                "packages": [{"id": {"type": "NPM", "name": "left-pad", "version": "1.3.0"}}],
                "excludes": {"scopes": [{"pattern": "devDependencies"}]},
            }
        )
        assert result.projects[0].id.organization == "here"
        assert result.excludes.is_scope_excluded("devDependencies")

    def test_defaults_are_empty(self):
        result = AnalysisResult()
        assert result.projects == ()
        assert result.findings_by_id() == {}
        assert result.excludes.scopes == ()

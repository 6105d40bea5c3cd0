"""Tests for file path classification."""

from __future__ import annotations

import pytest

from pr_radar.classifier import (
    ExpertiseArea,
    FileCategory,
    classify,
    expertise_area,
    has_category,
)


class TestClassify:
    def test_security_source_file(self) -> None:
        cats = classify("src/auth/login.ts")
        assert FileCategory.SECURITY_SENSITIVE in cats
        assert FileCategory.CRITICAL_SYSTEM in cats
        assert FileCategory.SOURCE_CODE in cats
        assert FileCategory.CRITICAL_PATH in cats

    def test_manifest_is_critical(self) -> None:
        cats = classify("package.json")
        assert FileCategory.DEPENDENCY_MANIFEST in cats
        assert FileCategory.CRITICAL_PATH in cats

    def test_requirements_is_not_documentation(self) -> None:
        cats = classify("requirements.txt")
        assert FileCategory.DEPENDENCY_MANIFEST in cats
        assert FileCategory.DOCUMENTATION not in cats

    def test_python_test_module(self) -> None:
        cats = classify("tests/test_api.py")
        assert FileCategory.TEST in cats
        assert FileCategory.SOURCE_CODE in cats

    def test_js_spec_file(self) -> None:
        assert has_category("src/components/Button.spec.tsx", FileCategory.TEST)

    def test_docs_only(self) -> None:
        assert classify("docs/guide.md") == frozenset({FileCategory.DOCUMENTATION})
        assert FileCategory.DOCUMENTATION in classify("README.md")

    @pytest.mark.parametrize("path", ["LICENSE", "CHANGELOG.txt", "pkg/readme.rst"])
    def test_doc_file_names(self, path: str) -> None:
        assert has_category(path, FileCategory.DOCUMENTATION)

    @pytest.mark.parametrize("path", ["src/license_check.py", "tools/changelog_gen/main.go"])
    def test_doc_prefixed_source_is_not_documentation(self, path: str) -> None:
        cats = classify(path)
        assert FileCategory.DOCUMENTATION not in cats
        assert FileCategory.SOURCE_CODE in cats

    def test_migration(self) -> None:
        cats = classify("db/migrations/001_init.sql")
        assert FileCategory.MIGRATION in cats
        assert FileCategory.CRITICAL_PATH in cats

    def test_environment_file(self) -> None:
        cats = classify(".env.production")
        assert FileCategory.ENVIRONMENT in cats
        assert FileCategory.CRITICAL_PATH in cats

    def test_infrastructure(self) -> None:
        assert has_category("infra/main.tf", FileCategory.INFRASTRUCTURE)
        assert has_category("charts/helm/values.yaml", FileCategory.INFRASTRUCTURE)

    def test_plain_source_file(self) -> None:
        assert classify("src/utils/format.ts") == frozenset({FileCategory.SOURCE_CODE})

    def test_unmatched_path_is_empty(self) -> None:
        assert classify("assets/logo.png") == frozenset()

    def test_keywords_ignore_case_but_extensions_do_not(self) -> None:
        cats = classify("src/Auth/Login.TS")
        assert FileCategory.SECURITY_SENSITIVE in cats
        assert FileCategory.SOURCE_CODE not in cats


class TestExpertiseArea:
    @pytest.mark.parametrize(
        ("path", "area"),
        [
            ("api/users.py", ExpertiseArea.BACKEND),
            ("src/components/Button.tsx", ExpertiseArea.FRONTEND),
            ("db/migrations/001.sql", ExpertiseArea.DATABASE),
            ("src/auth/jwt.ts", ExpertiseArea.SECURITY),
            ("tests/test_api.py", ExpertiseArea.TESTING),
            ("docs/guide.md", ExpertiseArea.DOCUMENTATION),
            ("config/settings.yaml", ExpertiseArea.CONFIGURATION),
            ("infra/main.tf", ExpertiseArea.INFRASTRUCTURE),
        ],
    )
    def test_area(self, path: str, area: ExpertiseArea) -> None:
        assert expertise_area(path) == area

    def test_no_area(self) -> None:
        assert expertise_area("src/utils/format.ts") is None

"""Pattern-based classification of changed file paths.

Every rule lives in one ordered table of ``(pattern, category)`` pairs so
the classification can be audited and tested without the scorer. A path
may fall into several categories; unmatched paths get the empty set.

Extension patterns are case-sensitive. Keyword patterns (auth, security,
payment, devops tooling, ...) are matched case-insensitively.
"""

from __future__ import annotations

import re
from enum import StrEnum
from functools import lru_cache


class FileCategory(StrEnum):
    """Semantic categories a file path can belong to."""
    TEST = "test"
    MIGRATION = "migration"
    DEPENDENCY_MANIFEST = "dependency_manifest"
    CONFIGURATION = "configuration"
    SECURITY_SENSITIVE = "security_sensitive"
    INFRASTRUCTURE = "infrastructure"
    DOCUMENTATION = "documentation"
    SOURCE_CODE = "source_code"
    BUILD_TOOLING = "build_tooling"
    ENVIRONMENT = "environment"
    PAYMENT = "payment"
    CRITICAL_SYSTEM = "critical_system"
    CRITICAL_PATH = "critical_path"


class ExpertiseArea(StrEnum):
    """Reviewer expertise areas inferred from file paths."""
    BACKEND = "Backend"
    FRONTEND = "Frontend"
    DATABASE = "Database"
    SECURITY = "Security"
    TESTING = "Testing"
    DOCUMENTATION = "Documentation"
    CONFIGURATION = "Configuration"
    INFRASTRUCTURE = "Infrastructure"


_I = re.IGNORECASE

_RULES: list[tuple[re.Pattern[str], FileCategory]] = [
    # Tests
    (re.compile(r"\.(test|spec)\."), FileCategory.TEST),
    (re.compile(r"\.(test|spec)$"), FileCategory.TEST),
    (re.compile(r"(^|/)(__tests__|tests?|cypress|e2e)/"), FileCategory.TEST),
    (re.compile(r"(^|/)test_[^/]*\.py$"), FileCategory.TEST),
    (re.compile(r"_test\.(py|go)$"), FileCategory.TEST),
    # Database migrations
    (re.compile(r"(^|/)migrations?/"), FileCategory.MIGRATION),
    (re.compile(r"migrat", _I), FileCategory.MIGRATION),
    (re.compile(r"\.sql$"), FileCategory.MIGRATION),
    (re.compile(r"(^|/)schema\.", _I), FileCategory.MIGRATION),
    # Dependency manifests and lockfiles
    (re.compile(r"(^|/)package(-lock)?\.json$"), FileCategory.DEPENDENCY_MANIFEST),
    (re.compile(r"(^|/)(yarn\.lock|pnpm-lock\.yaml)$"), FileCategory.DEPENDENCY_MANIFEST),
    (re.compile(r"(^|/)Gemfile(\.lock)?$"), FileCategory.DEPENDENCY_MANIFEST),
    (re.compile(r"(^|/)requirements[^/]*\.txt$"), FileCategory.DEPENDENCY_MANIFEST),
    (re.compile(r"(^|/)(Pipfile(\.lock)?|pyproject\.toml|poetry\.lock)$"),
     FileCategory.DEPENDENCY_MANIFEST),
    (re.compile(r"(^|/)go\.(mod|sum)$"), FileCategory.DEPENDENCY_MANIFEST),
    (re.compile(r"(^|/)Cargo\.(toml|lock)$"), FileCategory.DEPENDENCY_MANIFEST),
    # Configuration
    (re.compile(r"\.config\."), FileCategory.CONFIGURATION),
    (re.compile(r"(^|/)\.env"), FileCategory.CONFIGURATION),
    (re.compile(r"\.(json|ya?ml|toml|ini)$"), FileCategory.CONFIGURATION),
    (re.compile(r"(^|/)config/"), FileCategory.CONFIGURATION),
    (re.compile(r"Dockerfile|docker-compose"), FileCategory.CONFIGURATION),
    # Environment and secrets
    (re.compile(r"(^|/)\.env"), FileCategory.ENVIRONMENT),
    (re.compile(r"(^|/)secrets?([./]|$)", _I), FileCategory.ENVIRONMENT),
    # Security-sensitive keywords
    (re.compile(r"auth|security|permission|role|jwt|crypto", _I),
     FileCategory.SECURITY_SENSITIVE),
    # Money paths
    (re.compile(r"payment|billing|admin", _I), FileCategory.PAYMENT),
    # Core system directories
    (re.compile(r"(^|/)(middleware|auth|security|core|kernel|system)", _I),
     FileCategory.CRITICAL_SYSTEM),
    # Infrastructure as code and deployment
    (re.compile(r"\.tf$|\.terraform"), FileCategory.INFRASTRUCTURE),
    (re.compile(r"kubernetes|k8s|helm|ansible|cloudformation", _I),
     FileCategory.INFRASTRUCTURE),
    (re.compile(r"(^|/)(deploy|infra)[^/]*/", _I), FileCategory.INFRASTRUCTURE),
    # Documentation
    (re.compile(r"\.(md|rst|adoc)$"), FileCategory.DOCUMENTATION),
    (re.compile(r"(^|/)(README|CHANGELOG|LICENSE)(\.[^/]*)?$", _I),
     FileCategory.DOCUMENTATION),
    (re.compile(r"(^|/)docs?/"), FileCategory.DOCUMENTATION),
    # Source code in languages that need careful review
    (re.compile(r"\.(tsx?|jsx?|py|java|go|rs|cpp|cc|c|h|hpp|rb|kt|cs|swift|php|scala)$"),
     FileCategory.SOURCE_CODE),
    # Build tooling
    (re.compile(r"(^|/)(webpack|rollup|vite|babel)\."), FileCategory.BUILD_TOOLING),
    (re.compile(r"\.d\.ts$"), FileCategory.BUILD_TOOLING),
    # Critical paths that are not covered by another category
    (re.compile(r"(^|/)(Dockerfile|docker-compose\.ya?ml)$"), FileCategory.CRITICAL_PATH),
    (re.compile(r"(^|/)config/"), FileCategory.CRITICAL_PATH),
    (re.compile(r"database", _I), FileCategory.CRITICAL_PATH),
]

# Categories whose members are always on a critical path.
_CRITICAL_SOURCES = frozenset({
    FileCategory.DEPENDENCY_MANIFEST,
    FileCategory.ENVIRONMENT,
    FileCategory.MIGRATION,
    FileCategory.SECURITY_SENSITIVE,
    FileCategory.PAYMENT,
})

_AREA_PATTERNS: list[tuple[re.Pattern[str], ExpertiseArea]] = [
    (re.compile(r"(^|/)(api|backend|server)/"), ExpertiseArea.BACKEND),
    (re.compile(r"(^|/)(frontend|ui|components)/"), ExpertiseArea.FRONTEND),
]

_AREA_CATEGORIES: list[tuple[FileCategory, ExpertiseArea]] = [
    (FileCategory.MIGRATION, ExpertiseArea.DATABASE),
    (FileCategory.SECURITY_SENSITIVE, ExpertiseArea.SECURITY),
    (FileCategory.TEST, ExpertiseArea.TESTING),
    (FileCategory.DOCUMENTATION, ExpertiseArea.DOCUMENTATION),
    (FileCategory.CONFIGURATION, ExpertiseArea.CONFIGURATION),
    (FileCategory.INFRASTRUCTURE, ExpertiseArea.INFRASTRUCTURE),
]


@lru_cache(maxsize=4096)
def classify(path: str) -> frozenset[FileCategory]:
    """Return every category *path* belongs to."""
    categories = {category for pattern, category in _RULES if pattern.search(path)}
    if categories & _CRITICAL_SOURCES:
        categories.add(FileCategory.CRITICAL_PATH)
    return frozenset(categories)


def has_category(path: str, category: FileCategory) -> bool:
    return category in classify(path)


def expertise_area(path: str) -> ExpertiseArea | None:
    """Map a path to a single reviewer expertise area, or None.

    Directory conventions for backend and frontend code win first; the
    remaining areas follow from the path's categories in a fixed order.
    """
    for pattern, area in _AREA_PATTERNS:
        if pattern.search(path):
            return area
    categories = classify(path)
    for category, area in _AREA_CATEGORIES:
        if category in categories:
            return area
    return None

"""Classification enums for packages, dependency edges, and diamond patterns."""

from __future__ import annotations

from enum import StrEnum


class WorkspaceCategory(StrEnum):
    """Role of a package within the workspace."""

    APP = "app"
    SHARED_PACKAGE = "shared-package"
    UNKNOWN = "unknown"


class DependencyReason(StrEnum):
    """Why a resolved dependency edge exists."""

    IMPORT = "import"
    DEFAULT = "default"


class DiamondKind(StrEnum):
    """Closed set of diamond-dependency classifications."""

    EXPECTED_SHARED_UTILITY = "expected-shared-utility"
    INCOMPLETE_ABSTRACTION = "incomplete-abstraction"
    LAYERING_VIOLATION_CANDIDATE = "layering-violation-candidate"

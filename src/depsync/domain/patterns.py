"""Path and specifier matching rules for the import scanner.

Exclude patterns are globs with ``**`` (globstar) support, matched against
package-relative POSIX paths. Ignore patterns apply to import specifiers and
are either exact names (which also cover subpaths) or ``*`` wildcards.
"""

from __future__ import annotations

import re
from collections.abc import Collection, Iterable

SOURCE_EXTENSIONS: tuple[str, ...] = (
    ".ts",
    ".tsx",
    ".mts",
    ".cts",
    ".js",
    ".jsx",
    ".mjs",
    ".cjs",
)

# Build output, dependency caches, generated code, and tests.
DEFAULT_EXCLUDE_PATTERNS: tuple[str, ...] = (
    "**/node_modules/**",
    "**/dist/**",
    "**/.turbo/**",
    "**/.moon/**",
    "**/build/**",
    "**/out/**",
    "**/coverage/**",
    "**/.next/**",
    "**/generated/**",
    "**/__tests__/**",
    "**/*.test.ts",
    "**/*.test.tsx",
    "**/*.spec.ts",
    "**/*.spec.tsx",
)


def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Compile a path glob into an anchored regex.

    ``**/`` matches zero or more directories, a trailing ``/**`` matches
    everything below a directory, ``*`` and ``?`` never cross ``/``.
    """
    parts: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        if pattern.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("/**", i) and i + 3 == n:
            parts.append("(?:/.*)?")
            i += 3
        elif pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif pattern[i] == "*":
            parts.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            parts.append("[^/]")
            i += 1
        else:
            parts.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(parts) + r"\Z")


class ExcludeMatcher:
    """Compiled set of exclude globs.

    Patterns ending in ``/**`` also exclude the directory itself, which lets
    the file walker prune whole subtrees without descending into them.
    """

    def __init__(self, patterns: Iterable[str]) -> None:
        self.patterns = tuple(dict.fromkeys(patterns))
        self._files = [glob_to_regex(p) for p in self.patterns]
        self._dirs = [glob_to_regex(p[:-3]) for p in self.patterns if p.endswith("/**")]

    @classmethod
    def with_defaults(cls, extra: Iterable[str] = ()) -> ExcludeMatcher:
        """Built-in defaults merged with configured patterns."""
        return cls([*DEFAULT_EXCLUDE_PATTERNS, *extra])

    def excludes(self, relative_path: str) -> bool:
        path = relative_path.replace("\\", "/")
        return any(regex.match(path) for regex in self._files)

    def excludes_dir(self, relative_dir: str) -> bool:
        path = relative_dir.replace("\\", "/").rstrip("/")
        return any(regex.match(path) for regex in self._dirs)


def is_source_file(path: str) -> bool:
    return path.endswith(SOURCE_EXTENSIONS)


def is_package_reference(specifier: str) -> bool:
    """False for relative (``./x``, ``../x``) and absolute (``/x``) paths."""
    return not specifier.startswith((".", "/"))


def matches_ignore(specifier: str, pattern: str) -> bool:
    """Match a specifier against one ignore pattern.

    Examples:
        >>> matches_ignore("react", "react")
        True
        >>> matches_ignore("react/jsx-runtime", "react")
        True
        >>> matches_ignore("node:fs", "node:*")
        True
        >>> matches_ignore("reactive", "react")
        False
    """
    if "*" in pattern:
        regex = ".*".join(re.escape(piece) for piece in pattern.split("*"))
        return re.fullmatch(regex, specifier) is not None
    return specifier == pattern or specifier.startswith(f"{pattern}/")


def is_ignored(specifier: str, patterns: Iterable[str]) -> bool:
    return any(matches_ignore(specifier, pattern) for pattern in patterns)


def resolve_package_id(specifier: str, known_ids: Collection[str]) -> str | None:
    """Map a specifier to a workspace package id.

    An exact id match wins; otherwise the longest known id that is a
    path-prefix of the specifier (``@scope/ui/button`` → ``@scope/ui``).
    Returns None for external packages.
    """
    if specifier in known_ids:
        return specifier
    candidate = specifier
    while "/" in candidate:
        candidate = candidate.rsplit("/", 1)[0]
        if candidate in known_ids:
            return candidate
    return None

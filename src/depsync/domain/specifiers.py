"""Module specifier extraction — import/export/require references in JS/TS source.

Pure functions, no infrastructure dependencies. Consumed by the import
scanner for every source file in every package.

Extraction runs in two passes over the text:

1. Comments are stripped while string literals (``'``, ``"`` and
   backtick) are copied through verbatim, escapes included. The spans of
   all literals are recorded.
2. Four independent scans run on the comment-free text: static imports,
   re-exports, dynamic ``import()`` and ``require()``. Matches whose keyword
   sits inside a string literal are discarded.
"""

from __future__ import annotations

import bisect
import re
from dataclasses import dataclass

_SPECIAL = re.compile(r"['\"`]|/[/*]")

_NAME = r"[\w$]+"
_NAMESPACE = rf"\*\s*as\s+{_NAME}"
_NAMED = r"\{[^}]*\}"
_IMPORT_CLAUSE = rf"(?:{_NAME}(?:\s*,\s*(?:{_NAMESPACE}|{_NAMED}))?|{_NAMESPACE}|{_NAMED})"
_EXPORT_CLAUSE = rf"(?:\*(?:\s*as\s+{_NAME})?|{_NAMED})"
_TYPE_MODIFIER = r"(?:\s+(type)(?=[\s{*]))?"
_SOURCE = r"\s*from\s*(['\"`])([^'\"`\n]+)\2"
_NOT_MEMBER = r"(?<![\w$.])"

# import [type] <clause> from "x"
_STATIC_IMPORT = re.compile(rf"{_NOT_MEMBER}import{_TYPE_MODIFIER}\s*{_IMPORT_CLAUSE}{_SOURCE}")
# export [type] * | * as ns | { a, b } from "x"
_EXPORT_FROM = re.compile(rf"{_NOT_MEMBER}export{_TYPE_MODIFIER}\s*{_EXPORT_CLAUSE}{_SOURCE}")
# import("x")
_DYNAMIC_IMPORT = re.compile(rf"{_NOT_MEMBER}import\s*\(\s*(['\"`])([^'\"`\n]+)\1\s*\)")
# require("x")
_REQUIRE = re.compile(rf"{_NOT_MEMBER}require\s*\(\s*(['\"`])([^'\"`\n]+)\1\s*\)")


@dataclass(frozen=True)
class Specifier:
    """A module reference found in source text."""

    specifier: str
    is_type_only: bool = False


def _literal_end(source: str, start: int) -> int:
    """Return the index just past the literal opened at *start*.

    Single- and double-quoted strings end at an unescaped newline when left
    unterminated; template literals may span lines.
    """
    quote = source[start]
    n = len(source)
    i = start + 1
    while i < n:
        ch = source[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            return i + 1
        if ch == "\n" and quote != "`":
            return i
        i += 1
    return n


def _strip(source: str) -> tuple[str, list[tuple[int, int]]]:
    """Remove comments; return the clean text and its string-literal spans."""
    parts: list[str] = []
    spans: list[tuple[int, int]] = []
    length = 0
    i = 0
    n = len(source)

    while i < n:
        match = _SPECIAL.search(source, i)
        if match is None:
            parts.append(source[i:])
            break

        start = match.start()
        if start > i:
            chunk = source[i:start]
            parts.append(chunk)
            length += len(chunk)

        token = match.group()
        if token in ("'", '"', "`"):
            end = _literal_end(source, start)
            literal = source[start:end]
            parts.append(literal)
            spans.append((length, length + len(literal)))
            length += len(literal)
            i = end
        elif token == "//":
            newline = source.find("\n", start)
            i = n if newline == -1 else newline
        else:
            close = source.find("*/", start + 2)
            end = n if close == -1 else close + 2
            # Keep line structure; a comment between tokens still separates them.
            filler = "\n" * source.count("\n", start, end) or " "
            parts.append(filler)
            length += len(filler)
            i = end

    return "".join(parts), spans


def strip_comments(source: str) -> str:
    """Remove ``//`` and ``/* */`` comments, leaving string literals intact."""
    return _strip(source)[0]


def _inside_literal(position: int, starts: list[int], spans: list[tuple[int, int]]) -> bool:
    index = bisect.bisect_right(starts, position) - 1
    if index < 0:
        return False
    start, end = spans[index]
    return start <= position < end


def extract_specifiers(source: str) -> list[Specifier]:
    """Extract every module specifier referenced by *source*.

    Static imports and re-exports carry their ``type`` modifier; dynamic
    imports and ``require`` calls are always runtime. Exact duplicate
    ``(specifier, is_type_only)`` pairs are reported once. The same
    specifier imported both type-only and at runtime is reported twice, one
    of each kind.
    """
    text, spans = _strip(source)
    starts = [start for start, _ in spans]

    seen: set[Specifier] = set()
    results: list[Specifier] = []

    def collect(pattern: re.Pattern[str], *, typed: bool) -> None:
        for match in pattern.finditer(text):
            if _inside_literal(match.start(), starts, spans):
                continue
            is_type_only = typed and match.group(1) is not None
            # The specifier is always the pattern's last group.
            found = Specifier(specifier=match.group(pattern.groups), is_type_only=is_type_only)
            if found not in seen:
                seen.add(found)
                results.append(found)

    collect(_STATIC_IMPORT, typed=True)
    collect(_EXPORT_FROM, typed=True)
    collect(_DYNAMIC_IMPORT, typed=False)
    collect(_REQUIRE, typed=False)
    return results

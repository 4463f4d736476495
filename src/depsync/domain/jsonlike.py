"""JSON value helpers — template merge, placeholder substitution, serialization.

Pure functions over the closed JSON value type. Every function returns fresh
containers so templates and current file content never share references.
"""

from __future__ import annotations

import difflib
import json
import re

type JsonScalar = str | int | float | bool | None
type JsonValue = JsonScalar | list[JsonValue] | dict[str, JsonValue]
type JsonObject = dict[str, JsonValue]

_PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")


def clone_json(value: JsonValue) -> JsonValue:
    """Deep-copy a JSON value (containers only; scalars are immutable)."""
    if isinstance(value, dict):
        return {key: clone_json(item) for key, item in value.items()}
    if isinstance(value, list):
        return [clone_json(item) for item in value]
    return value


def merge_json_like(base: JsonValue, overlay: JsonValue) -> JsonValue:
    """Merge *overlay* onto *base*.

    Objects merge key-by-key, recursing into nested objects. Arrays and
    scalars in *overlay* replace whatever *base* holds. Keys keep the
    position they have in *base*; new keys are appended in overlay order.
    """
    if not isinstance(base, dict) or not isinstance(overlay, dict):
        return clone_json(overlay)

    result: JsonObject = {key: clone_json(value) for key, value in base.items()}
    for key, value in overlay.items():
        current = result.get(key)
        if isinstance(value, dict) and isinstance(current, dict):
            result[key] = merge_json_like(current, value)
        else:
            result[key] = clone_json(value)
    return result


def substitute_placeholders(value: JsonValue, variables: dict[str, str]) -> JsonValue:
    """Replace ``{{name}}`` tokens in every string inside *value*.

    Recurses through arrays and objects. Unknown placeholder names are left
    as-is.
    """
    if isinstance(value, str):
        return _PLACEHOLDER.sub(lambda m: variables.get(m.group(1), m.group(0)), value)
    if isinstance(value, list):
        return [substitute_placeholders(item, variables) for item in value]
    if isinstance(value, dict):
        return {key: substitute_placeholders(item, variables) for key, item in value.items()}
    return value


def dump_json(value: JsonValue) -> str:
    """Serialize with 2-space indentation and no trailing newline."""
    return json.dumps(value, indent=2, ensure_ascii=False)


def render_diff(original: str, updated: str, path: str) -> str:
    """Unified line diff between two serialized documents."""
    lines = difflib.unified_diff(
        original.splitlines(),
        updated.splitlines(),
        fromfile=path,
        tofile=f"{path} (updated)",
        lineterm="",
    )
    return "\n".join(lines) + "\n"


_CLOSER = re.compile(r"\s*[}\]]")


def _drop_trailing_commas(text: str) -> str:
    """Remove commas directly before a closing brace or bracket.

    Commas inside double-quoted strings are kept.
    """
    out: list[str] = []
    in_string = False
    escaped = False
    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char == "," and _CLOSER.match(text, index + 1):
            continue
        out.append(char)
    return "".join(out)


def parse_jsonc(text: str) -> JsonValue:
    """Parse JSON with comments, the dialect ``tsc`` accepts in ``tsconfig.json``.

    ``//`` and ``/* */`` comments and trailing commas are allowed.

    Raises:
        ValueError: If the text is not valid JSON once comments and trailing
            commas are removed.
    """
    from depsync.domain.specifiers import strip_comments

    return json.loads(_drop_trailing_commas(strip_comments(text)))

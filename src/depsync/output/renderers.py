"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from depsync.output.console import create_console, get_output, style_for_kind

if TYPE_CHECKING:
    from rich.console import Console

    from depsync.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    if verbose:
        _render_meta(console, result)
    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"
    if result.op == "sync":
        touched = result.data.get("files_touched", 0)
        return f"OK: sync ({touched} file(s))"
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line."""
    label = Text("OK", style="ds.ok")
    op = Text(f"  {result.op}", style="ds.op")
    console.print(label, op, sep="", end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="ds.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="ds.id")
    elif key == "path":
        v = Text(str(value), style="ds.path")
    else:
        v = Text(str(value))
    console.print(k, v, sep="", end="")
    console.print()


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))

    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = Text(prefix)
    line.append(f"{duration:>8.2f}ms", style=style)
    line.append(f"  {name}")
    annotations = span_data.get("annotations") or {}
    if annotations:
        line.append("  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")")
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _cycle_chain(path: list[str]) -> Text:
    text = Text()
    for index, node in enumerate(path):
        if index:
            text.append(" → ")
        text.append(node, style="ds.id")
    return text


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="ds.error")
    op = Text(f"  {result.op}", style="ds.op")
    console.print(label, op, Text(" — "), Text(msg))

    cycles = result.data.get("cycles") or []
    for cycle in cycles:
        console.print(Text("  "), _cycle_chain(cycle.get("path", [])))

    stale = result.data.get("stale_dependencies") or {}
    if stale:
        _render_stale(console, stale)

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(Text(f"    {k}: {v}"))


# ── Sync renderers ────────────────────────────────────────────────────


def _render_stale(console: Console, stale: dict[str, dict[str, list[str]]]) -> None:
    console.print()
    console.print(Text("Stale dependencies", style="ds.warning"))
    labels = {
        "package_json_deps": "package.json",
        "tsconfig_paths": "tsconfig paths",
        "tsconfig_references": "tsconfig references",
    }
    for package_id in sorted(stale):
        console.print(Text(f"  {package_id}", style="ds.id"))
        for key, label in labels.items():
            entries = stale[package_id].get(key) or []
            if entries:
                console.print(Text(f"    {label}: {', '.join(entries)}"))


def _render_sync(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render sync summary, diffs (dry run), stale entries and diamonds."""
    data = result.data
    _status_line(console, result)
    _field(console, "packages", data.get("packages", 0))
    _field(console, "files_touched", data.get("files_touched", 0))
    updated = data.get("packages_updated") or []
    _field(console, "packages_updated", len(updated))
    for package_id in updated:
        console.print(Text(f"    {package_id}", style="ds.id"))

    diffs = data.get("diffs") or {}
    for path in sorted(diffs):
        console.print()
        console.print(Text(diffs[path].rstrip("\n")))

    stale = data.get("stale_dependencies") or {}
    if stale:
        _render_stale(console, stale)

    cycles = data.get("cycles") or []
    if cycles:
        console.print()
        console.print(Text(f"{len(cycles)} dependency cycle(s) (forced)", style="ds.warning"))
        for cycle in cycles:
            console.print(Text("  "), _cycle_chain(cycle.get("path", [])))

    diamonds = data.get("diamonds") or []
    if diamonds and verbose:
        console.print()
        console.print(_diamond_table(diamonds))

    if data.get("dry_run"):
        console.print()
        console.print(Text("Dry run: no files were written.", style="dim"))
    elif not data.get("files_touched"):
        console.print(Text("All dependencies already in sync.", style="ds.ok"))


# ── Graph renderers ───────────────────────────────────────────────────


def _diamond_table(items: list[dict[str, Any]]) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Consumer", style="ds.id", no_wrap=True)
    table.add_column("Dependency", style="ds.id", no_wrap=True)
    table.add_column("Through")
    table.add_column("Kind")
    for item in items:
        kind = str(item.get("kind", ""))
        table.add_row(
            str(item.get("consumer", "")),
            str(item.get("dependency", "")),
            ", ".join(item.get("through", [])),
            Text(kind, style=style_for_kind(kind)),
        )
    return table


def _render_cycles(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    if not items:
        console.print(Text("OK", style="ds.ok"), Text("  No dependency cycles."))
        return
    console.print(Text(f"{len(items)} dependency cycle(s)", style="ds.warning"))
    for item in items:
        console.print(Text("  "), _cycle_chain(item.get("path", [])))


def _render_diamonds(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    if not items:
        console.print(Text("OK", style="ds.ok"), Text("  No diamond dependencies."))
        return
    console.print(_diamond_table(items))
    if verbose:
        for item in items:
            console.print(Text(f"  {item.get('consumer')} → {item.get('dependency')}: "))
            console.print(Text(f"    {item.get('explanation', '')}", style="dim"))
    counts = ", ".join(f"{k}={v}" for k, v in result.data.get("by_kind", {}).items() if v)
    console.print(f"{len(items)} diamond(s)" + (f" ({counts})" if counts else ""))


def _render_usage(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    data = result.data
    _status_line(console, result)
    _field(console, "packages", data.get("packages", 0))
    _field(console, "runtime_edges", data.get("runtime_edges", 0))
    _field(console, "type_only_edges", data.get("type_only_edges", 0))

    most_used = data.get("most_used", [])
    if most_used:
        table = Table(show_header=True, pad_edge=False, expand=False, title="Most used")
        table.add_column("Package", style="ds.id", no_wrap=True)
        table.add_column("Dependents", style="ds.count", justify="right")
        for row in most_used:
            table.add_row(str(row["id"]), str(row["dependents"]))
        console.print(table)

    unused = data.get("potentially_unused", [])
    if unused:
        console.print(Text("Potentially unused shared packages", style="ds.warning"))
        for package_id in unused:
            console.print(Text(f"  {package_id}", style="ds.id"))


def _render_deps(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    data = result.data
    _status_line(console, result)
    _field(console, "packages", data.get("packages", 0))
    _field(console, "edges", data.get("edges", 0))
    for key, title in (
        ("most_dependencies", "Most dependencies"),
        ("most_depended_upon", "Most depended upon"),
    ):
        rows = data.get(key, [])
        if not rows:
            continue
        table = Table(show_header=True, pad_edge=False, expand=False, title=title)
        table.add_column("Package", style="ds.id", no_wrap=True)
        table.add_column("Count", style="ds.count", justify="right")
        for row in rows:
            table.add_row(str(row["id"]), str(row["count"]))
        console.print(table)


def _render_init(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    _field(console, "path", result.data.get("path", ""))


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            _field(console, key, _json.dumps(value, separators=(",", ":")))
        else:
            _field(console, key, value)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    "sync": _render_sync,
    "graph_cycles": _render_cycles,
    "graph_diamonds": _render_diamonds,
    "graph_usage": _render_usage,
    "graph_deps": _render_deps,
    "init": _render_init,
}

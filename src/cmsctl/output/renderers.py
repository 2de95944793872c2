"""Operation-specific Rich renderers for ServiceResult.

Renderers are dispatched by ``result.op`` in :func:`render_result`;
unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from cmsctl.output.console import create_console, get_output, style_for_status

if TYPE_CHECKING:
    from rich.console import Console

    from cmsctl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()
    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
        if verbose:
            _render_meta(console, result)
    else:
        _render_error(result, console, verbose=verbose)
    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Minimal output for ``--quiet``: ids when there are any."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    items = result.data.get("items") or result.data.get("roles")
    if items and isinstance(items, list):
        return "\n".join(str(i["id"]) for i in items if isinstance(i, dict) and "id" in i)
    if "id" in result.data:
        return str(result.data["id"])
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="cms.ok"), Text(f"  {result.op}", style="cms.op"))


def _field(console: Console, key: str, value: Any) -> None:
    k = Text(f"  {key}: ", style="cms.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="cms.id")
    elif key == "name":
        v = Text(str(value), style="cms.name")
    elif key == "status":
        v = Text(str(value), style=style_for_status(str(value)))
    elif isinstance(value, (dict, list)):
        v = Text(json.dumps(value, separators=(",", ":"), default=str))
    else:
        v = Text(str(value))
    console.print(k, v, sep="")


def _render_meta(console: Console, result: ServiceResult) -> None:
    if not result.meta:
        return
    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(console: Console, span: dict[str, Any], indent: int = 4) -> None:
    duration = span.get("duration_ms", 0.0)
    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"
    line = f"{' ' * indent}[{style}]{duration:>8.2f}ms[/{style}]  {span.get('name', '?')}"
    annotations = span.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)
    for child in span.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _rules_text(rules: list[dict[str, Any]]) -> str:
    parts: list[str] = []
    for rule in rules:
        params = rule.get("parameters")
        if params:
            inner = ", ".join(f"{k}={v}" for k, v in params.items())
            parts.append(f"{rule['type']}({inner})")
        else:
            parts.append(str(rule["type"]))
    return ", ".join(parts)


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    code = f" [{err.code}]" if err else ""
    console.print(
        Text("ERROR", style="cms.error"),
        Text(f"  {result.op}{code}", style="cms.op"),
        Text(" — "),
        Text(msg),
    )
    if err is None:
        return

    # Per-field problems are the actionable part; always show them.
    fields = err.detail.get("fields")
    if isinstance(fields, dict):
        for name, messages in fields.items():
            for message in messages:
                console.print(Text(f"  {name}: ", style="cms.key"), Text(str(message)), sep="")

    if verbose:
        rest = {k: v for k, v in err.detail.items() if k != "fields"}
        if rest:
            console.print(Text("  detail:", style="dim"))
            for k, v in rest.items():
                console.print(f"    {k}: {v}")


# ── Content type renderers ────────────────────────────────────────────


def _render_content_type(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Panel with metadata plus a table of fields."""
    d = result.data
    _status_line(console, result)

    table = Table(show_header=True, pad_edge=False, expand=False)
    table.add_column("Field", style="cms.name")
    table.add_column("Type")
    table.add_column("Required")
    table.add_column("Validation", style="cms.rule")
    table.add_column("Transformation", style="cms.rule")
    if verbose:
        table.add_column("ID", style="cms.id", no_wrap=True)
    for f in d.get("fields", []):
        row = [
            str(f.get("name", "")),
            str(f.get("type", "")),
            "yes" if f.get("is_required") else "",
            _rules_text(f.get("validation_rules", [])),
            _rules_text(f.get("transformation_rules", [])),
        ]
        if verbose:
            row.append(str(f.get("id", "")))
        table.add_row(*row)

    status = str(d.get("status", ""))
    title = f"{d.get('name', '?')} v{d.get('version', '?')} — {status}"
    console.print(Panel(table, title=title, border_style=style_for_status(status) or "dim"))
    _field(console, "id", d.get("id", ""))
    for key in ("archived_id", "draft_id"):
        if d.get(key):
            _field(console, key, d[key])


def _render_content_type_table(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, pad_edge=False, expand=False)
    table.add_column("ID", style="cms.id", no_wrap=True)
    table.add_column("Name", style="cms.name")
    table.add_column("Version", justify="right")
    table.add_column("Status")
    table.add_column("Fields", justify="right")
    if verbose:
        table.add_column("Created", style="dim")
    for item in items:
        status = str(item.get("status", ""))
        row: list[Any] = [
            str(item.get("id", "")),
            str(item.get("name", "")),
            str(item.get("version", "")),
            Text(status, style=style_for_status(status)),
            str(len(item.get("fields", []))),
        ]
        if verbose:
            row.append(str(item.get("created_at", "")))
        table.add_row(*row)
    console.print(table)
    d = result.data
    console.print(
        f"\npage {d.get('page', 1)} · {len(items)} of {d.get('total', len(items))} content types"
    )


# ── Content item renderers ────────────────────────────────────────────


def _render_content_item(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    table = Table(show_header=True, pad_edge=False, expand=False)
    table.add_column("Field", style="cms.name")
    table.add_column("Value")
    for name, value in d.get("values", {}).items():
        table.add_row(str(name), json.dumps(value))
    console.print(Panel(table, title=str(d.get("title", "?")), border_style="dim"))
    _field(console, "id", d.get("id", ""))
    _field(console, "content_type_id", d.get("content_type_id", ""))
    if verbose:
        _field(console, "created_at", d.get("created_at", ""))


def _render_content_item_table(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, pad_edge=False, expand=False)
    table.add_column("ID", style="cms.id", no_wrap=True)
    table.add_column("Title", style="cms.name")
    table.add_column("Created", style="dim")
    for item in items:
        table.add_row(
            str(item.get("id", "")), str(item.get("title", "")), str(item.get("created_at", ""))
        )
    console.print(table)
    d = result.data
    total = d.get("total", len(items))
    console.print(f"\npage {d.get('page', 1)} · {len(items)} of {total} items")


# ── Rule / permission renderers ───────────────────────────────────────


def _render_rule_catalog(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    for family in ("validation", "transformation"):
        table = Table(title=f"{family} rules", show_header=True, pad_edge=False, expand=False)
        table.add_column("Type", style="cms.rule")
        table.add_column("Capability")
        table.add_column("Parameterized")
        for row in result.data.get(family, []):
            table.add_row(
                str(row.get("type", "")),
                str(row.get("capability", "")),
                "yes" if row.get("parameterized") else "",
            )
        console.print(table)


def _render_permissions(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    for role in result.data.get("roles", []):
        table = Table(title=f"role {role.get('role')}", show_header=True, pad_edge=False)
        table.add_column("Scope")
        table.add_column("Action")
        table.add_column("Actor type")
        table.add_column("Resource type")
        table.add_column("Resource id", style="cms.id")
        for rule in role.get("rules", []):
            scope = str(rule.get("scope", ""))
            table.add_row(
                Text(scope, style="cms.ok" if scope == "Allow" else "cms.error"),
                str(rule.get("action", "")),
                str(rule.get("actor_type", "")),
                str(rule.get("resource_type", "")),
                str(rule.get("resource_id") or "*"),
            )
        console.print(table)


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    "create_content_type": _render_content_type,
    "publish_content_type": _render_content_type,
    "get_content_type": _render_content_type,
    "list_content_types": _render_content_type_table,
    "create_item": _render_content_item,
    "get_item": _render_content_item,
    "list_items": _render_content_item_table,
    "list_rules": _render_rule_catalog,
    "list_permissions": _render_permissions,
}

#!/usr/bin/env python3
"""
ng: CLI for the notegraph note graph

Usage:
    ng index                        # Rebuild graph cache and lexical index
    ng backlinks "Ada Lovelace"     # Notes linking to a note
    ng path "Ada" "Engine"          # K shortest diverse paths
    ng expand people/ada.md         # Bounded decayed expansion
    ng retrieve "analytical engine" # Graph-augmented retrieval
"""

from __future__ import annotations

import difflib
import json
import sys
from collections.abc import Sequence
from typing import Any, NoReturn

import click
from click.exceptions import ClickException, UsageError

from . import __version__ as NOTEGRAPH_VERSION
from .models import EdgeType


def format_table(rows: list[dict], columns: list[str], max_widths: dict | None = None) -> str:
    """Format rows as a simple table."""
    if not rows:
        return ""

    max_widths = max_widths or {}
    widths = {col: len(col) for col in columns}

    def cell(row: dict, col: str) -> str:
        val = str(row.get(col, ""))
        limit = max_widths.get(col, 50)
        if len(val) > limit:
            val = val[: limit - 3] + "..."
        return val

    for row in rows:
        for col in columns:
            widths[col] = max(widths[col], len(cell(row, col)))

    header = "  ".join(col.upper().ljust(widths[col]) for col in columns)
    separator = "  ".join("-" * widths[col] for col in columns)

    lines = [header, separator]
    for row in rows:
        lines.append("  ".join(cell(row, col).ljust(widths[col]) for col in columns).rstrip())

    return "\n".join(lines)


def output(data, as_json: bool = False):
    """Output data as JSON or formatted text."""
    if as_json:
        click.echo(json.dumps(data, indent=2, default=str))
    else:
        click.echo(data)


def _handle_error(
    ctx: click.Context,
    error: Exception,
    fallback_message: str | None = None,
    exit_code: int = 1,
) -> NoReturn:
    """Handle an error with optional JSON output.

    If --json-errors is enabled, outputs structured JSON error.
    Otherwise, outputs a human-readable message and an optional hint.
    """
    from .config import ConfigurationError
    from .errors import ErrorCode, NotegraphError, format_error_json

    json_errors = ctx.obj.get("json_errors", False) if ctx.obj else False

    if isinstance(error, ConfigurationError):
        error = NotegraphError.vault_not_configured(str(error))

    if isinstance(error, NotegraphError):
        if json_errors:
            click.echo(error.to_json(), err=True)
        else:
            click.echo(f"Error: {error.message}", err=True)
            suggestion = error.details.get("suggestion") if error.details else None
            if suggestion:
                click.echo(f"Hint: {suggestion}", err=True)
    else:
        message = fallback_message or str(error)
        if json_errors:
            click.echo(format_error_json(ErrorCode.FILE_READ_ERROR.value, message), err=True)
        else:
            click.echo(f"Error: {message}", err=True)

    sys.exit(exit_code)


def get_error_code_for_exception(exc: Exception) -> str:
    """Map Click exceptions to error codes."""
    if isinstance(exc, click.MissingParameter):
        return "MISSING_ARGUMENT"
    elif isinstance(exc, click.BadParameter):
        return "INVALID_ARGUMENT"
    elif isinstance(exc, click.NoSuchOption):
        return "UNKNOWN_OPTION"
    elif isinstance(exc, UsageError):
        return "USAGE_ERROR"
    elif isinstance(exc, ClickException):
        return "CLI_ERROR"
    return "UNKNOWN_ERROR"


# ─────────────────────────────────────────────────────────────────────────────
# JSON Error Handling
# ─────────────────────────────────────────────────────────────────────────────


class JsonErrorGroup(click.Group):
    """Click group that formats errors as JSON when --json-errors is set.

    Also suggests similar command names for typos.
    """

    def resolve_command(self, ctx, args):
        try:
            return super().resolve_command(ctx, args)
        except UsageError as e:
            cmd_name = args[0] if args else ""
            if cmd_name and "No such command" in str(e):
                matches = difflib.get_close_matches(cmd_name, self.list_commands(ctx), n=1, cutoff=0.6)
                if matches:
                    raise UsageError(f"No such command '{cmd_name}'. Did you mean '{matches[0]}'?")
            raise

    def main(
        self,
        args: Sequence[str] | None = None,
        prog_name: str | None = None,
        complete_var: str | None = None,
        standalone_mode: bool = True,
        **extra: Any,
    ) -> Any:
        """Catch parse errors that happen before a command runs.

        A misplaced --json-errors anywhere in argv is moved to the front so it
        still acts as the global flag.
        """
        from .errors import format_error_json

        argv = list(args) if args is not None else list(sys.argv[1:])
        if "--json-errors" not in argv:
            return super().main(args, prog_name, complete_var, standalone_mode, **extra)

        argv = [a for a in argv if a != "--json-errors"]
        argv.insert(0, "--json-errors")

        try:
            return super().main(argv, prog_name, complete_var, standalone_mode=False, **extra)
        except ClickException as e:
            click.echo(format_error_json(get_error_code_for_exception(e), e.format_message()), err=True)
            raise SystemExit(1)


# ─────────────────────────────────────────────────────────────────────────────
# Shared helpers
# ─────────────────────────────────────────────────────────────────────────────


def _open_engine(ctx: click.Context):
    """Load the cached graph (rebuilding if stale) and wrap it in an engine."""
    from .config import ConfigurationError
    from .engine import GraphEngine
    from .store import GraphStore

    try:
        return GraphEngine(GraphStore.from_vault())
    except ConfigurationError as exc:
        _handle_error(ctx, exc)


def _resolve(ctx: click.Context, engine, identifier: str) -> str:
    from .errors import NotegraphError

    try:
        return engine.store.resolve(identifier)
    except NotegraphError as exc:
        _handle_error(ctx, exc)


def _parse_edge_types(value: str | None) -> list[EdgeType] | None:
    """Parse a comma-separated edge type list; None when not given."""
    if not value:
        return None
    types = []
    for raw in value.split(","):
        name = raw.strip()
        if not name:
            continue
        try:
            types.append(EdgeType(name))
        except ValueError:
            valid = ", ".join(t.value for t in EdgeType)
            raise click.BadParameter(f"Unknown edge type '{name}'. Valid: {valid}")
    return types


def _title(engine, node_id: str) -> str:
    node = engine.store.get_node(node_id)
    return node.title if node is not None else node_id


# ─────────────────────────────────────────────────────────────────────────────
# Main CLI Group
# ─────────────────────────────────────────────────────────────────────────────


@click.group(cls=JsonErrorGroup)
@click.version_option(version=NOTEGRAPH_VERSION, prog_name="ng")
@click.option(
    "--json-errors",
    "json_errors",
    is_flag=True,
    help="Output errors as JSON (for programmatic use)",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    envvar="NOTEGRAPH_QUIET",
    help="Suppress warnings, show only errors and essential output",
)
@click.pass_context
def cli(ctx: click.Context, json_errors: bool, quiet: bool):
    """ng: query the link graph of a markdown note vault.

    \b
    Quick start:
      ng index                          # Build graph cache + search index
      ng stats                          # Node/edge counts
      ng backlinks "Ada Lovelace"       # Who links here
      ng path "Ada" "Analytical Engine" # Diverse routes between notes
      ng retrieve "difference engine"   # Search + graph context

    \b
    Notes are found via NOTEGRAPH_VAULT_ROOT or a .ngconfig file
    with 'vault_path: <dir>'.
    """
    from ._logging import set_quiet_mode

    ctx.ensure_object(dict)
    ctx.obj["json_errors"] = json_errors
    ctx.obj["quiet"] = quiet

    if quiet:
        set_quiet_mode(True)


# ─────────────────────────────────────────────────────────────────────────────
# Index Command
# ─────────────────────────────────────────────────────────────────────────────


@cli.command()
@click.option("--strict", is_flag=True, help="Fail on the first unparsable note instead of skipping it")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def index(ctx: click.Context, strict: bool, as_json: bool):
    """Rebuild the graph cache and the lexical search index.

    \b
    Examples:
      ng index
      ng index --strict
    """
    from .config import ConfigurationError, get_vault_root
    from .errors import NotegraphError
    from .retrieval import LexicalIndex
    from .store import build_graph_from_notes, load_notes, save_graph, vault_state

    try:
        vault_root = get_vault_root()
        notes = load_notes(vault_root, strict=strict)
        graph = build_graph_from_notes(notes)
        save_graph(graph, vault_state(vault_root))
        chunks = [chunk for note in notes for chunk in note.chunks]
        LexicalIndex().rebuild(chunks, {note.node_id: note.metadata.tags for note in notes})
    except (ConfigurationError, NotegraphError) as exc:
        _handle_error(ctx, exc)

    result = {"nodes": len(graph.nodes), "edges": len(graph.edges), "chunks": len(chunks)}
    if as_json:
        output(result, as_json=True)
    else:
        click.echo(f"Indexed {result['nodes']} notes, {result['edges']} edges, {result['chunks']} chunks")


# ─────────────────────────────────────────────────────────────────────────────
# Link Commands
# ─────────────────────────────────────────────────────────────────────────────


@cli.command()
@click.argument("node")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def backlinks(ctx: click.Context, node: str, as_json: bool):
    """Show notes that link to NODE (path, title or alias).

    \b
    Examples:
      ng backlinks people/ada.md
      ng backlinks "Ada Lovelace"
    """
    engine = _open_engine(ctx)
    node_id = _resolve(ctx, engine, node)
    results = engine.get_backlinks(node_id)

    if as_json:
        output([r.model_dump(mode="json") for r in results], as_json=True)
        return
    if not results:
        click.echo(f"No backlinks to {node_id}")
        return
    rows = [{"path": r.source.node_id, "title": r.source.title} for r in results]
    click.echo(format_table(rows, ["path", "title"]))


@cli.command()
@click.argument("node")
@click.option(
    "--direction",
    type=click.Choice(["in", "out", "both"]),
    default="both",
    help="Edge direction (default both)",
)
@click.option("--edge-types", help="Comma-separated edge types to include")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def neighbors(ctx: click.Context, node: str, direction: str, edge_types: str | None, as_json: bool):
    """Show notes adjacent to NODE.

    \b
    Examples:
      ng neighbors people/ada.md --direction=out
    """
    engine = _open_engine(ctx)
    node_id = _resolve(ctx, engine, node)
    results = engine.get_neighbors(node_id, direction, _parse_edge_types(edge_types))

    if as_json:
        output([r.model_dump(mode="json") for r in results], as_json=True)
        return
    if not results:
        click.echo(f"No neighbors for {node_id}")
        return
    rows = [
        {
            "direction": r.direction,
            "path": r.node.node_id,
            "title": r.node.title,
            "edge": r.edge.edge_type.value,
        }
        for r in results
    ]
    click.echo(format_table(rows, ["direction", "path", "title", "edge"]))


# ─────────────────────────────────────────────────────────────────────────────
# Path Command
# ─────────────────────────────────────────────────────────────────────────────


def _format_route(engine, path: list[str], edges: list[EdgeType] | None = None) -> str:
    parts = []
    for i, node_id in enumerate(path):
        parts.append(_title(engine, node_id))
        if edges is not None and i < len(edges):
            parts.append(f"-[{edges[i].value}]->")
    return (" " if edges is not None else " -> ").join(parts)


@cli.command()
@click.argument("from_node", metavar="FROM")
@click.argument("to_node", metavar="TO")
@click.option("--max-paths", "-k", default=3, show_default=True, help="Maximum paths to return")
@click.option("--max-depth", default=15, show_default=True, help="Maximum hops to search")
@click.option("--max-extra", default=2, show_default=True, help="Max extra hops beyond shortest")
@click.option("--edge-types", help="Comma-separated edge types to include")
@click.option("--exclude-edges", help="Comma-separated edge types to exclude")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["table", "verbose", "md", "json"]),
    default="table",
    help="Output format",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON (same as --format=json)")
@click.pass_context
def path(
    ctx: click.Context,
    from_node: str,
    to_node: str,
    max_paths: int,
    max_depth: int,
    max_extra: int,
    edge_types: str | None,
    exclude_edges: str | None,
    fmt: str,
    as_json: bool,
):
    """Find up to K short, diverse paths between two notes.

    \b
    Examples:
      ng path "Ada Lovelace" "Analytical Engine"
      ng path people/ada.md machines/engine.md -k 5 --format=verbose
      ng path A B --edge-types=explicit_link,sequence
    """
    from .config import DEFAULT_OVERLAP_THRESHOLD, DEFAULT_PATH_EDGE_TYPES
    from .errors import NotegraphError

    engine = _open_engine(ctx)
    start = _resolve(ctx, engine, from_node)
    end = _resolve(ctx, engine, to_node)

    effective = _parse_edge_types(edge_types) or list(DEFAULT_PATH_EDGE_TYPES)
    excluded = set(_parse_edge_types(exclude_edges) or [])
    effective = [t for t in effective if t not in excluded]
    if not effective:
        raise click.UsageError("No edge types selected. Check --edge-types and --exclude-edges.")

    try:
        result = engine.find_k_shortest_paths(
            start,
            end,
            k=max_paths,
            edge_types=effective,
            max_depth=max_depth,
            max_extra_hops=max_extra,
        )
    except NotegraphError as exc:
        _handle_error(ctx, exc)

    if as_json or fmt == "json":
        output(
            {
                "from": start,
                "to": end,
                "options": {
                    "k": max_paths,
                    "max_depth": max_depth,
                    "max_extra": max_extra,
                    "overlap_threshold": DEFAULT_OVERLAP_THRESHOLD,
                    "edge_types": [t.value for t in effective],
                },
                "returned_count": len(result.paths),
                "reason": result.reason.value,
                "paths": [p.model_dump(mode="json") for p in result.paths],
            },
            as_json=True,
        )
        return

    if fmt == "md":
        lines = [f"# Reading Path: {_title(engine, start)} -> {_title(engine, end)}", ""]
        if not result.paths:
            lines.append("No paths found between these notes.")
        for i, p in enumerate(result.paths, start=1):
            lines.append(f"## Path {i} ({p.hop_count} hops)")
            lines.append("")
            for j, node_id in enumerate(p.path, start=1):
                lines.append(f"{j}. [{_title(engine, node_id)}]({node_id})")
            lines.append("")
        click.echo("\n".join(lines).rstrip())
        return

    click.echo(f'Paths from "{_title(engine, start)}" to "{_title(engine, end)}":')
    click.echo()
    if not result.paths:
        click.echo("No paths found.")
        return

    if fmt == "verbose":
        for i, p in enumerate(result.paths, start=1):
            click.echo(f"Path {i} ({p.hop_count} hops, score {p.score:.1f}):")
            click.echo(f"  {_format_route(engine, p.path, p.edges)}")
            click.echo()
        return

    rows = [
        {
            "#": i,
            "hops": p.hop_count,
            "score": f"{p.score:.1f}",
            "route": _format_route(engine, p.path),
        }
        for i, p in enumerate(result.paths, start=1)
    ]
    click.echo(format_table(rows, ["#", "hops", "score", "route"], {"route": 80}))
    click.echo()

    plural = "s" if len(result.paths) != 1 else ""
    if len(result.paths) < max_paths:
        reasons = {
            "diversity_filter": "diversity filter rejected remaining candidates",
            "exhausted_candidates": "no more unique paths exist",
        }
        reason_text = reasons.get(result.reason.value, result.reason.value)
        click.echo(f"Found {len(result.paths)} path{plural} (requested {max_paths}). Reason: {reason_text}.")
    else:
        click.echo(f"Found {len(result.paths)} path{plural}.")
    click.echo(
        f"Constraints: max_depth={max_depth}, max_extra={max_extra}, "
        f"overlap<={DEFAULT_OVERLAP_THRESHOLD}, edges=[{','.join(t.value for t in effective)}]"
    )


# ─────────────────────────────────────────────────────────────────────────────
# Expansion Commands
# ─────────────────────────────────────────────────────────────────────────────


@cli.command()
@click.argument("nodes", nargs=-1, required=True)
@click.option("--depth", default=3, show_default=True, help="Maximum hops from the seeds")
@click.option("--budget", default=50, show_default=True, help="Maximum nodes, seeds included")
@click.option("--decay", default=0.7, show_default=True, help="Per-hop score decay in (0, 1]")
@click.option("--threshold", default=0.01, show_default=True, help="Drop scores below this")
@click.option("--include-incoming", is_flag=True, help="Also follow links backwards")
@click.option("--edge-types", help="Comma-separated edge types to follow")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def expand(
    ctx: click.Context,
    nodes: tuple[str, ...],
    depth: int,
    budget: int,
    decay: float,
    threshold: float,
    include_incoming: bool,
    edge_types: str | None,
    as_json: bool,
):
    """Expand outward from one or more seed notes with decaying scores.

    \b
    Examples:
      ng expand people/ada.md
      ng expand "Ada Lovelace" "Charles Babbage" --depth=2 --include-incoming
    """
    from .errors import NotegraphError

    engine = _open_engine(ctx)
    seeds = [_resolve(ctx, engine, node) for node in nodes]

    try:
        results = engine.expand_graph(
            seeds,
            max_depth=depth,
            budget=budget,
            edge_types=_parse_edge_types(edge_types),
            decay_factor=decay,
            include_incoming=include_incoming,
            score_threshold=threshold,
        )
    except NotegraphError as exc:
        _handle_error(ctx, exc)

    if as_json:
        output([r.model_dump(mode="json") for r in results], as_json=True)
        return
    rows = [
        {
            "path": r.node_id,
            "depth": r.depth,
            "score": f"{r.score:.3f}",
            "via": r.via_edge_type.value if r.via_edge_type else "seed",
        }
        for r in results
    ]
    click.echo(format_table(rows, ["path", "depth", "score", "via"]))


@cli.command()
@click.argument("node_a")
@click.argument("node_b")
@click.option("--max-depth", default=3, show_default=True, help="Maximum hops")
@click.option("--edge-types", help="Comma-separated edge types to follow")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def connected(
    ctx: click.Context,
    node_a: str,
    node_b: str,
    max_depth: int,
    edge_types: str | None,
    as_json: bool,
):
    """Check whether NODE_B is reachable from NODE_A.

    \b
    Examples:
      ng connected people/ada.md machines/engine.md
    """
    from .errors import NotegraphError

    engine = _open_engine(ctx)
    a = _resolve(ctx, engine, node_a)
    b = _resolve(ctx, engine, node_b)

    try:
        is_connected = engine.are_connected(a, b, _parse_edge_types(edge_types), max_depth)
    except NotegraphError as exc:
        _handle_error(ctx, exc)

    if as_json:
        output({"from": a, "to": b, "connected": is_connected, "max_depth": max_depth}, as_json=True)
    else:
        verdict = "connected" if is_connected else "not connected"
        click.echo(f"{a} -> {b}: {verdict} (within {max_depth} hops)")


@cli.command()
@click.argument("node")
@click.option("--radius", default=2, show_default=True, help="Hops around the center note")
@click.option("--edge-types", help="Comma-separated edge types to follow")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def subgraph(ctx: click.Context, node: str, radius: int, edge_types: str | None, as_json: bool):
    """Extract the notes around NODE and the links among them.

    \b
    Examples:
      ng subgraph people/ada.md --radius=1
    """
    from .errors import NotegraphError

    engine = _open_engine(ctx)
    center = _resolve(ctx, engine, node)

    try:
        result = engine.extract_subgraph(center, radius, _parse_edge_types(edge_types))
    except NotegraphError as exc:
        _handle_error(ctx, exc)

    if as_json:
        output(result.model_dump(mode="json"), as_json=True)
        return

    click.echo(f"Center: {result.center}")
    click.echo(f"Nodes:  {len(result.nodes)}")
    click.echo(f"Edges:  {len(result.edges)}")
    if result.edges:
        click.echo()
        rows = [
            {"source": e.source_id, "target": e.target_id, "type": e.edge_type.value}
            for e in result.edges
        ]
        click.echo(format_table(rows, ["source", "target", "type"], {"source": 40, "target": 40}))


# ─────────────────────────────────────────────────────────────────────────────
# Structure Commands
# ─────────────────────────────────────────────────────────────────────────────


@cli.command()
@click.option("--limit", "-n", default=10, help="Max components to list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def components(ctx: click.Context, limit: int, as_json: bool):
    """List weakly connected components, largest first."""
    engine = _open_engine(ctx)
    result = engine.find_connected_components()

    if as_json:
        output({"count": len(result), "components": result[:limit]}, as_json=True)
        return

    click.echo(f"{len(result)} components")
    rows = [
        {"#": i, "size": len(members), "members": ", ".join(members)}
        for i, members in enumerate(result[:limit], start=1)
    ]
    if rows:
        click.echo(format_table(rows, ["#", "size", "members"], {"members": 80}))


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def stats(ctx: click.Context, as_json: bool):
    """Show node and edge counts for the vault graph."""
    engine = _open_engine(ctx)
    result = engine.stats()

    if as_json:
        output(result.model_dump(), as_json=True)
        return

    click.echo(f"Nodes:      {result.node_count}")
    click.echo(f"Edges:      {result.edge_count}")
    click.echo(f"Components: {result.component_count}")
    click.echo(f"Isolated:   {result.isolated_count}")
    if result.nodes_by_type:
        click.echo("\nNodes by type:")
        for name, count in result.nodes_by_type.items():
            click.echo(f"  {name}: {count}")
    if result.edges_by_type:
        click.echo("\nEdges by type:")
        for name, count in result.edges_by_type.items():
            click.echo(f"  {name}: {count}")


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def orphans(ctx: click.Context, as_json: bool):
    """List notes with no links in or out."""
    engine = _open_engine(ctx)
    result = engine.find_isolated_nodes()

    if as_json:
        output([n.model_dump(mode="json") for n in result], as_json=True)
        return
    if not result:
        click.echo("No orphan notes.")
        return
    click.echo(format_table([{"path": n.node_id, "title": n.title} for n in result], ["path", "title"]))


@cli.command()
@click.option("--threshold", "-t", default=5, show_default=True, help="Minimum incoming links")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def hubs(ctx: click.Context, threshold: int, as_json: bool):
    """Show hub notes: those many other notes link to.

    \b
    Examples:
      ng hubs
      ng hubs --threshold=2
    """
    engine = _open_engine(ctx)
    result = engine.find_hubs(threshold)

    if as_json:
        output([h.model_dump(mode="json") for h in result], as_json=True)
        return
    if not result:
        click.echo("No hub notes found.")
        return
    rows = [{"path": h.node.node_id, "title": h.node.title, "incoming": h.in_degree} for h in result]
    click.echo(format_table(rows, ["path", "title", "incoming"]))


# ─────────────────────────────────────────────────────────────────────────────
# Analysis Commands
# ─────────────────────────────────────────────────────────────────────────────


@cli.command()
@click.argument("node")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def impact(ctx: click.Context, node: str, as_json: bool):
    """Show which notes a change to NODE may affect."""
    from .impact import analyze_impact

    engine = _open_engine(ctx)
    node_id = _resolve(ctx, engine, node)
    report = analyze_impact(engine, node_id)

    if as_json:
        output(report.model_dump(), as_json=True)
        return

    click.echo(f"Impact of {node_id}")
    click.echo(f"\nDirect ({len(report.direct)}):")
    for item in report.direct:
        click.echo(f"  {item}")
    click.echo(f"\nTransitive ({len(report.transitive)}):")
    for item in report.transitive:
        click.echo(f"  {item}")


@cli.command()
@click.argument("node")
@click.option("--limit", "-n", default=10, help="Max suggestions")
@click.option("--all", "show_all", is_flag=True, help="Include directly linked notes (map of content)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def suggest(ctx: click.Context, node: str, limit: int, show_all: bool, as_json: bool):
    """Suggest related notes that NODE does not link to yet.

    \b
    Examples:
      ng suggest people/ada.md
      ng suggest "Ada Lovelace" --all
    """
    from .discovery import map_of_content, suggest_related

    engine = _open_engine(ctx)
    node_id = _resolve(ctx, engine, node)
    if show_all:
        result = map_of_content(engine, node_id)[:limit]
    else:
        result = suggest_related(engine, node_id, limit=limit)

    if as_json:
        output([s.model_dump(mode="json") for s in result], as_json=True)
        return
    if not result:
        click.echo(f"No suggestions for {node_id}")
        return
    rows = [
        {"path": s.node.node_id, "title": s.node.title, "score": f"{s.score:.3f}", "reason": s.reason}
        for s in result
    ]
    click.echo(format_table(rows, ["path", "title", "score", "reason"]))


@cli.command()
@click.argument("query")
@click.option("--max-results", "-n", default=20, show_default=True, help="Chunks to return")
@click.option("--depth", default=3, show_default=True, help="Graph expansion depth")
@click.option("--budget", default=50, show_default=True, help="Graph expansion node budget")
@click.option("--context", "show_context", is_flag=True, help="Print the assembled context text")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def retrieve(
    ctx: click.Context,
    query: str,
    max_results: int,
    depth: int,
    budget: int,
    show_context: bool,
    as_json: bool,
):
    """Search notes and pull in linked context through the graph.

    \b
    Examples:
      ng retrieve "analytical engine"
      ng retrieve "poetical science" --context
    """
    from .config import ConfigurationError, get_vault_root
    from .errors import NotegraphError
    from .retrieval import ContextAssembler, LexicalIndex
    from .store import load_notes

    engine = _open_engine(ctx)
    try:
        notes = load_notes(get_vault_root())
        lexical = LexicalIndex()
        if lexical.doc_count() == 0:
            chunks = [chunk for note in notes for chunk in note.chunks]
            lexical.rebuild(chunks, {note.node_id: note.metadata.tags for note in notes})
        assembler = ContextAssembler(engine, lexical, {note.node_id: note.chunks for note in notes})
        result = assembler.retrieve(query, max_results, max_depth=depth, budget=budget)
    except (ConfigurationError, NotegraphError) as exc:
        _handle_error(ctx, exc)

    if as_json:
        output(result.model_dump(), as_json=True)
        return
    if show_context:
        click.echo(result.context)
        return
    if not result.chunks:
        click.echo("No results found.")
        return
    rows = [
        {
            "path": c.node_id,
            "section": c.section or "",
            "score": f"{c.score:.4f}",
            "match": c.match_type,
            "sources": ",".join(c.sources),
        }
        for c in result.chunks
    ]
    click.echo(format_table(rows, ["path", "section", "score", "match", "sources"]))


# ─────────────────────────────────────────────────────────────────────────────
# Entry Point
# ─────────────────────────────────────────────────────────────────────────────


def main():
    """Entry point for ng CLI."""
    from ._logging import configure_logging

    configure_logging()
    cli()


if __name__ == "__main__":
    main()

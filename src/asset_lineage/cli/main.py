from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from asset_lineage.errors import AssetLineageError
from asset_lineage.lineage.models import Scope, View
from asset_lineage.settings import settings

console = Console()


def _configure_logging() -> None:
    import logging

    level = (settings.log_level or "INFO").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _read_json(path: str) -> dict[str, Any]:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def _repository(args: argparse.Namespace):
    if args.catalog_file:
        from asset_lineage.catalog.repository import InMemoryRepository

        return InMemoryRepository.from_dict(_read_json(args.catalog_file))

    from asset_lineage.catalog.arango_repository import ArangoRepository

    if not settings.arango_url:
        raise SystemExit("No catalog: pass --catalog-file or set ASSET_LINEAGE_ARANGO_URL")
    return ArangoRepository(
        url=settings.arango_url,
        username=settings.arango_username,
        password=settings.arango_password,
        database=settings.arango_database,
    )


def _neo4j_store():
    from asset_lineage.lineage.neo4j_store import Neo4jConfig, Neo4jLineageStore

    if not (settings.neo4j_uri and settings.neo4j_user and settings.neo4j_password):
        raise SystemExit("Neo4j not configured. Set ASSET_LINEAGE_NEO4J_URI/USER/PASSWORD.")
    return Neo4jLineageStore(
        Neo4jConfig(
            uri=settings.neo4j_uri,
            user=settings.neo4j_user,
            password=settings.neo4j_password,
            database=settings.neo4j_database,
        )
    )


def _lineage_store(args: argparse.Namespace):
    if args.graph_file:
        from asset_lineage.lineage.memory_store import InMemoryLineageStore

        return InMemoryLineageStore.from_dict(_read_json(args.graph_file), process_labels=settings.process_type_labels)
    return _neo4j_store()


def _close(backend) -> None:
    # JSON-backed stores hold no connection
    close = getattr(backend, "close", None)
    if close is not None:
        close()


def cmd_version() -> int:
    from asset_lineage import __version__

    print(__version__)
    return 0


def cmd_context(args: argparse.Namespace) -> int:
    _configure_logging()
    from asset_lineage.catalog.builder import AssetContextBuilder, SchemaNestingPolicy

    repository = _repository(args)
    builder = AssetContextBuilder(
        repository, nesting_policy=SchemaNestingPolicy(args.nesting or settings.schema_nesting_policy)
    )
    try:
        graph = builder.build(args.user_id or settings.default_user_id, args.guid, args.type_name)
    except AssetLineageError as e:
        console.print(f"[red]{e}[/red]")
        return 1
    finally:
        _close(repository)

    if args.json:
        print(json.dumps(graph.to_dict(), indent=2))
        return 0

    table = Table(title=f"Context of {args.guid}")
    table.add_column("Source", style="cyan")
    table.add_column("Relationship", style="magenta")
    table.add_column("Destination", style="green")
    for edge in graph.edges:
        src = graph.entities[edge.source_guid]
        dst = graph.entities[edge.destination_guid]
        table.add_row(
            f"{src.display_name} ({src.type_name})",
            edge.relationship_type,
            f"{dst.display_name} ({dst.type_name})",
        )
    console.print(table)
    console.print(f"{len(graph.entities)} entities, {len(graph.edges)} edges")
    return 0


def cmd_lineage(args: argparse.Namespace) -> int:
    _configure_logging()
    from asset_lineage.lineage.engine import LineageQueryEngine

    store = _lineage_store(args)
    engine = LineageQueryEngine.from_settings(store, settings)
    try:
        result = engine.lineage(
            args.scope,
            args.view,
            args.node_id,
            display_name_must_contain=args.display_name or "",
            include_processes=not args.exclude_processes,
        )
    except AssetLineageError as e:
        console.print(f"[red]{e}[/red]")
        return 1
    finally:
        _close(store)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return 0

    if result.is_empty:
        console.print("[yellow]No lineage found[/yellow]")
        return 0

    table = Table(title=f"{args.scope} lineage of {args.node_id}")
    table.add_column("Node", style="cyan")
    table.add_column("Name", style="white")
    table.add_column("Type", style="magenta")
    table.add_column("Terminal", style="green", width=8)
    for v in result.sorted_vertices():
        table.add_row(v.node_id, v.display_name, v.type_label, "yes" if v.node_id in result.terminal_ids else "")
    console.print(table)
    for e in result.sorted_edges():
        console.print(f"  {e.source_id} -[{e.label}]-> {e.destination_id}")
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    _configure_logging()
    store = _lineage_store(args)
    try:
        data = store.export() if args.graph_file else store.export_graph()
    except AssetLineageError as e:
        console.print(f"[red]{e}[/red]")
        return 1
    finally:
        _close(store)
    print(json.dumps(data, indent=2))
    return 0


def cmd_load(args: argparse.Namespace) -> int:
    _configure_logging()
    from asset_lineage.lineage.memory_store import InMemoryLineageStore

    source = InMemoryLineageStore.from_dict(_read_json(args.path), process_labels=settings.process_type_labels)
    store = _neo4j_store()
    try:
        store.ensure_schema()
        store.upsert(vertices=list(source.vertices.values()), edges=source.edges)
    except AssetLineageError as e:
        console.print(f"[red]{e}[/red]")
        return 1
    finally:
        store.close()
    console.print(f"Loaded {len(source.vertices)} vertices and {len(source.edges)} edges")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="asset-lineage")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("version").set_defaults(func=lambda _a: cmd_version())

    ctx = sub.add_parser("context", help="Build the context graph of a catalog asset")
    ctx.add_argument("guid")
    ctx.add_argument("--type-name", required=True, help="Catalog type of the asset")
    ctx.add_argument("--user-id", default=None)
    ctx.add_argument("--catalog-file", default=None, help="JSON catalog fixture instead of ArangoDB")
    ctx.add_argument("--nesting", choices=["first", "all"], default=None)
    ctx.add_argument("--json", action="store_true")
    ctx.set_defaults(func=cmd_context)

    lin = sub.add_parser("lineage", help="Query lineage of a node")
    lin.add_argument("node_id")
    lin.add_argument("--scope", required=True, choices=[s.value for s in Scope])
    lin.add_argument("--view", default="TABLE_VIEW", choices=[v.value for v in View])
    lin.add_argument("--display-name", default=None, help="Keep only nodes whose name contains this")
    lin.add_argument("--exclude-processes", action="store_true")
    lin.add_argument("--graph-file", default=None, help="JSON lineage graph instead of Neo4j")
    lin.add_argument("--json", action="store_true")
    lin.set_defaults(func=cmd_lineage)

    exp = sub.add_parser("export", help="Dump the lineage graph as JSON")
    exp.add_argument("--graph-file", default=None)
    exp.set_defaults(func=cmd_export)

    load = sub.add_parser("load", help="Load a JSON lineage graph into Neo4j")
    load.add_argument("path")
    load.set_defaults(func=cmd_load)

    return p


def app(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    rc = args.func(args)
    raise SystemExit(rc)


if __name__ == "__main__":
    app()

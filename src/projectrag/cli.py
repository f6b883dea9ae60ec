"""CLI entry point for projectrag."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from projectrag.controller import IndexingAborted, IndexingBusy, IndexingFailed
from projectrag.models import Scope
from projectrag.service import RagService, parse_scope
from projectrag.storage import StoreError

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
    )


def scope_from_args(args: argparse.Namespace) -> Scope:
    try:
        return parse_scope(args.project, args.container)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)


def parse_assignment(text: str) -> tuple[str, Any]:
    """Parse KEY=VALUE, reading VALUE as JSON when possible.

    >>> parse_assignment("top_k=3")
    ('top_k', 3)
    >>> parse_assignment("embedding_model=all-MiniLM-L6-v2")
    ('embedding_model', 'all-MiniLM-L6-v2')
    """
    key, sep, raw = text.partition("=")
    if not sep or not key:
        raise ValueError(f"Expected KEY=VALUE, got: {text}")
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        value = raw
    return key.strip(), value


async def index(service: RagService, scope: Scope, root: Optional[str] = None) -> int:
    """Index a scope, printing progress.

    Args:
        service: Initialized service
        scope: Project or container to index
        root: Optional root path (containers default to /workspace)

    Returns:
        Process exit code
    """
    def status(message: Optional[str]) -> None:
        if message:
            logger.debug(f"  {message}")

    try:
        count = await service.index_scope(scope, root, status=status)
    except IndexingAborted as e:
        logger.warning(f"Indexing aborted after {e.files_indexed} files")
        return 130
    except (IndexingBusy, IndexingFailed) as e:
        logger.error(f"Indexing failed: {e}")
        return 1

    stats = service.get_stats(scope)
    logger.info("")
    logger.info(f"Indexed {count} files, {stats['total_chunks']} chunks -> {scope}")
    return 0


async def query(
    service: RagService,
    scope: Scope,
    text: str,
    limit: Optional[int] = None,
    context: bool = False,
    budget: int = 8000,
) -> int:
    """Print search results or the assembled context block for a query."""
    if context:
        block = await service.build_context(text, scope, max_budget=budget)
        if not block:
            logger.error(f"Nothing indexed for {scope}")
            return 1
        print(block)
        return 0

    results = await service.search(text, scope, limit=limit)
    if not results:
        print(f"No results found for: {text}")
        return 0

    for i, r in enumerate(results, 1):
        snippet = r.content[:200].replace("\n", " ")
        if len(r.content) > 200:
            snippet += "..."
        print(f"{i}. [{r.similarity:.3f}] {r.file_path} (chunk {r.chunk_index})")
        print(f"   {snippet}")
        print("")
    return 0


def stats(service: RagService, scope: Optional[Scope]) -> int:
    """Show row counts, store-wide or for one scope."""
    data = service.get_stats(scope)
    config = data.pop("config")

    print(f"Index: {service.store.path or 'memory'}")
    if scope is not None:
        print(f"Scope: {scope}")
    print("")
    print("Contents:")
    for key, value in data.items():
        print(f"  {key}: {value}")
    print("")
    print("Config:")
    for key, value in config.items():
        print(f"  {key}: {value}")
    return 0


def clear(service: RagService, scope: Optional[Scope], clear_all: bool) -> int:
    if clear_all:
        service.clear_all()
        logger.info("Cleared all index data")
    elif scope is not None:
        service.clear_scope(scope)
        logger.info(f"Cleared index data for {scope}")
    else:
        logger.error("Give --project, --container or --all")
        return 1
    return 0


def config(service: RagService, assignments: Sequence[str]) -> int:
    """Show the config, applying KEY=VALUE updates first."""
    if assignments:
        try:
            changes = dict(parse_assignment(a) for a in assignments)
            service.update_config(**changes)
        except ValueError as e:
            logger.error(f"Invalid config: {e}")
            return 1

    print(json.dumps(service.get_config().to_dict(), indent=2))
    return 0


def serve(scope: Scope, home: Optional[Path], transport: str = "stdio") -> None:
    """Start MCP server for one scope.

    Args:
        scope: Project or container to serve
        home: Directory holding the config and index
        transport: Transport protocol (stdio or sse)
    """
    # Import here to avoid loading MCP unless needed
    from projectrag.server import create_mcp_server

    from typing import Literal, cast

    logger.info(f"Serving {scope} via {transport}")
    mcp = create_mcp_server(scope, home)
    mcp.run(transport=cast(Literal["stdio", "sse", "streamable-http"], transport))


async def dispatch(args: argparse.Namespace) -> int:
    """Run one service-backed command, closing the service afterwards."""
    service = RagService(home=args.home)

    # Config edits need neither the store nor the embedding model
    if args.command == "config":
        service.config_manager.load()
        return config(service, args.set)

    try:
        await service.initialize()
    except StoreError as e:
        logger.error(f"Cannot open index: {e}")
        return 1

    try:
        if args.command == "index":
            return await index(service, scope_from_args(args), args.root)
        if args.command == "query":
            return await query(
                service,
                scope_from_args(args),
                args.text,
                limit=args.limit,
                context=args.context,
                budget=args.budget,
            )
        scope = scope_from_args(args) if (args.project or args.container) else None
        if args.command == "stats":
            return stats(service, scope)
        if args.command == "clear":
            return clear(service, scope, args.all)
        raise ValueError(f"Unknown command: {args.command}")
    finally:
        service.close()


def add_scope_arguments(parser: argparse.ArgumentParser, required: bool = True) -> None:
    group = parser.add_mutually_exclusive_group(required=required)
    group.add_argument("-p", "--project", help="Local project directory")
    group.add_argument("-c", "--container", help="Running container id or name")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="projectrag",
        description="projectrag - retrieval over project and container files",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug logging and per-file progress",
    )
    parser.add_argument(
        "--home",
        type=Path,
        default=None,
        help="Directory for config and index (default: ~/.projectrag)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # index command
    index_parser = subparsers.add_parser(
        "index",
        help="Index a project directory or a running container",
    )
    add_scope_arguments(index_parser)
    index_parser.add_argument(
        "--root",
        default=None,
        help="Root to index (default: the project path, or /workspace in a container)",
    )

    # query command
    query_parser = subparsers.add_parser(
        "query",
        help="Search an indexed scope",
    )
    query_parser.add_argument("text", help="Natural language query")
    add_scope_arguments(query_parser)
    query_parser.add_argument(
        "-n",
        "--limit",
        type=int,
        default=None,
        help="Maximum number of results (default: config top_k)",
    )
    query_parser.add_argument(
        "--context",
        action="store_true",
        help="Print the assembled context block instead of raw results",
    )
    query_parser.add_argument(
        "--budget",
        type=int,
        default=8000,
        help="Character budget for --context (default: 8000)",
    )

    # stats command
    stats_parser = subparsers.add_parser(
        "stats",
        help="Show index statistics",
    )
    add_scope_arguments(stats_parser, required=False)

    # clear command
    clear_parser = subparsers.add_parser(
        "clear",
        help="Delete indexed data for a scope or for everything",
    )
    add_scope_arguments(clear_parser, required=False)
    clear_parser.add_argument(
        "--all",
        action="store_true",
        help="Clear every scope",
    )

    # config command
    config_parser = subparsers.add_parser(
        "config",
        help="Show or change retrieval settings",
    )
    config_parser.add_argument(
        "--set",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Change a setting (repeatable), e.g. --set top_k=8",
    )

    # serve command
    serve_parser = subparsers.add_parser(
        "serve",
        help="Start MCP server for one scope",
    )
    add_scope_arguments(serve_parser)
    serve_parser.add_argument(
        "--transport",
        choices=["stdio", "sse"],
        default="stdio",
        help="Transport protocol (default: stdio)",
    )

    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.command == "serve":
        serve(scope_from_args(args), args.home, args.transport)
        return

    try:
        code = asyncio.run(dispatch(args))
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        code = 130
    sys.exit(code)


if __name__ == "__main__":
    main()

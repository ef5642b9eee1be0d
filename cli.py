#!/usr/bin/env python3
"""
Module Graph CLI

A tool for following the imports of JavaScript/TypeScript entrypoints and
querying the resulting module graph.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from modgraph.model import ModuleGraph
from scanner.builder import build_graph
from scanner.config import DEFAULT_EXPORT_CONDITIONS, BuildConfig, ExternalPolicy
from scanner.errors import ConfigurationError, ModuleGraphError
from exporters import to_json


def _add_build_options(parser: argparse.ArgumentParser) -> None:
    """Add options shared by every subcommand."""
    parser.add_argument(
        "entrypoints",
        help="Comma-separated list of entrypoint files",
    )
    
    parser.add_argument(
        "--base-path",
        type=str,
        default=".",
        help="Directory module paths are relative to (default: current directory)",
    )
    
    parser.add_argument(
        "--conditions",
        nargs="+",
        default=list(DEFAULT_EXPORT_CONDITIONS),
        help="Export conditions used for package exports (default: node import)",
    )
    
    parser.add_argument(
        "--exclude",
        nargs="+",
        default=[],
        help="Glob patterns of resolved module paths to leave out of the graph",
    )
    
    parser.add_argument(
        "--foreign",
        nargs="+",
        default=[],
        help="Glob patterns of modules to include as edges without scanning them",
    )
    
    parser.add_argument(
        "--virtual",
        nargs="+",
        default=[],
        help="Glob patterns of specifiers that have no file on disk",
    )
    
    parser.add_argument(
        "--ignore-external",
        action="store_true",
        help="Drop every bare (package) import",
    )
    
    parser.add_argument(
        "--include-external",
        nargs="+",
        default=[],
        help="Only follow imports of these packages",
    )
    
    parser.add_argument(
        "--exclude-external",
        nargs="+",
        default=[],
        help="Never follow imports of these packages",
    )
    
    parser.add_argument(
        "--no-dynamic-imports",
        action="store_true",
        help="Do not follow dynamic import() expressions",
    )
    
    parser.add_argument(
        "--preserve-symlinks",
        action="store_true",
        help="Keep symlinked paths instead of resolving them to real paths",
    )
    
    parser.add_argument(
        "--skip-unreadable",
        action="store_true",
        help="Skip modules that cannot be read instead of failing",
    )
    
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log every scanned module and skipped import",
    )
    verbosity.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only log errors",
    )


def parse_args(args=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="modgraph",
        description="Follow the imports of entrypoint modules and query the module graph.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  modgraph list a.js                     # Every module reachable from a.js
  modgraph list a.js,b.js --ignore-external
  modgraph chains a.js c.js              # Import chains from a.js to c.js
  modgraph chains index.js "**/lit/**"   # Chains to any module under lit
  modgraph find index.js "*.css"         # First module matching a pattern
  modgraph graph index.js > graph.json   # Full graph as JSON
        """,
    )
    
    subparsers = parser.add_subparsers(dest="command", metavar="command")
    subparsers.required = True
    
    list_parser = subparsers.add_parser("list", help="List all reachable modules")
    _add_build_options(list_parser)
    
    chains_parser = subparsers.add_parser("chains", help="Print import chains to a module")
    _add_build_options(chains_parser)
    chains_parser.add_argument("pattern", help="Module path or glob pattern to find chains to")
    
    find_parser = subparsers.add_parser("find", help="Find a module by path or pattern")
    _add_build_options(find_parser)
    find_parser.add_argument("pattern", help="Module path or glob pattern to find")
    
    graph_parser = subparsers.add_parser("graph", help="Print the module graph as JSON")
    _add_build_options(graph_parser)
    
    return parser.parse_args(args)


def split_entrypoints(value: str) -> List[str]:
    """Split a comma-separated entrypoint list and make each path relative."""
    entrypoints = []
    for entrypoint in value.split(","):
        entrypoint = entrypoint.strip()
        if not entrypoint:
            continue
        if not entrypoint.startswith(("./", "../", "/")):
            entrypoint = "./" + entrypoint
        entrypoints.append(entrypoint)
    return entrypoints


def _setup_logging(verbose: bool, quiet: bool) -> None:
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _make_config(parsed) -> BuildConfig:
    return BuildConfig(
        base_path=str(Path(parsed.base_path).resolve()),
        export_conditions=parsed.conditions,
        external=ExternalPolicy(
            ignore=parsed.ignore_external,
            include=parsed.include_external,
            exclude=parsed.exclude_external,
        ),
        exclude=parsed.exclude,
        foreign_modules=parsed.foreign,
        virtual_modules=parsed.virtual,
        ignore_dynamic_imports=parsed.no_dynamic_imports,
        preserve_symlinks=parsed.preserve_symlinks,
        on_read_error="skip" if parsed.skip_unreadable else "abort",
    )


def _format_output(parsed, graph: ModuleGraph) -> Optional[List[str]]:
    """Render the command's result lines; None means nothing was found."""
    if parsed.command == "list":
        return graph.get_unique_modules()
    
    if parsed.command == "chains":
        chains = graph.find_import_chains(parsed.pattern)
        if not chains:
            return None
        lines: List[str] = []
        for i, chain in enumerate(chains, 1):
            lines.append(f"Chain {i}:")
            lines.extend(chain)
            lines.append("")
        return lines
    
    if parsed.command == "find":
        module = graph.get(parsed.pattern)
        if module is None:
            return None
        return [module.path]
    
    return [to_json(graph)]


def main(args=None):
    """Main entry point."""
    parsed = parse_args(args)
    _setup_logging(parsed.verbose, parsed.quiet)
    
    entrypoints = split_entrypoints(parsed.entrypoints)
    if not entrypoints:
        print("Error: at least one entrypoint is required", file=sys.stderr)
        return 2
    
    base = Path(parsed.base_path)
    if not base.is_dir():
        print(f"Error: '{parsed.base_path}' is not a directory", file=sys.stderr)
        return 1
    
    try:
        config = _make_config(parsed)
        graph = build_graph(entrypoints, config)
    except ConfigurationError as e:
        print(f"Error: invalid options: {e}", file=sys.stderr)
        return 2
    except ModuleGraphError as e:
        print(f"Error building module graph: {e}", file=sys.stderr)
        return 1
    
    lines = _format_output(parsed, graph)
    if lines is None:
        print(f"No module matches '{parsed.pattern}'", file=sys.stderr)
        return 1
    
    for line in lines:
        print(line)
    
    return 0


if __name__ == "__main__":
    sys.exit(main())

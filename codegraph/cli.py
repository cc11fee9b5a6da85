"""
Command-line interface. Every command prints JSON to stdout.

    code-graph outline FILE
    code-graph calls FILE
    code-graph index DIR
    code-graph related FILE LINE [--root DIR]

Exit status: 0 on success, 2 for an unsupported file extension, 1 for
any other failure.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from .extractor import FileTooLargeError, ParseError, fetch_calls, fetch_symbols, read_source
from .languages import GrammarUnavailableError, UnsupportedLanguageError, get_symbol_query_for_path
from .project import build_call_index, find_related_calls, index_project

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_UNSUPPORTED = 2


def _cmd_outline(args) -> dict:
    query = get_symbol_query_for_path(args.file)
    graph = fetch_symbols(args.file, read_source(args.file), query)
    return graph.to_dict()


def _cmd_calls(args) -> list:
    query = get_symbol_query_for_path(args.file)
    calls = fetch_calls(args.file, read_source(args.file), query)
    return [call.to_dict() for call in calls]


def _cmd_index(args) -> dict:
    return index_project(args.directory, max_workers=args.workers).to_dict()


def _cmd_related(args) -> list:
    query = get_symbol_query_for_path(args.file)
    graph = fetch_symbols(args.file, read_source(args.file), query)
    symbols = [node for node in graph.nodes[1:] if node.file_location == args.line]
    if not symbols:
        logger.info(f"No definition starts at {args.file}:{args.line}")
        return []

    root = args.root if args.root is not None else str(Path(args.file).parent)
    calls = build_call_index(root, max_workers=args.workers)
    return [
        {
            "symbol": symbol.to_dict(),
            "calls": [call.to_dict() for call in find_related_calls(symbol, calls)],
        }
        for symbol in symbols
    ]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="code-graph",
        description="Extract definition outlines and call sites from C, Java, JavaScript and Rust sources.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    outline_p = subparsers.add_parser("outline", help="Definition outline of a file")
    outline_p.add_argument("file")
    outline_p.set_defaults(func=_cmd_outline)

    calls_p = subparsers.add_parser("calls", help="Call sites of a file, in source order")
    calls_p.add_argument("file")
    calls_p.set_defaults(func=_cmd_calls)

    index_p = subparsers.add_parser("index", help="File tree and call index of a directory")
    index_p.add_argument("directory")
    index_p.add_argument("--workers", type=int, default=None, help="Worker processes for large projects")
    index_p.set_defaults(func=_cmd_index)

    related_p = subparsers.add_parser(
        "related",
        help="Calls whose name matches the definition starting at FILE:LINE",
    )
    related_p.add_argument("file")
    related_p.add_argument("line", type=int)
    related_p.add_argument("--root", default=None, help="Project directory (default: the file's directory)")
    related_p.add_argument("--workers", type=int, default=None, help="Worker processes for large projects")
    related_p.set_defaults(func=_cmd_related)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        result = args.func(args)
    except UnsupportedLanguageError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_UNSUPPORTED
    except (GrammarUnavailableError, ParseError, FileTooLargeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    print(json.dumps(result, indent=2))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from .config import configure_logging, load_config
from .service import SignatureService


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Search and import Ethereum signatures via the openchain signature database.",
        allow_abbrev=False,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    search_parser = subparsers.add_parser("search", help="Search by name or look up a hash")
    search_parser.add_argument(
        "query",
        help="Text to search (e.g. transfer, transfer*) or a selector/topic hash (e.g. 0xa9059cbb).",
    )

    lookup_parser = subparsers.add_parser("lookup", help="Look up a 4-byte selector or 32-byte topic")
    lookup_parser.add_argument(
        "hash",
        help="Selector (8 hex chars) or event topic (64 hex chars), 0x prefix optional.",
    )
    lookup_parser.add_argument(
        "--filter",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Ask the server to drop (--filter) or only annotate (--no-filter) spam-flagged entries.",
    )

    subparsers.add_parser("stats", help="Show signature database counts")

    import_parser = subparsers.add_parser("import", help="Submit signatures for import")
    source = import_parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--file",
        type=Path,
        help="File holding an ABI JSON array or one signature per line.",
    )
    source.add_argument(
        "--text",
        help="Signatures passed inline (newline separated).",
    )
    import_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only print the normalized request with locally computed hashes; nothing is submitted.",
    )

    serve_parser = subparsers.add_parser("serve", help="Run the web UI and API proxy")
    serve_parser.add_argument(
        "--host",
        required=False,
        help="Bind host. Defaults to HOST env or 127.0.0.1.",
    )
    serve_parser.add_argument(
        "--port",
        required=False,
        type=int,
        help="Bind port. Defaults to PORT env or 8000.",
    )

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config()
        configure_logging(config.log_level)

        if args.command == "serve":
            import uvicorn

            uvicorn.run(
                "sigdb.web:app",
                host=args.host or config.host,
                port=args.port or config.port,
                log_level=config.log_level.lower(),
            )
            return

        service = SignatureService(config)

        if args.command == "search":
            result = service.resolve_query(args.query)
        elif args.command == "lookup":
            result = service.lookup_hash(args.hash, filter=args.filter)
        elif args.command == "stats":
            result = service.get_stats().to_dict()
        elif args.command == "import":
            raw = args.file.read_text(encoding="utf-8") if args.file else args.text
            if args.dry_run:
                result = service.preview_import(raw)
            else:
                result = service.import_signatures(raw)
        print(json.dumps(result, indent=2))
    except Exception as exc:  # pylint: disable=broad-except
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

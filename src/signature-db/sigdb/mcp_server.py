"""
MCP server exposing signature search, lookup and import via the openchain signature database.
"""

import argparse
from typing import Optional

from mcp.server.fastmcp import FastMCP

from .config import configure_logging, load_config
from .service import SignatureService

server = FastMCP(
    name="signature-db",
    instructions="Search, look up and import Ethereum function/error/event signatures.",
)

_service: Optional[SignatureService] = None


def _get_service() -> SignatureService:
    global _service
    if _service is None:
        cfg = load_config()
        _service = SignatureService(cfg)
    return _service


@server.tool(
    name="search_signatures",
    title="Search Signatures",
    description="Search signatures by name (wildcards like transfer* allowed). A 0x-prefixed or 8-hex-char query is looked up as a hash instead.",
)
def search_signatures(query: str) -> dict:
    svc = _get_service()
    return svc.resolve_query(query)


@server.tool(
    name="lookup_signature",
    title="Look Up Selector or Topic",
    description="Resolve a 4-byte function/error selector or 32-byte event topic to known signatures. Set filter=false to keep spam-flagged entries.",
)
def lookup_signature(hash: str, filter: Optional[bool] = None) -> dict:
    svc = _get_service()
    return svc.lookup_hash(hash, filter)


@server.tool(
    name="get_stats",
    title="Signature Database Stats",
    description="Count of known function, event and error signatures.",
)
def get_stats() -> dict:
    svc = _get_service()
    return svc.get_stats().to_dict()


@server.tool(
    name="normalize_signatures",
    title="Normalize Signatures",
    description="Parse an ABI JSON array or newline-separated signatures into the import request and compute selectors/topics locally. Nothing is submitted.",
)
def normalize_signatures(data: str) -> dict:
    svc = _get_service()
    return svc.preview_import(data)


@server.tool(
    name="import_signatures",
    title="Import Signatures",
    description="Submit an ABI JSON array or newline-separated signatures to the signature database.",
)
def import_signatures(data: str) -> dict:
    svc = _get_service()
    return svc.import_signatures(data)


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the signature database MCP server.")
    parser.add_argument(
        "--transport",
        choices=["stdio", "sse", "streamable-http"],
        default="stdio",
        help="Transport protocol for MCP.",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host for SSE/HTTP transports.",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port for SSE/HTTP transports.",
    )
    parser.add_argument(
        "--mount-path",
        default="/",
        help="Mount path for SSE transport (only when transport=sse).",
    )
    args = parser.parse_args()

    configure_logging(load_config().log_level)

    # FastMCP uses host/port only for SSE/HTTP transports; stdio ignores them.
    server.settings.host = args.host
    server.settings.port = args.port

    if args.transport == "sse":
        server.run(transport="sse", mount_path=args.mount_path)
    else:
        server.run(transport=args.transport)


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
GeoQuest Combat MCP Server launcher

Usage:
    # stdio transport (local MCP clients)
    python run_mcp_server.py

    # HTTP transport
    python run_mcp_server.py --transport streamable-http --port 9102

    # SSE transport
    python run_mcp_server.py --transport sse --port 9102
"""

import argparse
import os
import sys

# make the geoquest package importable from a checkout
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from dotenv import load_dotenv

load_dotenv()


def main():
    from geoquest.config import configure_logging, settings, validate_config

    parser = argparse.ArgumentParser(
        description="GeoQuest Combat MCP Server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # stdio (default)
  python run_mcp_server.py

  # HTTP
  python run_mcp_server.py --transport streamable-http --port 9102

MCP client config:
  {
    "mcpServers": {
      "geoquest-combat": {
        "command": "python",
        "args": ["/path/to/backend/run_mcp_server.py"],
        "env": {"COMBAT_RNG_SEED": ""}
      }
    }
  }
""",
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "streamable-http", "sse"],
        default=settings.mcp_transport,
        help="Transport (default: %(default)s)",
    )
    parser.add_argument("--host", default=settings.mcp_host, help="HTTP/SSE bind host")
    parser.add_argument("--port", type=int, default=settings.mcp_port, help="HTTP/SSE port (default: %(default)s)")
    parser.add_argument("--debug", action="store_true", help="Debug logging")
    args = parser.parse_args()

    configure_logging("DEBUG" if args.debug else None)
    if not validate_config():
        print("Warning: configuration check failed, see log output", file=sys.stderr)

    # stdout is the protocol channel for stdio
    print("=" * 60, file=sys.stderr)
    print("GeoQuest Combat MCP Server", file=sys.stderr)
    print(f"transport: {args.transport}", file=sys.stderr)
    if args.transport != "stdio":
        print(f"address: {args.host}:{args.port}", file=sys.stderr)
    print("=" * 60, file=sys.stderr)

    from geoquest.combat.combat_mcp_server import combat_mcp, run_combat_mcp_server

    combat_mcp.settings.host = args.host
    combat_mcp.settings.port = args.port
    run_combat_mcp_server(args.transport)


if __name__ == "__main__":
    main()

"""Entry point for the revision-history MCP server."""

from revision_history.server import create_server


def main() -> None:
    """Run the revision-history MCP server."""
    server = create_server()
    server.run(transport="stdio")


if __name__ == "__main__":
    main()

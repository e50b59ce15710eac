"""github-mcp: GitHub REST tools over MCP with schema validation and normalized errors."""

__version__ = "0.1.0"

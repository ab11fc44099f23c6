"""MCP server exposing Linear issues, projects, teams, users and attachments as tools."""

__version__ = "1.1.0"

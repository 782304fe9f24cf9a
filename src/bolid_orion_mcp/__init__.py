"""MCP server and protocol engine for Bolid Orion RS-485 field devices."""

__version__ = "0.1.0"

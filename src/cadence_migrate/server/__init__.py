"""MCP server for cadence-migrate."""

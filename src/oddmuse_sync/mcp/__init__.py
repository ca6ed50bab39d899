"""MCP server exposing Oddmuse wiki sync as tools over stdio."""

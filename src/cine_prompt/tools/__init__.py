"""MCP sub-servers exposing storyboard and transition tools."""

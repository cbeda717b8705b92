"""Home Assistant MCP server: entities, automations, scripts and dashboards over MCP."""

__version__ = "1.0.0"

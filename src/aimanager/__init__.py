"""aimanager: add, update, remove and list MCP servers and skills for local AI coding clients."""

__version__ = "0.1.0"

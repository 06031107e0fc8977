"""Agent and skill spec tools: manifests, bootstrap output, plugin inventories and sync."""

__version__ = "0.1.0"
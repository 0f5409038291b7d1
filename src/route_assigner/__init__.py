"""Route Assigner: ranked route options with preview and apply."""

__version__ = "0.1.0"

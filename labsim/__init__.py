"""Task and progression scheduling engine for the AI lab simulation."""

__version__ = "0.1.0"

"""Image editor: non-destructive adjustments, rotation/flip, interactive crop and export."""

__version__ = "0.1.0"

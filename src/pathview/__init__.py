"""PathView - Deep Zoom tile addressing for pathology slide review."""

__version__ = "0.1.0"

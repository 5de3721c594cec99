"""Kids drawing to living-room poster service."""

__version__ = "0.1.0"

"""netcheck - local network diagnostics console."""

__version__ = "0.1.0"

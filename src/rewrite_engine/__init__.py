"""Live script-driven text rewriting with revertible edit transactions."""

__all__ = [
    "adapters",
    "buffer",
    "config",
    "edits",
    "errors",
    "runtime",
    "transform",
]

__version__ = "0.1.0"

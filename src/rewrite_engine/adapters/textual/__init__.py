"""Textual host adapter; ``app`` additionally requires the textual package."""

from .controller import TextualRewriteAdapter, TextualUIHooks

__all__ = ["TextualRewriteAdapter", "TextualUIHooks"]

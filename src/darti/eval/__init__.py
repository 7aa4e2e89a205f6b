"""Evaluator helper modules for the darti runtime."""

__all__ = [
    "bind",
    "blocks",
    "common",
    "control",
    "expr",
    "fn",
    "literals",
    "loops",
]

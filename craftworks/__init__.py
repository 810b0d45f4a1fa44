# craftworks/__init__.py
"""Craftworks control plane: agent handoff lifecycle and autonomy governance."""

__version__ = "0.1.0"

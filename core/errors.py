"""
core.errors
Errors raised by the turn engine.
"""

from __future__ import annotations


class InvalidStateError(RuntimeError):
    """Turn action not allowed in the current state (no mutation happened)."""

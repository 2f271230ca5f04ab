"""Utility helpers shared across queryguard."""

from queryguard.utils.decorators import traced

__all__ = [
    "traced",
]

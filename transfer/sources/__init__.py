"""Sources that export resources from origin backends."""

from .base import Source
from .nhost import NHostSource

__all__ = [
    "Source",
    "NHostSource",
]

"""Destination adapters that import resources into target backends."""

from .base import Destination
from .appwrite import AppwriteDestination
from .local import LocalDestination

__all__ = [
    "Destination",
    "AppwriteDestination",
    "LocalDestination",
]

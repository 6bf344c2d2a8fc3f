"""
Store package for the Criteria Service.

Defines the async loader interface the engine reads through, and an
in-memory implementation that can be seeded from a YAML snapshot.
Persistence technology is left to implementations of ConfigurationStore.
"""

from .base import ConfigurationStore
from .memory import InMemoryStore, load_snapshot_file

__all__ = ["ConfigurationStore", "InMemoryStore", "load_snapshot_file"]

"""Storage collaborators."""

from .base import BaseStore
from .memory import MemoryStore
from .postgrest import PostgrestStore

__all__ = ["BaseStore", "MemoryStore", "PostgrestStore"]

"""Tag memory layout and session handling for Type 5 tags."""

from .session import TagSession, TagHandle, MemoryTagSession
from .type5 import CapabilityContainer

__all__ = ["TagSession", "TagHandle", "MemoryTagSession", "CapabilityContainer"]

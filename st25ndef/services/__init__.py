"""Service layer for tag reading and writing."""

from .tag_service import TagService, TagServiceError, TagBusyError
from .config_record import ConfigParameters

__all__ = ["TagService", "TagServiceError", "TagBusyError", "ConfigParameters"]

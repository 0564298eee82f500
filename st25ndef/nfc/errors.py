"""Exceptions raised by tag sessions."""


class TagSessionError(Exception):
    """Base exception for tag session errors."""
    pass


class TagNotFoundError(TagSessionError):
    """Raised when no tag is presented within the poll timeout."""
    pass


class TagFormatError(TagSessionError):
    """Raised when tag memory is not NDEF formatted."""
    pass


class TagReadError(TagSessionError):
    """Raised when reading from a tag fails."""
    pass


class TagWriteError(TagSessionError):
    """Raised when writing to a tag fails."""
    pass


class TagNotWritableError(TagWriteError):
    """Raised when the tag's capability container denies write access."""
    pass

"""Exceptions raised by the NDEF codec."""


class NDEFError(Exception):
    """Base exception for NDEF errors."""
    pass


class DecodeError(NDEFError):
    """Raised when a byte buffer is not a valid NDEF message."""
    pass


class UnsupportedChunkingError(DecodeError):
    """Raised when a record declares the chunk flag."""
    pass


class TruncatedBufferError(DecodeError):
    """Raised when a declared length exceeds the remaining input."""
    pass


class MalformedPayloadError(DecodeError):
    """Raised when a record payload violates its internal layout."""
    pass


class FramingError(DecodeError):
    """Base exception for message begin/end flag errors."""
    pass


class EmptyMessageError(FramingError):
    """Raised when no record was read or the first record lacks MB."""
    pass


class MissingMessageEndError(FramingError):
    """Raised when the message ends without a record carrying ME."""
    pass


class EncodeError(NDEFError):
    """Raised when a message cannot be serialized."""
    pass


class PayloadTooLargeError(EncodeError):
    """Raised when a length does not fit its length field."""
    pass

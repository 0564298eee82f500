"""NDEF record codec."""

from .errors import (
    NDEFError,
    DecodeError,
    EncodeError,
    UnsupportedChunkingError,
    TruncatedBufferError,
    MalformedPayloadError,
    FramingError,
    EmptyMessageError,
    MissingMessageEndError,
    PayloadTooLargeError,
)
from .records import (
    TNF,
    TextEncoding,
    Record,
    RawRecord,
    TextRecord,
    UriRecord,
    MimeRecord,
    ExternalRecord,
)
from .registry import VariantRegistry, RecordStrategy, default_registry, register_variant
from .message import Message, decode, encode

__all__ = [
    "NDEFError",
    "DecodeError",
    "EncodeError",
    "UnsupportedChunkingError",
    "TruncatedBufferError",
    "MalformedPayloadError",
    "FramingError",
    "EmptyMessageError",
    "MissingMessageEndError",
    "PayloadTooLargeError",
    "TNF",
    "TextEncoding",
    "Record",
    "RawRecord",
    "TextRecord",
    "UriRecord",
    "MimeRecord",
    "ExternalRecord",
    "VariantRegistry",
    "RecordStrategy",
    "default_registry",
    "register_variant",
    "Message",
    "decode",
    "encode",
]

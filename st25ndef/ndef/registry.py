"""Variant registry mapping ``(tnf, type)`` pairs to payload strategies."""

import logging
import threading
from typing import Dict, List, Optional, Protocol, Tuple, Type

from .errors import EncodeError, MalformedPayloadError, PayloadTooLargeError
from .records import (
    TNF,
    URI_PREFIXES,
    ExternalRecord,
    MimeRecord,
    RawRecord,
    Record,
    TextEncoding,
    TextRecord,
    UriRecord,
)

logger = logging.getLogger(__name__)

_TEXT_UTF16_FLAG = 0x80
_TEXT_LANG_MASK = 0x3F

_UTF16_BE_BOM = b"\xfe\xff"
_UTF16_BOMS = (_UTF16_BE_BOM, b"\xff\xfe")


class RecordStrategy(Protocol):
    """Decode/encode capability for one record variant."""

    record_class: Type[Record]

    def decode(self, raw: RawRecord) -> Record:
        """Build the variant from wire fields."""
        ...

    def encode(self, record: Record) -> RawRecord:
        """Reduce the variant to wire fields."""
        ...


class TextStrategy:
    """Well-known Text record payload layout."""

    record_class = TextRecord

    def decode(self, raw: RawRecord) -> TextRecord:
        payload = raw.payload
        if not payload:
            raise MalformedPayloadError("Text record payload is empty")

        status = payload[0]
        lang_length = status & _TEXT_LANG_MASK
        if 1 + lang_length > len(payload):
            raise MalformedPayloadError(
                f"Text record language length {lang_length} exceeds payload size {len(payload)}"
            )

        try:
            language = payload[1:1 + lang_length].decode("ascii")
        except UnicodeDecodeError as e:
            raise MalformedPayloadError(f"Text record language code is not ASCII: {e}") from e

        body = payload[1 + lang_length:]
        if status & _TEXT_UTF16_FLAG:
            encoding = TextEncoding.UTF16
            # A BOM selects the byte order; without one the text is big-endian
            codec = "utf-16" if body[:2] in _UTF16_BOMS else "utf-16-be"
        else:
            encoding = TextEncoding.UTF8
            codec = "utf-8"

        try:
            text = body.decode(codec)
        except UnicodeDecodeError as e:
            raise MalformedPayloadError(f"Text record is not valid {encoding.value}: {e}") from e

        return TextRecord(text=text, language=language, encoding=encoding, id=raw.id)

    def encode(self, record: TextRecord) -> RawRecord:
        language = record.language.encode("ascii")
        if len(language) > _TEXT_LANG_MASK:
            raise PayloadTooLargeError(
                f"Language code is {len(language)} bytes, maximum is {_TEXT_LANG_MASK}"
            )

        status = len(language)
        if record.encoding == TextEncoding.UTF16:
            status |= _TEXT_UTF16_FLAG
            # Big-endian behind one BOM; decoding strips exactly one
            body = _UTF16_BE_BOM + record.text.encode("utf-16-be")
        else:
            body = record.text.encode("utf-8")

        return RawRecord(TNF.WELL_KNOWN, b"T", bytes([status]) + language + body, id=record.id)


class UriStrategy:
    """Well-known URI record payload layout with prefix compression."""

    record_class = UriRecord

    def decode(self, raw: RawRecord) -> UriRecord:
        payload = raw.payload
        if not payload:
            raise MalformedPayloadError("URI record payload is empty")

        code = payload[0]
        if code >= len(URI_PREFIXES):
            raise MalformedPayloadError(f"Unknown URI prefix code 0x{code:02X}")

        try:
            remainder = payload[1:].decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedPayloadError(f"URI record is not valid UTF-8: {e}") from e

        return UriRecord(uri=URI_PREFIXES[code] + remainder, id=raw.id)

    def encode(self, record: UriRecord) -> RawRecord:
        code = select_uri_prefix(record.uri)
        remainder = record.uri[len(URI_PREFIXES[code]):]
        payload = bytes([code]) + remainder.encode("utf-8")
        return RawRecord(TNF.WELL_KNOWN, b"U", payload, id=record.id)


def select_uri_prefix(uri: str) -> int:
    """
    Select the prefix code abbreviating the longest leading part of a URI.

    Args:
        uri: Full URI string

    Returns:
        Index into ``URI_PREFIXES`` (0 when no prefix matches)
    """
    best = 0
    for code, prefix in enumerate(URI_PREFIXES):
        if prefix and uri.startswith(prefix) and len(prefix) > len(URI_PREFIXES[best]):
            best = code
    return best


def _decode_type_string(raw: RawRecord) -> str:
    try:
        return raw.type.decode("ascii")
    except UnicodeDecodeError as e:
        raise MalformedPayloadError(f"Record type is not ASCII: {e}") from e


class MimeStrategy:
    """Media-type records; the payload is opaque."""

    record_class = MimeRecord

    def decode(self, raw: RawRecord) -> MimeRecord:
        return MimeRecord(mime_type=_decode_type_string(raw), data=raw.payload, id=raw.id)

    def encode(self, record: MimeRecord) -> RawRecord:
        return RawRecord(TNF.MIME, record.type, record.data, id=record.id)


class ExternalStrategy:
    """External-type records; the payload is opaque."""

    record_class = ExternalRecord

    def decode(self, raw: RawRecord) -> ExternalRecord:
        return ExternalRecord(domain_type=_decode_type_string(raw), data=raw.payload, id=raw.id)

    def encode(self, record: ExternalRecord) -> RawRecord:
        return RawRecord(TNF.EXTERNAL, record.type, record.data, id=record.id)


class VariantRegistry:
    """
    Table of record strategies.

    Lookup order for a decoded record is the exact ``(tnf, type)`` pair,
    then a wildcard registered for the whole TNF, then :class:`RawRecord`.
    Encoding looks the strategy up by record class.
    """

    def __init__(self):
        self._by_key: Dict[Tuple[TNF, Optional[bytes]], RecordStrategy] = {}
        self._by_class: Dict[Type[Record], RecordStrategy] = {}
        self._replaced: Dict[Tuple[TNF, Optional[bytes]], List[RecordStrategy]] = {}
        self._lock = threading.Lock()

    def register(self, tnf: int, type_bytes: Optional[bytes], strategy: RecordStrategy) -> None:
        """
        Register a strategy for a ``(tnf, type)`` pair.

        A strategy already registered for the pair is shadowed, not
        discarded; :meth:`unregister` brings it back.

        Args:
            tnf: Type Name Format the strategy applies to
            type_bytes: Exact record type, or None to match any type of ``tnf``
            strategy: Object implementing :class:`RecordStrategy`
        """
        key = (TNF(tnf), bytes(type_bytes) if type_bytes is not None else None)
        with self._lock:
            previous = self._by_key.get(key)
            if previous is not None:
                self._replaced.setdefault(key, []).append(previous)
            self._by_key[key] = strategy
            self._by_class[strategy.record_class] = strategy
        logger.debug(f"Registered {type(strategy).__name__} for {key[0].name}/{key[1]!r}")

    def unregister(self, tnf: int, type_bytes: Optional[bytes]) -> None:
        """Remove the strategy registered for a ``(tnf, type)`` pair, restoring any it replaced."""
        key = (TNF(tnf), bytes(type_bytes) if type_bytes is not None else None)
        with self._lock:
            strategy = self._by_key.pop(key, None)
            if strategy is None:
                return

            shadowed = self._replaced.get(key)
            if shadowed:
                previous = shadowed.pop()
                if not shadowed:
                    del self._replaced[key]
                self._by_key[key] = previous
                self._by_class[previous.record_class] = previous

            if self._by_class.get(strategy.record_class) is strategy:
                del self._by_class[strategy.record_class]
                for other in reversed(list(self._by_key.values())):
                    if other.record_class is strategy.record_class:
                        self._by_class[strategy.record_class] = other
                        break
        logger.debug(f"Unregistered {type(strategy).__name__} for {key[0].name}/{key[1]!r}")

    def lookup(self, tnf: int, type_bytes: bytes) -> Optional[RecordStrategy]:
        """Find the strategy for a decoded record, or None for Raw."""
        tnf = TNF(tnf)
        strategy = self._by_key.get((tnf, bytes(type_bytes)))
        if strategy is None:
            strategy = self._by_key.get((tnf, None))
        return strategy

    def to_variant(self, raw: RawRecord) -> Record:
        """Convert wire fields into the registered variant."""
        strategy = self.lookup(raw.tnf, raw.type)
        if strategy is None:
            return raw
        return strategy.decode(raw)

    def to_raw(self, record: Record) -> RawRecord:
        """
        Reduce any record to wire fields.

        Raises:
            EncodeError: If no strategy is registered for the record class
        """
        if isinstance(record, RawRecord):
            return record

        strategy = self._by_class.get(type(record))
        if strategy is None:
            raise EncodeError(f"No strategy registered for {type(record).__name__}")
        return strategy.encode(record)

    def copy(self) -> "VariantRegistry":
        """Return an independent registry with the same entries."""
        clone = VariantRegistry()
        with self._lock:
            clone._by_key = dict(self._by_key)
            clone._by_class = dict(self._by_class)
            clone._replaced = {key: list(stack) for key, stack in self._replaced.items()}
        return clone


def create_default_registry() -> VariantRegistry:
    """Build a registry with the built-in Text, URI, MIME and External variants."""
    registry = VariantRegistry()
    registry.register(TNF.WELL_KNOWN, b"T", TextStrategy())
    registry.register(TNF.WELL_KNOWN, b"U", UriStrategy())
    registry.register(TNF.MIME, None, MimeStrategy())
    registry.register(TNF.EXTERNAL, None, ExternalStrategy())
    return registry


default_registry = create_default_registry()


def register_variant(tnf: int, type_bytes: Optional[bytes], strategy: RecordStrategy) -> None:
    """Register a strategy in the default registry used by decode/encode."""
    default_registry.register(tnf, type_bytes, strategy)

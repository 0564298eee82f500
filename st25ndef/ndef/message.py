"""NDEF message framing: decoding and encoding of record sequences."""

import logging
import struct
from typing import Iterable, Iterator, Optional, Tuple, Union

from .errors import (
    EmptyMessageError,
    MissingMessageEndError,
    PayloadTooLargeError,
    TruncatedBufferError,
    UnsupportedChunkingError,
)
from .records import RawRecord, Record
from .registry import VariantRegistry, default_registry

logger = logging.getLogger(__name__)

# Record header flags
FLAG_MB = 0x80
FLAG_ME = 0x40
FLAG_CF = 0x20
FLAG_SR = 0x10
FLAG_IL = 0x08
TNF_MASK = 0x07

MAX_SHORT_PAYLOAD = 0xFF
MAX_PAYLOAD = 0xFFFFFFFF
MAX_TYPE_LENGTH = 0xFF
MAX_ID_LENGTH = 0xFF


class Message:
    """
    Ordered, non-empty, immutable sequence of NDEF records.

    Begin and end flags are not stored; they are implied by position and
    re-derived by :func:`encode`.
    """

    __slots__ = ("_records",)

    def __init__(self, records: Iterable[Record]):
        records = tuple(records)
        if not records:
            raise ValueError("An NDEF message must contain at least one record")
        for record in records:
            if not isinstance(record, Record):
                raise TypeError(f"Not an NDEF record: {record!r}")
        self._records = records

    @property
    def records(self) -> Tuple[Record, ...]:
        return self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self._records)

    def __getitem__(self, index):
        return self._records[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, Message):
            return NotImplemented
        return self._records == other._records

    def __hash__(self) -> int:
        return hash(self._records)

    def __repr__(self) -> str:
        return f"Message({list(self._records)!r})"


def _take(data: bytes, offset: int, length: int, what: str) -> bytes:
    """Slice ``length`` bytes at ``offset`` or fail without reading past the end."""
    remaining = len(data) - offset
    if length > remaining:
        raise TruncatedBufferError(
            f"{what} needs {length} bytes at offset {offset}, only {remaining} remain"
        )
    return data[offset:offset + length]


def _read_record(data: bytes, offset: int) -> Tuple[RawRecord, int, int]:
    """
    Read one record starting at ``offset``.

    Returns:
        Tuple of (raw record, header flags, offset of the next record)
    """
    flags = data[offset]
    offset += 1

    if flags & FLAG_CF:
        raise UnsupportedChunkingError(f"Chunked record at offset {offset - 1} is not supported")

    short = bool(flags & FLAG_SR)
    has_id = bool(flags & FLAG_IL)

    type_length = _take(data, offset, 1, "Type length")[0]
    offset += 1

    if short:
        payload_length = _take(data, offset, 1, "Payload length")[0]
        offset += 1
    else:
        payload_length = struct.unpack(">I", _take(data, offset, 4, "Payload length"))[0]
        offset += 4

    id_length = 0
    if has_id:
        id_length = _take(data, offset, 1, "ID length")[0]
        offset += 1

    record_type = _take(data, offset, type_length, "Record type")
    offset += type_length

    record_id = None
    if has_id:
        record_id = _take(data, offset, id_length, "Record ID")
        offset += id_length

    payload = _take(data, offset, payload_length, "Payload")
    offset += payload_length

    raw = RawRecord(flags & TNF_MASK, record_type, payload, id=record_id)
    return raw, flags, offset


def decode(data: bytes, registry: Optional[VariantRegistry] = None) -> Message:
    """
    Decode an NDEF message from raw bytes.

    Args:
        data: Raw NDEF message, without any TLV wrapping
        registry: Variant registry (default: the module-level registry)

    Returns:
        Decoded message

    Raises:
        EmptyMessageError: If the buffer is empty or the first record lacks MB
        MissingMessageEndError: If no record carries ME
        UnsupportedChunkingError: If a record is chunked
        TruncatedBufferError: If a length field exceeds the remaining input
        MalformedPayloadError: If a Text or URI payload is inconsistent
    """
    if registry is None:
        registry = default_registry

    data = bytes(data)
    if not data:
        raise EmptyMessageError("NDEF buffer is empty")

    records = []
    offset = 0
    while offset < len(data):
        raw, flags, offset = _read_record(data, offset)

        if not records and not flags & FLAG_MB:
            raise EmptyMessageError("First record does not carry the message begin flag")
        if records and flags & FLAG_MB:
            raise MissingMessageEndError(
                f"Record {len(records) + 1} begins a new message before the previous one ended"
            )

        records.append(registry.to_variant(raw))

        if flags & FLAG_ME:
            break
    else:
        raise MissingMessageEndError(f"No message end flag in {len(records)} record(s)")

    if offset < len(data):
        logger.debug(f"Ignoring {len(data) - offset} byte(s) after message end")

    logger.debug(f"Decoded {len(records)} NDEF record(s) from {len(data)} bytes")
    return Message(records)


def _encode_record(raw: RawRecord, first: bool, last: bool) -> bytes:
    payload_length = len(raw.payload)
    if payload_length > MAX_PAYLOAD:
        raise PayloadTooLargeError(f"Payload of {payload_length} bytes exceeds {MAX_PAYLOAD}")
    if len(raw.type) > MAX_TYPE_LENGTH:
        raise PayloadTooLargeError(f"Record type of {len(raw.type)} bytes exceeds {MAX_TYPE_LENGTH}")
    if raw.id is not None and len(raw.id) > MAX_ID_LENGTH:
        raise PayloadTooLargeError(f"Record ID of {len(raw.id)} bytes exceeds {MAX_ID_LENGTH}")

    flags = int(raw.tnf) & TNF_MASK
    if first:
        flags |= FLAG_MB
    if last:
        flags |= FLAG_ME
    if payload_length <= MAX_SHORT_PAYLOAD:
        flags |= FLAG_SR
    if raw.id is not None:
        flags |= FLAG_IL

    if flags & FLAG_SR:
        header = struct.pack("BBB", flags, len(raw.type), payload_length)
    else:
        header = struct.pack(">BBI", flags, len(raw.type), payload_length)
    if raw.id is not None:
        header += bytes([len(raw.id)])

    return header + raw.type + (raw.id or b"") + raw.payload


def encode(
    message: Union[Message, Iterable[Record]],
    registry: Optional[VariantRegistry] = None,
) -> bytes:
    """
    Encode a message to NDEF wire format.

    Args:
        message: Message, or any non-empty iterable of records
        registry: Variant registry (default: the module-level registry)

    Returns:
        Encoded NDEF message as bytes

    Raises:
        PayloadTooLargeError: If a length does not fit its length field
        EncodeError: If a record has no registered strategy
    """
    if registry is None:
        registry = default_registry
    if not isinstance(message, Message):
        message = Message(message)

    last = len(message) - 1
    encoded = b"".join(
        _encode_record(registry.to_raw(record), first=index == 0, last=index == last)
        for index, record in enumerate(message)
    )

    logger.debug(f"Encoded {len(message)} NDEF record(s) into {len(encoded)} bytes")
    return encoded

"""TLV blocks wrapping NDEF messages in tag memory."""

import logging
import struct
from typing import Optional

from ..ndef.errors import PayloadTooLargeError, TruncatedBufferError

logger = logging.getLogger(__name__)

TLV_NULL = 0x00
TLV_LOCK_CONTROL = 0x01
TLV_MEMORY_CONTROL = 0x02
TLV_NDEF_MESSAGE = 0x03
TLV_PROPRIETARY = 0xFD
TLV_TERMINATOR = 0xFE

# Lengths of 0xFF and above use the 3-byte form
MAX_SHORT_LENGTH = 0xFE
MAX_LENGTH = 0xFFFE


def parse_tlv(data: bytes) -> Optional[bytes]:
    """
    Extract the first NDEF message from a TLV area.

    Args:
        data: Tag data area (after the capability container)

    Returns:
        NDEF message bytes (possibly empty), or None if no NDEF TLV is present

    Raises:
        TruncatedBufferError: If a TLV length runs past the end of ``data``
    """
    i = 0
    while i < len(data):
        tlv_type = data[i]

        if tlv_type == TLV_NULL:
            i += 1
            continue

        if tlv_type == TLV_TERMINATOR:
            break

        if i + 1 >= len(data):
            raise TruncatedBufferError(f"TLV 0x{tlv_type:02X} at offset {i} has no length")

        tlv_length = data[i + 1]
        header = 2
        if tlv_length == 0xFF:
            if i + 4 > len(data):
                raise TruncatedBufferError(f"TLV 0x{tlv_type:02X} at offset {i} has a truncated 3-byte length")
            tlv_length = struct.unpack(">H", data[i + 2:i + 4])[0]
            header = 4

        start = i + header
        end = start + tlv_length
        if end > len(data):
            raise TruncatedBufferError(
                f"TLV 0x{tlv_type:02X} at offset {i} declares {tlv_length} bytes, "
                f"only {len(data) - start} remain"
            )

        if tlv_type == TLV_NDEF_MESSAGE:
            logger.debug(f"NDEF TLV found at offset {i} ({tlv_length} bytes)")
            return bytes(data[start:end])

        i = end

    return None


def build_tlv(message: bytes) -> bytes:
    """
    Wrap an NDEF message in an NDEF TLV followed by a Terminator TLV.

    Raises:
        PayloadTooLargeError: If the message does not fit a TLV length field
    """
    length = len(message)
    if length > MAX_LENGTH:
        raise PayloadTooLargeError(f"NDEF message of {length} bytes exceeds TLV maximum {MAX_LENGTH}")

    if length <= MAX_SHORT_LENGTH:
        header = bytes([TLV_NDEF_MESSAGE, length])
    else:
        header = bytes([TLV_NDEF_MESSAGE, 0xFF]) + struct.pack(">H", length)

    return header + bytes(message) + bytes([TLV_TERMINATOR])


def tlv_size(message_length: int) -> int:
    """Bytes needed to store a message of ``message_length`` bytes as TLV."""
    header = 2 if message_length <= MAX_SHORT_LENGTH else 4
    return header + message_length + 1


def tlv_capacity(area_size: int) -> int:
    """Largest message whose NDEF TLV and terminator fit ``area_size`` bytes."""
    short = min(area_size - 3, MAX_SHORT_LENGTH)
    extended = min(area_size - 5, MAX_LENGTH)
    if extended > MAX_SHORT_LENGTH:
        return extended
    return max(short, 0)

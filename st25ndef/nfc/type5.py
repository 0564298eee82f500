"""Capability container of NFC Forum Type 5 (ISO15693) tags."""

import logging

from pydantic import BaseModel, ConfigDict, Field

from .errors import TagFormatError

logger = logging.getLogger(__name__)

CC_MAGIC_1BYTE = 0xE1
CC_MAGIC_2BYTE = 0xE2

ACCESS_GRANTED = 0x0
ACCESS_DENIED = 0x3

# MLEN is expressed in units of 8 bytes
MLEN_UNIT = 8
MAX_SHORT_MLEN = 0xFF


class CapabilityContainer(BaseModel):
    """
    Type 5 capability container.

    The 4-byte form stores MLEN in byte 2; the 8-byte form sets byte 2 to
    zero and stores MLEN big-endian in bytes 6-7.
    """

    model_config = ConfigDict(frozen=True)

    magic: int = CC_MAGIC_1BYTE
    version_major: int = Field(default=1, ge=0, le=3)
    version_minor: int = Field(default=0, ge=0, le=3)
    read_access: int = Field(default=ACCESS_GRANTED, ge=0, le=3)
    write_access: int = Field(default=ACCESS_GRANTED, ge=0, le=3)
    mlen: int = Field(default=0, ge=0, le=0xFFFF)
    features: int = Field(default=0, ge=0, le=0xFF)
    extended: bool = False

    @property
    def size(self) -> int:
        """Length of the encoded container in bytes."""
        return 8 if self.extended else 4

    @property
    def data_area_size(self) -> int:
        """Size of the NDEF data area in bytes."""
        return self.mlen * MLEN_UNIT

    @property
    def version(self) -> str:
        return f"{self.version_major}.{self.version_minor}"

    @property
    def readable(self) -> bool:
        return self.read_access == ACCESS_GRANTED

    @property
    def writable(self) -> bool:
        return self.write_access == ACCESS_GRANTED

    @classmethod
    def from_bytes(cls, data: bytes) -> "CapabilityContainer":
        """
        Parse a capability container from the start of tag memory.

        Args:
            data: Tag memory starting at block 0

        Returns:
            Parsed capability container

        Raises:
            TagFormatError: If the magic number is unknown or data is too short
        """
        if len(data) < 4:
            raise TagFormatError(f"Capability container needs 4 bytes, got {len(data)}")

        magic = data[0]
        if magic not in (CC_MAGIC_1BYTE, CC_MAGIC_2BYTE):
            raise TagFormatError(f"Tag is not NDEF formatted (CC magic 0x{magic:02X})")

        access = data[1]
        fields = {
            "magic": magic,
            "version_major": (access >> 6) & 0x03,
            "version_minor": (access >> 4) & 0x03,
            "read_access": (access >> 2) & 0x03,
            "write_access": access & 0x03,
            "features": data[3],
        }

        if data[2] == 0:
            if len(data) < 8:
                raise TagFormatError("Extended capability container truncated")
            fields["mlen"] = int.from_bytes(data[6:8], "big")
            fields["extended"] = True
        else:
            fields["mlen"] = data[2]

        return cls(**fields)

    def to_bytes(self) -> bytes:
        """Encode the container in its 4- or 8-byte form."""
        access = (
            (self.version_major << 6)
            | (self.version_minor << 4)
            | (self.read_access << 2)
            | self.write_access
        )
        if self.extended:
            return bytes([self.magic, access, 0x00, self.features, 0x00, 0x00]) + self.mlen.to_bytes(2, "big")
        return bytes([self.magic, access, self.mlen, self.features])

    @classmethod
    def for_memory_size(cls, memory_size: int, writable: bool = True) -> "CapabilityContainer":
        """
        Build a container describing a tag of ``memory_size`` bytes.

        Small tags get the 4-byte form, larger ones the 8-byte form.
        """
        write_access = ACCESS_GRANTED if writable else ACCESS_DENIED
        mlen = (memory_size - 4) // MLEN_UNIT
        if 0 < mlen <= MAX_SHORT_MLEN:
            return cls(magic=CC_MAGIC_1BYTE, mlen=mlen, write_access=write_access)

        mlen = (memory_size - 8) // MLEN_UNIT
        if mlen <= 0:
            raise TagFormatError(f"Tag memory of {memory_size} bytes is too small for NDEF")
        return cls(magic=CC_MAGIC_2BYTE, mlen=min(mlen, 0xFFFF), write_access=write_access, extended=True)

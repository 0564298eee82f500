"""NDEF record model.

Records are immutable pydantic models compared field-for-field. Only
:class:`RawRecord` stores the wire fields directly; the typed variants keep
their semantic fields and expose ``tnf`` and ``type`` as properties. Payload
bytes for a variant are produced by its strategy in
:mod:`st25ndef.ndef.registry`.
"""

import base64
from abc import ABC, abstractmethod
from enum import Enum, IntEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class TNF(IntEnum):
    """Type Name Format, the 3-bit field classifying a record type."""

    EMPTY = 0x00
    WELL_KNOWN = 0x01
    MIME = 0x02
    ABSOLUTE_URI = 0x03
    EXTERNAL = 0x04
    UNKNOWN = 0x05
    UNCHANGED = 0x06
    RESERVED = 0x07


class TextEncoding(str, Enum):
    """Character encoding of a Text record."""

    UTF8 = "UTF-8"
    UTF16 = "UTF-16"


# NFC Forum URI RTD prefix table, indexed by identifier code.
URI_PREFIXES = (
    "",
    "http://www.",
    "https://www.",
    "http://",
    "https://",
    "tel:",
    "mailto:",
    "ftp://anonymous:anonymous@",
    "ftp://ftp.",
    "ftps://",
    "sftp://",
    "smb://",
    "nfs://",
    "ftp://",
    "dav://",
    "news:",
    "telnet://",
    "imap:",
    "rtsp://",
    "urn:",
    "pop:",
    "sip:",
    "sips:",
    "tftp:",
    "btspp://",
    "btl2cap://",
    "btgoep://",
    "tcpobex://",
    "irdaobex://",
    "file://",
    "urn:epc:id:",
    "urn:epc:tag:",
    "urn:epc:pat:",
    "urn:epc:raw:",
    "urn:epc:",
    "urn:nfc:",
)


class Record(BaseModel, ABC):
    """Common base of all NDEF records; subclasses define tnf, type and describe."""

    model_config = ConfigDict(frozen=True)

    id: Optional[bytes] = None

    @property
    @abstractmethod
    def tnf(self) -> TNF:
        ...

    @property
    @abstractmethod
    def type(self) -> bytes:
        ...

    @abstractmethod
    def describe(self) -> str:
        """One-line human readable summary of the record."""


class RawRecord(Record):
    """
    Record with untouched wire fields.

    Used for every ``(tnf, type)`` pair the registry does not specialize.
    """

    tnf_value: TNF
    type_bytes: bytes = b""
    payload: bytes = b""

    def __init__(self, tnf: int, type: bytes = b"", payload: bytes = b"", id: Optional[bytes] = None, **data):
        super().__init__(tnf_value=tnf, type_bytes=type, payload=payload, id=id, **data)

    @property
    def tnf(self) -> TNF:
        return self.tnf_value

    @property
    def type(self) -> bytes:
        return self.type_bytes

    def describe(self) -> str:
        return f"Raw: {base64.b64encode(self.payload).decode('ascii')}"

    def __repr__(self) -> str:
        return f"RawRecord(tnf={self.tnf.name}, type={self.type!r}, payload={self.payload!r}, id={self.id!r})"


class TextRecord(Record):
    """Well-known Text record (type ``T``)."""

    text: str
    language: str = "en"
    encoding: TextEncoding = TextEncoding.UTF8

    @field_validator("language")
    @classmethod
    def validate_language(cls, v: str) -> str:
        """Language codes are ASCII by definition."""
        if not v.isascii():
            raise ValueError(f"Language code must be ASCII: {v!r}")
        return v

    @property
    def tnf(self) -> TNF:
        return TNF.WELL_KNOWN

    @property
    def type(self) -> bytes:
        return b"T"

    def describe(self) -> str:
        return f"Text: {self.text}"


class UriRecord(Record):
    """Well-known URI record (type ``U``)."""

    uri: str

    @property
    def tnf(self) -> TNF:
        return TNF.WELL_KNOWN

    @property
    def type(self) -> bytes:
        return b"U"

    def describe(self) -> str:
        return f"URI: {self.uri}"


class MimeRecord(Record):
    """Media-type record; ``type`` holds the MIME type verbatim."""

    mime_type: str
    data: bytes = b""

    @field_validator("mime_type")
    @classmethod
    def validate_mime_type(cls, v: str) -> str:
        """Record types are ASCII."""
        if not v.isascii():
            raise ValueError(f"MIME type must be ASCII: {v!r}")
        return v

    @property
    def tnf(self) -> TNF:
        return TNF.MIME

    @property
    def type(self) -> bytes:
        return self.mime_type.encode("ascii")

    def describe(self) -> str:
        return f"MIME: {self.mime_type} ({len(self.data)} bytes)"


class ExternalRecord(Record):
    """NFC Forum external type record, e.g. ``example.com:config``."""

    domain_type: str
    data: bytes = b""

    @field_validator("domain_type")
    @classmethod
    def validate_domain_type(cls, v: str) -> str:
        if not v.isascii():
            raise ValueError(f"External type must be ASCII: {v!r}")
        return v

    @property
    def tnf(self) -> TNF:
        return TNF.EXTERNAL

    @property
    def type(self) -> bytes:
        return self.domain_type.encode("ascii")

    def describe(self) -> str:
        return f"External: {self.domain_type} ({len(self.data)} bytes)"

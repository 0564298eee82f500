"""Tag session interface and a memory-image implementation for Type 5 tags."""

import logging
from pathlib import Path
from typing import Optional, Protocol, Union

from pydantic import BaseModel, ConfigDict

from ..ndef.errors import NDEFError
from .errors import (
    TagFormatError,
    TagNotFoundError,
    TagNotWritableError,
    TagReadError,
    TagSessionError,
    TagWriteError,
)
from .tlv import build_tlv, parse_tlv, tlv_capacity, tlv_size
from .type5 import CapabilityContainer

logger = logging.getLogger(__name__)

DEFAULT_UID = bytes.fromhex("E0022600AABBCCDD")
DEFAULT_MEMORY_SIZE = 512


class TagHandle(BaseModel):
    """A tag discovered by :meth:`TagSession.poll`."""

    model_config = ConfigDict(frozen=True)

    uid: bytes
    ndef_writable: bool
    capacity: int

    @property
    def uid_hex(self) -> str:
        return self.uid.hex().upper()


class TagSession(Protocol):
    """
    Transport capable of exchanging raw NDEF messages with one tag.

    Callers run ``poll`` → ``read_raw_message``/``write_raw_message`` →
    ``finish`` and allow at most one session in flight per transport.
    """

    def poll(self, timeout: float = 20.0) -> TagHandle:
        ...

    def read_raw_message(self, handle: TagHandle) -> bytes:
        ...

    def write_raw_message(self, handle: TagHandle, data: bytes) -> None:
        ...

    def finish(self, handle: TagHandle) -> None:
        ...


class MemoryTagSession:
    """
    Tag session over a Type 5 memory image.

    The image holds the capability container followed by the TLV area. When
    a path is given the image is loaded from it and saved back on
    :meth:`finish` after a write.
    """

    def __init__(
        self,
        image: Optional[bytes] = None,
        path: Optional[Union[str, Path]] = None,
        uid: bytes = DEFAULT_UID,
    ):
        """
        Initialize memory tag session.

        Args:
            image: Initial tag memory; None means no tag is present
            path: Optional image file to load from and save to
            uid: UID reported for the tag
        """
        self.path = Path(path) if path else None
        self.uid = uid

        if image is None and self.path is not None and self.path.exists():
            image = self.path.read_bytes()
            logger.info(f"Loaded tag image {self.path} ({len(image)} bytes)")

        self._image = bytearray(image) if image is not None else None
        self._active: Optional[TagHandle] = None
        self._dirty = False

    @classmethod
    def blank(
        cls,
        size: int = DEFAULT_MEMORY_SIZE,
        writable: bool = True,
        path: Optional[Union[str, Path]] = None,
        uid: bytes = DEFAULT_UID,
    ) -> "MemoryTagSession":
        """Create a session holding a freshly formatted, empty tag."""
        cc = CapabilityContainer.for_memory_size(size, writable=writable)
        image = bytearray(size)
        area = cc.to_bytes() + build_tlv(b"")
        image[:len(area)] = area

        session = cls(image=bytes(image), path=path, uid=uid)
        session._dirty = True
        return session

    @property
    def present(self) -> bool:
        return self._image is not None

    @property
    def image(self) -> bytes:
        if self._image is None:
            raise TagNotFoundError("No tag present")
        return bytes(self._image)

    def remove(self) -> None:
        """Take the tag away from the field."""
        self._image = None
        self._active = None

    def _container(self) -> CapabilityContainer:
        return CapabilityContainer.from_bytes(bytes(self._image[:8]))

    def _data_area(self, cc: CapabilityContainer) -> memoryview:
        end = cc.size + cc.data_area_size
        return memoryview(self._image)[cc.size:min(end, len(self._image))]

    def _require_active(self, handle: TagHandle) -> None:
        if self._image is None:
            raise TagNotFoundError("Tag was removed")
        if self._active is None or self._active.uid != handle.uid:
            raise TagSessionError("No active session for this tag. Call poll() first.")

    def poll(self, timeout: float = 20.0) -> TagHandle:
        """
        Detect the tag.

        Args:
            timeout: Maximum time to wait in seconds (a memory image is
                either present or not, so the wait is immediate)

        Returns:
            Handle of the detected tag

        Raises:
            TagNotFoundError: If no tag is present
            TagFormatError: If the tag has no valid capability container
        """
        if self._image is None:
            logger.debug(f"No tag present (timeout: {timeout}s)")
            raise TagNotFoundError("No NFC tag detected within timeout")

        cc = self._container()
        area = len(self._data_area(cc))

        capacity = tlv_capacity(area)

        self._active = TagHandle(uid=self.uid, ndef_writable=cc.writable, capacity=capacity)
        logger.info(f"Tag detected: UID={self._active.uid_hex}, CC version {cc.version}, {area} byte data area")
        return self._active

    def read_raw_message(self, handle: TagHandle) -> bytes:
        """
        Read the NDEF message stored on the tag.

        Returns:
            Raw NDEF message bytes (empty for a formatted but empty tag)

        Raises:
            TagReadError: If read access is denied or the TLV area is corrupt
            TagFormatError: If the tag holds no NDEF message TLV
        """
        self._require_active(handle)
        cc = self._container()
        if not cc.readable:
            raise TagReadError("Tag read access denied")

        try:
            message = parse_tlv(bytes(self._data_area(cc)))
        except NDEFError as e:
            raise TagReadError(f"Failed to read NDEF TLV: {e}") from e

        if message is None:
            raise TagFormatError("No NDEF message TLV found on tag")

        logger.info(f"Read {len(message)} bytes of NDEF data")
        return message

    def write_raw_message(self, handle: TagHandle, data: bytes) -> None:
        """
        Write an NDEF message to the tag, replacing the current one.

        Raises:
            TagNotWritableError: If the tag denies write access
            TagWriteError: If the message does not fit the tag
        """
        self._require_active(handle)
        cc = self._container()
        if not cc.writable:
            raise TagNotWritableError("Tag not writable")

        area = self._data_area(cc)
        needed = tlv_size(len(data))
        if needed > len(area):
            raise TagWriteError(f"NDEF message too large ({len(data)} bytes, capacity {handle.capacity})")

        try:
            tlv = build_tlv(data)
        except NDEFError as e:
            raise TagWriteError(f"Failed to build NDEF TLV: {e}") from e

        area[:len(tlv)] = tlv
        self._dirty = True
        logger.info(f"Wrote {len(data)} bytes of NDEF data")

    def finish(self, handle: TagHandle) -> None:
        """End the session, saving the image file if it changed."""
        if self.path is not None and self._dirty and self._image is not None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_bytes(bytes(self._image))
            logger.info(f"Saved tag image {self.path}")
            self._dirty = False

        self._active = None
        logger.debug(f"Session finished for tag {handle.uid_hex}")

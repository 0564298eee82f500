"""Tag service for reading and writing NDEF records through a tag session."""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Optional

from ..ndef.errors import (
    EmptyMessageError,
    MalformedPayloadError,
    NDEFError,
    PayloadTooLargeError,
    TruncatedBufferError,
    UnsupportedChunkingError,
)
from ..ndef.message import Message, decode, encode
from ..ndef.records import Record, TextEncoding
from ..ndef.registry import VariantRegistry
from ..nfc.errors import (
    TagFormatError,
    TagNotFoundError,
    TagNotWritableError,
    TagSessionError,
)
from ..nfc.session import TagHandle, TagSession
from .config_record import ConfigParameters

logger = logging.getLogger(__name__)


class TagServiceError(Exception):
    """Base exception for tag service errors."""
    pass


class TagBusyError(TagServiceError):
    """Raised when a tag operation is already in progress."""
    pass


def describe_error(exc: BaseException) -> str:
    """
    Map a codec or session error to a display string.

    Args:
        exc: Exception raised by a tag operation (a :class:`TagServiceError`
            is unwrapped to its cause)

    Returns:
        Short message suitable for a status line
    """
    if isinstance(exc, TagServiceError) and exc.__cause__ is not None:
        exc = exc.__cause__

    if isinstance(exc, TagBusyError):
        return "Busy: another tag operation is in progress"
    if isinstance(exc, TagNotFoundError):
        return "No tag detected"
    if isinstance(exc, TagNotWritableError):
        return "Tag not writable"
    if isinstance(exc, TagFormatError):
        return "Tag is not NDEF formatted"
    if isinstance(exc, EmptyMessageError):
        return "Tag holds no NDEF records"
    if isinstance(exc, UnsupportedChunkingError):
        return "Chunked NDEF records are not supported"
    if isinstance(exc, TruncatedBufferError):
        return "NDEF data is truncated"
    if isinstance(exc, MalformedPayloadError):
        return f"Malformed record: {exc}"
    if isinstance(exc, PayloadTooLargeError):
        return f"Data too large: {exc}"
    return f"Error: {exc}"


def render_records(message: Message) -> str:
    """Render records as the text shown after a read."""
    lines = []
    for index, record in enumerate(message, start=1):
        lines.append(f"• Record {index}")
        lines.append(f"  {record.describe()}")
        lines.append("")
    return "\n".join(lines)


def read_status(count: int) -> str:
    return f"Read successful: {count} record{'' if count == 1 else 's'} found"


class TagService:
    """
    Service for reading and writing NDEF records on tags.

    Coordinates the tag session and the NDEF codec. Only one operation runs
    at a time; a concurrent call fails with :class:`TagBusyError`.
    """

    def __init__(
        self,
        session: TagSession,
        registry: Optional[VariantRegistry] = None,
        language: str = "en",
        encoding: TextEncoding = TextEncoding.UTF8,
    ):
        """
        Initialize tag service.

        Args:
            session: Tag session provider
            registry: Variant registry for decoding and encoding
            language: Language code for written Text records
            encoding: Encoding for written Text records
        """
        self.session = session
        self.registry = registry
        self.language = language
        self.encoding = encoding
        self._busy = threading.Lock()

        logger.info("TagService initialized")

    @property
    def busy(self) -> bool:
        return self._busy.locked()

    @contextmanager
    def _operation(self, name: str, timeout: float):
        """Hold the busy flag and a polled tag for the duration of an operation."""
        if not self._busy.acquire(blocking=False):
            raise TagBusyError(f"Cannot {name}: another tag operation is in progress")

        try:
            logger.info(f"Waiting for NFC tag to {name} (timeout: {timeout}s)...")
            handle = self.session.poll(timeout=timeout)
            try:
                yield handle
            finally:
                self.session.finish(handle)
        finally:
            self._busy.release()

    def read_records(self, timeout: float = 20.0) -> Dict[str, Any]:
        """
        Read and decode the NDEF message on a tag.

        Args:
            timeout: Timeout for waiting for tag in seconds

        Returns:
            Dictionary with:
                - success: bool
                - tag_uid: str
                - record_count: int
                - records: list of decoded records
                - status: status line
                - output: rendered records

        Raises:
            TagBusyError: If another operation is running
            TagServiceError: If reading or decoding fails
        """
        try:
            with self._operation("read", timeout) as handle:
                data = self.session.read_raw_message(handle)
                message = decode(data, registry=self.registry)
        except (TagSessionError, NDEFError) as e:
            logger.error(f"Failed to read tag: {e}")
            raise TagServiceError(f"Failed to read tag: {e}") from e

        status = read_status(len(message))
        logger.info(status)
        return {
            "success": True,
            "tag_uid": handle.uid_hex,
            "record_count": len(message),
            "records": list(message),
            "status": status,
            "output": render_records(message),
        }

    def write_records(self, records: Iterable[Record], timeout: float = 20.0) -> Dict[str, Any]:
        """
        Encode records and write them to a tag as one message.

        Args:
            records: Records to write, in order
            timeout: Timeout for waiting for tag in seconds

        Returns:
            Dictionary with operation result; ``success`` is False with
            ``error`` set when the tag is not writable

        Raises:
            TagBusyError: If another operation is running
            TagServiceError: If no records are given, or encoding or writing fails
        """
        try:
            message = Message(records)
            data = encode(message, registry=self.registry)
        except (NDEFError, ValueError, TypeError) as e:
            logger.error(f"Failed to encode NDEF message: {e}")
            raise TagServiceError(f"Failed to encode NDEF message: {e}") from e

        try:
            with self._operation("write", timeout) as handle:
                if not handle.ndef_writable:
                    logger.warning(f"Tag {handle.uid_hex} is not writable")
                    return self._result(handle, False, error="Tag not writable")

                self.session.write_raw_message(handle, data)
        except TagSessionError as e:
            logger.error(f"Failed to write tag: {e}")
            raise TagServiceError(f"Failed to write tag: {e}") from e

        logger.info(f"Wrote {len(message)} record(s) ({len(data)} bytes) to tag {handle.uid_hex}")
        result = self._result(handle, True, status="Write successful")
        result["record_count"] = len(message)
        result["size"] = len(data)
        return result

    def write_config(self, params: ConfigParameters, timeout: float = 20.0) -> Dict[str, Any]:
        """Write configuration parameters as a single Text record."""
        record = params.to_record(language=self.language, encoding=self.encoding)
        logger.debug(f"Configuration text: {record.text}")
        return self.write_records([record], timeout=timeout)

    def read_config(self, timeout: float = 20.0) -> Optional[ConfigParameters]:
        """Read configuration parameters back from a tag, if present."""
        result = self.read_records(timeout=timeout)
        return ConfigParameters.from_records(result["records"])

    def _result(self, handle: TagHandle, success: bool, **extra) -> Dict[str, Any]:
        result = {"success": success, "tag_uid": handle.uid_hex}
        result.update(extra)
        return result

    def get_tag_info(self, timeout: float = 20.0) -> Dict[str, Any]:
        """
        Get information about a tag and its NDEF content.

        Args:
            timeout: Timeout for waiting for tag in seconds

        Returns:
            Dictionary with tag information; ``present`` is False when no
            tag was detected
        """
        try:
            with self._operation("inspect", timeout) as handle:
                return self._inspect(handle)
        except TagNotFoundError:
            logger.info("No tag detected")
            return {"present": False}

    def _inspect(self, handle: TagHandle) -> Dict[str, Any]:
        info = {
            "present": True,
            "uid": handle.uid_hex,
            "uid_length": len(handle.uid),
            "writable": handle.ndef_writable,
            "capacity": handle.capacity,
        }

        ndef_info = {"valid": False}
        try:
            data = self.session.read_raw_message(handle)
            ndef_info["size"] = len(data)
            message = decode(data, registry=self.registry)
            ndef_info["valid"] = True
            ndef_info["records"] = len(message)
            ndef_info["types"] = [type(record).__name__ for record in message]
        except (TagSessionError, NDEFError) as e:
            logger.debug(f"Could not read NDEF content: {e}")
            ndef_info["error"] = describe_error(e)

        info["ndef"] = ndef_info
        return info

"""Tests for the tag service (read and write flows)."""

import pytest
from unittest.mock import Mock

from st25ndef.ndef import TNF, EmptyMessageError, RawRecord, TextEncoding, TextRecord, UriRecord
from st25ndef.nfc.errors import TagNotFoundError
from st25ndef.services.config_record import ConfigParameters
from st25ndef.services.tag_service import (
    TagBusyError,
    TagService,
    TagServiceError,
    describe_error,
    read_status,
)


def test_read_records(mock_session):
    """Test successful tag reading."""
    service = TagService(session=mock_session)

    result = service.read_records(timeout=5.0)

    assert result["success"] is True
    assert result["tag_uid"] == "E0022600AABBCCDD"
    assert result["record_count"] == 1
    assert result["records"] == [TextRecord(text="hello")]
    assert result["status"] == "Read successful: 1 record found"
    assert "• Record 1" in result["output"]
    assert "Text: hello" in result["output"]
    mock_session.poll.assert_called_once_with(timeout=5.0)
    mock_session.finish.assert_called_once()


def test_write_then_read(blank_session):
    """Test records written to a tag are read back."""
    service = TagService(session=blank_session)

    written = service.write_records([
        TextRecord(text="hello"),
        UriRecord(uri="http://www.example.com"),
    ])
    result = service.read_records()

    assert written["success"] is True
    assert written["status"] == "Write successful"
    assert written["record_count"] == 2
    assert result["status"] == "Read successful: 2 records found"
    assert "URI: http://www.example.com" in result["output"]
    assert "• Record 2" in result["output"]


def test_read_raw_record_output(blank_session):
    """Test unknown records are shown as base64."""
    service = TagService(session=blank_session)
    service.write_records([RawRecord(TNF.UNKNOWN, b"", b"\x01\x02\x03")])

    result = service.read_records()

    assert "Raw: AQID" in result["output"]


def test_read_empty_tag(blank_session):
    """Test reading a formatted tag without records."""
    service = TagService(session=blank_session)

    with pytest.raises(TagServiceError) as exc_info:
        service.read_records()

    assert isinstance(exc_info.value.__cause__, EmptyMessageError)
    assert describe_error(exc_info.value) == "Tag holds no NDEF records"


def test_read_no_tag():
    """Test reading when no tag is detected."""
    from st25ndef.nfc.session import MemoryTagSession

    service = TagService(session=MemoryTagSession())

    with pytest.raises(TagServiceError, match="No NFC tag detected") as exc_info:
        service.read_records(timeout=1.0)

    assert describe_error(exc_info.value) == "No tag detected"


def test_read_malformed_message_finishes_session(mock_session):
    """Test the session is finished even when decoding fails."""
    mock_session.read_raw_message.return_value = b"\x95\x00\x00"
    service = TagService(session=mock_session)

    with pytest.raises(TagServiceError):
        service.read_records()

    mock_session.finish.assert_called_once()
    assert service.busy is False


def test_write_not_writable(read_only_session):
    """Test writing to a read-only tag."""
    service = TagService(session=read_only_session)

    result = service.write_records([TextRecord(text="x")])

    assert result["success"] is False
    assert result["error"] == "Tag not writable"


def test_write_too_large(blank_session):
    """Test writing more data than the tag holds."""
    service = TagService(session=blank_session)

    with pytest.raises(TagServiceError, match="too large"):
        service.write_records([RawRecord(TNF.UNKNOWN, b"", b"\x00" * 1000)])


def test_write_encode_failure(mock_session):
    """Test encoding errors surface before the tag is polled."""
    service = TagService(session=mock_session)

    with pytest.raises(TagServiceError, match="encode"):
        service.write_records([TextRecord(text="a", language="x" * 64)])

    mock_session.poll.assert_not_called()


def test_write_no_records(mock_session):
    """Test an empty record list is rejected as a service error."""
    service = TagService(session=mock_session)

    with pytest.raises(TagServiceError, match="at least one record") as excinfo:
        service.write_records([])

    assert isinstance(excinfo.value.__cause__, ValueError)
    mock_session.poll.assert_not_called()


def test_write_non_record(mock_session):
    """Test a non-record element is rejected as a service error."""
    service = TagService(session=mock_session)

    with pytest.raises(TagServiceError):
        service.write_records([b"\xd1\x01\x00T"])

    assert not service.busy


def test_busy_flag_rejects_concurrent_operation(mock_session):
    """Test a second operation while one is in progress."""
    service = TagService(session=mock_session)
    errors = []

    def nested_read(handle):
        assert service.busy is True
        try:
            service.read_records()
        except TagBusyError as e:
            errors.append(e)
        return b"\xd1\x01\x02\x54\x00a"

    mock_session.read_raw_message = Mock(side_effect=nested_read)

    result = service.read_records()

    assert result["records"] == [TextRecord(text="a", language="")]
    assert len(errors) == 1
    assert describe_error(errors[0]) == "Busy: another tag operation is in progress"
    assert service.busy is False


def test_busy_flag_released_after_poll_failure(mock_session):
    """Test the busy flag is released when polling fails."""
    mock_session.poll.side_effect = TagNotFoundError("No NFC tag detected within timeout")
    service = TagService(session=mock_session)

    with pytest.raises(TagServiceError):
        service.read_records()

    assert service.busy is False
    mock_session.finish.assert_not_called()


def test_write_config(blank_session):
    """Test configuration is written as one Text record."""
    service = TagService(session=blank_session)
    params = ConfigParameters(minpres="10", maxpres="80", maxdiff="5", minlocpres="20", locdur="30")

    result = service.write_config(params)
    read = service.read_records()

    assert result["success"] is True
    assert read["records"] == [
        TextRecord(text="minpres=10,maxpres=80,maxdiff=5,minlocpres=20,locdur=30", language="en")
    ]
    assert service.read_config() == params


def test_write_config_uses_service_text_settings(blank_session):
    """Test language and encoding of the service apply to config records."""
    service = TagService(session=blank_session, language="de", encoding=TextEncoding.UTF16)
    service.write_config(ConfigParameters(minpres="1"))

    record = service.read_records()["records"][0]

    assert record.language == "de"
    assert record.encoding == TextEncoding.UTF16


def test_read_config_absent(mock_session):
    """Test reading configuration from a tag holding other text."""
    service = TagService(session=mock_session)
    assert service.read_config() is None


def test_get_tag_info(blank_session, sample_text_message):
    """Test tag information for a tag with records."""
    service = TagService(session=blank_session)
    service.write_records([TextRecord(text="hello")])

    info = service.get_tag_info()

    assert info["present"] is True
    assert info["uid"] == "E0022600AABBCCDD"
    assert info["writable"] is True
    assert info["capacity"] == 499
    assert info["ndef"] == {
        "valid": True,
        "size": len(sample_text_message),
        "records": 1,
        "types": ["TextRecord"],
    }


def test_get_tag_info_empty_tag(blank_session):
    """Test tag information for an empty tag."""
    info = TagService(session=blank_session).get_tag_info()

    assert info["ndef"]["valid"] is False
    assert info["ndef"]["size"] == 0
    assert info["ndef"]["error"] == "Tag holds no NDEF records"


def test_get_tag_info_no_tag():
    """Test tag information with no tag present."""
    from st25ndef.nfc.session import MemoryTagSession

    info = TagService(session=MemoryTagSession()).get_tag_info()
    assert info == {"present": False}


def test_read_status_plural():
    """Test status line wording."""
    assert read_status(0) == "Read successful: 0 records found"
    assert read_status(1) == "Read successful: 1 record found"
    assert read_status(3) == "Read successful: 3 records found"

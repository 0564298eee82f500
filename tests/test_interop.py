"""Interoperability tests against the ndeflib package."""

import pytest

from st25ndef.ndef import MimeRecord, TextEncoding, TextRecord, UriRecord, decode, encode

ndef = pytest.importorskip("ndef")

pytestmark = pytest.mark.interop


def ndeflib_encode(records) -> bytes:
    return b"".join(ndef.message_encoder(records))


def test_text_record_bytes_match():
    """Test Text record bytes match ndeflib."""
    ours = encode([TextRecord(text="hello", language="en")])
    theirs = ndeflib_encode([ndef.TextRecord("hello", "en")])

    assert ours == theirs


def test_uri_record_bytes_match():
    """Test URI record bytes match ndeflib."""
    ours = encode([UriRecord(uri="http://www.example.com")])
    theirs = ndeflib_encode([ndef.UriRecord("http://www.example.com")])

    assert ours == theirs


def test_mime_record_bytes_match():
    """Test MIME record bytes match ndeflib, short and long form."""
    for size in (10, 300):
        data = bytes(range(256)) * 2
        ours = encode([MimeRecord(mime_type="application/octet-stream", data=data[:size])])
        theirs = ndeflib_encode([ndef.Record("application/octet-stream", "", data[:size])])

        assert ours == theirs


def test_ndeflib_decodes_our_message():
    """Test ndeflib reads a multi-record message we encoded."""
    data = encode([
        TextRecord(text="minpres=10", language="en"),
        UriRecord(uri="https://nfcpy.org"),
        MimeRecord(mime_type="text/plain", data=b"abc"),
    ])

    records = list(ndef.message_decoder(data))

    assert records[0].text == "minpres=10"
    assert records[0].language == "en"
    assert records[1].uri == "https://nfcpy.org"
    assert records[2].type == "text/plain"
    assert records[2].data == b"abc"


def test_we_decode_ndeflib_message():
    """Test we read a multi-record message ndeflib encoded."""
    data = ndeflib_encode([
        ndef.TextRecord("Grüße", "de", "UTF-16"),
        ndef.UriRecord("tel:+15551234"),
    ])

    message = decode(data)

    assert message[0].text == "Grüße"
    assert message[0].language == "de"
    assert message[0].encoding == TextEncoding.UTF16
    assert message[1] == UriRecord(uri="tel:+15551234")

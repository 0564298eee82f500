"""Tests for the command-line interface."""

import pytest
from typer.testing import CliRunner

from cli import app

runner = CliRunner()


@pytest.fixture
def image(tmp_path):
    """Formatted tag image file."""
    path = tmp_path / "tag.bin"
    result = runner.invoke(app, ["format", "--image", str(path), "--yes"])
    assert result.exit_code == 0, result.output
    return path


def test_decode_hex(sample_text_message):
    """Test decoding a message given as hex."""
    result = runner.invoke(app, ["decode", sample_text_message.hex()])

    assert result.exit_code == 0
    assert "1 record(s) decoded" in result.output
    assert "hello" in result.output


def test_decode_tlv(sample_uri_message):
    """Test decoding a TLV-wrapped message."""
    data = "03" + f"{len(sample_uri_message):02x}" + sample_uri_message.hex() + "fe"
    result = runner.invoke(app, ["decode", data, "--tlv"])

    assert result.exit_code == 0
    assert "example.com" in result.output


def test_decode_file(tmp_path, sample_text_message):
    """Test decoding raw bytes from a file."""
    path = tmp_path / "message.bin"
    path.write_bytes(sample_text_message)

    result = runner.invoke(app, ["decode", "--file", str(path)])

    assert result.exit_code == 0
    assert "hello" in result.output


def test_decode_invalid_hex():
    """Test decoding input that is not hex."""
    result = runner.invoke(app, ["decode", "zz"])
    assert result.exit_code == 1


def test_decode_truncated(sample_text_message):
    """Test decoding a truncated message."""
    result = runner.invoke(app, ["decode", sample_text_message[:6].hex()])

    assert result.exit_code == 1
    assert "truncated" in result.output


def test_encode_text(sample_text_message):
    """Test encoding a Text record."""
    result = runner.invoke(app, ["encode-text", "hello"])

    assert result.exit_code == 0
    assert sample_text_message.hex() in result.output


def test_encode_uri(sample_uri_message):
    """Test encoding a URI record."""
    result = runner.invoke(app, ["encode-uri", "http://www.example.com"])

    assert result.exit_code == 0
    assert sample_uri_message.hex() in result.output


def test_write_and_read_text(image):
    """Test writing a Text record and reading it back."""
    result = runner.invoke(app, ["write-text", "hi there", "--image", str(image)])
    assert result.exit_code == 0, result.output
    assert "Write successful" in result.output

    result = runner.invoke(app, ["read", "--image", str(image)])
    assert result.exit_code == 0, result.output
    assert "Read successful: 1 record found" in result.output
    assert "Text: hi there" in result.output


def test_write_uri(image):
    """Test writing a URI record."""
    result = runner.invoke(app, ["write-uri", "https://example.com", "--image", str(image)])
    assert result.exit_code == 0, result.output

    result = runner.invoke(app, ["read", "--image", str(image)])
    assert "URI: https://example.com" in result.output


def test_write_config(image):
    """Test writing configuration parameters."""
    result = runner.invoke(app, [
        "write-config",
        "--minpres", "10",
        "--maxpres", "80",
        "--image", str(image),
    ])
    assert result.exit_code == 0, result.output

    result = runner.invoke(app, ["read", "--image", str(image)])
    assert "minpres=10,maxpres=80" in result.output


def test_write_config_invalid_value(image):
    """Test non-numeric configuration values are rejected."""
    result = runner.invoke(app, ["write-config", "--minpres", "high", "--image", str(image)])
    assert result.exit_code == 1


def test_read_empty_tag(image):
    """Test reading a freshly formatted tag."""
    result = runner.invoke(app, ["read", "--image", str(image)])

    assert result.exit_code == 1
    assert "Tag holds no NDEF records" in result.output


def test_read_without_tag(tmp_path):
    """Test reading when the image file does not exist."""
    result = runner.invoke(app, ["read", "--image", str(tmp_path / "none.bin")])

    assert result.exit_code == 1
    assert "No tag detected" in result.output


def test_write_read_only_tag(tmp_path):
    """Test writing to a read-only tag."""
    path = tmp_path / "ro.bin"
    runner.invoke(app, ["format", "--image", str(path), "--read-only", "--yes"])

    result = runner.invoke(app, ["write-text", "x", "--image", str(path)])

    assert result.exit_code == 1
    assert "Tag not writable" in result.output


def test_format_cancelled(tmp_path):
    """Test declining the format confirmation."""
    path = tmp_path / "tag.bin"
    result = runner.invoke(app, ["format", "--image", str(path)], input="n\n")

    assert result.exit_code == 0
    assert not path.exists()


def test_format_size(tmp_path):
    """Test formatting with a custom memory size."""
    path = tmp_path / "tag.bin"
    result = runner.invoke(app, ["format", "--image", str(path), "--size", "2048", "--yes"])

    assert result.exit_code == 0, result.output
    assert len(path.read_bytes()) == 2048


def test_info(image):
    """Test tag information output."""
    runner.invoke(app, ["write-text", "hello", "--image", str(image)])

    result = runner.invoke(app, ["info", "--image", str(image)])

    assert result.exit_code == 0, result.output
    assert "E0022600AABBCCDD" in result.output
    assert "TextRecord" in result.output


def test_info_no_tag(tmp_path):
    """Test tag information when no tag is present."""
    result = runner.invoke(app, ["info", "--image", str(tmp_path / "none.bin")])
    assert result.exit_code == 1


def test_version():
    """Test version output."""
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "0.1.0" in result.output

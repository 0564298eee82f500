"""ST25 NDEF reader and writer for ISO15693 (Type 5) tags."""

__version__ = "0.1.0"

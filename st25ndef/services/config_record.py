"""Device configuration stored on tags as a single Text record.

The parameters are flattened into ``key=value`` pairs joined by commas,
for example ``minpres=10,maxpres=80,maxdiff=5,minlocpres=20,locdur=30``.
"""

import logging
from typing import Iterable, Optional

from pydantic import BaseModel, field_validator

from ..ndef.records import Record, TextEncoding, TextRecord

logger = logging.getLogger(__name__)

CONFIG_KEYS = ("minpres", "maxpres", "maxdiff", "minlocpres", "locdur")


class ConfigParameters(BaseModel):
    """Pressure and lock configuration written to a tag."""

    minpres: str = ""
    maxpres: str = ""
    maxdiff: str = ""
    minlocpres: str = ""
    locdur: str = ""

    @field_validator(*CONFIG_KEYS, mode="before")
    @classmethod
    def validate_number(cls, v) -> str:
        """Values are numeric; empty means unset."""
        if v is None:
            return ""
        v = str(v).strip()
        if v:
            try:
                float(v)
            except ValueError:
                raise ValueError(f"Not a number: {v!r}")
        return v

    def to_text(self) -> str:
        return ",".join(f"{key}={getattr(self, key)}" for key in CONFIG_KEYS)

    def to_record(self, language: str = "en", encoding: TextEncoding = TextEncoding.UTF8) -> TextRecord:
        """Build the Text record holding these parameters."""
        return TextRecord(text=self.to_text(), language=language, encoding=encoding)

    @classmethod
    def from_text(cls, text: str) -> "ConfigParameters":
        """
        Parse a flattened configuration string.

        Args:
            text: Comma-separated ``key=value`` pairs

        Returns:
            Parsed parameters

        Raises:
            ValueError: If a pair has no ``=`` or a value is not numeric
        """
        values = {}
        for pair in text.split(","):
            pair = pair.strip()
            if not pair:
                continue
            if "=" not in pair:
                raise ValueError(f"Malformed configuration pair: {pair!r}")

            key, value = pair.split("=", 1)
            key = key.strip().lower()
            if key not in CONFIG_KEYS:
                logger.warning(f"Ignoring unknown configuration key: {key}")
                continue
            values[key] = value

        return cls(**values)

    @classmethod
    def from_records(cls, records: Iterable[Record]) -> Optional["ConfigParameters"]:
        """Return the parameters held by the first matching Text record, if any."""
        for record in records:
            if not isinstance(record, TextRecord):
                continue
            keys = {pair.split("=", 1)[0].strip().lower() for pair in record.text.split(",")}
            if not keys & set(CONFIG_KEYS):
                continue
            try:
                return cls.from_text(record.text)
            except ValueError as e:
                logger.warning(f"Skipping malformed configuration record: {e}")
        return None

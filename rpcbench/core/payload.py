"""Synthetic request payload generation."""

import json
import logging
import secrets

from .models import PayloadMode

# Every Nth byte of a binary payload is randomized
RANDOM_BYTE_INTERVAL = 1000

PAD_CHAR = b"X"

# Fixed-shape record used for structured payloads
STRUCTURED_TEMPLATE = {
    "user": {
        "id": "u-123",
        "name": "Jane Doe",
        "email": "jane.doe@example.com",
        "roles": ["admin", "editor", "observer"],
    },
    "meta": {"source": "rpcbench", "version": "1.0.0"},
    "items": [
        {"index": i, "title": f"Item {i}", "active": i % 2 == 0}
        for i in range(16)
    ],
}

# 0, 1, ..., 255 repeated; sliced to build pattern payloads without a Python loop
_PATTERN_BLOCK = bytes(range(256))


class PayloadGenerator:
    """Builds request bodies of an exact byte size.

    Payloads are meant to be generated once per run and shared by every
    request in it.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._structured_base = json.dumps(
            STRUCTURED_TEMPLATE, separators=(",", ":")
        ).encode("utf-8")

    def generate(self, size_bytes: int, mode: PayloadMode = PayloadMode.BINARY) -> bytes:
        """
        Generate a payload of exactly ``size_bytes`` bytes.

        Args:
            size_bytes: Target size; zero or negative yields an empty payload
            mode: Binary pattern fill or padded structured JSON

        Returns:
            Immutable payload bytes
        """
        if size_bytes <= 0:
            return b""

        if mode == PayloadMode.STRUCTURED:
            payload = self._structured(size_bytes)
        else:
            payload = self._binary(size_bytes)

        self.logger.debug(f"Generated {mode.value} payload of {format_bytes(len(payload))}")
        return payload

    def _binary(self, size_bytes: int) -> bytes:
        repeats, remainder = divmod(size_bytes, len(_PATTERN_BLOCK))
        buffer = bytearray(_PATTERN_BLOCK * repeats + _PATTERN_BLOCK[:remainder])

        noise = secrets.token_bytes(len(range(0, size_bytes, RANDOM_BYTE_INTERVAL)))
        buffer[::RANDOM_BYTE_INTERVAL] = noise
        return bytes(buffer)

    def _structured(self, size_bytes: int) -> bytes:
        base = self._structured_base
        if len(base) >= size_bytes:
            return base[:size_bytes]
        return base + PAD_CHAR * (size_bytes - len(base))


def format_bytes(size_bytes: int) -> str:
    """
    Format byte size to human-readable string.

    Args:
        size_bytes: Size in bytes

    Returns:
        Human-readable size string (e.g., "1.5 MB")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.2f} GB"


def parse_size(label: str) -> int:
    """
    Parse a size such as "512", "100K", "1MB" or "1.5G" to bytes.

    Raises:
        ValueError: If the label has no numeric part or an unknown unit
    """
    text = label.upper().strip()

    numeric = ""
    unit = ""
    for char in text:
        if char.isdigit() or char == ".":
            numeric += char
        else:
            unit += char
    unit = unit.strip()

    if not numeric:
        raise ValueError(f"Invalid size: {label!r}")

    value = float(numeric)

    if unit in ("", "B"):
        return int(value)
    elif unit in ("K", "KB"):
        return int(value * 1024)
    elif unit in ("M", "MB"):
        return int(value * 1024 * 1024)
    elif unit in ("G", "GB"):
        return int(value * 1024 * 1024 * 1024)
    raise ValueError(f"Unknown size unit in {label!r}")

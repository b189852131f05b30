"""The uniqueidentifier (GUID) value type."""

from __future__ import annotations

import binascii
from dataclasses import dataclass

_SIZE = 16
_TEXT_LENGTH = 36


def _swap_groups(raw: bytes) -> bytes:
    """Reverse the byte order of the first three GUID groups."""
    return raw[3::-1] + raw[5:3:-1] + raw[7:5:-1] + raw[8:]


@dataclass(frozen=True)
class UniqueIdentifier:
    """A 16-byte GUID held in its canonical (big-endian) byte order."""

    raw: bytes = bytes(_SIZE)

    def __post_init__(self) -> None:
        raw = bytes(self.raw)
        if len(raw) != _SIZE:
            raise ValueError("invalid UniqueIdentifier length")
        object.__setattr__(self, "raw", raw)

    @classmethod
    def scan(cls, value: bytes | bytearray | memoryview | str) -> UniqueIdentifier:
        """Build an identifier from wire bytes or from its text form."""
        if isinstance(value, (bytes, bytearray, memoryview)):
            data = bytes(value)
            if len(data) != _SIZE:
                raise ValueError("invalid UniqueIdentifier length")
            return cls(_swap_groups(data))
        if isinstance(value, str):
            if len(value) != _TEXT_LENGTH:
                raise ValueError("invalid UniqueIdentifier string length")
            digits = value.replace("-", "")
            try:
                data = binascii.unhexlify(digits)
            except (binascii.Error, ValueError) as exc:
                raise ValueError(f"invalid UniqueIdentifier string: {exc}") from exc
            if len(data) != _SIZE:
                raise ValueError("invalid UniqueIdentifier string")
            return cls(data)
        raise TypeError(f"cannot convert {type(value).__name__} to UniqueIdentifier")

    def value(self) -> bytes:
        """Return the identifier in the byte order used on the wire."""
        return _swap_groups(self.raw)

    def marshal_text(self) -> bytes:
        """Return the text form as ASCII bytes."""
        return str(self).encode("ascii")

    def __bytes__(self) -> bytes:
        return self.raw

    def __str__(self) -> str:
        h = self.raw.hex().upper()
        return f"{h[0:8]}-{h[8:12]}-{h[12:16]}-{h[16:20]}-{h[20:]}"
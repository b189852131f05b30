"""TYPE_INFO descriptions and the value encodings that go with them."""

from __future__ import annotations

import enum
import io
import struct
from dataclasses import dataclass, field
from decimal import Decimal
from typing import BinaryIO

from tdstypes.datetimes import (
    decode_date,
    decode_datetim4,
    decode_datetime,
    decode_datetime2,
    decode_datetimeoffset,
    decode_time,
)

PLP_NULL = 0xFFFFFFFFFFFFFFFF
UNKNOWN_PLP_LEN = 0xFFFFFFFFFFFFFFFE
PLP_TERMINATOR = 0x00000000


class TypeId(enum.IntEnum):
    """Type identifiers used in TYPE_INFO."""

    # fixed-length types
    NULL = 0x1F
    INT1 = 0x30
    BIT = 0x32
    INT2 = 0x34
    INT4 = 0x38
    DATETIM4 = 0x3A
    FLT4 = 0x3B
    MONEY = 0x3C
    DATETIME = 0x3D
    FLT8 = 0x3E
    MONEY4 = 0x7A
    INT8 = 0x7F
    # byte-length types
    GUID = 0x24
    INTN = 0x26
    DECIMAL = 0x37
    NUMERIC = 0x3F
    BITN = 0x68
    DECIMALN = 0x6A
    NUMERICN = 0x6C
    FLTN = 0x6D
    MONEYN = 0x6E
    DATETIMEN = 0x6F
    DATEN = 0x28
    TIMEN = 0x29
    DATETIME2N = 0x2A
    DATETIMEOFFSETN = 0x2B
    CHAR = 0x2F
    VARCHAR = 0x27
    BINARY = 0x2D
    VARBINARY = 0x25
    # short-length types
    BIGVARBIN = 0xA5
    BIGVARCHAR = 0xA7
    BIGBINARY = 0xAD
    BIGCHAR = 0xAF
    NVARCHAR = 0xE7
    NCHAR = 0xEF
    XML = 0xF1
    UDT = 0xF0
    TVP = 0xF3
    # long-length types
    TEXT = 0x23
    IMAGE = 0x22
    NTEXT = 0x63
    VARIANT = 0x62


class StreamError(Exception):
    """Raised when the data stream is malformed."""


class _Layout(enum.Enum):
    FIXED = "fixed"
    BYTELEN = "bytelen"
    SHORTLEN = "shortlen"
    LONGLEN = "longlen"
    PLP = "plp"
    VARIANT = "variant"


_FIXED_SIZES = {
    TypeId.NULL: 0,
    TypeId.INT1: 1,
    TypeId.BIT: 1,
    TypeId.INT2: 2,
    TypeId.INT4: 4,
    TypeId.DATETIM4: 4,
    TypeId.FLT4: 4,
    TypeId.MONEY4: 4,
    TypeId.MONEY: 8,
    TypeId.DATETIME: 8,
    TypeId.FLT8: 8,
    TypeId.INT8: 8,
}
_DECIMAL_TYPES = frozenset({TypeId.DECIMAL, TypeId.NUMERIC, TypeId.DECIMALN, TypeId.NUMERICN})
_BYTELEN_TYPES = frozenset({
    TypeId.GUID, TypeId.INTN, TypeId.DECIMAL, TypeId.NUMERIC, TypeId.BITN,
    TypeId.DECIMALN, TypeId.NUMERICN, TypeId.FLTN, TypeId.MONEYN,
    TypeId.DATETIMEN, TypeId.CHAR, TypeId.VARCHAR, TypeId.BINARY, TypeId.VARBINARY,
})
_TIME_TYPES = frozenset({TypeId.TIMEN, TypeId.DATETIME2N, TypeId.DATETIMEOFFSETN})
_SHORTLEN_TYPES = frozenset({
    TypeId.BIGVARBIN, TypeId.BIGVARCHAR, TypeId.BIGBINARY, TypeId.BIGCHAR,
    TypeId.NVARCHAR, TypeId.NCHAR,
})
_COLLATED_SHORT_TYPES = frozenset({TypeId.BIGVARCHAR, TypeId.BIGCHAR, TypeId.NVARCHAR, TypeId.NCHAR})
_LONGLEN_TYPES = frozenset({TypeId.TEXT, TypeId.IMAGE, TypeId.NTEXT, TypeId.VARIANT})


@dataclass
class Collation:
    """A collation: LCID with flags, and sort id.

    Single-byte text is decoded as Windows-1252.
    """

    lcid_and_flags: int = 0
    sort_id: int = 0


@dataclass
class UdtInfo:
    """Description of a CLR user-defined type."""

    db_name: str = ""
    schema_name: str = ""
    type_name: str = ""
    assembly_qualified_name: str = ""


@dataclass
class XmlInfo:
    """Schema information of an XML column."""

    schema_present: int = 0
    db_name: str = ""
    owning_schema: str = ""
    xml_schema_collection: str = ""


class ByteReader:
    """Little-endian reader over bytes or a binary stream."""

    def __init__(self, source: bytes | bytearray | memoryview | BinaryIO) -> None:
        if isinstance(source, (bytes, bytearray, memoryview)):
            source = io.BytesIO(bytes(source))
        self._stream = source

    def read_full(self, size: int) -> bytes:
        """Read exactly ``size`` bytes."""
        if size < 0:
            raise StreamError(f"invalid read size: {size}")
        chunks = []
        remaining = size
        while remaining:
            chunk = self._stream.read(remaining)
            if not chunk:
                raise StreamError(f"unexpected end of stream reading {size} bytes")
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    def _unpack(self, fmt: str) -> int:
        return struct.unpack(fmt, self.read_full(struct.calcsize(fmt)))[0]

    def byte(self) -> int:
        return self._unpack("<B")

    def uint16(self) -> int:
        return self._unpack("<H")

    def int32(self) -> int:
        return self._unpack("<i")

    def uint32(self) -> int:
        return self._unpack("<I")

    def uint64(self) -> int:
        return self._unpack("<Q")

    def _int64(self) -> int:
        return self._unpack("<q")

    def b_varchar(self) -> str:
        """Read a string prefixed by a one-byte character count."""
        return decode_nchar(self.read_full(2 * self.byte()))

    def us_varchar(self) -> str:
        """Read a string prefixed by a two-byte character count."""
        return decode_nchar(self.read_full(2 * self.uint16()))


def _put(stream: BinaryIO, fmt: str, *values: int) -> None:
    stream.write(struct.pack(fmt, *values))


def _scaled(value: int, scale: int) -> Decimal:
    digits = tuple(int(c) for c in str(abs(value)))
    return Decimal((1 if value < 0 else 0, digits, -scale))


def decode_money(buf: bytes) -> Decimal:
    """Decode an 8-byte money value (high half first)."""
    (high,) = struct.unpack_from("<i", buf, 0)
    (low,) = struct.unpack_from("<I", buf, 4)
    return _scaled((high << 32) | low, 4)


def decode_money4(buf: bytes) -> Decimal:
    """Decode a 4-byte smallmoney value."""
    (money,) = struct.unpack_from("<i", buf, 0)
    return _scaled(money, 4)


def decode_decimal(prec: int, scale: int, buf: bytes) -> Decimal:
    """Decode a decimal: sign byte then little-endian 32-bit words."""
    positive = buf[0] != 0
    body = bytes(buf[1:])
    count = len(body) // 4
    words = struct.unpack(f"<{count}I", body[: 4 * count])
    magnitude = sum(word << (32 * i) for i, word in enumerate(words))
    return _scaled(magnitude if positive else -magnitude, scale)


def decode_guid(buf: bytes) -> bytes:
    """Return a 16-byte copy of a GUID buffer."""
    return bytes(buf[:16]).ljust(16, b"\x00")


def decode_nchar(buf: bytes) -> str:
    """Decode UCS-2 / UTF-16LE text."""
    try:
        return bytes(buf).decode("utf-16-le")
    except UnicodeDecodeError as exc:
        raise StreamError(f"Invalid UCS2 encoding: {exc}") from exc


def _decode_char(collation: Collation, buf: bytes) -> str:
    return bytes(buf).decode("cp1252", errors="replace")


def read_collation(reader: ByteReader) -> Collation:
    """Read a 5-byte collation."""
    lcid = reader.uint32()
    return Collation(lcid, reader.byte())


def write_collation(stream: BinaryIO, collation: Collation) -> None:
    """Write a 5-byte collation."""
    _put(stream, "<IB", collation.lcid_and_flags & 0xFFFFFFFF, collation.sort_id & 0xFF)


def _as_type_id(value: int) -> int:
    try:
        return TypeId(value)
    except ValueError:
        return value


@dataclass
class TypeInfo:
    """A column or parameter type description."""

    type_id: int
    size: int = 0
    scale: int = 0
    prec: int = 0
    collation: Collation = field(default_factory=Collation)
    udt_info: UdtInfo = field(default_factory=UdtInfo)
    xml_info: XmlInfo = field(default_factory=XmlInfo)
    layout: _Layout | None = field(default=None, init=False, repr=False, compare=False)

    # reading

    def read_value(self, reader: ByteReader):
        """Read one value of this type; ``None`` stands for NULL."""
        readers = {
            _Layout.FIXED: self._read_fixed,
            _Layout.BYTELEN: self._read_bytelen,
            _Layout.SHORTLEN: self._read_shortlen,
            _Layout.LONGLEN: self._read_longlen,
            _Layout.PLP: self._read_plp,
            _Layout.VARIANT: self._read_variant,
        }
        if self.layout is None:
            raise ValueError("type info has no value layout")
        return readers[self.layout](reader)

    def _read_fixed(self, reader: ByteReader):
        buf = reader.read_full(self.size)
        t = self.type_id
        if t == TypeId.NULL:
            return None
        if t == TypeId.INT1:
            return buf[0]
        if t == TypeId.BIT:
            return buf[0] != 0
        if t == TypeId.INT2:
            return struct.unpack("<h", buf)[0]
        if t == TypeId.INT4:
            return struct.unpack("<i", buf)[0]
        if t == TypeId.DATETIM4:
            return decode_datetim4(buf)
        if t == TypeId.FLT4:
            return struct.unpack("<f", buf)[0]
        if t == TypeId.MONEY4:
            return decode_money4(buf)
        if t == TypeId.MONEY:
            return decode_money(buf)
        if t == TypeId.DATETIME:
            return decode_datetime(buf)
        if t == TypeId.FLT8:
            return struct.unpack("<d", buf)[0]
        if t == TypeId.INT8:
            return struct.unpack("<q", buf)[0]
        raise StreamError("Invalid typeid")

    def _read_bytelen(self, reader: ByteReader):
        size = reader.byte()
        if size == 0:
            return None
        buf = reader.read_full(size)
        t = self.type_id
        if t == TypeId.DATEN:
            if len(buf) != 3:
                raise StreamError("Invalid size for DATENTYPE")
            return decode_date(buf)
        if t == TypeId.TIMEN:
            return decode_time(self.scale, buf)
        if t == TypeId.DATETIME2N:
            return decode_datetime2(self.scale, buf)
        if t == TypeId.DATETIMEOFFSETN:
            return decode_datetimeoffset(self.scale, buf)
        if t == TypeId.GUID:
            return decode_guid(buf)
        if t == TypeId.INTN:
            formats = {1: "<B", 2: "<h", 4: "<i", 8: "<q"}
            if len(buf) not in formats:
                raise StreamError(f"Invalid size for INTNTYPE: {len(buf)}")
            return struct.unpack(formats[len(buf)], buf)[0]
        if t in _DECIMAL_TYPES:
            return decode_decimal(self.prec, self.scale, buf)
        if t == TypeId.BITN:
            if len(buf) != 1:
                raise StreamError("Invalid size for BITNTYPE")
            return buf[0] != 0
        if t == TypeId.FLTN:
            if len(buf) == 4:
                return struct.unpack("<f", buf)[0]
            if len(buf) == 8:
                return struct.unpack("<d", buf)[0]
            raise StreamError("Invalid size for FLTNTYPE")
        if t == TypeId.MONEYN:
            if len(buf) == 4:
                return decode_money4(buf)
            if len(buf) == 8:
                return decode_money(buf)
            raise StreamError("Invalid size for MONEYNTYPE")
        if t == TypeId.DATETIM4:
            return decode_datetim4(buf)
        if t == TypeId.DATETIME:
            return decode_datetime(buf)
        if t == TypeId.DATETIMEN:
            if len(buf) == 4:
                return decode_datetim4(buf)
            if len(buf) == 8:
                return decode_datetime(buf)
            raise StreamError("Invalid size for DATETIMENTYPE")
        if t in (TypeId.CHAR, TypeId.VARCHAR):
            return _decode_char(self.collation, buf)
        if t in (TypeId.BINARY, TypeId.VARBINARY):
            return buf
        raise StreamError("Invalid typeid")

    def _read_shortlen(self, reader: ByteReader):
        size = reader.uint16()
        if size == 0xFFFF:
            return None
        buf = reader.read_full(size)
        t = self.type_id
        if t in (TypeId.BIGVARCHAR, TypeId.BIGCHAR):
            return _decode_char(self.collation, buf)
        if t in (TypeId.BIGVARBIN, TypeId.BIGBINARY):
            return buf
        if t in (TypeId.NVARCHAR, TypeId.NCHAR):
            return decode_nchar(buf)
        if t == TypeId.UDT:
            return buf
        raise StreamError("Invalid typeid")

    def _read_longlen(self, reader: ByteReader):
        textptr_size = reader.byte()
        if textptr_size == 0:
            return None
        reader.read_full(textptr_size)
        reader.uint64()  # timestamp, ignored
        size = reader.int32()
        if size == -1:
            return None
        buf = reader.read_full(size)
        t = self.type_id
        if t == TypeId.TEXT:
            return _decode_char(self.collation, buf)
        if t == TypeId.IMAGE:
            return buf
        if t == TypeId.NTEXT:
            return decode_nchar(buf)
        raise StreamError("Invalid typeid")

    def _read_variant(self, reader: ByteReader):
        size = reader.int32()
        if size == 0:
            return None
        vartype = reader.byte()
        propbytes = reader.byte()

        def body() -> bytes:
            return reader.read_full(size - 2 - propbytes)

        if vartype == TypeId.GUID:
            return body()
        if vartype == TypeId.BIT:
            return reader.byte() != 0
        if vartype == TypeId.INT1:
            return reader.byte()
        if vartype == TypeId.INT2:
            return struct.unpack("<h", reader.read_full(2))[0]
        if vartype == TypeId.INT4:
            return reader.int32()
        if vartype == TypeId.INT8:
            return reader._int64()
        if vartype == TypeId.DATETIME:
            return decode_datetime(body())
        if vartype == TypeId.DATETIM4:
            return decode_datetim4(body())
        if vartype == TypeId.FLT4:
            return struct.unpack("<f", reader.read_full(4))[0]
        if vartype == TypeId.FLT8:
            return struct.unpack("<d", reader.read_full(8))[0]
        if vartype == TypeId.MONEY4:
            return decode_money4(body())
        if vartype == TypeId.MONEY:
            return decode_money(body())
        if vartype == TypeId.DATEN:
            return decode_date(body())
        if vartype == TypeId.TIMEN:
            scale = reader.byte()
            return decode_time(scale, body())
        if vartype == TypeId.DATETIME2N:
            scale = reader.byte()
            return decode_datetime2(scale, body())
        if vartype == TypeId.DATETIMEOFFSETN:
            scale = reader.byte()
            return decode_datetimeoffset(scale, body())
        if vartype in (TypeId.BIGVARBIN, TypeId.BIGBINARY):
            reader.uint16()  # max length, ignored
            return body()
        if vartype in (TypeId.DECIMALN, TypeId.NUMERICN):
            prec = reader.byte()
            scale = reader.byte()
            return decode_decimal(prec, scale, body())
        if vartype in (TypeId.BIGVARCHAR, TypeId.BIGCHAR):
            collation = read_collation(reader)
            reader.uint16()
            return _decode_char(collation, body())
        if vartype in (TypeId.NVARCHAR, TypeId.NCHAR):
            read_collation(reader)
            reader.uint16()
            return decode_nchar(body())
        raise StreamError("Invalid variant typeid")

    def _read_plp(self, reader: ByteReader):
        size = reader.uint64()
        if size == PLP_NULL:
            return None
        chunks = []
        while True:
            chunk_size = reader.uint32()
            if chunk_size == 0:
                break
            try:
                chunks.append(reader.read_full(chunk_size))
            except StreamError as exc:
                raise StreamError(f"Reading PLP type failed: {exc}") from exc
        buf = b"".join(chunks)
        t = self.type_id
        if t == TypeId.XML:
            return decode_nchar(buf)
        if t in (TypeId.BIGVARCHAR, TypeId.BIGCHAR, TypeId.TEXT):
            return _decode_char(self.collation, buf)
        if t in (TypeId.BIGVARBIN, TypeId.BIGBINARY, TypeId.IMAGE, TypeId.UDT):
            return buf
        if t in (TypeId.NVARCHAR, TypeId.NCHAR, TypeId.NTEXT):
            return decode_nchar(buf)
        raise StreamError("Invalid typeid")

    # writing

    def write_value(self, stream: BinaryIO, buf: bytes | None) -> None:
        """Write one encoded value; ``None`` stands for NULL where allowed."""
        if self.layout is None:
            raise ValueError("type info has no value layout")
        if self.layout == _Layout.FIXED:
            stream.write(buf or b"")
        elif self.layout == _Layout.BYTELEN:
            if self.size > 0xFF:
                raise ValueError("Invalid size for BYTELEN_TYPE")
            data = buf or b""
            _put(stream, "<B", len(data))
            stream.write(data)
        elif self.layout == _Layout.SHORTLEN:
            if buf is None:
                _put(stream, "<H", 0xFFFF)
                return
            if self.size > 0xFFFE:
                raise ValueError("Invalid size for USHORTLEN_TYPE")
            _put(stream, "<H", self.size)
            stream.write(buf)
        elif self.layout == _Layout.LONGLEN:
            _put(stream, "<B", 0x10)
            _put(stream, "<QQ", PLP_NULL, PLP_NULL)
            _put(stream, "<Q", PLP_NULL)
            _put(stream, "<I", self.size & 0xFFFFFFFF)
            stream.write(buf or b"")
        elif self.layout == _Layout.PLP:
            if buf is None:
                _put(stream, "<Q", PLP_NULL)
                return
            _put(stream, "<Q", UNKNOWN_PLP_LEN)
            if buf:
                _put(stream, "<I", len(buf))
                stream.write(buf)
            _put(stream, "<I", PLP_TERMINATOR)
        else:
            raise ValueError(f"cannot write values with layout {self.layout.value}")


def _read_var_len(ti: TypeInfo, reader: ByteReader) -> None:
    t = ti.type_id
    if t == TypeId.DATEN:
        ti.size = 3
        ti.layout = _Layout.BYTELEN
    elif t in _TIME_TYPES:
        ti.scale = reader.byte()
        if ti.scale <= 2:
            ti.size = 3
        elif ti.scale <= 4:
            ti.size = 4
        elif ti.scale <= 7:
            ti.size = 5
        else:
            raise StreamError("Invalid scale for TIME/DATETIME2/DATETIMEOFFSET type")
        if t == TypeId.DATETIME2N:
            ti.size += 3
        elif t == TypeId.DATETIMEOFFSETN:
            ti.size += 5
        ti.layout = _Layout.BYTELEN
    elif t in _BYTELEN_TYPES:
        ti.size = reader.byte()
        if t in _DECIMAL_TYPES:
            ti.prec = reader.byte()
            ti.scale = reader.byte()
        ti.layout = _Layout.BYTELEN
    elif t == TypeId.XML:
        ti.xml_info.schema_present = reader.byte()
        if ti.xml_info.schema_present != 0:
            ti.xml_info.db_name = reader.b_varchar()
            ti.xml_info.owning_schema = reader.b_varchar()
            ti.xml_info.xml_schema_collection = reader.us_varchar()
        ti.layout = _Layout.PLP
    elif t == TypeId.UDT:
        ti.size = reader.uint16()
        ti.udt_info.db_name = reader.b_varchar()
        ti.udt_info.schema_name = reader.b_varchar()
        ti.udt_info.type_name = reader.b_varchar()
        ti.udt_info.assembly_qualified_name = reader.us_varchar()
        ti.layout = _Layout.PLP
    elif t in _SHORTLEN_TYPES:
        ti.size = reader.uint16()
        if t in _COLLATED_SHORT_TYPES:
            ti.collation = read_collation(reader)
        ti.layout = _Layout.PLP if ti.size == 0xFFFF else _Layout.SHORTLEN
    elif t in _LONGLEN_TYPES:
        ti.size = reader.int32()
        if t == TypeId.VARIANT:
            ti.layout = _Layout.VARIANT
            return
        if t in (TypeId.TEXT, TypeId.NTEXT):
            ti.collation = read_collation(reader)
        for _ in range(reader.byte()):
            reader.us_varchar()  # table name parts, ignored
        ti.layout = _Layout.LONGLEN
    else:
        raise StreamError(f"Invalid type {t}")


def read_type_info(reader: ByteReader) -> TypeInfo:
    """Read a TYPE_INFO structure."""
    ti = TypeInfo(_as_type_id(reader.byte()))
    if ti.type_id in _FIXED_SIZES:
        ti.size = _FIXED_SIZES[ti.type_id]
        ti.layout = _Layout.FIXED
    else:
        _read_var_len(ti, reader)
    return ti


def _write_var_len(stream: BinaryIO, ti: TypeInfo) -> None:
    t = ti.type_id
    if t == TypeId.DATEN:
        ti.layout = _Layout.BYTELEN
    elif t in _TIME_TYPES:
        _put(stream, "<B", ti.scale)
        ti.layout = _Layout.BYTELEN
    elif t in _BYTELEN_TYPES and t != TypeId.GUID:
        if ti.size > 0xFF:
            raise ValueError("Invalid size for BYTELEN_TYPE")
        _put(stream, "<B", ti.size)
        if t in _DECIMAL_TYPES:
            _put(stream, "<BB", ti.prec, ti.scale)
        ti.layout = _Layout.BYTELEN
    elif t == TypeId.GUID:
        if ti.size not in (0x10, 0x00):
            raise ValueError("Invalid size for BYTELEN_TYPE")
        _put(stream, "<B", ti.size)
        ti.layout = _Layout.BYTELEN
    elif t in _SHORTLEN_TYPES or t in (TypeId.XML, TypeId.UDT):
        if ti.size > 8000 or ti.size == 0:
            _put(stream, "<H", 0xFFFF)
            ti.layout = _Layout.PLP
        else:
            _put(stream, "<H", ti.size)
            ti.layout = _Layout.SHORTLEN
        if t in _COLLATED_SHORT_TYPES:
            write_collation(stream, ti.collation)
        elif t == TypeId.XML:
            _put(stream, "<B", ti.xml_info.schema_present)
    elif t in _LONGLEN_TYPES:
        _put(stream, "<I", ti.size & 0xFFFFFFFF)
        write_collation(stream, ti.collation)
        ti.layout = _Layout.LONGLEN
    else:
        raise ValueError("Invalid type")


def write_type_info(stream: BinaryIO, ti: TypeInfo) -> None:
    """Write a TYPE_INFO structure and fix the layout used for its values."""
    _put(stream, "<B", ti.type_id)
    if ti.type_id in _FIXED_SIZES or ti.type_id == TypeId.TVP:
        ti.layout = _Layout.FIXED
    else:
        _write_var_len(stream, ti)
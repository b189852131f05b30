from datetime import datetime
from decimal import Decimal

import pytest

from tdstypes.metadata import (
    make_decl,
    make_precision_scale,
    make_scan_type,
    make_type_length,
    make_type_name,
)
from tdstypes.typeinfo import ByteReader, TypeId, TypeInfo, UdtInfo, read_type_info


@pytest.mark.parametrize(
    "type_id, size, expected",
    [
        (TypeId.INT8, 0, int),
        (TypeId.FLT4, 0, float),
        (TypeId.FLT8, 0, float),
        (TypeId.VARCHAR, 0, str),
        (TypeId.DATETIME, 0, datetime),
        (TypeId.DATETIM4, 0, datetime),
        (TypeId.INT1, 0, int),
        (TypeId.INT2, 0, int),
        (TypeId.INT4, 0, int),
        (TypeId.INTN, 4, int),
        (TypeId.MONEY, 8, Decimal),
        (TypeId.BIGVARBIN, 0, bytes),
        (TypeId.BITN, 1, bool),
    ],
)
def test_make_scan_type(type_id, size, expected):
    assert make_scan_type(TypeInfo(type_id, size=size)) is expected


def test_scan_type_of_variant_is_none():
    assert make_scan_type(TypeInfo(TypeId.VARIANT)) is None


def test_scan_type_invalid_intn_size():
    with pytest.raises(ValueError, match="INTNTYPE"):
        make_scan_type(TypeInfo(TypeId.INTN, size=3))


@pytest.mark.parametrize(
    "type_id, expected",
    [
        (TypeId.DATETIME, "DATETIME"),
        (TypeId.DATETIM4, "SMALLDATETIME"),
        (TypeId.BIGBINARY, "BINARY"),
    ],
)
def test_make_type_name(type_id, expected):
    assert make_type_name(TypeInfo(type_id)) == expected


def test_type_name_by_size():
    assert make_type_name(TypeInfo(TypeId.INTN, size=8)) == "BIGINT"
    assert make_type_name(TypeInfo(TypeId.MONEYN, size=4)) == "SMALLMONEY"
    assert make_type_name(TypeInfo(TypeId.DATETIMEN, size=8)) == "DATETIME"


def test_type_name_unsupported():
    with pytest.raises(ValueError):
        make_type_name(TypeInfo(TypeId.TVP))


@pytest.mark.parametrize(
    "type_id, size, variable, length",
    [
        (TypeId.DATETIME, 0, False, 0),
        (TypeId.DATETIM4, 0, False, 0),
        (TypeId.BIGVARCHAR, 0xFFFF, True, 2147483645),
        (TypeId.BIGVARCHAR, 10, True, 10),
        (TypeId.BIGBINARY, 30, True, 30),
    ],
)
def test_make_type_length(type_id, size, variable, length):
    assert make_type_length(TypeInfo(type_id, size=size)) == (length, variable)


def test_type_length_nvarchar():
    assert make_type_length(TypeInfo(TypeId.NVARCHAR, size=20)) == (10, True)
    assert make_type_length(TypeInfo(TypeId.NVARCHAR, size=0xFFFF)) == (2147483645 // 2, True)
    assert make_type_length(TypeInfo(TypeId.NTEXT)) == (1073741823, True)


def test_type_length_invalid_money_size():
    with pytest.raises(ValueError, match="MONEYN"):
        make_type_length(TypeInfo(TypeId.MONEY, size=0))


@pytest.mark.parametrize("type_id", [TypeId.DATETIME, TypeId.DATETIM4, TypeId.BIGBINARY])
def test_make_precision_scale(type_id):
    assert make_precision_scale(TypeInfo(type_id)) == (0, 0, False)


def test_precision_scale_of_decimal():
    assert make_precision_scale(TypeInfo(TypeId.DECIMALN, size=17, prec=38, scale=4)) == (38, 4, True)


@pytest.mark.parametrize(
    "expected, size, type_id",
    [
        ("varchar(max)", 0xFFFF, TypeId.VARCHAR),
        ("varchar(8000)", 8000, TypeId.VARCHAR),
        ("varchar(4001)", 4001, TypeId.VARCHAR),
        ("nvarchar(max)", 0xFFFF, TypeId.NVARCHAR),
        ("nvarchar(4000)", 8000, TypeId.NVARCHAR),
        ("nvarchar(2001)", 4002, TypeId.NVARCHAR),
        ("varbinary(max)", 0xFFFF, TypeId.BIGVARBIN),
        ("varbinary(8000)", 8000, TypeId.BIGVARBIN),
        ("varbinary(4001)", 4001, TypeId.BIGVARBIN),
    ],
)
def test_make_decl(expected, size, type_id):
    assert make_decl(TypeInfo(type_id, size=size)) == expected


def test_decl_of_null_and_scaled_types():
    assert make_decl(TypeInfo(TypeId.NULL)) == "nvarchar(1)"
    assert make_decl(TypeInfo(TypeId.DECIMALN, prec=10, scale=2)) == "decimal(10, 2)"
    assert make_decl(TypeInfo(TypeId.NUMERICN, prec=5, scale=0)) == "numeric(5, 0)"
    assert make_decl(TypeInfo(TypeId.DATETIME2N, scale=7)) == "datetime2(7)"
    assert make_decl(TypeInfo(TypeId.DATETIMEOFFSETN, scale=3)) == "datetimeoffset(3)"


def test_decl_of_tvp():
    with_schema = TypeInfo(TypeId.TVP, udt_info=UdtInfo(schema_name="dbo", type_name="Rows"))
    without_schema = TypeInfo(TypeId.TVP, udt_info=UdtInfo(type_name="Rows"))
    assert make_decl(with_schema) == "dbo.Rows READONLY"
    assert make_decl(without_schema) == "Rows READONLY"


def test_decl_invalid_sizes():
    with pytest.raises(ValueError, match="INTNTYPE"):
        make_decl(TypeInfo(TypeId.INTN, size=5))
    with pytest.raises(ValueError):
        make_decl(TypeInfo(TypeId.VARIANT))


def test_metadata_of_read_type_info():
    raw = bytes([0xE7, 0x14, 0x00, 0x09, 0x04, 0xD0, 0x00, 0x34])
    ti = read_type_info(ByteReader(raw))
    assert make_decl(ti) == "nvarchar(10)"
    assert make_type_name(ti) == "NVARCHAR"
    assert make_type_length(ti) == (10, True)
    assert make_scan_type(ti) is str


def test_metadata_of_fixed_read_type_info():
    ti = read_type_info(ByteReader(bytes([TypeId.MONEY4])))
    assert make_decl(ti) == "smallmoney"
    assert make_type_name(ti) == "SMALLMONEY"
    assert make_scan_type(ti) is Decimal
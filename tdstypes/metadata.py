"""Column metadata derived from a type description.

Covers the declaration text, the SQL type name, the length and the
precision/scale of a column, and the Python type its values decode to.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping

from tdstypes.typeinfo import TypeId, TypeInfo

MAX_VARLEN = 2147483645
_MAX_DECL_SIZE = 8000


def _sized(ti: TypeInfo, options: Mapping[int, Any], what: str) -> Any:
    """Pick the entry for the type's size, or raise for an invalid size."""
    try:
        return options[ti.size]
    except KeyError:
        raise ValueError(f"invalid size of {what}") from None


def _unsupported(func: str, ti: TypeInfo) -> ValueError:
    return ValueError(f"{func} does not support type {int(ti.type_id):#x}")


_INT_SIZES = (1, 2, 4, 8)

_SCAN_TYPES: dict[int, type | None] = {
    TypeId.INT1: int,
    TypeId.INT2: int,
    TypeId.INT4: int,
    TypeId.INT8: int,
    TypeId.FLT4: float,
    TypeId.FLT8: float,
    TypeId.BIGVARBIN: bytes,
    TypeId.VARCHAR: str,
    TypeId.NVARCHAR: str,
    TypeId.BIT: bool,
    TypeId.BITN: bool,
    TypeId.DECIMALN: Decimal,
    TypeId.NUMERICN: Decimal,
    TypeId.DATETIM4: datetime,
    TypeId.DATETIME: datetime,
    TypeId.DATETIME2N: datetime,
    TypeId.DATEN: datetime,
    TypeId.TIMEN: datetime,
    TypeId.DATETIMEOFFSETN: datetime,
    TypeId.BIGVARCHAR: str,
    TypeId.BIGCHAR: str,
    TypeId.NCHAR: str,
    TypeId.GUID: bytes,
    TypeId.XML: str,
    TypeId.TEXT: str,
    TypeId.NTEXT: str,
    TypeId.IMAGE: bytes,
    TypeId.BIGBINARY: bytes,
    TypeId.VARIANT: None,
}

_MONEY_TYPES = (TypeId.MONEY, TypeId.MONEY4, TypeId.MONEYN)


def make_scan_type(ti: TypeInfo) -> type | None:
    """Return the Python type that values of this column decode to.

    ``None`` means the type varies from value to value (sql_variant).
    """
    t = ti.type_id
    if t == TypeId.INTN:
        return _sized(ti, {size: int for size in _INT_SIZES}, "INTNTYPE")
    if t == TypeId.FLTN:
        return _sized(ti, {4: float, 8: float}, "FLTNTYPE")
    if t in _MONEY_TYPES:
        return _sized(ti, {4: Decimal, 8: Decimal}, "MONEYN")
    if t == TypeId.DATETIMEN:
        return _sized(ti, {4: datetime, 8: datetime}, "DATETIMEN")
    if t in _SCAN_TYPES:
        return _SCAN_TYPES[t]
    raise _unsupported("make_scan_type", ti)


_FIXED_DECLS = {
    TypeId.NULL: "nvarchar(1)",
    TypeId.INT1: "tinyint",
    TypeId.INT2: "smallint",
    TypeId.INT4: "int",
    TypeId.INT8: "bigint",
    TypeId.FLT4: "real",
    TypeId.FLT8: "float",
    TypeId.MONEY4: "smallmoney",
    TypeId.MONEY: "money",
    TypeId.BIT: "bit",
    TypeId.BITN: "bit",
    TypeId.DATEN: "date",
    TypeId.DATETIM4: "smalldatetime",
    TypeId.DATETIME: "datetime",
    TypeId.TIMEN: "time",
    TypeId.TEXT: "text",
    TypeId.NTEXT: "ntext",
    TypeId.GUID: "uniqueidentifier",
}


def _is_max(ti: TypeInfo) -> bool:
    return ti.size > _MAX_DECL_SIZE or ti.size == 0


def make_decl(ti: TypeInfo) -> str:
    """Return the declaration used for a parameter of this type."""
    t = ti.type_id
    if t in _FIXED_DECLS:
        return _FIXED_DECLS[t]
    if t == TypeId.BIGBINARY:
        return f"binary({ti.size})"
    if t == TypeId.INTN:
        return _sized(ti, {1: "tinyint", 2: "smallint", 4: "int", 8: "bigint"}, "INTNTYPE")
    if t == TypeId.FLTN:
        return _sized(ti, {4: "real", 8: "float"}, "FLTNTYPE")
    if t in (TypeId.DECIMAL, TypeId.DECIMALN):
        return f"decimal({ti.prec}, {ti.scale})"
    if t in (TypeId.NUMERIC, TypeId.NUMERICN):
        return f"numeric({ti.prec}, {ti.scale})"
    if t == TypeId.MONEYN:
        return _sized(ti, {4: "smallmoney", 8: "money"}, "MONEYNTYPE")
    if t == TypeId.BIGVARBIN:
        return "varbinary(max)" if _is_max(ti) else f"varbinary({ti.size})"
    if t == TypeId.NCHAR:
        return f"nchar({ti.size // 2})"
    if t in (TypeId.BIGCHAR, TypeId.CHAR):
        return f"char({ti.size})"
    if t in (TypeId.BIGVARCHAR, TypeId.VARCHAR):
        return "varchar(max)" if _is_max(ti) else f"varchar({ti.size})"
    if t == TypeId.NVARCHAR:
        return "nvarchar(max)" if _is_max(ti) else f"nvarchar({ti.size // 2})"
    if t == TypeId.DATETIMEN:
        return _sized(ti, {4: "smalldatetime", 8: "datetime"}, "DATETIMNTYPE")
    if t == TypeId.DATETIME2N:
        return f"datetime2({ti.scale})"
    if t == TypeId.DATETIMEOFFSETN:
        return f"datetimeoffset({ti.scale})"
    if t == TypeId.UDT:
        return ti.udt_info.type_name
    if t == TypeId.TVP:
        if ti.udt_info.schema_name:
            return f"{ti.udt_info.schema_name}.{ti.udt_info.type_name} READONLY"
        return f"{ti.udt_info.type_name} READONLY"
    raise _unsupported("make_decl", ti)


_TYPE_NAMES = {
    TypeId.INT1: "TINYINT",
    TypeId.INT2: "SMALLINT",
    TypeId.INT4: "INT",
    TypeId.INT8: "BIGINT",
    TypeId.FLT4: "REAL",
    TypeId.FLT8: "FLOAT",
    TypeId.BIGVARBIN: "VARBINARY",
    TypeId.VARCHAR: "VARCHAR",
    TypeId.NVARCHAR: "NVARCHAR",
    TypeId.BIT: "BIT",
    TypeId.BITN: "BIT",
    TypeId.DECIMALN: "DECIMAL",
    TypeId.NUMERICN: "DECIMAL",
    TypeId.DATETIM4: "SMALLDATETIME",
    TypeId.DATETIME: "DATETIME",
    TypeId.DATETIME2N: "DATETIME2",
    TypeId.DATEN: "DATE",
    TypeId.TIMEN: "TIME",
    TypeId.DATETIMEOFFSETN: "DATETIMEOFFSET",
    TypeId.BIGVARCHAR: "VARCHAR",
    TypeId.BIGCHAR: "CHAR",
    TypeId.NCHAR: "NCHAR",
    TypeId.GUID: "UNIQUEIDENTIFIER",
    TypeId.XML: "XML",
    TypeId.TEXT: "TEXT",
    TypeId.NTEXT: "NTEXT",
    TypeId.IMAGE: "IMAGE",
    TypeId.VARIANT: "SQL_VARIANT",
    TypeId.BIGBINARY: "BINARY",
}


def make_type_name(ti: TypeInfo) -> str:
    """Return the upper-case database type name, without a length."""
    t = ti.type_id
    if t == TypeId.INTN:
        return _sized(ti, {1: "TINYINT", 2: "SMALLINT", 4: "INT", 8: "BIGINT"}, "INTNTYPE")
    if t == TypeId.FLTN:
        return _sized(ti, {4: "REAL", 8: "FLOAT"}, "FLTNTYPE")
    if t in _MONEY_TYPES:
        return _sized(ti, {4: "SMALLMONEY", 8: "MONEY"}, "MONEYN")
    if t == TypeId.DATETIMEN:
        return _sized(ti, {4: "SMALLDATETIME", 8: "DATETIME"}, "DATETIMEN")
    if t in _TYPE_NAMES:
        return _TYPE_NAMES[t]
    raise _unsupported("make_type_name", ti)


_NOT_VARIABLE = frozenset({
    TypeId.INT1, TypeId.INT2, TypeId.INT4, TypeId.INT8, TypeId.FLT4, TypeId.FLT8,
    TypeId.BIT, TypeId.BITN, TypeId.DATETIM4, TypeId.DATETIME,
    TypeId.DATETIME2N, TypeId.DATEN, TypeId.TIMEN, TypeId.DATETIMEOFFSETN,
    TypeId.GUID, TypeId.VARIANT,
})

_FIXED_MAX_LENGTHS = {
    TypeId.XML: 1073741822,
    TypeId.TEXT: 2147483647,
    TypeId.NTEXT: 1073741823,
    TypeId.IMAGE: 2147483647,
}


def _check_sized_scalar(ti: TypeInfo) -> bool:
    """Validate the size of sized scalar types; report whether ``ti`` is one."""
    t = ti.type_id
    if t == TypeId.INTN:
        _sized(ti, {size: None for size in _INT_SIZES}, "INTNTYPE")
    elif t == TypeId.FLTN:
        _sized(ti, {4: None, 8: None}, "FLTNTYPE")
    elif t in _MONEY_TYPES:
        _sized(ti, {4: None, 8: None}, "MONEYN")
    elif t == TypeId.DATETIMEN:
        _sized(ti, {4: None, 8: None}, "DATETIMEN")
    else:
        return False
    return True


def make_type_length(ti: TypeInfo) -> tuple[int, bool]:
    """Return ``(length, is_variable)`` for the column type."""
    t = ti.type_id
    if _check_sized_scalar(ti) or t in _NOT_VARIABLE or t in (TypeId.DECIMALN, TypeId.NUMERICN):
        return 0, False
    if t in (TypeId.BIGVARBIN, TypeId.BIGVARCHAR):
        return (MAX_VARLEN if ti.size == 0xFFFF else ti.size), True
    if t in (TypeId.VARCHAR, TypeId.BIGCHAR, TypeId.BIGBINARY):
        return ti.size, True
    if t == TypeId.NVARCHAR:
        return (MAX_VARLEN // 2 if ti.size == 0xFFFF else ti.size // 2), True
    if t == TypeId.NCHAR:
        return ti.size // 2, True
    if t in _FIXED_MAX_LENGTHS:
        return _FIXED_MAX_LENGTHS[t], True
    raise _unsupported("make_type_length", ti)


_NO_PRECISION = _NOT_VARIABLE | frozenset({
    TypeId.BIGVARBIN, TypeId.VARCHAR, TypeId.BIGVARCHAR, TypeId.BIGCHAR,
    TypeId.NVARCHAR, TypeId.NCHAR, TypeId.XML, TypeId.TEXT, TypeId.NTEXT,
    TypeId.IMAGE, TypeId.BIGBINARY,
})


def make_precision_scale(ti: TypeInfo) -> tuple[int, int, bool]:
    """Return ``(precision, scale, has_precision)`` for the column type."""
    t = ti.type_id
    if t in (TypeId.DECIMALN, TypeId.NUMERICN):
        return ti.prec, ti.scale, True
    if _check_sized_scalar(ti) or t in _NO_PRECISION:
        return 0, 0, False
    raise _unsupported("make_precision_scale", ti)
# tdstypes

Encoding and decoding of the data types used by the SQL Server TDS wire
protocol, in plain Python with no dependencies outside the standard
library.

## What it covers

- `tdstypes.uniqueidentifier.UniqueIdentifier`: an immutable 16-byte GUID.
  `UniqueIdentifier.scan(value)` accepts either the 16 mixed-endian bytes
  the server sends or the 36-character text form; `value()` returns the
  wire bytes again. `str()` gives `01234567-89AB-CDEF-0123-456789ABCDEF`
  and `marshal_text()` the same text as ASCII bytes. Wrong lengths raise
  `ValueError`, other input types raise `TypeError`.
- `tdstypes.datetimes`: codecs for `smalldatetime` (`encode_datetim4`,
  `decode_datetim4`), `datetime` (`encode_datetime`, `decode_datetime`),
  `date`, `time`, `datetime2` and `datetimeoffset`, plus the helpers
  `gregorian_days` and `calc_time_size`. Encoders clamp values to the
  range the server type can hold. Decoded values are timezone-aware
  `datetime` objects (UTC, or the stored offset for `datetimeoffset`);
  digits finer than a microsecond are dropped.
- `tdstypes.typeinfo`: the TYPE_INFO rule. `TypeId` lists the type
  identifiers. `read_type_info` parses a column's type description from a
  `ByteReader` (which wraps `bytes` or a binary stream), and
  `TypeInfo.read_value` then decodes one value of that column, with
  `None` for NULL. `write_type_info` and `TypeInfo.write_value` produce
  the same framing for outgoing values. Also exported: `read_collation`,
  `write_collation`, `decode_money`, `decode_money4`, `decode_decimal`
  (all returning `Decimal`), `decode_guid` and `decode_nchar`. A
  malformed stream raises `StreamError`; an impossible type description
  passed for writing raises `ValueError`.
- `tdstypes.metadata`: column metadata in SQL terms. `make_decl` gives
  the declaration (`nvarchar(max)`, `decimal(10, 2)`, ...),
  `make_type_name` the upper-case type name, `make_type_length` a
  `(length, is_variable)` pair, `make_precision_scale` a
  `(precision, scale, has_precision)` triple, and `make_scan_type` the
  Python type a value decodes to (`None` for `sql_variant`). Types or
  sizes they do not handle raise `ValueError`.

## Example

```python
from tdstypes.uniqueidentifier import UniqueIdentifier
from tdstypes.typeinfo import ByteReader, read_type_info
from tdstypes.metadata import make_decl

guid = UniqueIdentifier.scan("01234567-89AB-CDEF-0123-456789ABCDEF")
wire = guid.value()
assert UniqueIdentifier.scan(wire) == guid

# an INTN column of size 4, followed by the value 7
reader = ByteReader(bytes([0x26, 4, 4, 7, 0, 0, 0]))
ti = read_type_info(reader)
assert make_decl(ti) == "int"
assert ti.read_value(reader) == 7
```

## What it does not do

This is a library of type codecs only. It does not open connections,
log in, frame TDS packets, send queries or parse token streams; a caller
supplies the bytes and handles the transport. Single-byte text columns
are always decoded as Windows-1252, whatever their collation says.

## Tests

```
pip install -e .[test]
pytest
```
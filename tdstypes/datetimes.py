"""Encoding and decoding of the date and time wire formats.

Decoded values are ``datetime`` objects; sub-microsecond digits are
truncated because ``datetime`` cannot hold nanoseconds.
"""

from __future__ import annotations

import struct
from datetime import datetime, timedelta, timezone

LOCATION = timezone.utc

_NS_PER_SECOND = 1_000_000_000
_DAY_NS = 86_400 * _NS_PER_SECOND
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1


def gregorian_days(year: int, yearday: int) -> int:
    """Return days since 1 January 0001 in the proleptic Gregorian calendar."""
    year0 = year - 1
    return year0 * 365 + year0 // 4 - year0 // 100 + year0 // 400 + yearday - 1


def calc_time_size(scale: int) -> int:
    """Return the size in bytes of a time field with the given scale."""
    if scale <= 2:
        return 3
    if scale <= 4:
        return 4
    return 5


def _nanosecond(value: datetime) -> int:
    return value.microsecond * 1000


def _yearday(value: datetime) -> int:
    return value.timetuple().tm_yday


def _seconds_of_day(value: datetime) -> int:
    return value.second + value.minute * 60 + value.hour * 3600


def _date_time2(value: datetime) -> tuple[int, int, int]:
    """Split a value into days since 0001-01-01, seconds of day and nanoseconds."""
    days = gregorian_days(value.year, _yearday(value))
    seconds = _seconds_of_day(value)
    ns = _nanosecond(value)
    if days < 0:
        days, seconds, ns = 0, 0, 0
    max_days = gregorian_days(9999, 365)
    if days > max_days:
        days = max_days
        seconds = 59 + 59 * 60 + 23 * 3600
        ns = 999_999_900
    return days, seconds, ns


def _at(base: datetime, days: int, seconds: int, ns: int) -> datetime:
    return base + timedelta(days=days, seconds=seconds, microseconds=ns // 1000)


def decode_datetim4(buf: bytes) -> datetime:
    """Decode a smalldatetime: days and minutes since 1900-01-01."""
    days, mins = struct.unpack_from("<HH", buf)
    return datetime(1900, 1, 1, tzinfo=LOCATION) + timedelta(days=days, minutes=mins)


def encode_datetim4(value: datetime) -> bytes:
    """Encode a smalldatetime; values before 1900 become zero."""
    ref = datetime(1900, 1, 1, tzinfo=timezone.utc)
    instant = value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
    delta = instant - ref
    total_ns = (delta.days * 86_400 + delta.seconds) * _NS_PER_SECOND + delta.microseconds * 1000
    total_ns = max(_INT64_MIN, min(_INT64_MAX, total_ns))
    whole_days = abs(total_ns) // _DAY_NS
    days = whole_days if total_ns >= 0 else -whole_days
    mins = value.hour * 60 + value.minute
    if days < 0:
        days, mins = 0, 0
    return struct.pack("<HH", days & 0xFFFF, mins & 0xFFFF)


def encode_datetime(value: datetime) -> bytes:
    """Encode a datetime: days since 1900 and 1/300 second ticks, clamped to range."""
    basedays = gregorian_days(1900, 1)
    days = gregorian_days(value.year, _yearday(value)) - basedays
    tm = 300 * _seconds_of_day(value) + _nanosecond(value) * 300 // _NS_PER_SECOND
    mindays = gregorian_days(1753, 1) - basedays
    maxdays = gregorian_days(9999, 365) - basedays
    if days < mindays:
        days, tm = mindays, 0
    if days > maxdays:
        days = maxdays
        tm = (23 * 3600 + 59 * 60 + 59) * 300 + 299
    return struct.pack("<II", days & 0xFFFFFFFF, tm & 0xFFFFFFFF)


def decode_datetime(buf: bytes) -> datetime:
    """Decode a datetime value."""
    days, tm = struct.unpack_from("<iI", buf)
    ns = int((tm % 300) / 0.3 + 0.5) * 1_000_000
    secs = tm // 300
    return _at(datetime(1900, 1, 1, tzinfo=LOCATION), days, secs, ns)


def _decode_date_int(buf: bytes) -> int:
    return int.from_bytes(bytes(buf[:3]), "little")


def decode_date(buf: bytes) -> datetime:
    """Decode a date: three bytes of days since 0001-01-01."""
    return datetime(1, 1, 1, tzinfo=LOCATION) + timedelta(days=_decode_date_int(buf))


def encode_date(value: datetime) -> bytes:
    """Encode a date as three bytes of days since 0001-01-01."""
    days, _, _ = _date_time2(value)
    return (days & 0xFFFFFF).to_bytes(3, "little")


def _decode_time_int(scale: int, buf: bytes) -> tuple[int, int]:
    acc = int.from_bytes(bytes(buf), "little")
    if scale < 7:
        acc *= 10 ** (7 - scale)
    return divmod(acc * 100, _NS_PER_SECOND)


def _encode_time_int(seconds: int, ns: int, scale: int, size: int) -> bytes:
    if not 0 <= scale <= 9:
        raise ValueError(f"invalid time scale: {scale}")
    total = seconds * _NS_PER_SECOND + ns
    ticks = total // 10 ** (9 - scale) if total >= 0 else -(-total // 10 ** (9 - scale))
    return (ticks & ((1 << (8 * size)) - 1)).to_bytes(size, "little")


def decode_time(scale: int, buf: bytes) -> datetime:
    """Decode a time value; the date part is 0001-01-01."""
    sec, ns = _decode_time_int(scale, buf)
    return _at(datetime(1, 1, 1, tzinfo=LOCATION), 0, sec, ns)


def encode_time(hour: int, minute: int, second: int, ns: int, scale: int) -> bytes:
    """Encode a time of day with the given fractional-second scale."""
    seconds = hour * 3600 + minute * 60 + second
    return _encode_time_int(seconds, ns, scale, calc_time_size(scale))


def decode_datetime2(scale: int, buf: bytes) -> datetime:
    """Decode a datetime2: time part followed by three date bytes."""
    timesize = len(buf) - 3
    sec, ns = _decode_time_int(scale, buf[:timesize])
    days = _decode_date_int(buf[timesize:])
    return _at(datetime(1, 1, 1, tzinfo=LOCATION), days, sec, ns)


def encode_datetime2(value: datetime, scale: int) -> bytes:
    """Encode a datetime2 with the given fractional-second scale."""
    days, seconds, ns = _date_time2(value)
    timesize = calc_time_size(scale)
    return _encode_time_int(seconds, ns, scale, timesize) + (days & 0xFFFFFF).to_bytes(3, "little")


def decode_datetimeoffset(scale: int, buf: bytes) -> datetime:
    """Decode a datetimeoffset: UTC time, UTC date and offset in minutes."""
    timesize = len(buf) - 5
    sec, ns = _decode_time_int(scale, buf[:timesize])
    days = _decode_date_int(buf[timesize:timesize + 3])
    (offset,) = struct.unpack_from("<h", buf, timesize + 3)
    zone = timezone(timedelta(minutes=offset))
    utc = _at(datetime(1, 1, 1, tzinfo=timezone.utc), days, sec, ns)
    return utc.astimezone(zone)


def encode_datetimeoffset(value: datetime, scale: int) -> bytes:
    """Encode a datetimeoffset; naive values are taken as UTC."""
    timesize = calc_time_size(scale)
    if value.tzinfo is None:
        utc_value = value
        offset_seconds = 0
    else:
        utc_value = value.astimezone(timezone.utc)
        offset = value.utcoffset() or timedelta(0)
        offset_seconds = int(offset.total_seconds())
    days, seconds, ns = _date_time2(utc_value)
    minutes = abs(offset_seconds) // 60
    if offset_seconds < 0:
        minutes = -minutes
    return (
        _encode_time_int(seconds, ns, scale, timesize)
        + (days & 0xFFFFFF).to_bytes(3, "little")
        + (minutes & 0xFFFF).to_bytes(2, "little")
    )
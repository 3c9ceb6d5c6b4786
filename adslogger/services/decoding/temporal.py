"""
Temporal Decoders

Formats IEC 61131-3 TIME, LTIME, TIME_OF_DAY, DATE and DATE_AND_TIME
payloads as strings.

Layouts (little-endian, unsigned):
    TIME          4 bytes  milliseconds          -> DD:HH:MM:SS.mmm
    TIME_OF_DAY   4 bytes  milliseconds          -> HH:MM:SS.mmm
    LTIME         8 bytes  nanoseconds           -> DD:HH:MM:SS.mmm.uuu
    DATE          4 bytes  seconds since epoch   -> YYYY-MM-DD
    DATE_AND_TIME 4 bytes  seconds since epoch   -> YYYY-MM-DD HH:MM:SS
"""

import struct
from datetime import datetime, timedelta, timezone

from adslogger.common.exceptions import DecodeError, TruncatedBufferError

from .types import TemporalKind

UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

MS_PER_SECOND = 1_000
MS_PER_MINUTE = 60 * MS_PER_SECOND
MS_PER_HOUR = 60 * MS_PER_MINUTE
MS_PER_DAY = 24 * MS_PER_HOUR
NS_PER_US = 1_000
NS_PER_MS = 1_000_000

DATE_FORMAT = "%Y-%m-%d"
DATE_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def _read(fmt: str, payload: bytes, type_name: str) -> int:
    size = struct.calcsize(fmt)
    if len(payload) < size:
        raise TruncatedBufferError(size, len(payload), type_name)
    return struct.unpack_from(fmt, payload, 0)[0]


def _split_milliseconds(total_ms: int) -> tuple[int, int, int, int, int]:
    """(days, hours, minutes, seconds, milliseconds)"""
    days, rest = divmod(total_ms, MS_PER_DAY)
    hours, rest = divmod(rest, MS_PER_HOUR)
    minutes, rest = divmod(rest, MS_PER_MINUTE)
    seconds, millis = divmod(rest, MS_PER_SECOND)
    return days, hours, minutes, seconds, millis


def format_time(total_ms: int) -> str:
    days, hours, minutes, seconds, millis = _split_milliseconds(total_ms)
    return f"{days:02d}:{hours:02d}:{minutes:02d}:{seconds:02d}.{millis:03d}"


def format_time_of_day(total_ms: int) -> str:
    _, hours, minutes, seconds, millis = _split_milliseconds(total_ms)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}.{millis:03d}"


def format_ltime(total_ns: int) -> str:
    # Last group: microsecond digits within the millisecond
    micros = (total_ns // NS_PER_US) % 1_000
    return f"{format_time(total_ns // NS_PER_MS)}.{micros:03d}"


def to_datetime(seconds: int) -> datetime:
    """Seconds since the Unix epoch as an aware UTC datetime"""
    try:
        return UNIX_EPOCH + timedelta(seconds=seconds)
    except OverflowError as e:
        raise DecodeError(f"date value {seconds} out of range: {e}")


def decode_temporal(payload: bytes, kind: TemporalKind, type_name: str = "") -> str:
    """
    Decode a temporal payload to its string form.

    Raises:
        TruncatedBufferError: payload shorter than the layout requires
    """
    type_name = type_name or kind.name

    if kind == TemporalKind.LTIME:
        return format_ltime(_read("<Q", payload, type_name))

    if kind == TemporalKind.TIME:
        return format_time(_read("<I", payload, type_name))

    if kind == TemporalKind.TIME_OF_DAY:
        return format_time_of_day(_read("<I", payload, type_name))

    if kind == TemporalKind.DATE:
        return to_datetime(_read("<I", payload, type_name)).strftime(DATE_FORMAT)

    if kind == TemporalKind.DATE_AND_TIME:
        return to_datetime(_read("<I", payload, type_name)).strftime(DATE_TIME_FORMAT)

    raise DecodeError(f"no temporal decoder for {kind!r}", type_name)

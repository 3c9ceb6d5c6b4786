"""
Value Decoder

Turns a raw notification payload into a DecodedValue according to the
variable's decode rule. Owns all binary layout knowledge; temporal layouts
live in temporal.py.
"""

import struct

from adslogger.common.exceptions import DecodeError, MissingTerminatorError, TruncatedBufferError

from .temporal import decode_temporal
from .types import AdsDataType, DecodeRule, resolve_rule
from .values import DecodedValue, ValueKind

# Wire type -> (struct format, value kind)
FIXED_WIDTH_LAYOUTS: dict[AdsDataType, tuple[str, ValueKind]] = {
    AdsDataType.INT8: ("<b", ValueKind.INT8),
    AdsDataType.UINT8: ("<B", ValueKind.UINT8),
    AdsDataType.INT16: ("<h", ValueKind.INT16),
    AdsDataType.UINT16: ("<H", ValueKind.UINT16),
    AdsDataType.INT32: ("<i", ValueKind.INT32),
    AdsDataType.UINT32: ("<I", ValueKind.UINT32),
    AdsDataType.INT64: ("<q", ValueKind.INT64),
    AdsDataType.UINT64: ("<Q", ValueKind.UINT64),
    AdsDataType.REAL32: ("<f", ValueKind.REAL32),
    AdsDataType.REAL64: ("<d", ValueKind.REAL64),
}


def _unpack(fmt: str, payload: bytes, type_name: str):
    size = struct.calcsize(fmt)
    if len(payload) < size:
        raise TruncatedBufferError(size, len(payload), type_name)
    return struct.unpack_from(fmt, payload, 0)[0]


def _decode_string(payload: bytes, type_name: str) -> str:
    end = payload.find(b"\x00")
    if end < 0:
        raise MissingTerminatorError(len(payload), type_name)
    try:
        return payload[:end].decode("ascii")
    except UnicodeDecodeError as e:
        raise DecodeError(f"string is not ASCII: {e}", type_name)


def decode_rule(payload: bytes, rule: DecodeRule) -> DecodedValue | None:
    """
    Decode a payload with a pre-resolved rule.

    Args:
        payload: Raw notification bytes
        rule: Rule resolved for the variable at registration

    Returns:
        DecodedValue, or None when the type is not decodable

    Raises:
        DecodeError: Truncated buffer, missing string terminator,
            invalid string bytes or out of range temporal value
    """
    payload = bytes(payload)
    type_name = rule.type_name or rule.wire_type.name

    # Temporal names win over the wire type
    if rule.temporal_kind is not None:
        return DecodedValue(
            ValueKind.TEMPORAL,
            decode_temporal(payload, rule.temporal_kind, type_name),
        )

    wire_type = rule.wire_type

    if wire_type == AdsDataType.BIT:
        if not payload:
            raise TruncatedBufferError(1, 0, type_name)
        return DecodedValue(ValueKind.BOOL, payload[0] != 0)

    layout = FIXED_WIDTH_LAYOUTS.get(wire_type)
    if layout is not None:
        fmt, kind = layout
        return DecodedValue(kind, _unpack(fmt, payload, type_name))

    if wire_type == AdsDataType.STRING:
        return DecodedValue(ValueKind.STRING, _decode_string(payload, type_name))

    if wire_type == AdsDataType.BIGTYPE:
        if rule.is_pointer:
            # Address surrogate, not the dereferenced value
            return DecodedValue(ValueKind.POINTER, _unpack("<I", payload, type_name))
        return None

    return None


def decode(
    payload: bytes,
    wire_type: "AdsDataType | int | str | None",
    type_name: str | None,
) -> DecodedValue | None:
    """Decode a payload, resolving the rule from wire type and type name"""
    return decode_rule(payload, resolve_rule(wire_type, type_name))

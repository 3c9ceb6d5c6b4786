"""
Decoding Service

Responsibilities:
- Classify PLC type names and ADS wire types (type catalog)
- Decode raw notification payloads into typed values
- Format IEC date/time payloads
"""

from .decoder import decode, decode_rule
from .types import (
    AdsDataType,
    DecodeRule,
    TemporalKind,
    classify,
    resolve_rule,
    resolve_wire_type,
    unsupported_reason,
)
from .values import DecodedValue, ValueKind

__all__ = [
    "decode",
    "decode_rule",
    "AdsDataType",
    "DecodeRule",
    "TemporalKind",
    "classify",
    "resolve_rule",
    "resolve_wire_type",
    "unsupported_reason",
    "DecodedValue",
    "ValueKind",
]

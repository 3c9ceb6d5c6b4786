"""
Decoded Values

Tagged value produced by the decoder for every notification.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ValueKind(str, Enum):
    """Kinds of decoded values"""
    BOOL = "bool"
    INT8 = "int8"
    UINT8 = "uint8"
    INT16 = "int16"
    UINT16 = "uint16"
    INT32 = "int32"
    UINT32 = "uint32"
    INT64 = "int64"
    UINT64 = "uint64"
    REAL32 = "real32"
    REAL64 = "real64"
    STRING = "string"
    POINTER = "pointer"
    TEMPORAL = "temporal"


INTEGER_KINDS = frozenset((
    ValueKind.INT8, ValueKind.UINT8,
    ValueKind.INT16, ValueKind.UINT16,
    ValueKind.INT32, ValueKind.UINT32,
    ValueKind.INT64, ValueKind.UINT64,
))
FLOAT_KINDS = frozenset((ValueKind.REAL32, ValueKind.REAL64))

# REAL32 carries ~7 significant decimal digits
REAL32_FORMAT = ".7g"


@dataclass(frozen=True)
class DecodedValue:
    """A typed value decoded from a notification payload"""
    kind: ValueKind
    value: Any

    @property
    def is_numeric(self) -> bool:
        """Integers and floats; booleans, strings, pointers and temporals are not"""
        return self.kind in INTEGER_KINDS or self.kind in FLOAT_KINDS

    @property
    def is_float(self) -> bool:
        return self.kind in FLOAT_KINDS

    def as_float(self) -> float:
        return float(self.value)

    def with_value(self, value: Any) -> "DecodedValue":
        return DecodedValue(self.kind, value)

    def __str__(self) -> str:
        if self.kind == ValueKind.REAL32:
            return format(self.value, REAL32_FORMAT)
        if self.kind == ValueKind.REAL64:
            return repr(float(self.value))
        return str(self.value)

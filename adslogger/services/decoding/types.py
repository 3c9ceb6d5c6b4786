"""
Type Catalog

Maps an ADS wire-type identifier plus a PLC type name to a decoding rule.
IEC 61131-3 date/time names are classified separately from the primitive
wire types and always take precedence over the wire-type id.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum


class AdsDataType(IntEnum):
    """ADS data type identifiers (ADST_*)"""
    VOID = 0
    INT16 = 2
    INT32 = 3
    REAL32 = 4
    REAL64 = 5
    VARIANT = 12
    MAXTYPES = 13
    INT8 = 16
    UINT8 = 17
    UINT16 = 18
    UINT32 = 19
    INT64 = 20
    UINT64 = 21
    STRING = 30
    WSTRING = 31
    REAL80 = 32
    BIT = 33
    BIGTYPE = 65


class TemporalKind(str, Enum):
    """PLCopen date and time kinds"""
    TIME = "time"                    # 32-bit milliseconds duration
    LTIME = "ltime"                  # 64-bit nanoseconds duration
    DATE = "date"
    DATE_AND_TIME = "date_and_time"
    TIME_OF_DAY = "time_of_day"


TEMPORAL_TYPE_NAMES: dict[str, TemporalKind] = {
    "TIME": TemporalKind.TIME,
    "LTIME": TemporalKind.LTIME,
    "DATE": TemporalKind.DATE,
    "DT": TemporalKind.DATE_AND_TIME,
    "DATE_AND_TIME": TemporalKind.DATE_AND_TIME,
    "TOD": TemporalKind.TIME_OF_DAY,
    "TIME_OF_DAY": TemporalKind.TIME_OF_DAY,
}

# Recognized PLCopen names without a decoder
UNSUPPORTED_TEMPORAL_NAMES = frozenset((
    "LDATE",
    "LDATE_AND_TIME",
    "LTIME_OF_DAY",
))

WIDE_STRING_MARKER = "WSTRING"
POINTER_MARKER = "POINTER"

# Fixed-width wire types and their payload size in bytes
WIRE_TYPE_SIZES: dict[AdsDataType, int] = {
    AdsDataType.BIT: 1,
    AdsDataType.INT8: 1,
    AdsDataType.UINT8: 1,
    AdsDataType.INT16: 2,
    AdsDataType.UINT16: 2,
    AdsDataType.INT32: 4,
    AdsDataType.UINT32: 4,
    AdsDataType.INT64: 8,
    AdsDataType.UINT64: 8,
    AdsDataType.REAL32: 4,
    AdsDataType.REAL64: 8,
}


def classify(type_name: str | None) -> TemporalKind | None:
    """Temporal kind for a PLC type name, None for everything else"""
    if not type_name:
        return None
    return TEMPORAL_TYPE_NAMES.get(type_name)


def unsupported_reason(type_name: str | None) -> str | None:
    """
    Reason a type name can never be logged, or None if it can.

    Long date variants and wide strings are known types without a decoder;
    variables of these types are skipped at registration.
    """
    if not type_name:
        return None
    if type_name in UNSUPPORTED_TEMPORAL_NAMES:
        return "long date/time types are not supported"
    if WIDE_STRING_MARKER in type_name:
        return "wide strings are not supported"
    return None


def resolve_wire_type(type_id: "AdsDataType | int | str | None") -> AdsDataType:
    """
    Resolve a wire-type identifier.

    Accepts the enum itself, its integer value, or a string holding either
    the name (case-insensitive, "ADST_" prefix optional) or the decimal id.
    Unknown identifiers resolve to VOID.
    """
    if isinstance(type_id, AdsDataType):
        return type_id

    if isinstance(type_id, int) and not isinstance(type_id, bool):
        try:
            return AdsDataType(type_id)
        except ValueError:
            return AdsDataType.VOID

    if not isinstance(type_id, str):
        return AdsDataType.VOID

    text = type_id.strip()
    if text.lstrip("-").isdigit():
        return resolve_wire_type(int(text))

    name = text.upper()
    if name.startswith("ADST_"):
        name = name[len("ADST_"):]
    return AdsDataType.__members__.get(name, AdsDataType.VOID)


@dataclass(frozen=True)
class DecodeRule:
    """Decoding rule resolved once per variable"""
    wire_type: AdsDataType
    type_name: str = ""
    temporal_kind: TemporalKind | None = None

    @property
    def is_pointer(self) -> bool:
        return self.wire_type == AdsDataType.BIGTYPE and POINTER_MARKER in self.type_name

    @property
    def can_decode(self) -> bool:
        """False when every payload of this rule decodes to None"""
        if self.temporal_kind is not None:
            return True
        if self.wire_type == AdsDataType.BIGTYPE:
            return self.is_pointer
        return self.wire_type in WIRE_TYPE_SIZES or self.wire_type == AdsDataType.STRING


def resolve_rule(type_id: "AdsDataType | int | str | None", type_name: str | None) -> DecodeRule:
    """Resolve the (wire type, temporal kind) pair for a variable"""
    type_name = type_name or ""
    return DecodeRule(
        wire_type=resolve_wire_type(type_id),
        type_name=type_name,
        temporal_kind=classify(type_name),
    )

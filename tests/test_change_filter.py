import math
import struct

from adslogger.services.decoding.values import DecodedValue, ValueKind
from adslogger.services.filtering.change_filter import ChangeFilter, exceeds_threshold, truncate_decimals
from adslogger.services.filtering.registry import VariableSpec


def real64(value):
    return DecodedValue(ValueKind.REAL64, value)


def real32(value):
    # Round trip through single precision like a REAL payload
    return DecodedValue(ValueKind.REAL32, struct.unpack("<f", struct.pack("<f", value))[0])


def run_filter(spec, values):
    change_filter = ChangeFilter()
    logged = []
    for value in values:
        admission = change_filter.admit(spec, value)
        if admission.log:
            logged.append(admission.value.value)
    return logged


def test_threshold_suppresses_small_changes():
    spec = VariableSpec("MAIN.rValue", threshold=0.5)
    logged = run_filter(spec, [real64(1.0), real64(1.2), real64(1.6), real64(1.6)])

    assert logged == [1.0, 1.6]
    assert spec.last_known_value.value == 1.6


def test_threshold_compares_against_last_logged_value():
    spec = VariableSpec("MAIN.rValue", threshold=1.0)
    # 0.6 is rejected, so 1.2 is compared with 0.0 rather than 0.6
    assert run_filter(spec, [real64(0.0), real64(0.6), real64(1.2)]) == [0.0, 1.2]


def test_change_equal_to_threshold_is_logged():
    spec = VariableSpec("MAIN.iValue", threshold=2)
    values = [DecodedValue(ValueKind.INT16, v) for v in (10, 11, 12, 13)]
    assert run_filter(spec, values) == [10, 12]


def test_first_observation_is_always_logged():
    spec = VariableSpec("MAIN.rValue", threshold=1e9)
    assert run_filter(spec, [real64(5.0)]) == [5.0]


def test_no_threshold_logs_every_notification():
    spec = VariableSpec("MAIN.rValue")
    assert run_filter(spec, [real64(1.0), real64(1.0), real64(1.0)]) == [1.0, 1.0, 1.0]


def test_decimal_places_truncate():
    spec = VariableSpec("MAIN.rValue", decimal_places=2)
    admission = ChangeFilter().admit(spec, real64(3.14159))

    assert admission.log
    assert admission.value.value == 3.14
    assert str(admission.value) == "3.14"
    assert spec.last_known_value.value == 3.14


def test_decimal_places_do_not_round():
    spec = VariableSpec("MAIN.rValue", decimal_places=2)
    assert ChangeFilter().admit(spec, real64(2.999)).value.value == 2.99
    assert ChangeFilter().admit(spec, real64(-2.999)).value.value == -2.99


def test_real32_truncation_uses_single_precision_text():
    value = truncate_decimals(real32(3.14159), 2)
    assert value.kind is ValueKind.REAL32
    assert str(value) == "3.14"


def test_truncation_of_small_values_avoids_exponent():
    assert truncate_decimals(real64(1.2345e-05), 6).value == 1.2e-05


def test_zero_decimal_places():
    assert truncate_decimals(real64(3.7), 0).value == 3.0


def test_short_values_unchanged():
    value = real64(1.5)
    assert truncate_decimals(value, 3) is value


def test_non_finite_values_unchanged():
    assert math.isinf(truncate_decimals(real64(float("inf")), 2).value)
    assert math.isnan(truncate_decimals(real64(float("nan")), 2).value)


def test_decimal_places_ignore_integers():
    spec = VariableSpec("MAIN.iValue", decimal_places=0)
    admission = ChangeFilter().admit(spec, DecodedValue(ValueKind.INT32, 12345))
    assert admission.value.value == 12345


def test_truncation_happens_before_threshold():
    spec = VariableSpec("MAIN.rValue", decimal_places=1, threshold=0.1)
    # 1.09 -> 1.0, which equals the previous value
    assert run_filter(spec, [real64(1.0), real64(1.09), real64(1.15)]) == [1.0, 1.1]


def test_non_numeric_values_always_logged():
    spec = VariableSpec("MAIN.xValue", threshold=10.0, decimal_places=1)
    values = [DecodedValue(ValueKind.BOOL, True)] * 3
    assert run_filter(spec, values) == [True, True, True]

    spec = VariableSpec("MAIN.sValue", threshold=10.0)
    values = [DecodedValue(ValueKind.STRING, "a"), DecodedValue(ValueKind.STRING, "a")]
    assert run_filter(spec, values) == ["a", "a"]
    assert spec.last_known_value.value == "a"


def test_temporal_and_pointer_values_bypass_threshold():
    spec = VariableSpec("MAIN.tValue", threshold=1.0)
    values = [
        DecodedValue(ValueKind.TEMPORAL, "00:00:00:01.000"),
        DecodedValue(ValueKind.TEMPORAL, "00:00:00:01.000"),
        DecodedValue(ValueKind.POINTER, 4096),
    ]
    assert len(run_filter(spec, values)) == 3


def test_exceeds_threshold_mixes_widths():
    small = DecodedValue(ValueKind.UINT8, 200)
    large = DecodedValue(ValueKind.INT64, 195)
    assert exceeds_threshold(small, large, 5)
    assert not exceeds_threshold(small, real32(199.5), 1)


def test_negative_values_truncated_to_zero_lose_their_sign():
    value = truncate_decimals(real64(-0.001), 2)
    assert value.value == 0.0
    assert math.copysign(1.0, value.value) == 1.0
    assert str(value) == "0.0"

    assert str(truncate_decimals(real32(-0.0004), 3)) == "0"

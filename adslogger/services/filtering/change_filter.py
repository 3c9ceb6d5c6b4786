"""
Change Filter

Decides whether a decoded value is significant enough to log.

Rules, in order:
1. Non-numeric values (bool, string, pointer, date/time) are always logged.
2. Floats are truncated (not rounded) to the configured decimal places.
3. Without a threshold, or on the first observation, the value is logged.
4. Otherwise the value is logged only if it moved at least `threshold`
   away from the last *logged* value.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from adslogger.common.logging_setup import get_service_logger
from adslogger.services.decoding.values import REAL32_FORMAT, DecodedValue, ValueKind

from .registry import VariableSpec

logger = get_service_logger("filtering.change")

DECIMAL_SEPARATOR = "."


@dataclass(frozen=True)
class Admission:
    """Filter decision and the canonical (possibly truncated) value"""
    log: bool
    value: DecodedValue


def _positional_text(value: DecodedValue) -> str:
    """Invariant, non-scientific rendering of a float value"""
    text = format(value.value, REAL32_FORMAT) if value.kind == ValueKind.REAL32 else repr(float(value.value))
    try:
        return format(Decimal(text), "f")
    except InvalidOperation:
        return text


def truncate_decimals(value: DecodedValue, decimal_places: int) -> DecodedValue:
    """
    Truncate a float value to decimal_places by cutting its text at the
    decimal separator and re-parsing. Values that cannot be re-parsed, and
    non-float values, are returned unchanged.
    """
    if not value.is_float:
        return value

    text = _positional_text(value)
    separator_index = text.find(DECIMAL_SEPARATOR)
    if separator_index < 0 or len(text) - separator_index - 1 <= decimal_places:
        return value

    truncated = text[:separator_index + decimal_places + 1].rstrip(DECIMAL_SEPARATOR)
    try:
        parsed = float(truncated)
    except ValueError:
        return value
    # "-0.00" after cutting -0.001
    return value.with_value(0.0 if parsed == 0 else parsed)


def exceeds_threshold(candidate: DecodedValue, last: DecodedValue, threshold: float) -> bool:
    """Compare any integer or float widths through a common float"""
    return abs(candidate.as_float() - last.as_float()) >= threshold


class ChangeFilter:
    """
    Per-variable change detection.

    admit() is the single place where a VariableSpec's last known value
    changes. Calls for one variable must be serialized by the caller.
    """

    def admit(self, spec: VariableSpec, value: DecodedValue) -> Admission:
        """
        Decide whether value should be logged for spec.

        Args:
            spec: Variable spec (updated in place on admission)
            value: Freshly decoded value

        Returns:
            Admission with the canonical value to log
        """
        if not value.is_numeric:
            spec.last_known_value = value
            return Admission(True, value)

        candidate = value
        if spec.decimal_places is not None and value.is_float:
            candidate = truncate_decimals(value, spec.decimal_places)

        last = spec.last_known_value
        if spec.threshold is None or last is None or not last.is_numeric:
            spec.last_known_value = candidate
            return Admission(True, candidate)

        if exceeds_threshold(candidate, last, spec.threshold):
            spec.last_known_value = candidate
            return Admission(True, candidate)

        logger.debug(
            f"{spec.symbol_path}: change {candidate} vs {last} below threshold {spec.threshold}"
        )
        return Admission(False, candidate)

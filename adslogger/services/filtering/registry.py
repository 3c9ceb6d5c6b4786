"""
Variable Registry

Indexed table of configured variables (symbol path -> VariableSpec).
Symbol paths are matched case-insensitively. Each spec caches the decode
rule resolved when the variable is registered with the controller, and
carries the last logged value used by the change filter.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator

from adslogger.common.config import VariableConfig
from adslogger.common.exceptions import RegistrationError, UnsupportedTypeError
from adslogger.common.logging_setup import get_service_logger, log_variable_skipped
from adslogger.services.decoding.types import (
    AdsDataType,
    DecodeRule,
    resolve_rule,
    unsupported_reason,
)
from adslogger.services.decoding.values import DecodedValue

logger = get_service_logger("filtering.registry")


@dataclass
class VariableSpec:
    """Configuration and change-detection state of one variable"""
    symbol_path: str
    decimal_places: int | None = None
    threshold: float | None = None
    rule: DecodeRule | None = None
    last_known_value: DecodedValue | None = None

    @property
    def key(self) -> str:
        return self.symbol_path.casefold()

    @property
    def is_registered(self) -> bool:
        return self.rule is not None

    @classmethod
    def from_config(cls, config: VariableConfig) -> "VariableSpec":
        return cls(
            symbol_path=config.symbol_path,
            decimal_places=config.decimal_places,
            threshold=config.threshold,
        )


class VariableRegistry:
    """
    Table of variable specs.

    Specs are created once from configuration and never removed. Only
    ChangeFilter.admit() mutates last_known_value.
    """

    def __init__(self, variables: Iterable[VariableConfig] = ()):
        self._specs: dict[str, VariableSpec] = {}
        self._skipped: set[str] = set()

        for config in variables:
            spec = VariableSpec.from_config(config)
            if spec.key in self._specs:
                logger.debug(f"Ignoring duplicate variable {config.symbol_path}")
                continue
            self._specs[spec.key] = spec

    def __len__(self) -> int:
        return len(self._specs)

    def __iter__(self) -> Iterator[VariableSpec]:
        return iter(self._specs.values())

    def __contains__(self, symbol_path: str) -> bool:
        return symbol_path.casefold() in self._specs

    def get(self, symbol_path: str) -> VariableSpec | None:
        """Look up a spec by symbol path (case-insensitive)"""
        return self._specs.get(symbol_path.casefold())

    def registered(self) -> list[VariableSpec]:
        return [spec for spec in self._specs.values() if spec.is_registered]

    @property
    def skipped(self) -> set[str]:
        return set(self._skipped)

    def register(
        self,
        symbol_path: str,
        wire_type_id: "AdsDataType | int | str | None",
        type_name: str,
    ) -> VariableSpec:
        """
        Resolve and cache the decode rule of a configured variable.

        Raises:
            RegistrationError: symbol path is not configured
            UnsupportedTypeError: type can never be decoded
        """
        spec = self.get(symbol_path)
        if spec is None:
            raise RegistrationError("variable is not configured", symbol_path)

        rule = resolve_rule(wire_type_id, type_name)
        reason = unsupported_reason(type_name)
        if reason is None and rule.wire_type == AdsDataType.WSTRING:
            reason = "wide strings are not supported"
        if reason is not None:
            raise UnsupportedTypeError(type_name, spec.symbol_path, reason)

        spec.rule = rule
        if not rule.can_decode:
            logger.warning(
                f"Variable {spec.symbol_path} ({type_name}, {rule.wire_type.name}) "
                f"has no decoder, its notifications will be ignored"
            )
        return spec

    def try_register(
        self,
        symbol_path: str,
        wire_type_id: "AdsDataType | int | str | None",
        type_name: str,
    ) -> bool:
        """Register a variable, warning once and skipping unsupported types"""
        try:
            self.register(symbol_path, wire_type_id, type_name)
            return True
        except UnsupportedTypeError as e:
            key = symbol_path.casefold()
            if key not in self._skipped:
                self._skipped.add(key)
                log_variable_skipped(logger.logger, e.symbol_path or symbol_path, type_name, e.reason)
            return False

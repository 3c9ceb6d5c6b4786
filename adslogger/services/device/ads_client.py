"""
ADS Notification Client

Wrapper around pyads for the TwinCAT ADS session: connects to the target,
resolves configured symbols, subscribes on-change device notifications and
hands the raw payloads to the dispatcher.
"""

import re
from ctypes import sizeof
from dataclasses import dataclass
from typing import Any, Callable

import pyads
from pyads.pyads_ex import adsGetSymbolInfo

from adslogger.common.config import PlcSettings
from adslogger.common.exceptions import AdsConnectionError, RegistrationError
from adslogger.common.logging_setup import get_service_logger
from adslogger.services.decoding.types import AdsDataType, resolve_wire_type
from adslogger.services.filtering.registry import VariableRegistry
from adslogger.services.logging.pipeline import NotificationEvent

logger = get_service_logger("device.ads")

# IEC 61131-3 elementary type -> ADS wire type
PLC_TYPE_WIRE_TYPES: dict[str, AdsDataType] = {
    "BOOL": AdsDataType.BIT,
    "BIT": AdsDataType.BIT,
    "SINT": AdsDataType.INT8,
    "USINT": AdsDataType.UINT8,
    "BYTE": AdsDataType.UINT8,
    "INT": AdsDataType.INT16,
    "UINT": AdsDataType.UINT16,
    "WORD": AdsDataType.UINT16,
    "DINT": AdsDataType.INT32,
    "UDINT": AdsDataType.UINT32,
    "DWORD": AdsDataType.UINT32,
    "LINT": AdsDataType.INT64,
    "ULINT": AdsDataType.UINT64,
    "LWORD": AdsDataType.UINT64,
    "REAL": AdsDataType.REAL32,
    "LREAL": AdsDataType.REAL64,
    "TIME": AdsDataType.UINT32,
    "TOD": AdsDataType.UINT32,
    "TIME_OF_DAY": AdsDataType.UINT32,
    "DATE": AdsDataType.UINT32,
    "DT": AdsDataType.UINT32,
    "DATE_AND_TIME": AdsDataType.UINT32,
    "LTIME": AdsDataType.UINT64,
    "LDATE": AdsDataType.UINT64,
    "LDATE_AND_TIME": AdsDataType.UINT64,
    "LTIME_OF_DAY": AdsDataType.UINT64,
}

STRING_TYPE = re.compile(r"^STRING(\((\d+)\))?$")
WSTRING_TYPE = re.compile(r"^WSTRING(\((\d+)\))?$")

DEFAULT_STRING_LENGTH = 80
POINTER_SIZE = 8  # Covers 32 and 64-bit targets


def wire_type_for(type_name: str) -> AdsDataType:
    """Map a PLC type name to its ADS wire type"""
    name = (type_name or "").strip().upper()
    if name in PLC_TYPE_WIRE_TYPES:
        return PLC_TYPE_WIRE_TYPES[name]
    if STRING_TYPE.match(name):
        return AdsDataType.STRING
    if WSTRING_TYPE.match(name):
        return AdsDataType.WSTRING
    # Pointers, references, structures, arrays and aliases
    return AdsDataType.BIGTYPE


def notification_length(symbol: Any, type_name: str) -> int:
    """Payload size to subscribe for a symbol"""
    plc_type = getattr(symbol, "plc_type", None)
    if plc_type is not None:
        try:
            return sizeof(plc_type)
        except TypeError:
            pass

    name = (type_name or "").strip().upper()
    match = STRING_TYPE.match(name)
    if match:
        return int(match.group(2) or DEFAULT_STRING_LENGTH) + 1
    # Pointers and references
    return POINTER_SIZE


@dataclass(frozen=True)
class SymbolInfo:
    """Raw ADS symbol entry fields pyads' AdsSymbol does not keep"""
    data_type: int
    size: int


def read_symbol_info(plc: Any, symbol_path: str) -> SymbolInfo | None:
    """ADS data type id and byte size of a symbol, None if unavailable"""
    try:
        entry = adsGetSymbolInfo(plc._port, plc._adr, symbol_path)
    except (pyads.ADSError, AttributeError, TypeError) as e:
        logger.debug(f"No symbol entry for {symbol_path}, using its type name: {e}")
        return None
    return SymbolInfo(data_type=int(entry.dataType), size=int(entry.size))


def symbol_wire_type(info: SymbolInfo | None, type_name: str) -> AdsDataType:
    """
    Wire type of a symbol.

    The data type id reported by the target wins, so enums, aliases and
    subranges decode as their base type. The type name is only mapped when
    the target reports no usable id.
    """
    if info is not None:
        wire_type = resolve_wire_type(info.data_type)
        if wire_type != AdsDataType.VOID:
            return wire_type
    return wire_type_for(type_name)


class AdsNotificationClient:
    """
    ADS session with on-change notifications.

    Handles:
    - Connecting to TwinCAT 2/3 targets (local or routed AMS NetId)
    - Symbol lookup and wire type resolution per variable
    - Forwarding raw notification payloads to a callback
    """

    def __init__(
        self,
        settings: PlcSettings,
        on_event: Callable[[NotificationEvent], None],
        connection_factory: Callable[..., Any] | None = None,
        symbol_info_reader: Callable[[Any, str], "SymbolInfo | None"] | None = None,
    ):
        self.settings = settings
        self._on_event = on_event
        self._connection_factory = connection_factory or pyads.Connection
        self._read_symbol_info = symbol_info_reader or read_symbol_info
        self._plc: Any = None
        self._handles: list[tuple[str, tuple[int, int]]] = []

    @property
    def is_connected(self) -> bool:
        return self._plc is not None and getattr(self._plc, "is_open", False)

    @property
    def handle_count(self) -> int:
        return len(self._handles)

    def _resolve_ams_net_id(self) -> str:
        if self.settings.ams_net_id:
            return self.settings.ams_net_id

        logger.warning("No AmsNetId configured. Using the local AmsNetId")
        try:
            pyads.open_port()
            try:
                return pyads.get_local_address().netid
            finally:
                pyads.close_port()
        except Exception as e:
            raise AdsConnectionError(
                f"No local AmsNetId found, is the TwinCAT system service running? {e}",
                port=self.settings.port,
            )

    def connect(self) -> None:
        """
        Open the ADS session and check the PLC state.

        Raises:
            AdsConnectionError: target not reachable or not answering
        """
        ams_net_id = self._resolve_ams_net_id()
        port = self.settings.port

        logger.info(f"Trying to connect to target at {ams_net_id} with port {port}")

        try:
            plc = self._connection_factory(ams_net_id, port, self.settings.ip_address)
            plc.open()
            ads_state, _device_state = plc.read_state()
        except pyads.ADSError as e:
            raise AdsConnectionError(
                f"Can't connect to target: {e}. Is the PLC in run mode?",
                ams_net_id=ams_net_id,
                port=port,
            )
        except Exception as e:
            raise AdsConnectionError(str(e), ams_net_id=ams_net_id, port=port)

        self._plc = plc
        logger.info(f"Successfully connected to target (ADS state {ads_state})")

    def register_variables(self, registry: VariableRegistry) -> int:
        """
        Subscribe every configured variable the registry accepts.

        Per-variable failures are logged and skipped.

        Returns:
            Number of variables subscribed
        """
        if self._plc is None:
            raise AdsConnectionError("Not connected", port=self.settings.port)

        count = 0
        for spec in registry:
            try:
                if self._register_variable(registry, spec.symbol_path):
                    count += 1
            except RegistrationError as e:
                logger.error(str(e))
            except Exception as e:
                logger.error(f"Can't register variable {spec.symbol_path}: {e}")

        logger.info(f"Registered {count}/{len(registry)} variables for logging")
        return count

    def _register_variable(self, registry: VariableRegistry, symbol_path: str) -> bool:
        try:
            symbol = self._plc.get_symbol(symbol_path)
        except pyads.ADSError as e:
            raise RegistrationError(f"symbol not found: {e}", symbol_path)

        type_name = str(getattr(symbol, "symbol_type", "") or "")
        info = self._read_symbol_info(self._plc, symbol_path)
        wire_type = symbol_wire_type(info, type_name)

        if not registry.try_register(symbol_path, wire_type.name, type_name):
            return False

        attr = pyads.NotificationAttrib(
            info.size if info and info.size > 0 else notification_length(symbol, type_name),
            trans_mode=pyads.ADSTRANS_SERVERONCHA,
            max_delay=self.settings.max_delay_ms,
            cycle_time=self.settings.cycle_time_ms,
        )
        callback = self._make_callback(symbol_path, wire_type.name, type_name)
        handles = self._plc.add_device_notification(symbol_path, attr, callback)
        self._handles.append((symbol_path, handles))

        logger.info(f"Variable {symbol_path} ({type_name}) successfully added to the logging")
        return True

    def _make_callback(self, symbol_path: str, wire_type_id: str, type_name: str):
        def callback(notification, data_name):
            try:
                _handle, _timestamp, payload = self._plc.parse_notification(notification, None)
            except Exception as e:
                logger.warning(f"Unreadable notification for {symbol_path}: {e}")
                return
            self._on_event(NotificationEvent(
                symbol_path=symbol_path,
                wire_type_id=wire_type_id,
                type_name=type_name,
                payload=bytes(payload),
            ))

        return callback

    def close(self) -> None:
        """Delete all notifications and close the session"""
        if self._plc is None:
            return

        for symbol_path, (notification_handle, user_handle) in self._handles:
            try:
                self._plc.del_device_notification(notification_handle, user_handle)
            except Exception as e:
                logger.warning(f"Failed to remove notification for {symbol_path}: {e}")
        self._handles.clear()

        try:
            self._plc.close()
        except Exception as e:
            logger.warning(f"Error closing ADS connection: {e}")

        self._plc = None
        logger.info("ADS connection closed")

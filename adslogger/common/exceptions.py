"""
Custom Exception Classes for the ADS Logger

Hierarchical exception structure for error handling across services.
"""


class AdsLoggerError(Exception):
    """Base exception for all ADS logger errors"""

    def __init__(self, message: str, recoverable: bool = True):
        self.message = message
        self.recoverable = recoverable
        super().__init__(message)


class ConfigError(AdsLoggerError):
    """Configuration-related errors"""

    def __init__(self, message: str, recoverable: bool = False):
        super().__init__(f"Config Error: {message}", recoverable)


class DecodeError(AdsLoggerError):
    """Raw notification payload could not be decoded"""

    def __init__(self, message: str, type_name: str | None = None):
        self.type_name = type_name
        super().__init__(f"Decode Error: {message}", recoverable=True)


class TruncatedBufferError(DecodeError):
    """Payload is shorter than the wire type requires"""

    def __init__(self, expected: int, actual: int, type_name: str | None = None):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"buffer holds {actual} byte(s), {expected} required",
            type_name,
        )


class MissingTerminatorError(DecodeError):
    """String payload without a zero terminator"""

    def __init__(self, length: int, type_name: str | None = None):
        self.length = length
        super().__init__(
            f"no string terminator within {length} byte(s)",
            type_name,
        )


class UnsupportedTypeError(AdsLoggerError):
    """Variable type the logger cannot decode"""

    def __init__(self, type_name: str, symbol_path: str | None = None, reason: str = ""):
        self.type_name = type_name
        self.symbol_path = symbol_path
        self.reason = reason
        message = f"Unsupported type {type_name}"
        if symbol_path:
            message += f" for {symbol_path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message, recoverable=True)


class RegistrationError(AdsLoggerError):
    """Variable could not be registered for notifications"""

    def __init__(self, message: str, symbol_path: str):
        self.symbol_path = symbol_path
        super().__init__(f"Registration Error [{symbol_path}]: {message}", recoverable=True)


class SinkError(AdsLoggerError):
    """Log file rename/append failures"""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(f"Sink Error: {message}", recoverable=True)


class AdsConnectionError(AdsLoggerError):
    """ADS session could not be established"""

    def __init__(
        self,
        message: str,
        ams_net_id: str | None = None,
        port: int | None = None,
    ):
        self.ams_net_id = ams_net_id
        self.port = port
        super().__init__(f"Connection Error: {message}", recoverable=False)

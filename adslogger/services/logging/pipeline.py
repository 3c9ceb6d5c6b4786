"""
Event Pipeline

decode -> filter -> persist for a single notification.

Calls for the same variable must arrive in order and never overlap; the
NotificationDispatcher guarantees this with one worker per variable.
"""

from dataclasses import dataclass, field
from datetime import datetime
import threading

from adslogger.common.exceptions import DecodeError
from adslogger.common.logging_setup import (
    get_service_logger,
    log_decode_failure,
    log_value_changed,
)
from adslogger.services.decoding.decoder import decode_rule
from adslogger.services.filtering.change_filter import ChangeFilter
from adslogger.services.filtering.registry import VariableRegistry

from .rotating_sink import RotatingLogSink, format_entry

logger = get_service_logger("logging.pipeline")


@dataclass(frozen=True)
class NotificationEvent:
    """A change notification delivered by the controller"""
    symbol_path: str
    wire_type_id: str
    type_name: str
    payload: bytes
    received_at: datetime = field(default_factory=datetime.now)


@dataclass
class PipelineStats:
    """Event counters"""
    received: int = 0
    unknown_variable: int = 0
    unregistered: int = 0
    undecodable: int = 0
    decode_failures: int = 0
    rejected: int = 0
    logged: int = 0
    sink_failures: int = 0

    def as_dict(self) -> dict:
        return dict(self.__dict__)


class EventPipeline:
    """
    Processes notification events for registered variables.

    Owns no per-variable state itself: last known values live on the
    registry's specs and are only changed through the change filter.
    """

    def __init__(
        self,
        registry: VariableRegistry,
        sink: RotatingLogSink,
        change_filter: ChangeFilter | None = None,
    ):
        self.registry = registry
        self.sink = sink
        self.change_filter = change_filter or ChangeFilter()
        self.stats = PipelineStats()
        self._stats_lock = threading.Lock()

    def _count(self, name: str) -> None:
        with self._stats_lock:
            setattr(self.stats, name, getattr(self.stats, name) + 1)

    def process(self, event: NotificationEvent) -> bool:
        """
        Run one event through the pipeline.

        Returns:
            True if an entry was written to the log
        """
        self._count("received")

        spec = self.registry.get(event.symbol_path)
        if spec is None:
            self._count("unknown_variable")
            logger.debug(f"Ignoring notification for unconfigured variable {event.symbol_path}")
            return False

        rule = spec.rule
        if rule is None:
            # Not subscribed, or skipped as unsupported at registration
            self._count("unregistered")
            return False

        try:
            value = decode_rule(event.payload, rule)
        except DecodeError as e:
            self._count("decode_failures")
            log_decode_failure(logger.logger, spec.symbol_path, rule.type_name, e)
            return False

        if value is None:
            self._count("undecodable")
            return False

        admission = self.change_filter.admit(spec, value)
        if not admission.log:
            self._count("rejected")
            return False

        rendered = str(admission.value)
        log_value_changed(
            logger.logger,
            spec.symbol_path,
            rendered,
            format_entry(spec.symbol_path, rendered, event.received_at),
        )

        if not self.sink.append(spec.symbol_path, rendered, event.received_at):
            self._count("sink_failures")
            return False

        self._count("logged")
        return True

    def get_stats(self) -> dict:
        with self._stats_lock:
            return self.stats.as_dict()

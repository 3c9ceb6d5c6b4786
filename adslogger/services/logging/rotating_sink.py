"""
Rotating Log Sink

Appends change entries to <dir>/Log.txt. Once the active file holds
max_lines entries it is renamed to Log<N>.txt (N = 1, 2, 3, ...) and a
fresh active file is started.

Every append opens, writes, flushes and closes the file, so a crash loses
at most the entry being written.
"""

import os
import re
import threading
from datetime import datetime
from pathlib import Path

from adslogger.common.exceptions import SinkError
from adslogger.common.logging_setup import get_service_logger

logger = get_service_logger("logging.sink")

ACTIVE_LOG_NAME = "Log.txt"
ROTATED_LOG_PATTERN = re.compile(r"^Log(\d+)\.txt$")
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_entry(symbol_path: str, value: str, timestamp: datetime) -> str:
    """One newline-terminated log line"""
    return f"{timestamp.strftime(TIMESTAMP_FORMAT)} - Variable '{symbol_path}' changed to: {value}\n"


def rotated_log_name(sequence: int) -> str:
    return f"Log{sequence}.txt"


class RotatingLogSink:
    """
    Size-bounded, auto-rotating text log.

    Thread-safe: one lock covers the line count, rotation and the append,
    so concurrent writers never share a rotation sequence number or
    interleave inside a rotate-and-reopen.
    """

    def __init__(self, directory: str | Path, max_lines: int, fsync: bool = True):
        if max_lines <= 0:
            raise ValueError(f"max_lines must be positive, got {max_lines}")

        self.directory = Path(directory)
        self.max_lines = max_lines
        self.fsync = fsync

        self._lock = threading.Lock()
        self._line_count: int | None = None  # Lazily counted from disk
        self._next_sequence = self._scan_next_sequence()

        # Counters for the stats endpoint
        self.entries_written = 0
        self.rotations = 0
        self.failures = 0

    @property
    def active_path(self) -> Path:
        return self.directory / ACTIVE_LOG_NAME

    @property
    def next_sequence(self) -> int:
        return self._next_sequence

    def _scan_next_sequence(self) -> int:
        """First sequence number after any rotated file already on disk"""
        highest = 0
        if self.directory.is_dir():
            for entry in self.directory.iterdir():
                match = ROTATED_LOG_PATTERN.match(entry.name)
                if match:
                    highest = max(highest, int(match.group(1)))
        return highest + 1

    def _count_lines(self) -> int:
        path = self.active_path
        if not path.exists():
            return 0
        with open(path, "rb") as f:
            return sum(1 for _ in f)

    def _rotate(self) -> Path:
        """Move the active file to the next free sequence number"""
        while self._target_exists(self._next_sequence):
            self._next_sequence += 1

        target = self.directory / rotated_log_name(self._next_sequence)
        try:
            os.rename(self.active_path, target)
        except OSError as e:
            raise SinkError(f"Failed to rotate {self.active_path} to {target.name}: {e}", str(target))

        self._next_sequence += 1
        self._line_count = 0
        self.rotations += 1
        logger.info(f"Rotated log file to {target.name}")
        return target

    def _target_exists(self, sequence: int) -> bool:
        return (self.directory / rotated_log_name(sequence)).exists()

    def _write(self, line: str) -> None:
        try:
            with open(self.active_path, "a", encoding="utf-8", newline="\n") as f:
                f.write(line)
                f.flush()
                if self.fsync:
                    os.fsync(f.fileno())
        except OSError as e:
            raise SinkError(f"Failed to append to {self.active_path}: {e}", str(self.active_path))

    def append(
        self,
        symbol_path: str,
        value: str,
        timestamp: datetime | None = None,
    ) -> bool:
        """
        Append one entry, rotating first if the active file is full.

        Args:
            symbol_path: Variable symbol path
            value: Rendered value
            timestamp: Entry time (defaults to local now)

        Returns:
            True if the entry was written, False if it was lost
        """
        line = format_entry(symbol_path, value, timestamp or datetime.now())

        with self._lock:
            try:
                if not self.active_path.exists():
                    self._line_count = 0
                elif self._line_count is None:
                    self._line_count = self._count_lines()

                if self._line_count >= self.max_lines:
                    self._rotate()

                self._write(line)
            except (SinkError, OSError) as e:
                self.failures += 1
                # Recount from disk on the next append
                self._line_count = None
                logger.error(f"Error while writing to log file: {e}")
                return False

            self._line_count += 1
            self.entries_written += 1
            return True

    def get_stats(self) -> dict:
        with self._lock:
            return {
                "directory": str(self.directory),
                "max_lines": self.max_lines,
                "active_lines": self._line_count,
                "next_sequence": self._next_sequence,
                "entries_written": self.entries_written,
                "rotations": self.rotations,
                "failures": self.failures,
            }

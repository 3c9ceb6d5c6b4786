"""
Logging Service - change capture

Responsibilities:
- Run each notification through decode -> filter -> persist
- Keep per-variable ordering with one worker per variable
- Append admitted changes to the rotating text log

LoggingService lives in .service (it pulls in pyads and aiohttp).
"""

from .dispatcher import NotificationDispatcher
from .pipeline import EventPipeline, NotificationEvent, PipelineStats
from .rotating_sink import RotatingLogSink, format_entry

__all__ = [
    "NotificationDispatcher",
    "EventPipeline",
    "NotificationEvent",
    "PipelineStats",
    "RotatingLogSink",
    "format_entry",
]

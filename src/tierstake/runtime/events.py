# src/tierstake/runtime/events.py
from __future__ import annotations

import copy
import logging
import threading
from typing import Any, Dict, List

from tierstake.runtime.runtime_logging import log_event

Json = Dict[str, Any]


class EventSink:
    """Receives one record per successful staking mutation.

    emit() is called after the mutation is durably committed, so a sink
    never sees an event for a rolled-back operation.
    """

    def emit(self, event: Json) -> None:
        raise NotImplementedError


class LoggingEventSink(EventSink):
    """Writes each event as one JSON line on the `tierstake.events` logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("tierstake.events")

    def emit(self, event: Json) -> None:
        fields = {k: v for k, v in event.items() if k != "event"}
        log_event(self._logger, str(event.get("event") or "staking_event"), **fields)


class MemoryEventSink(EventSink):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.events: List[Json] = []

    def emit(self, event: Json) -> None:
        with self._lock:
            self.events.append(copy.deepcopy(event))

    def names(self) -> List[str]:
        with self._lock:
            return [str(e.get("event") or "") for e in self.events]

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import Counter
from typing import Iterable

from overlay_sentinel.core.metadata import DetectionEvent

log = logging.getLogger(__name__)


class ResultSink(ABC):
    """Consumer of detection events and reset signals."""

    @abstractmethod
    def emit(self, event: DetectionEvent) -> None:
        raise NotImplementedError

    @abstractmethod
    def reset(self) -> None:
        raise NotImplementedError


class CollectingSink(ResultSink):
    """Keeps every event in memory together with the displayed counters."""

    def __init__(self) -> None:
        self.events: list[DetectionEvent] = []
        self.counts: Counter[str] = Counter()
        self.total = 0
        self.resets = 0

    def emit(self, event: DetectionEvent) -> None:
        self.events.append(event)
        self.counts[event.verdict.category] = event.category_count
        self.total = event.total

    def reset(self) -> None:
        self.events.clear()
        self.counts.clear()
        self.total = 0
        self.resets += 1

    @property
    def elements(self) -> list[object]:
        return [event.element for event in self.events]

    def summaries(self) -> list[str]:
        return [event.summary for event in self.events]


class LoggingSink(ResultSink):
    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or log

    def emit(self, event: DetectionEvent) -> None:
        payload = event.to_payload()
        self.logger.info(
            "Detected %s [%s] position=%s z-index=%s reasons=%s (total %d)",
            payload["summary"],
            payload["category"],
            payload["position"],
            payload["z_index"],
            ", ".join(payload["reasons"]) or "N/A",
            payload["total"],
        )

    def reset(self) -> None:
        self.logger.info("Results cleared")


class CompositeSink(ResultSink):
    def __init__(self, sinks: Iterable[ResultSink]) -> None:
        self.sinks = list(sinks)

    def emit(self, event: DetectionEvent) -> None:
        for sink in self.sinks:
            sink.emit(event)

    def reset(self) -> None:
        for sink in self.sinks:
            sink.reset()

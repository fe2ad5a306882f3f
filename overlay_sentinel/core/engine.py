from __future__ import annotations

import logging
from collections import deque
from typing import Any, Iterable, Sequence

from overlay_sentinel.config.schema import DetectorConfig, EngineUiPolicy
from overlay_sentinel.core.exceptions import ElementDetachedError, InvalidSessionStateError
from overlay_sentinel.core.metadata import (
    DetectionEvent,
    MutationRecord,
    SessionState,
    StyleSnapshot,
    summarize,
)
from overlay_sentinel.core.registry import DedupRegistry
from overlay_sentinel.core.stats import StatsAggregator
from overlay_sentinel.core.tree import ChangeFeed, DocumentTree, Subscription, normalize_watched_attributes
from overlay_sentinel.reporting.sinks import ResultSink
from overlay_sentinel.rules.base import Classifier
from overlay_sentinel.rules.factory import create_classifier

log = logging.getLogger(__name__)


class DetectionEngine:
    """Owns a detection session: full scan, incremental scans, dedup and stats.

    All work happens synchronously on the caller's thread. The change feed
    subscription exists exactly while the session is active.
    """

    def __init__(
        self,
        tree: DocumentTree,
        change_feed: ChangeFeed,
        classifier: Classifier,
        sink: ResultSink,
        *,
        watched_attributes: Iterable[str] = ("style", "class", "id"),
        engine_ui: EngineUiPolicy | None = None,
        strict: bool = False,
    ) -> None:
        self.tree = tree
        self.change_feed = change_feed
        self.classifier = classifier
        self.sink = sink
        self.watched_attributes = normalize_watched_attributes(watched_attributes)
        self.engine_ui = engine_ui if engine_ui is not None else EngineUiPolicy()
        self.strict = strict
        self._state = SessionState.IDLE
        self._subscription: Subscription | None = None
        self._registry = DedupRegistry()
        self._stats = StatsAggregator()
        self._containers: tuple[Any, ...] = ()
        self._pending: deque[list[MutationRecord]] = deque()
        self._processing = False

    @classmethod
    def from_config(
        cls,
        config: DetectorConfig,
        tree: DocumentTree,
        change_feed: ChangeFeed,
        sink: ResultSink,
    ) -> "DetectionEngine":
        return cls(
            tree,
            change_feed,
            create_classifier(config),
            sink,
            watched_attributes=config.watched_attributes,
            engine_ui=config.engine_ui,
            strict=config.strict_session,
        )

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is SessionState.ACTIVE

    @property
    def registry(self) -> DedupRegistry:
        return self._registry

    @property
    def stats(self) -> StatsAggregator:
        return self._stats

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None and self._subscription.connected

    def start(self) -> None:
        if self.is_active:
            self._contract_violation("start() called while detection is already active")
            return
        self._state = SessionState.ACTIVE
        try:
            self._containers = tuple(self.tree.document_containers())
            before = len(self._registry)
            for element in list(self.tree.elements()):
                self.classify_one(element)
            self._subscription = self.change_feed.subscribe(self.on_mutation, self.watched_attributes)
        except BaseException:
            self._state = SessionState.IDLE
            raise
        log.info(
            "Detection started with %s ruleset: %d new match(es) in initial scan",
            self.classifier.name,
            len(self._registry) - before,
        )

    def stop(self) -> None:
        if not self.is_active:
            self._disconnect()
            self._contract_violation("stop() called while detection is idle")
            return
        self._disconnect()
        self._state = SessionState.IDLE
        self._pending.clear()
        log.info("Detection stopped; retained stats %s", self._stats.as_dict())

    def clear(self) -> None:
        self._registry.clear()
        self._stats.reset()
        self.sink.reset()
        log.info("Results cleared")

    def on_mutation(self, batch: Sequence[MutationRecord]) -> None:
        if not self.is_active:
            log.debug("Ignoring %d mutation record(s) delivered while idle", len(batch))
            return
        self._pending.append(list(batch))
        if self._processing:
            return
        self._processing = True
        try:
            while self._pending and self.is_active:
                for record in self._pending.popleft():
                    if not self.is_active:
                        break
                    self._apply(record)
        except BaseException:
            self._pending.clear()
            raise
        finally:
            self._processing = False

    def classify_one(self, element: Any) -> DetectionEvent | None:
        if not self.is_active or element is None:
            return None
        if element in self._registry or element in self._containers:
            return None
        try:
            snapshot = self.tree.snapshot(element)
            if self._in_engine_ui(snapshot):
                log.debug("Skipping %s inside engine UI", summarize(snapshot.facts))
                return None
            verdict = self.classifier.classify(element, snapshot)
        except ElementDetachedError:
            log.debug("Element detached before classification")
            return None
        if not verdict.is_match:
            return None
        self._registry.add(element, verdict)
        category_count = self._stats.record(verdict, snapshot)
        event = DetectionEvent(
            element=element,
            summary=summarize(snapshot.facts),
            snapshot=snapshot,
            verdict=verdict,
            category_count=category_count,
            total=self._stats.total,
        )
        self.sink.emit(event)
        return event

    def _apply(self, record: MutationRecord) -> None:
        if record.kind == MutationRecord.CHILD_LIST:
            for node in record.added:
                self.classify_one(node)
                for descendant in self._descendants(node):
                    self.classify_one(descendant)
        elif record.kind == MutationRecord.ATTRIBUTES:
            if record.attribute_name.lower() in self.watched_attributes:
                self.classify_one(record.target)
            else:
                log.debug("Ignoring mutation of unwatched attribute %r", record.attribute_name)

    def _descendants(self, node: Any) -> list[Any]:
        try:
            return list(self.tree.descendants(node))
        except ElementDetachedError:
            return []

    def _in_engine_ui(self, snapshot: StyleSnapshot) -> bool:
        if not self.engine_ui.tags and not self.engine_ui.markers:
            return False
        return any(self.engine_ui.covers(facts) for facts in snapshot.query.ancestors())

    def _disconnect(self) -> None:
        if self._subscription is not None:
            self._subscription.disconnect()
            self._subscription = None

    def _contract_violation(self, message: str) -> None:
        if self.strict:
            raise InvalidSessionStateError(message)
        log.warning(message)

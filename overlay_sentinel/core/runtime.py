from __future__ import annotations

from dataclasses import dataclass

from overlay_sentinel.config.schema import DetectorConfig, EnvironmentConfig
from overlay_sentinel.core.dom_monitor import SeleniumChangeFeed
from overlay_sentinel.core.dom_tree import SeleniumDocumentTree
from overlay_sentinel.core.engine import DetectionEngine
from overlay_sentinel.reporting.sinks import CollectingSink, CompositeSink, LoggingSink, ResultSink
from overlay_sentinel.utils.wait import pump_until

DEFAULT_POLL_INTERVAL = EnvironmentConfig.model_fields["poll_interval_seconds"].default


@dataclass(slots=True)
class BrowserDetectionRuntime:
    driver: object
    tree: SeleniumDocumentTree
    feed: SeleniumChangeFeed
    engine: DetectionEngine
    collector: CollectingSink
    poll_interval: float = DEFAULT_POLL_INTERVAL


def build_browser_engine(driver, config: DetectorConfig, sink: ResultSink | None = None) -> BrowserDetectionRuntime:
    """Wires a detection engine to the page currently loaded in ``driver``."""

    collector = CollectingSink()
    sinks: list[ResultSink] = [collector, LoggingSink()]
    if sink is not None:
        sinks.append(sink)
    tree = SeleniumDocumentTree(driver)
    feed = SeleniumChangeFeed(driver)
    engine = DetectionEngine.from_config(config, tree, feed, CompositeSink(sinks))
    poll_interval = config.environment.poll_interval_seconds if config.environment else DEFAULT_POLL_INTERVAL
    return BrowserDetectionRuntime(
        driver=driver,
        tree=tree,
        feed=feed,
        engine=engine,
        collector=collector,
        poll_interval=poll_interval,
    )


def watch(runtime: BrowserDetectionRuntime, duration: float, interval: float | None = None, until=None):
    """Pumps the browser change feed for ``duration`` seconds or until ``until()`` holds.

    ``interval`` defaults to the runtime's configured poll interval.
    """

    predicate = until or (lambda: False)
    pause = runtime.poll_interval if interval is None else interval
    return pump_until(runtime.feed.poll, predicate, timeout=duration, interval=pause)

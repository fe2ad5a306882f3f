from __future__ import annotations

import logging
from typing import Iterable

from selenium.common.exceptions import WebDriverException

from overlay_sentinel.core.metadata import MutationRecord
from overlay_sentinel.core.tree import ChangeFeed, MutationCallback, Subscription, normalize_watched_attributes

log = logging.getLogger(__name__)

INSTALL_MONITOR_SCRIPT = r"""
const watched = arguments[0];
const limit = arguments[1];
if (window.__overlay_sentinel_observers__) {
  for (const observer of window.__overlay_sentinel_observers__) observer.disconnect();
}
window.__overlay_sentinel_events__ = [];
window.__overlay_sentinel_dropped__ = 0;
window.__overlay_sentinel_observers__ = [];

const pushEvent = (record) => {
  window.__overlay_sentinel_events__.push(record);
  if (window.__overlay_sentinel_events__.length > limit) {
    window.__overlay_sentinel_events__.shift();
    window.__overlay_sentinel_dropped__ += 1;
  }
};

const observeRoot = (root) => {
  const observer = new MutationObserver((mutations) => {
    for (const mutation of mutations) {
      if (mutation.type === "childList") {
        const added = Array.from(mutation.addedNodes).filter((node) => node instanceof Element);
        if (!added.length) continue;
        pushEvent({type: "child_list", target: mutation.target, added: added, attributeName: ""});
        for (const node of added) {
          if (node.shadowRoot) observeRoot(node.shadowRoot);
        }
      } else if (mutation.type === "attributes") {
        pushEvent({type: "attributes", target: mutation.target, added: [], attributeName: mutation.attributeName || ""});
      }
    }
  });
  observer.observe(root, {
    attributes: true,
    attributeFilter: watched,
    childList: true,
    subtree: true,
  });
  window.__overlay_sentinel_observers__.push(observer);
};

observeRoot(document);
for (const node of document.querySelectorAll("*")) {
  if (node.shadowRoot) observeRoot(node.shadowRoot);
}
"""

FLUSH_EVENTS_SCRIPT = """
const events = window.__overlay_sentinel_events__ || [];
const dropped = window.__overlay_sentinel_dropped__ || 0;
window.__overlay_sentinel_events__ = [];
window.__overlay_sentinel_dropped__ = 0;
return {events: events, dropped: dropped};
"""

UNINSTALL_MONITOR_SCRIPT = """
for (const observer of window.__overlay_sentinel_observers__ || []) observer.disconnect();
window.__overlay_sentinel_observers__ = [];
window.__overlay_sentinel_events__ = [];
"""


class _SeleniumSubscription(Subscription):
    def __init__(self, feed: "SeleniumChangeFeed", callback: MutationCallback) -> None:
        self.feed = feed
        self.callback = callback
        self._connected = True

    @property
    def connected(self) -> bool:
        return self._connected

    def disconnect(self) -> None:
        if not self._connected:
            return
        self._connected = False
        self.feed._uninstall(self)


class SeleniumChangeFeed(ChangeFeed):
    """Installs a browser-side mutation buffer and delivers it on ``poll()``."""

    def __init__(self, driver, buffer_limit: int = 2000) -> None:
        self.driver = driver
        self.buffer_limit = buffer_limit
        self._subscription: _SeleniumSubscription | None = None

    @property
    def installed(self) -> bool:
        return self._subscription is not None

    def subscribe(self, callback: MutationCallback, watched_attributes: Iterable[str]) -> Subscription:
        watched = sorted(normalize_watched_attributes(watched_attributes))
        if self._subscription is not None:
            self._subscription.disconnect()
        self.driver.execute_script(INSTALL_MONITOR_SCRIPT, watched, self.buffer_limit)
        self._subscription = _SeleniumSubscription(self, callback)
        return self._subscription

    def flush_events(self) -> list[MutationRecord]:
        payload = self.driver.execute_script(FLUSH_EVENTS_SCRIPT) or {}
        dropped = int(payload.get("dropped", 0) or 0)
        if dropped:
            log.warning("Mutation buffer overflowed; %d record(s) were dropped", dropped)
        records: list[MutationRecord] = []
        for item in payload.get("events", []):
            records.append(
                MutationRecord(
                    kind=item.get("type", ""),
                    target=item.get("target"),
                    added=tuple(item.get("added") or ()),
                    attribute_name=item.get("attributeName", ""),
                )
            )
        return records

    def poll(self) -> int:
        """Delivers buffered records to the subscriber as one batch."""

        subscription = self._subscription
        if subscription is None or not subscription.connected:
            return 0
        records = self.flush_events()
        if records:
            subscription.callback(records)
        return len(records)

    def _uninstall(self, subscription: _SeleniumSubscription) -> None:
        if self._subscription is subscription:
            self._subscription = None
        try:
            self.driver.execute_script(UNINSTALL_MONITOR_SCRIPT)
        except WebDriverException as exc:
            log.debug("Could not remove mutation observer: %s", exc)

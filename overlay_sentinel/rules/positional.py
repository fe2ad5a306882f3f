from __future__ import annotations

from typing import Any, Sequence

from overlay_sentinel.config.schema import AttributeMarker, PositionalConfig
from overlay_sentinel.core.metadata import StyleSnapshot
from overlay_sentinel.rules.base import Rule, RuleClassifier, first_hit

FLOATING_CATEGORY = "fixed-floating"
OUT_OF_FLOW = ("fixed", "absolute")


def straddles_viewport(snapshot: StyleSnapshot) -> bool:
    box = snapshot.box
    width = snapshot.viewport.width
    height = snapshot.viewport.height
    return (
        (box.left < 0 < box.right)
        or (box.top < 0 < box.bottom)
        or (box.right > width and box.left < width)
        or (box.bottom > height and box.top < height)
    )


def is_likely_injected(snapshot: StyleSnapshot, app_root_markers: Sequence[AttributeMarker]) -> bool:
    """True when neither the element nor any ancestor carries an app-root marker.

    Coarse by nature: any positioned wrapper outside the page's app root with
    children is treated as third-party.
    """

    for facts in snapshot.query.ancestors():
        if any(marker.matches(facts) for marker in app_root_markers):
            return False
    return True


class PositionalClassifier(RuleClassifier):
    """Flags floating UI: out-of-flow positioning, high z-index, edge overflow."""

    name = "positional"

    def __init__(self, config: PositionalConfig | None = None) -> None:
        self.config = config or PositionalConfig()
        super().__init__(self._build_rules())

    def _build_rules(self) -> list[Rule]:
        config = self.config
        rules: list[Rule] = []
        if config.detect_position:
            rules.append(Rule("position", self._position, "Position: {value}"))
        if config.detect_high_z_index:
            rules.append(Rule("high-z-index", self._high_z_index, "High z-index: {value}"))
        if config.detect_overflow:
            rules.append(Rule("viewport-overflow", self._viewport_overflow, "Partially outside viewport"))
        if config.detect_characteristics:
            rules.append(
                Rule(
                    "floating-characteristics",
                    self._floating_characteristics,
                    "Common floating element characteristics",
                )
            )
        return rules

    def categorize(self, element: Any, snapshot: StyleSnapshot, fired: Sequence[str]) -> str:
        return FLOATING_CATEGORY

    @staticmethod
    def _position(element: Any, snapshot: StyleSnapshot) -> str | None:
        return snapshot.position if snapshot.is_positioned else None

    def _high_z_index(self, element: Any, snapshot: StyleSnapshot) -> int | None:
        if snapshot.z_index is not None and snapshot.z_index > self.config.z_index_threshold:
            return snapshot.z_index
        return None

    @staticmethod
    def _viewport_overflow(element: Any, snapshot: StyleSnapshot) -> bool:
        return snapshot.position in OUT_OF_FLOW and straddles_viewport(snapshot)

    def _floating_characteristics(self, element: Any, snapshot: StyleSnapshot) -> bool:
        if first_hit(snapshot.facts.identity_text, self.config.keywords):
            return True
        if not snapshot.is_positioned:
            return False
        z_index = snapshot.z_index
        if z_index is not None and z_index > self.config.characteristic_z_index:
            return True
        return snapshot.query.child_count() > 0 and is_likely_injected(
            snapshot, self.config.app_root_markers
        )

from __future__ import annotations

from collections import Counter

from overlay_sentinel.core.metadata import ClassificationVerdict, StyleSnapshot

HIGH_Z_INDEX = 100


class StatsAggregator:
    """Per-category match counters for one detection session.

    Besides the category counts it keeps the position-mode and high z-index
    breakdown shown in the summary panel.
    """

    def __init__(self) -> None:
        self.categories: Counter[str] = Counter()
        self.positions: Counter[str] = Counter()
        self.high_z_index = 0

    @property
    def total(self) -> int:
        return sum(self.categories.values())

    def __getitem__(self, category: str) -> int:
        return self.categories[category]

    def record(self, verdict: ClassificationVerdict, snapshot: StyleSnapshot) -> int:
        """Counts one match and returns the running count of its category."""

        self.categories[verdict.category] += 1
        if snapshot.position in ("fixed", "absolute"):
            self.positions[snapshot.position] += 1
        if snapshot.z_index is not None and snapshot.z_index > HIGH_Z_INDEX:
            self.high_z_index += 1
        return self.categories[verdict.category]

    def reset(self) -> None:
        self.categories.clear()
        self.positions.clear()
        self.high_z_index = 0

    def as_dict(self) -> dict[str, object]:
        return {
            "total": self.total,
            "categories": dict(self.categories),
            "fixed": self.positions["fixed"],
            "absolute": self.positions["absolute"],
            "high_z_index": self.high_z_index,
        }

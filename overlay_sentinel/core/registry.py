from __future__ import annotations

from typing import Any, Iterator

from overlay_sentinel.core.metadata import ClassificationVerdict


class DedupRegistry:
    """Identity-keyed side table of elements already reported this session."""

    def __init__(self) -> None:
        self._verdicts: dict[Any, ClassificationVerdict] = {}

    def __contains__(self, element: Any) -> bool:
        return element in self._verdicts

    def __len__(self) -> int:
        return len(self._verdicts)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._verdicts)

    def add(self, element: Any, verdict: ClassificationVerdict) -> bool:
        if element in self._verdicts:
            return False
        self._verdicts[element] = verdict
        return True

    def verdict_for(self, element: Any) -> ClassificationVerdict | None:
        return self._verdicts.get(element)

    def clear(self) -> None:
        self._verdicts.clear()

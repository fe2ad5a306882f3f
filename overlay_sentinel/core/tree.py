from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, Sequence

from overlay_sentinel.core.metadata import MutationRecord, StyleSnapshot

MutationCallback = Callable[[Sequence[MutationRecord]], None]


class DocumentTree(ABC):
    """Pull-side view of the inspected document."""

    @abstractmethod
    def elements(self) -> Iterable[Any]:
        """Every element currently in the tree, in document order."""

    @abstractmethod
    def descendants(self, element: Any) -> Iterable[Any]:
        """Every element below ``element``, in document order."""

    @abstractmethod
    def document_containers(self) -> Sequence[Any]:
        """Document-level containers (root and body) that are never classified."""

    @abstractmethod
    def snapshot(self, element: Any) -> StyleSnapshot:
        """Captures resolved style and structure; raises ElementDetachedError."""


class Subscription(ABC):
    @abstractmethod
    def disconnect(self) -> None:
        """Stops delivery. Calling it more than once is harmless."""

    @property
    @abstractmethod
    def connected(self) -> bool:
        ...


class ChangeFeed(ABC):
    """Push-side view of the inspected document."""

    @abstractmethod
    def subscribe(self, callback: MutationCallback, watched_attributes: Iterable[str]) -> Subscription:
        ...


def normalize_watched_attributes(watched_attributes: Iterable[str]) -> frozenset[str]:
    normalized = frozenset(name.strip().lower() for name in watched_attributes if name and name.strip())
    if not normalized:
        raise ValueError("At least one watched attribute is required")
    if "*" in normalized:
        raise ValueError("Unrestricted attribute watching is not supported")
    return normalized

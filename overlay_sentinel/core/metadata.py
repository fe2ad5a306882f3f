from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Hashable, Mapping, Protocol, Sequence

NO_CATEGORY = "none"


class SessionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


@dataclass(frozen=True, slots=True)
class BoundingBox:
    top: float = 0.0
    left: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height


@dataclass(frozen=True, slots=True)
class Viewport:
    width: float = 1440.0
    height: float = 900.0


@dataclass(frozen=True, slots=True)
class ElementFacts:
    """Structural identity of one element: tag, id, classes and attributes."""

    tag: str
    element_id: str = ""
    classes: tuple[str, ...] = ()
    attributes: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tag", self.tag.lower())
        object.__setattr__(self, "classes", tuple(self.classes))
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    @property
    def class_name(self) -> str:
        return " ".join(self.classes)

    @property
    def identity_text(self) -> str:
        return f"{self.class_name} {self.element_id}".lower()

    @property
    def attribute_text(self) -> str:
        return " ".join(f"{name}={value}" for name, value in self.attributes.items()).lower()


class ElementQuery(Protocol):
    """Read-only structural queries bound to a single element."""

    def ancestors(self) -> Sequence[ElementFacts]:
        """Facts of the element itself followed by its parents, outward."""
        ...

    def descendants(self) -> Sequence[ElementFacts]:
        ...

    def child_count(self) -> int:
        ...


@dataclass(frozen=True, slots=True)
class StyleSnapshot:
    position: str
    z_index: int | None
    display: str
    box: BoundingBox
    viewport: Viewport
    facts: ElementFacts
    query: ElementQuery

    @property
    def is_positioned(self) -> bool:
        return self.position in ("fixed", "absolute", "sticky")


@dataclass(frozen=True, slots=True)
class ClassificationVerdict:
    is_match: bool
    category: str = NO_CATEGORY
    reasons: tuple[str, ...] = ()

    @classmethod
    def no_match(cls, reasons: Sequence[str] = ()) -> "ClassificationVerdict":
        return cls(is_match=False, category=NO_CATEGORY, reasons=tuple(reasons))


@dataclass(frozen=True, slots=True)
class MutationRecord:
    kind: str
    target: Hashable
    added: tuple[Any, ...] = ()
    attribute_name: str = ""

    CHILD_LIST = "child_list"
    ATTRIBUTES = "attributes"


@dataclass(frozen=True, slots=True)
class DetectionEvent:
    element: Any
    summary: str
    snapshot: StyleSnapshot
    verdict: ClassificationVerdict
    category_count: int
    total: int

    @property
    def reasons(self) -> tuple[str, ...]:
        return self.verdict.reasons

    def to_payload(self) -> dict[str, Any]:
        box = self.snapshot.box
        return {
            "summary": self.summary,
            "category": self.verdict.category,
            "reasons": list(self.verdict.reasons),
            "position": self.snapshot.position,
            "z_index": self.snapshot.z_index,
            "display": self.snapshot.display,
            "dimensions": f"{round(box.width)}x{round(box.height)}",
            "location": {"top": round(box.top), "left": round(box.left)},
            "category_count": self.category_count,
            "total": self.total,
        }


def summarize(facts: ElementFacts) -> str:
    """Human-readable ``tag#id.class1.class2`` label."""

    element_id = f"#{facts.element_id}" if facts.element_id else ""
    classes = "".join(f".{name}" for name in facts.classes)
    return f"{facts.tag}{element_id}{classes}"


def parse_z_index(raw: Any) -> int | None:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    text = str(raw).strip()
    if not text or text == "auto":
        return None
    try:
        return int(float(text))
    except ValueError:
        return None

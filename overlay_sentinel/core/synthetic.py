from __future__ import annotations

from typing import Iterable, Iterator, Mapping, Sequence

from overlay_sentinel.core.exceptions import ElementDetachedError
from overlay_sentinel.core.metadata import (
    BoundingBox,
    ElementFacts,
    MutationRecord,
    StyleSnapshot,
    Viewport,
    parse_z_index,
)
from overlay_sentinel.core.tree import (
    ChangeFeed,
    DocumentTree,
    MutationCallback,
    Subscription,
    normalize_watched_attributes,
)


def parse_inline_style(style: str) -> dict[str, str]:
    declarations: dict[str, str] = {}
    for chunk in style.split(";"):
        name, sep, value = chunk.partition(":")
        if sep and name.strip():
            declarations[name.strip().lower()] = value.strip()
    return declarations


def format_inline_style(declarations: Mapping[str, object]) -> str:
    return "; ".join(f"{name}: {value}" for name, value in declarations.items())


class SyntheticNode:
    """In-memory element used to drive the engine without a browser.

    Identity is object identity, matching how a live DOM node behaves as a set key.
    """

    def __init__(
        self,
        tag: str,
        *,
        element_id: str = "",
        classes: Iterable[str] | str = (),
        attributes: Mapping[str, str] | None = None,
        style: Mapping[str, object] | str | None = None,
        box: BoundingBox | None = None,
        children: Iterable["SyntheticNode"] = (),
    ) -> None:
        self.tag = tag.lower()
        self.attributes: dict[str, str] = dict(attributes or {})
        if element_id:
            self.attributes["id"] = element_id
        if isinstance(classes, str):
            classes = classes.split()
        class_list = list(classes)
        if class_list:
            self.attributes["class"] = " ".join(class_list)
        if style:
            self.attributes["style"] = style if isinstance(style, str) else format_inline_style(style)
        self.box = box or BoundingBox()
        self.parent: SyntheticNode | None = None
        self.children: list[SyntheticNode] = []
        self._tree: SyntheticTree | None = None
        for child in children:
            self.append(child)

    def __repr__(self) -> str:
        return f"SyntheticNode({self.facts()!r})"

    @property
    def element_id(self) -> str:
        return self.attributes.get("id", "")

    @property
    def classes(self) -> tuple[str, ...]:
        return tuple(self.attributes.get("class", "").split())

    @property
    def style(self) -> dict[str, str]:
        return parse_inline_style(self.attributes.get("style", ""))

    @property
    def connected(self) -> bool:
        return self._tree is not None

    def facts(self) -> ElementFacts:
        return ElementFacts(
            tag=self.tag,
            element_id=self.element_id,
            classes=self.classes,
            attributes=self.attributes,
        )

    def walk(self) -> Iterator["SyntheticNode"]:
        """Pre-order traversal starting at this node."""

        yield self
        for child in self.children:
            yield from child.walk()

    def append(self, child: "SyntheticNode") -> "SyntheticNode":
        if child.parent is not None:
            child.parent.children.remove(child)
        child.parent = self
        self.children.append(child)
        if self._tree is not None:
            self._tree._attach(child)
            self._tree._record(MutationRecord(MutationRecord.CHILD_LIST, self, added=(child,)))
        return child

    def remove(self) -> None:
        if self.parent is not None:
            self.parent.children.remove(self)
            self.parent = None
        for node in self.walk():
            node._tree = None

    def set_attribute(self, name: str, value: str) -> None:
        name = name.lower()
        self.attributes[name] = value
        if self._tree is not None:
            self._tree._record(MutationRecord(MutationRecord.ATTRIBUTES, self, attribute_name=name))

    def set_style(self, **declarations: object) -> None:
        style = self.style
        for name, value in declarations.items():
            style[name.replace("_", "-")] = str(value)
        self.set_attribute("style", format_inline_style(style))


class _SyntheticQuery:
    def __init__(self, node: SyntheticNode) -> None:
        self._node = node

    def ancestors(self) -> Sequence[ElementFacts]:
        chain: list[ElementFacts] = []
        node: SyntheticNode | None = self._node
        while node is not None:
            chain.append(node.facts())
            node = node.parent
        return chain

    def descendants(self) -> Sequence[ElementFacts]:
        return [node.facts() for node in self._node.walk() if node is not self._node]

    def child_count(self) -> int:
        return len(self._node.children)


class SyntheticTree(DocumentTree):
    """A document with ``html`` and ``body`` containers and a fixed viewport."""

    def __init__(self, viewport: Viewport | None = None) -> None:
        self.viewport = viewport or Viewport()
        self.root = SyntheticNode("html")
        self.body = SyntheticNode("body")
        self.root.append(self.body)
        self._feeds: list[SyntheticChangeFeed] = []
        self._attach(self.root)

    def _attach(self, node: SyntheticNode) -> None:
        for item in node.walk():
            item._tree = self

    def _record(self, record: MutationRecord) -> None:
        for feed in self._feeds:
            feed._enqueue(record)

    def elements(self) -> Iterator[SyntheticNode]:
        return self.root.walk()

    def descendants(self, element: SyntheticNode) -> Iterator[SyntheticNode]:
        iterator = element.walk()
        next(iterator)
        return iterator

    def document_containers(self) -> Sequence[SyntheticNode]:
        return (self.root, self.body)

    def snapshot(self, element: SyntheticNode) -> StyleSnapshot:
        if element._tree is not self:
            raise ElementDetachedError(f"{element!r} is not attached to this tree")
        style = element.style
        return StyleSnapshot(
            position=style.get("position", "static").lower(),
            z_index=parse_z_index(style.get("z-index")),
            display=style.get("display", "block"),
            box=element.box,
            viewport=self.viewport,
            facts=element.facts(),
            query=_SyntheticQuery(element),
        )


class _SyntheticSubscription(Subscription):
    def __init__(self, callback: MutationCallback, watched: frozenset[str]) -> None:
        self.callback = callback
        self.watched = watched
        self.pending: list[MutationRecord] = []
        self._connected = True

    @property
    def connected(self) -> bool:
        return self._connected

    def disconnect(self) -> None:
        self._connected = False
        self.pending.clear()


class SyntheticChangeFeed(ChangeFeed):
    """Buffers tree mutations per subscription and delivers them on ``flush()``."""

    def __init__(self, tree: SyntheticTree) -> None:
        self.tree = tree
        self._subscriptions: list[_SyntheticSubscription] = []
        tree._feeds.append(self)

    @property
    def subscriber_count(self) -> int:
        return sum(1 for item in self._subscriptions if item.connected)

    def subscribe(self, callback: MutationCallback, watched_attributes: Iterable[str]) -> Subscription:
        subscription = _SyntheticSubscription(callback, normalize_watched_attributes(watched_attributes))
        self._subscriptions.append(subscription)
        return subscription

    def _enqueue(self, record: MutationRecord) -> None:
        for subscription in self._subscriptions:
            if not subscription.connected:
                continue
            if record.kind == MutationRecord.ATTRIBUTES and record.attribute_name not in subscription.watched:
                continue
            subscription.pending.append(record)

    def flush(self) -> int:
        """Delivers each subscription's pending records as one batch."""

        delivered = 0
        self._subscriptions = [item for item in self._subscriptions if item.connected]
        for subscription in list(self._subscriptions):
            if not subscription.pending:
                continue
            batch = list(subscription.pending)
            subscription.pending.clear()
            delivered += len(batch)
            subscription.callback(batch)
        return delivered

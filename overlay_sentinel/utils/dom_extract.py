from __future__ import annotations

from typing import Any

from overlay_sentinel.core.metadata import BoundingBox, ElementFacts, Viewport, parse_z_index

FACTS_HELPER = r"""
const factsOf = (node) => ({
  tag: node.tagName.toLowerCase(),
  id: node.id || "",
  classes: Array.from(node.classList || []),
  attributes: Array.from(node.attributes).reduce((acc, attr) => {
    acc[attr.name] = attr.value;
    return acc;
  }, {}),
});
"""

SNAPSHOT_SCRIPT = FACTS_HELPER + r"""
const node = arguments[0];
if (!node || !(node instanceof Element) || !node.isConnected) return null;
const style = window.getComputedStyle(node);
const rect = node.getBoundingClientRect();
return {
  facts: factsOf(node),
  position: style.position,
  zIndex: style.zIndex,
  display: style.display,
  rect: {
    top: rect.top,
    left: rect.left,
    width: rect.width,
    height: rect.height,
  },
  viewport: {
    width: window.innerWidth,
    height: window.innerHeight,
  },
};
"""

ANCESTORS_SCRIPT = FACTS_HELPER + r"""
const node = arguments[0];
if (!node || !node.isConnected) return null;
const chain = [];
for (let current = node; current; current = current.parentElement) {
  chain.push(factsOf(current));
}
return chain;
"""

DESCENDANT_FACTS_SCRIPT = FACTS_HELPER + r"""
const node = arguments[0];
if (!node || !node.isConnected) return null;
return Array.from(node.querySelectorAll("*")).map(factsOf);
"""

CHILD_COUNT_SCRIPT = """
const node = arguments[0];
if (!node || !node.isConnected) return null;
return node.children.length;
"""

DEEP_ELEMENTS_HELPER = r"""
const deepElements = (root) => {
  const found = [];
  for (const node of root.querySelectorAll("*")) {
    found.push(node);
    if (node.shadowRoot) found.push(...deepElements(node.shadowRoot));
  }
  return found;
};
"""

ALL_ELEMENTS_SCRIPT = DEEP_ELEMENTS_HELPER + r"""
return deepElements(document);
"""

DESCENDANT_ELEMENTS_SCRIPT = DEEP_ELEMENTS_HELPER + r"""
const node = arguments[0];
if (!node || !node.isConnected) return null;
const found = deepElements(node);
if (node.shadowRoot) found.unshift(...deepElements(node.shadowRoot));
return found;
"""

DOCUMENT_CONTAINERS_SCRIPT = """
return [document.documentElement, document.body].filter(Boolean);
"""


def facts_from_payload(item: dict[str, Any]) -> ElementFacts:
    return ElementFacts(
        tag=item.get("tag", ""),
        element_id=item.get("id", ""),
        classes=tuple(item.get("classes", [])),
        attributes=item.get("attributes", {}),
    )


def box_from_payload(rect: dict[str, Any]) -> BoundingBox:
    return BoundingBox(
        top=float(rect.get("top", 0.0)),
        left=float(rect.get("left", 0.0)),
        width=float(rect.get("width", 0.0)),
        height=float(rect.get("height", 0.0)),
    )


def viewport_from_payload(viewport: dict[str, Any]) -> Viewport:
    return Viewport(
        width=float(viewport.get("width", 0.0)),
        height=float(viewport.get("height", 0.0)),
    )


def style_fields_from_payload(payload: dict[str, Any]) -> dict[str, Any]:
    return {
        "position": (payload.get("position") or "static").lower(),
        "z_index": parse_z_index(payload.get("zIndex")),
        "display": payload.get("display") or "",
        "box": box_from_payload(payload.get("rect") or {}),
        "viewport": viewport_from_payload(payload.get("viewport") or {}),
        "facts": facts_from_payload(payload.get("facts") or {}),
    }

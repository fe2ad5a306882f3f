from __future__ import annotations

from typing import Any, Sequence

from overlay_sentinel.config.schema import IdentifierConfig
from overlay_sentinel.core.metadata import ElementFacts, StyleSnapshot
from overlay_sentinel.rules.base import Rule, RuleClassifier, first_hit

SIDEBAR_CATEGORY = "ai-sidebar"
INTERFACE_CATEGORY = "ai-interface"
UTILITY_CATEGORY = "ai-utility"

TEXT_INPUT_TYPES = ("", "text")


def searchable_text(facts: ElementFacts) -> str:
    return f"{facts.identity_text} {facts.attribute_text}"


def markup_text(facts: ElementFacts) -> str:
    """Like ``searchable_text`` but without the inline style declarations."""

    markup = " ".join(f"{name}={value}" for name, value in facts.attributes.items() if name != "style")
    return f"{facts.identity_text} {markup.lower()}"


def is_text_entry(facts: ElementFacts) -> bool:
    if facts.tag == "textarea":
        return True
    return facts.tag == "input" and facts.attributes.get("type", "").lower() in TEXT_INPUT_TYPES


class IdentifierClassifier(RuleClassifier):
    """Flags AI-assistant style interfaces by vocabulary and composer structure.

    Product, feature and container vocabularies each make a match on their
    own. Framework root markers are reported alongside another match but are
    never sufficient.
    """

    name = "identifier"

    def __init__(self, config: IdentifierConfig | None = None) -> None:
        self.config = config or IdentifierConfig()
        super().__init__(
            [
                Rule("product-name", self._product_name, "AI product reference: {value}"),
                Rule("feature-word", self._feature_word, "AI feature keyword: {value}"),
                Rule("container-fragment", self._container_fragment, "AI container pattern: {value}"),
                Rule("prompt-input", self._prompt_input, "Prompt input field: {value}"),
                Rule("overlay-container", self._overlay_container, "Overlay wrapping chat surface (z-index: {value})"),
                Rule("framework-root", self._framework_root, "Framework root marker: {value}", corroborating=True),
            ]
        )

    def categorize(self, element: Any, snapshot: StyleSnapshot, fired: Sequence[str]) -> str:
        if "sidebar" in snapshot.facts.identity_text:
            return SIDEBAR_CATEGORY
        if "prompt-input" in fired or self._has_text_area(snapshot):
            return INTERFACE_CATEGORY
        return UTILITY_CATEGORY

    def _product_name(self, element: Any, snapshot: StyleSnapshot) -> str | None:
        return first_hit(searchable_text(snapshot.facts), self.config.product_names)

    def _feature_word(self, element: Any, snapshot: StyleSnapshot) -> str | None:
        return first_hit(markup_text(snapshot.facts), self.config.feature_words)

    def _container_fragment(self, element: Any, snapshot: StyleSnapshot) -> str | None:
        return first_hit(searchable_text(snapshot.facts), self.config.container_fragments)

    def _framework_root(self, element: Any, snapshot: StyleSnapshot) -> str | None:
        return first_hit(searchable_text(snapshot.facts), self.config.framework_markers)

    def _prompt_input(self, element: Any, snapshot: StyleSnapshot) -> str | None:
        facts = snapshot.facts
        if not is_text_entry(facts):
            return None
        if first_hit(facts.identity_text, self.config.prompt_words) is None:
            return None
        return facts.tag

    def _overlay_container(self, element: Any, snapshot: StyleSnapshot) -> int | None:
        z_index = snapshot.z_index
        if snapshot.position != "fixed" or z_index is None:
            return None
        if not (z_index > self.config.overlay_z_index or z_index == -1):
            return None
        for facts in snapshot.query.descendants():
            if facts.tag == "textarea" or first_hit(facts.identity_text, self.config.conversation_words):
                return z_index
        return None

    @staticmethod
    def _has_text_area(snapshot: StyleSnapshot) -> bool:
        return any(facts.tag == "textarea" for facts in snapshot.query.descendants())

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from overlay_sentinel.core.exceptions import ElementDetachedError
from overlay_sentinel.core.metadata import ClassificationVerdict, StyleSnapshot

log = logging.getLogger(__name__)

Predicate = Callable[[Any, StyleSnapshot], Any]


@dataclass(frozen=True, slots=True)
class Rule:
    """One heuristic: a predicate over ``(element, snapshot)`` and a reason template.

    The predicate returns ``None`` or ``False`` when the rule does not fire.
    Any other value fires the rule and is available to the template as
    ``{value}``. Corroborating rules never make a match on their own; they
    only add a reason when a primary rule already fired.
    """

    rule_id: str
    predicate: Predicate
    reason: str
    corroborating: bool = False

    def evaluate(self, element: Any, snapshot: StyleSnapshot) -> str | None:
        hit = self.predicate(element, snapshot)
        if hit is None or hit is False:
            return None
        return self.reason.format(value=hit)


class Classifier(ABC):
    """Strategy deciding whether an element is of interest."""

    name = "unknown"

    @abstractmethod
    def classify(self, element: Any, snapshot: StyleSnapshot) -> ClassificationVerdict:
        raise NotImplementedError


class RuleClassifier(Classifier):
    """Evaluates an ordered rule list without short-circuiting."""

    def __init__(self, rules: Sequence[Rule]) -> None:
        self.rules = tuple(rules)

    @property
    def rule_ids(self) -> tuple[str, ...]:
        return tuple(rule.rule_id for rule in self.rules)

    def classify(self, element: Any, snapshot: StyleSnapshot) -> ClassificationVerdict:
        try:
            fired = self._evaluate(element, snapshot)
        except ElementDetachedError:
            log.debug("Element detached during %s classification", self.name)
            return ClassificationVerdict.no_match()
        if not any(not rule.corroborating for rule, _ in fired):
            return ClassificationVerdict.no_match()
        reasons = tuple(reason for _, reason in fired)
        category = self.categorize(element, snapshot, [rule.rule_id for rule, _ in fired])
        return ClassificationVerdict(is_match=True, category=category, reasons=reasons)

    def _evaluate(self, element: Any, snapshot: StyleSnapshot) -> list[tuple[Rule, str]]:
        fired: list[tuple[Rule, str]] = []
        for rule in self.rules:
            reason = rule.evaluate(element, snapshot)
            if reason is not None:
                fired.append((rule, reason))
        return fired

    @abstractmethod
    def categorize(self, element: Any, snapshot: StyleSnapshot, fired: Sequence[str]) -> str:
        raise NotImplementedError


def first_hit(text: str, vocabulary: Sequence[str]) -> str | None:
    for word in vocabulary:
        if word and word in text:
            return word
    return None

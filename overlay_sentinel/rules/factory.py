from __future__ import annotations

from overlay_sentinel.config.schema import DetectorConfig
from overlay_sentinel.rules.base import Classifier
from overlay_sentinel.rules.identifier import IdentifierClassifier
from overlay_sentinel.rules.positional import PositionalClassifier


def create_classifier(config: DetectorConfig) -> Classifier:
    if config.ruleset == "positional":
        return PositionalClassifier(config.positional)
    if config.ruleset == "identifier":
        return IdentifierClassifier(config.identifier)
    raise ValueError(f"Unsupported ruleset: {config.ruleset}")

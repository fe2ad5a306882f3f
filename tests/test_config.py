from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from overlay_sentinel.config.loader import ConfigLoader
from overlay_sentinel.config.schema import AttributeMarker, DetectorConfig, EngineUiPolicy, EnvironmentConfig
from overlay_sentinel.core.metadata import ElementFacts
from overlay_sentinel.rules.factory import create_classifier
from overlay_sentinel.rules.identifier import IdentifierClassifier
from overlay_sentinel.rules.positional import PositionalClassifier


def test_config_loader_validates_json(tmp_path):
    config_path = tmp_path / "detector.json"
    config_path.write_text(
        json.dumps(
            {
                "ruleset": "identifier",
                "watched_attributes": ["Style", "class"],
                "positional": {"detect_overflow": False, "keywords": ["Overlay"]},
                "identifier": {"product_names": ["ACME"]},
                "engine_ui": {"tags": ["HEADER"], "markers": [{"attribute": "data-audit-ui"}]},
            }
        ),
        encoding="utf-8",
    )
    config = ConfigLoader.load(config_path)
    assert config.ruleset == "identifier"
    assert config.watched_attributes == ["style", "class"]
    assert config.positional.detect_overflow is False
    assert config.positional.keywords == ["overlay"]
    assert config.identifier.product_names == ["acme"]
    assert config.engine_ui.tags == ["header"]
    assert config.environment is None


def test_bundled_config_loads(detector_config):
    assert detector_config.ruleset == "positional"
    assert detector_config.environment.browser == "chrome"
    assert "style" in detector_config.watched_attributes


def test_missing_config_falls_back_to_defaults(tmp_path):
    config = ConfigLoader.load_or_default(tmp_path / "absent.json")
    assert config == DetectorConfig()


@pytest.mark.parametrize("watched", [[], ["  "], ["style", "*"]])
def test_watched_attributes_must_be_an_allowlist(watched):
    with pytest.raises(ValidationError):
        DetectorConfig(watched_attributes=watched)


def test_unknown_ruleset_is_rejected():
    with pytest.raises(ValidationError):
        DetectorConfig.model_validate({"ruleset": "heuristic"})


def test_environment_rejects_unsupported_browser():
    with pytest.raises(ValidationError):
        EnvironmentConfig(base_url="http://localhost", browser="safari")


def test_classifier_factory_follows_ruleset():
    assert isinstance(create_classifier(DetectorConfig()), PositionalClassifier)
    assert isinstance(create_classifier(DetectorConfig(ruleset="identifier")), IdentifierClassifier)


def test_positional_flags_select_rules():
    config = DetectorConfig.model_validate({"positional": {"detect_high_z_index": False}})
    classifier = create_classifier(config)
    assert classifier.rule_ids == ("position", "viewport-overflow", "floating-characteristics")


def test_attribute_marker_matching():
    element = ElementFacts(tag="div", element_id="main-app", attributes={"id": "main-app"})
    assert AttributeMarker(attribute="id", contains="app").matches(element)
    assert not AttributeMarker(attribute="id", contains="root").matches(element)
    assert not AttributeMarker(attribute="data-app").matches(element)


def test_engine_ui_policy_covers_tags_and_markers():
    policy = EngineUiPolicy(tags=["Footer"])
    assert policy.covers(ElementFacts(tag="footer"))
    assert policy.covers(ElementFacts(tag="div", attributes={"data-overlay-sentinel-ui": "results"}))
    assert not policy.covers(ElementFacts(tag="div"))

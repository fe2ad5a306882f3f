from __future__ import annotations

from pathlib import Path

import pytest

from overlay_sentinel.config.loader import ConfigLoader
from overlay_sentinel.core.engine import DetectionEngine
from overlay_sentinel.core.synthetic import SyntheticChangeFeed, SyntheticTree
from overlay_sentinel.reporting.sinks import CollectingSink
from overlay_sentinel.rules.positional import PositionalClassifier
from tests.helpers import VIEWPORT


@pytest.fixture()
def detector_config():
    config_path = Path(__file__).resolve().parents[1] / "config" / "detector.json"
    return ConfigLoader.load(config_path)


@pytest.fixture()
def tree():
    return SyntheticTree(VIEWPORT)


@pytest.fixture()
def feed(tree):
    return SyntheticChangeFeed(tree)


@pytest.fixture()
def sink():
    return CollectingSink()


@pytest.fixture()
def engine(tree, feed, sink):
    return DetectionEngine(tree, feed, PositionalClassifier(), sink)

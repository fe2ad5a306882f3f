from __future__ import annotations

import pytest

from overlay_sentinel.config.schema import PositionalConfig
from overlay_sentinel.core.metadata import BoundingBox
from overlay_sentinel.rules.positional import FLOATING_CATEGORY, PositionalClassifier, straddles_viewport
from tests.helpers import facts, make_snapshot

OVERFLOW_REASON = "Partially outside viewport"
CHARACTERISTICS_REASON = "Common floating element characteristics"


def test_absolute_high_z_index_inside_viewport_matches_without_overflow():
    snapshot = make_snapshot(position="absolute", z_index=500)
    verdict = PositionalClassifier().classify(object(), snapshot)
    assert verdict.is_match
    assert verdict.category == FLOATING_CATEGORY
    assert verdict.reasons == ("Position: absolute", "High z-index: 500", CHARACTERISTICS_REASON)
    assert OVERFLOW_REASON not in verdict.reasons


def test_static_element_straddling_left_edge_is_not_floating():
    snapshot = make_snapshot(position="static", box=BoundingBox(top=10, left=-50, width=200, height=40))
    verdict = PositionalClassifier().classify(object(), snapshot)
    assert not verdict.is_match
    assert verdict.reasons == ()


def test_fixed_element_straddling_edge_reports_overflow():
    snapshot = make_snapshot(position="fixed", box=BoundingBox(top=10, left=1200, width=200, height=40))
    verdict = PositionalClassifier().classify(object(), snapshot)
    assert verdict.reasons[:2] == ("Position: fixed", OVERFLOW_REASON)


def test_sticky_overflow_does_not_count_as_outside_viewport():
    snapshot = make_snapshot(position="sticky", box=BoundingBox(top=-20, left=0, width=200, height=40))
    verdict = PositionalClassifier().classify(object(), snapshot)
    assert verdict.is_match
    assert OVERFLOW_REASON not in verdict.reasons


@pytest.mark.parametrize(
    ("box", "expected"),
    [
        (BoundingBox(top=10, left=-10, width=50, height=50), True),
        (BoundingBox(top=-10, left=10, width=50, height=50), True),
        (BoundingBox(top=10, left=1250, width=50, height=50), True),
        (BoundingBox(top=780, left=10, width=50, height=50), True),
        (BoundingBox(top=10, left=10, width=50, height=50), False),
        (BoundingBox(top=10, left=1300, width=50, height=50), False),
    ],
)
def test_straddles_viewport_edges(box, expected):
    assert straddles_viewport(make_snapshot(box=box)) is expected


def test_z_index_threshold_is_exclusive():
    classifier = PositionalClassifier(PositionalConfig(detect_characteristics=False))
    assert not classifier.classify(object(), make_snapshot(z_index=100)).is_match
    assert classifier.classify(object(), make_snapshot(z_index=101)).reasons == ("High z-index: 101",)


def test_disabled_checks_contribute_no_reasons():
    config = PositionalConfig(detect_position=False, detect_characteristics=False)
    verdict = PositionalClassifier(config).classify(object(), make_snapshot(position="absolute", z_index=500))
    assert verdict.reasons == ("High z-index: 500",)


def test_all_checks_disabled_never_match():
    config = PositionalConfig(
        detect_position=False,
        detect_high_z_index=False,
        detect_overflow=False,
        detect_characteristics=False,
    )
    classifier = PositionalClassifier(config)
    assert classifier.rule_ids == ()
    assert not classifier.classify(object(), make_snapshot(position="fixed", z_index=9999, classes="modal")).is_match


def test_floating_keyword_alone_matches_static_element():
    verdict = PositionalClassifier().classify(object(), make_snapshot(classes="cookie-Banner"))
    assert verdict.is_match
    assert verdict.reasons == (CHARACTERISTICS_REASON,)


def test_keyword_in_id_matches():
    verdict = PositionalClassifier().classify(object(), make_snapshot(element_id="newsletter-popup"))
    assert verdict.reasons == (CHARACTERISTICS_REASON,)


def test_moderate_z_index_needs_positioning_for_characteristics():
    classifier = PositionalClassifier()
    assert not classifier.classify(object(), make_snapshot(z_index=60)).is_match
    positioned = classifier.classify(object(), make_snapshot(position="relative", z_index=60))
    assert not positioned.is_match
    sticky = classifier.classify(object(), make_snapshot(position="sticky", z_index=60))
    assert sticky.reasons == ("Position: sticky", CHARACTERISTICS_REASON)


@pytest.mark.known_overmatch
def test_positioned_wrapper_with_children_outside_app_root_is_flagged():
    # Any positioned element with children outside an app root counts as injected,
    # including ordinary page widgets. Pinned as a known over-match.
    snapshot = make_snapshot(position="absolute", children=2, parents=[facts("section"), facts("body")])
    verdict = PositionalClassifier().classify(object(), snapshot)
    assert verdict.reasons == ("Position: absolute", CHARACTERISTICS_REASON)


@pytest.mark.parametrize(
    "root",
    [facts("div", data_app=""), facts("div", element_id="app"), facts("div", classes="webapp-shell")],
)
def test_app_root_marker_suppresses_injection_heuristic(root):
    snapshot = make_snapshot(position="absolute", children=2, parents=[facts("section"), root])
    verdict = PositionalClassifier().classify(object(), snapshot)
    assert verdict.reasons == ("Position: absolute",)


def test_childless_positioned_element_is_not_treated_as_injected():
    config = PositionalConfig(detect_position=False)
    verdict = PositionalClassifier(config).classify(object(), make_snapshot(position="absolute"))
    assert not verdict.is_match


def test_detached_element_degrades_to_no_match():
    snapshot = make_snapshot(position="absolute", detached=True)
    verdict = PositionalClassifier().classify(object(), snapshot)
    assert not verdict.is_match

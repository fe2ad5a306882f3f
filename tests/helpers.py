from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Mapping, Sequence
from urllib.parse import quote

import pytest
from selenium.common.exceptions import WebDriverException

from overlay_sentinel.config.schema import DetectorConfig, EnvironmentConfig
from overlay_sentinel.core.browser import BrowserSession
from overlay_sentinel.core.exceptions import ElementDetachedError
from overlay_sentinel.core.metadata import BoundingBox, ElementFacts, StyleSnapshot, Viewport
from overlay_sentinel.core.runtime import BrowserDetectionRuntime, build_browser_engine

VIEWPORT = Viewport(width=1280, height=800)


@dataclass(slots=True)
class StaticQuery:
    facts: ElementFacts
    parents: Sequence[ElementFacts] = ()
    below: Sequence[ElementFacts] = ()
    children: int = 0

    def ancestors(self) -> Sequence[ElementFacts]:
        return [self.facts, *self.parents]

    def descendants(self) -> Sequence[ElementFacts]:
        return list(self.below)

    def child_count(self) -> int:
        return self.children


@dataclass(slots=True)
class DetachedQuery:
    def ancestors(self) -> Sequence[ElementFacts]:
        raise ElementDetachedError("gone")

    def descendants(self) -> Sequence[ElementFacts]:
        raise ElementDetachedError("gone")

    def child_count(self) -> int:
        raise ElementDetachedError("gone")


def make_snapshot(
    tag: str = "div",
    *,
    position: str = "static",
    z_index: int | None = None,
    box: BoundingBox | None = None,
    element_id: str = "",
    classes: str = "",
    attributes: Mapping[str, str] | None = None,
    parents: Sequence[ElementFacts] = (),
    descendants: Sequence[ElementFacts] = (),
    children: int = 0,
    detached: bool = False,
) -> StyleSnapshot:
    attrs = dict(attributes or {})
    if element_id:
        attrs["id"] = element_id
    if classes:
        attrs["class"] = classes
    facts = ElementFacts(tag=tag, element_id=element_id, classes=tuple(classes.split()), attributes=attrs)
    query = DetachedQuery() if detached else StaticQuery(facts, parents, descendants, children)
    return StyleSnapshot(
        position=position,
        z_index=z_index,
        display="block",
        box=box or BoundingBox(top=100, left=100, width=200, height=100),
        viewport=VIEWPORT,
        facts=facts,
        query=query,
    )


def facts(tag: str = "div", *, element_id: str = "", classes: str = "", **attributes: str) -> ElementFacts:
    attrs = {name.replace("_", "-"): value for name, value in attributes.items()}
    if element_id:
        attrs["id"] = element_id
    if classes:
        attrs["class"] = classes
    return ElementFacts(tag=tag, element_id=element_id, classes=tuple(classes.split()), attributes=attrs)


@dataclass(slots=True)
class PageFixture:
    html: str

    def data_url(self) -> str:
        return "data:text/html;charset=utf-8," + quote(self.html)


@contextmanager
def managed_runtime(config: DetectorConfig, page: PageFixture) -> Iterator[BrowserDetectionRuntime]:
    if config.environment is None:
        environment = EnvironmentConfig(base_url=page.data_url())
    else:
        environment = config.environment.model_copy(update={"base_url": page.data_url()})
    browser_session = BrowserSession(environment)
    try:
        driver = browser_session.open()
    except WebDriverException as exc:
        pytest.skip(f"WebDriver could not start for {environment.browser}: {exc}")
    try:
        yield build_browser_engine(driver, config)
    finally:
        driver.quit()

from __future__ import annotations

from typing import Any, Sequence

from selenium.common.exceptions import JavascriptException, StaleElementReferenceException
from selenium.webdriver.remote.webelement import WebElement

from overlay_sentinel.core.exceptions import ElementDetachedError
from overlay_sentinel.core.metadata import ElementFacts, StyleSnapshot
from overlay_sentinel.core.tree import DocumentTree
from overlay_sentinel.utils.dom_extract import (
    ALL_ELEMENTS_SCRIPT,
    ANCESTORS_SCRIPT,
    CHILD_COUNT_SCRIPT,
    DESCENDANT_ELEMENTS_SCRIPT,
    DESCENDANT_FACTS_SCRIPT,
    DOCUMENT_CONTAINERS_SCRIPT,
    SNAPSHOT_SCRIPT,
    facts_from_payload,
    style_fields_from_payload,
)


def run_element_script(driver, script: str, element: WebElement) -> Any:
    """Runs ``script`` against ``element``; a vanished element raises ElementDetachedError."""

    try:
        result = driver.execute_script(script, element)
    except (StaleElementReferenceException, JavascriptException) as exc:
        raise ElementDetachedError(str(exc)) from exc
    if result is None:
        raise ElementDetachedError("Element is no longer connected to the document")
    return result


class SeleniumElementQuery:
    def __init__(self, driver, element: WebElement) -> None:
        self.driver = driver
        self.element = element

    def ancestors(self) -> Sequence[ElementFacts]:
        return [facts_from_payload(item) for item in run_element_script(self.driver, ANCESTORS_SCRIPT, self.element)]

    def descendants(self) -> Sequence[ElementFacts]:
        payload = run_element_script(self.driver, DESCENDANT_FACTS_SCRIPT, self.element)
        return [facts_from_payload(item) for item in payload]

    def child_count(self) -> int:
        return int(run_element_script(self.driver, CHILD_COUNT_SCRIPT, self.element))


class SeleniumDocumentTree(DocumentTree):
    """Reads the live page through WebDriver script execution."""

    def __init__(self, driver) -> None:
        self.driver = driver

    def elements(self) -> list[WebElement]:
        return self.driver.execute_script(ALL_ELEMENTS_SCRIPT) or []

    def descendants(self, element: WebElement) -> list[WebElement]:
        return run_element_script(self.driver, DESCENDANT_ELEMENTS_SCRIPT, element)

    def document_containers(self) -> list[WebElement]:
        return self.driver.execute_script(DOCUMENT_CONTAINERS_SCRIPT) or []

    def snapshot(self, element: WebElement) -> StyleSnapshot:
        payload = run_element_script(self.driver, SNAPSHOT_SCRIPT, element)
        return StyleSnapshot(
            query=SeleniumElementQuery(self.driver, element),
            **style_fields_from_payload(payload),
        )

from __future__ import annotations

from selenium import webdriver
from selenium.common.exceptions import WebDriverException
from selenium.webdriver import ChromeOptions, FirefoxOptions

from overlay_sentinel.config.schema import EnvironmentConfig


class BrowserSession:
    """Creates the browser that hosts the audited page, using Selenium Manager."""

    def __init__(self, environment: EnvironmentConfig) -> None:
        self.environment = environment

    def start(self, browser_name: str | None = None):
        normalized = (browser_name or self.environment.browser).lower()
        if normalized == "chrome":
            options = ChromeOptions()
            if self.environment.headless:
                options.add_argument("--headless=new")
            options.add_argument("--window-size=1440,900")
            driver = webdriver.Chrome(options=options)
        elif normalized == "firefox":
            options = FirefoxOptions()
            if self.environment.headless:
                options.add_argument("-headless")
            driver = webdriver.Firefox(options=options)
            driver.set_window_size(1440, 900)
        else:
            raise ValueError(f"Unsupported browser: {browser_name}")
        driver.set_page_load_timeout(self.environment.default_timeout_seconds)
        driver.implicitly_wait(0)
        return driver

    def open(self, browser_name: str | None = None):
        """Starts the browser and loads ``base_url``; the browser is closed if loading fails."""

        driver = self.start(browser_name)
        try:
            driver.get(self.environment.base_url)
        except WebDriverException:
            driver.quit()
            raise
        return driver

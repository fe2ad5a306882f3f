from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from overlay_sentinel.core.metadata import ElementFacts

FLOATING_KEYWORDS = [
    "float",
    "overlay",
    "modal",
    "popup",
    "tooltip",
    "dropdown",
    "sidebar",
    "drawer",
    "panel",
    "widget",
    "chat",
    "notification",
    "banner",
    "sticky",
    "fixed",
    "floating",
    "fab",
    "action-button",
]

PRODUCT_NAMES = [
    "chatgpt",
    "openai",
    "claude",
    "anthropic",
    "gemini",
    "bard",
    "copilot",
    "perplexity",
    "mistral",
    "huggingface",
    "character-ai",
    "jasper",
    "writesonic",
]

FEATURE_WORDS = [
    "assistant",
    "chatbot",
    "bot",
    "chat",
    "completion",
    "prompt",
    "conversation",
    "llm",
    "gpt",
    "ai-",
]

FRAMEWORK_MARKERS = [
    "data-reactroot",
    "data-react-helmet",
    "ng-version",
    "ng-app",
    "data-v-app",
    "data-svelte",
    "__next",
    "__nuxt",
    "ember-application",
]

CONTAINER_FRAGMENTS = [
    "chat-container",
    "chat-window",
    "chat-widget",
    "assistant-panel",
    "ai-widget",
    "ai-panel",
    "intercom-",
    "drift-widget",
    "crisp-client",
    "tawk-",
    "zendesk",
    "hubspot-messages",
]


class AttributeMarker(BaseModel):
    """``[attribute]`` or ``[attribute*="contains"]`` test against element facts."""

    attribute: str
    contains: str | None = None

    @field_validator("attribute")
    @classmethod
    def normalize_attribute(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized:
            raise ValueError("attribute must not be empty")
        return normalized

    def matches(self, facts: ElementFacts) -> bool:
        if self.attribute not in facts.attributes:
            return False
        if self.contains is None:
            return True
        return self.contains in facts.attributes[self.attribute]


class PositionalConfig(BaseModel):
    detect_position: bool = True
    detect_high_z_index: bool = True
    detect_overflow: bool = True
    detect_characteristics: bool = True
    z_index_threshold: int = 100
    characteristic_z_index: int = 50
    keywords: list[str] = Field(default_factory=lambda: list(FLOATING_KEYWORDS))
    app_root_markers: list[AttributeMarker] = Field(
        default_factory=lambda: [
            AttributeMarker(attribute="data-app"),
            AttributeMarker(attribute="id", contains="app"),
            AttributeMarker(attribute="class", contains="app"),
        ]
    )

    @field_validator("keywords")
    @classmethod
    def lowercase_keywords(cls, value: list[str]) -> list[str]:
        return [item.lower() for item in value if item]


class IdentifierConfig(BaseModel):
    product_names: list[str] = Field(default_factory=lambda: list(PRODUCT_NAMES))
    feature_words: list[str] = Field(default_factory=lambda: list(FEATURE_WORDS))
    framework_markers: list[str] = Field(default_factory=lambda: list(FRAMEWORK_MARKERS))
    container_fragments: list[str] = Field(default_factory=lambda: list(CONTAINER_FRAGMENTS))
    prompt_words: list[str] = Field(default_factory=lambda: ["prompt", "chat", "message"])
    conversation_words: list[str] = Field(default_factory=lambda: ["conversation", "chat", "prompt"])
    overlay_z_index: int = 1000

    @field_validator(
        "product_names",
        "feature_words",
        "framework_markers",
        "container_fragments",
        "prompt_words",
        "conversation_words",
    )
    @classmethod
    def lowercase_vocabulary(cls, value: list[str]) -> list[str]:
        return [item.lower() for item in value if item]


class EngineUiPolicy(BaseModel):
    """Regions the detector renders into and must never flag."""

    tags: list[str] = Field(default_factory=list)
    markers: list[AttributeMarker] = Field(
        default_factory=lambda: [AttributeMarker(attribute="data-overlay-sentinel-ui")]
    )

    @field_validator("tags")
    @classmethod
    def lowercase_tags(cls, value: list[str]) -> list[str]:
        return [item.lower() for item in value]

    def covers(self, facts: ElementFacts) -> bool:
        if facts.tag in self.tags:
            return True
        return any(marker.matches(facts) for marker in self.markers)


class EnvironmentConfig(BaseModel):
    base_url: str
    browser: str = "chrome"
    default_timeout_seconds: int = 10
    headless: bool = True
    poll_interval_seconds: float = 0.25

    @field_validator("browser")
    @classmethod
    def validate_browser(cls, value: str) -> str:
        normalized = value.lower()
        if normalized not in {"chrome", "firefox"}:
            raise ValueError(f"Unsupported browser: {value}")
        return normalized


class DetectorConfig(BaseModel):
    ruleset: Literal["positional", "identifier"] = "positional"
    positional: PositionalConfig = Field(default_factory=PositionalConfig)
    identifier: IdentifierConfig = Field(default_factory=IdentifierConfig)
    watched_attributes: list[str] = Field(default_factory=lambda: ["style", "class", "id"])
    engine_ui: EngineUiPolicy = Field(default_factory=EngineUiPolicy)
    strict_session: bool = False
    environment: EnvironmentConfig | None = None

    @field_validator("watched_attributes")
    @classmethod
    def validate_watched_attributes(cls, value: list[str]) -> list[str]:
        normalized = [item.strip().lower() for item in value if item.strip()]
        if not normalized:
            raise ValueError("watched_attributes must name at least one attribute")
        if "*" in normalized:
            raise ValueError("watched_attributes must be an explicit allowlist")
        return normalized

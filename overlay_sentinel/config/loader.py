from __future__ import annotations

import json
from pathlib import Path

from overlay_sentinel.config.schema import DetectorConfig


class ConfigLoader:
    """Loads and validates the JSON detector configuration."""

    @staticmethod
    def load(path: str | Path) -> DetectorConfig:
        config_path = Path(path)
        with config_path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
        return DetectorConfig.model_validate(payload)

    @staticmethod
    def load_or_default(path: str | Path | None) -> DetectorConfig:
        if path is None or not Path(path).exists():
            return DetectorConfig()
        return ConfigLoader.load(path)

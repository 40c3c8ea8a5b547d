"""Strategy setting file loader.

The setting file is a JSON object validated into SettingConfig, e.g.:

    {
        "from": "2023-01-01 00:00:00",
        "to": "2023-06-30 23:59:59",
        "initial_capital": 10000,
        "fee_rate": 0.0004,
        "kline_percentage": 0.005,
        "entry_portion": 0.1
    }
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from price_action.backtesting.schemas import SettingConfig
from price_action.common.exceptions import ConfigError
from price_action.common.logging import get_logger

logger = get_logger("CONFIG")


def load_setting_config(path: str | Path) -> SettingConfig:
    """Read and validate a JSON setting file.

    Args:
        path: Path to the JSON file.

    Returns:
        The validated SettingConfig.

    Raises:
        ConfigError: If the file is missing, not JSON, or fails validation.
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError("Cannot read setting file", context={"path": str(path)}) from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(
            "Setting file is not valid JSON",
            context={"path": str(path), "line": exc.lineno},
        ) from exc

    try:
        config = SettingConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(
            "Invalid setting file",
            context={"path": str(path), "errors": exc.errors(include_url=False)},
        ) from exc

    logger.info("Setting file loaded", extra={"data": config.model_dump(by_alias=True)})
    return config

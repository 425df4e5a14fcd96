"""Configuration management for Planner."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from .core.state import DENSITIES, VIEW_MODES
from .core.tasks import DEFAULT_DURATION, NOW_REFRESH_SECONDS, clamp_duration

logger = logging.getLogger(__name__)

PLANNER_HOME = Path(os.environ.get("PLANNER_HOME", Path.home() / "planner"))
CONFIG_FILE = PLANNER_HOME / "config" / "planner.conf"
DATA_DIR = PLANNER_HOME / "data"


@dataclass
class Config:
    """Planner configuration."""

    state_file: str = field(default_factory=lambda: str(DATA_DIR / "planner_state.json"))
    default_duration: int = DEFAULT_DURATION
    view_mode: str = "7d"
    density: str = "cozy"
    seed_samples: bool = True
    refresh_seconds: int = NOW_REFRESH_SECONDS


def _unquote(value: str) -> str:
    """Strip quotes, or an inline comment from an unquoted value."""
    if value.startswith('"') or value.startswith("'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        if end_quote != -1:
            return value[1:end_quote]
        return value[1:]
    # Unquoted: strip inline comments
    if "#" in value:
        return value.split("#")[0].strip()
    return value


def _parse_bool(value: str) -> bool:
    lowered = value.lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {value!r}")


def parse_config(text: str) -> Config:
    """Parse KEY=value lines into a Config, keeping defaults for bad values."""
    config = Config()

    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _unquote(value.strip())

        match key:
            case "state_file":
                if value:
                    config.state_file = str(Path(value).expanduser())
            case "default_duration":
                try:
                    config.default_duration = clamp_duration(value)
                except ValueError:
                    logger.warning(f"Invalid DEFAULT_DURATION: {value!r}")
            case "view_mode":
                if value in VIEW_MODES:
                    config.view_mode = value
                else:
                    logger.warning(f"Invalid VIEW_MODE: {value!r}")
            case "density":
                if value in DENSITIES:
                    config.density = value
                else:
                    logger.warning(f"Invalid DENSITY: {value!r}")
            case "seed_samples":
                try:
                    config.seed_samples = _parse_bool(value)
                except ValueError:
                    logger.warning(f"Invalid SEED_SAMPLES: {value!r}")
            case "refresh_seconds":
                try:
                    seconds = int(value)
                    if seconds <= 0:
                        raise ValueError(value)
                    config.refresh_seconds = seconds
                except ValueError:
                    logger.warning(f"Invalid REFRESH_SECONDS: {value!r}")

    return config


def load_config() -> Config:
    """Load configuration from planner.conf file."""
    if not CONFIG_FILE.exists():
        return Config()
    return parse_config(CONFIG_FILE.read_text())

"""
Engine configuration persistence.

Tuning values for conversation selection and text shaping, stored in a
JSON file and merged over defaults.
"""

import json
from pathlib import Path
from typing import TypedDict


class EngineConfig(TypedDict, total=False):
    """Engine tuning."""
    category_weights: dict[str, float]  # Conversation category -> selection weight
    trust_score_factor: float  # Trust value contribution to selection score
    max_verbosity_phrases: int  # Speech patterns appended for verbose NPCs
    terse_verbosity_threshold: float  # Below this, NPCs only say their first sentence
    hesitation_reluctance_threshold: float  # Reluctant NPCs hesitate below Friendly
    history_limit: int  # Events kept by the event bus
    log_level: str


DEFAULT_CATEGORY_WEIGHTS: dict[str, float] = {
    "quest_initiation": 60.0,
    "quest_investigation": 50.0,
    "lore": 40.0,
    "trading": 30.0,
    "information": 20.0,
    "casual": 10.0,
}


DEFAULT_CONFIG: EngineConfig = {
    "category_weights": dict(DEFAULT_CATEGORY_WEIGHTS),
    "trust_score_factor": 0.01,  # +/-1 at the trust extremes, below one category step
    "max_verbosity_phrases": 2,
    "terse_verbosity_threshold": 0.75,
    "hesitation_reluctance_threshold": 0.5,
    "history_limit": 100,
    "log_level": "INFO",
}


def default_config() -> EngineConfig:
    """Fresh copy of the defaults (nested dicts included)."""
    config = DEFAULT_CONFIG.copy()
    config["category_weights"] = dict(DEFAULT_CATEGORY_WEIGHTS)
    return config


def get_config_path(base_dir: Path | str = ".") -> Path:
    """Get path to config file."""
    return Path(base_dir) / ".casefile_config.json"


def load_config(base_dir: Path | str = ".") -> EngineConfig:
    """Load config from file, or return defaults if not found."""
    path = get_config_path(base_dir)

    if not path.exists():
        return default_config()

    try:
        with open(path, "r", encoding="utf-8") as f:
            saved = json.load(f)
    except (json.JSONDecodeError, IOError):
        return default_config()
    if not isinstance(saved, dict):
        return default_config()

    # Merge with defaults to handle missing keys
    config = default_config()
    weights = saved.pop("category_weights", None)
    config.update(saved)
    if isinstance(weights, dict):
        config["category_weights"].update(weights)
    return config


def save_config(config: EngineConfig, base_dir: Path | str = ".") -> bool:
    """Save config to file. Returns True on success."""
    path = get_config_path(base_dir)
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        return True
    except IOError:
        return False

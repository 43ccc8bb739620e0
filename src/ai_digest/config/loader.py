"""YAML configuration loading utilities."""

import os
from pathlib import Path

import yaml

from ai_digest.config.models import DigestConfig


def load_config(path: Path | str) -> DigestConfig:
    """Load configuration from YAML file.

    Args:
        path: Path to YAML config file.

    Returns:
        Validated DigestConfig.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        pydantic.ValidationError: If config is invalid.
    """
    path = Path(path)
    with path.open() as f:
        raw = yaml.safe_load(f)

    return DigestConfig.model_validate(raw or {})


def get_default_config_path() -> Path:
    """Get path to the config file (AI_DIGEST_CONFIG overrides the default)."""
    override = os.environ.get("AI_DIGEST_CONFIG")
    if override:
        return Path(override)
    return Path(__file__).parents[3] / "configs" / "default.yaml"

"""Configuration loading utilities."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from ..errors import ConfigurationError
from ..schemas import load_config


def load_settings(path: str | Path) -> dict[str, Any]:
    """Load and validate a YAML settings file.

    Returns the settings mapping consumed by ``create_container`` and
    ``RankingPipeline.run``. Unknown sections, out-of-range values and
    unparsable YAML raise ConfigurationError.
    """

    path = Path(path)
    with path.open("r", encoding="utf-8") as handle:
        try:
            loaded = yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {path.name}", [str(exc)]) from exc
    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        raise ConfigurationError("Invalid config", ["config file must be a YAML object"])
    return load_config(loaded).to_settings()


__all__ = ["load_settings"]

"""Reading and writing processing settings as JSON or TOML files."""

import json
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from .._logging import logger
from .models import Settings

SECTION = "heartprep"


def _settings_section(data: Mapping[str, Any]) -> Mapping[str, Any]:
    """Find the settings inside a parsed config file.

    Settings can sit at the top level, under a ``heartprep`` key, or under
    ``tool.heartprep`` as in a pyproject.toml.
    """
    tool = data.get("tool")
    if isinstance(tool, Mapping) and SECTION in tool:
        return tool[SECTION]
    if SECTION in data:
        return data[SECTION]
    return data


class ConfigLoader:
    """Load Settings from configuration files.

    Examples:
        settings = ConfigLoader.from_toml("pyproject.toml")  # reads [tool.heartprep]
        settings = ConfigLoader.from_file("heartprep.json")

        ConfigLoader.to_json(settings, "run_settings.json")
    """

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> Settings:
        """Validate a parsed configuration.

        Raises:
            pydantic.ValidationError: If the configuration doesn't match the schema
        """
        return Settings.model_validate(dict(_settings_section(data)))

    @staticmethod
    def from_json(path: str | Path) -> Settings:
        """Load settings from a JSON file.

        Raises:
            FileNotFoundError: If file does not exist
            json.JSONDecodeError: If file is not valid JSON
            pydantic.ValidationError: If config doesn't match schema
        """
        path = Path(path)
        with path.open("r", encoding="utf-8") as f:
            settings = ConfigLoader.from_dict(json.load(f))
        logger.debug(f"Loaded settings from {path}")
        return settings

    @staticmethod
    def from_toml(path: str | Path) -> Settings:
        """Load settings from a TOML file.

        Raises:
            FileNotFoundError: If file does not exist
            tomllib.TOMLDecodeError: If file is not valid TOML
            pydantic.ValidationError: If config doesn't match schema
        """
        path = Path(path)
        with path.open("rb") as f:
            settings = ConfigLoader.from_dict(tomllib.load(f))
        logger.debug(f"Loaded settings from {path}")
        return settings

    @staticmethod
    def from_file(path: str | Path) -> Settings:
        """Load settings, choosing the parser from the file extension (.json or .toml).

        Raises:
            ValueError: If file extension is not .json or .toml
        """
        path = Path(path)
        suffix = path.suffix.lower()
        if suffix == ".json":
            return ConfigLoader.from_json(path)
        elif suffix == ".toml":
            return ConfigLoader.from_toml(path)
        raise ValueError(f"Unsupported config file format: {path.suffix}. Only .json and .toml are supported.")

    @staticmethod
    def to_json(settings: Settings, path: str | Path) -> None:
        """Save settings as JSON, e.g. to archive the exact parameters of a run."""
        path = Path(path)
        path.write_text(settings.model_dump_json(indent=2), encoding="utf-8")
        logger.debug(f"Saved settings to {path}")

"""Configuration loading for nestconf.

Settings come from the ``[tool.nestconf]`` table of the nearest
``pyproject.toml`` and can be overridden with environment variables:

    [tool.nestconf]
    enclosing-configuration = "inherit"
    test-paths = ["tests"]
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from nestconf.types import EnclosingConfiguration


logger = logging.getLogger(__name__)

ENCLOSING_CONFIGURATION_ENV = "NESTCONF_ENCLOSING_CONFIGURATION"
PYPROJECT_NAME = "pyproject.toml"


class NestConfig(BaseModel):
    """Resolved nestconf settings.

    Attributes:
    ----------
    enclosing_configuration: EnclosingConfiguration
        Mode used when no class in an enclosing chain declares one.
    test_paths: list[str]
        Default paths for discovery when none are given on the command line.
    class_prefix: str
        Only classes whose name starts with this prefix are collected.
    function_prefix: str
        Only functions and methods with this prefix are collected.
    file_pattern: str
        Glob used to find test modules inside directories.
    """

    model_config = ConfigDict(frozen=True)

    enclosing_configuration: EnclosingConfiguration = EnclosingConfiguration.OVERRIDE
    test_paths: list[str] = Field(default_factory=lambda: ["."])
    class_prefix: str = "Test"
    function_prefix: str = "test_"
    file_pattern: str = "test_*.py"

    @field_validator("enclosing_configuration", mode="before")
    @classmethod
    def _parse_mode(cls, value: Any) -> EnclosingConfiguration:
        if isinstance(value, EnclosingConfiguration):
            return value
        try:
            return EnclosingConfiguration.parse(value)
        except ValueError:
            logger.warning(
                "Ignoring invalid enclosing configuration mode %r; using %s",
                value,
                EnclosingConfiguration.OVERRIDE.value,
            )
            return EnclosingConfiguration.OVERRIDE


DEFAULT_CONFIG = NestConfig()


def find_pyproject(start: Path | None = None) -> Path | None:
    """Return the nearest pyproject.toml at or above ``start``."""
    current = (start or Path.cwd()).resolve()
    if current.is_file():
        current = current.parent
    for directory in (current, *current.parents):
        candidate = directory / PYPROJECT_NAME
        if candidate.is_file():
            return candidate
    return None


def _read_tool_table(path: Path) -> dict[str, Any]:
    with path.open("rb") as fh:
        data = tomllib.load(fh)
    table = data.get("tool", {}).get("nestconf", {})
    return {key.replace("-", "_"): value for key, value in table.items()}


def load_config(start: Path | None = None) -> NestConfig:
    """Load settings from pyproject.toml and the environment."""
    values: dict[str, Any] = {}

    pyproject = find_pyproject(start)
    if pyproject is not None:
        values.update(_read_tool_table(pyproject))
        logger.debug("Loaded nestconf settings from %s", pyproject)

    env_mode = os.environ.get(ENCLOSING_CONFIGURATION_ENV)
    if env_mode:
        values["enclosing_configuration"] = env_mode

    return NestConfig(**values)


__all__ = [
    "DEFAULT_CONFIG",
    "ENCLOSING_CONFIGURATION_ENV",
    "NestConfig",
    "find_pyproject",
    "load_config",
]

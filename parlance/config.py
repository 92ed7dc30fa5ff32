# Parlance Command Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""config.py
Settings model and YAML/TOML loader for Parlance defaults.

Settings supply the defaults `CommandBuilder` and `FlagsBuilder` start from, and
the logging options used by the interactive shell. A settings file may hold the
fields at its top level or under a `parlance` table:

    # parlance.toml
    [parlance]
    input_tokenizer = "quoted"
    anchor_flags = false
    unknown_long_flag_behavior = "positional"
    log_mode = "cli"
"""
from __future__ import annotations

import os
from pathlib import Path

import toml
import yaml
from pydantic import BaseModel, ConfigDict, field_validator

from parlance.logger import logger
from parlance.policies import ChildExceptionBehavior, UnknownFlagBehavior
from parlance.tokens import InputTokenizer

SETTINGS_FILENAMES = ("parlance.yaml", "parlance.yml", "parlance.toml")
SETTINGS_ENV_VAR = "PARLANCE_CONFIG"


class ParlanceSettings(BaseModel):
    """Defaults for command trees, flag grammars and logging."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    input_tokenizer: InputTokenizer = InputTokenizer.QUOTED_STRINGS
    anchor_flags: bool = False
    unknown_short_flag_behavior: UnknownFlagBehavior = UnknownFlagBehavior.ERROR
    unknown_long_flag_behavior: UnknownFlagBehavior = UnknownFlagBehavior.ERROR
    child_exception_behavior: ChildExceptionBehavior = ChildExceptionBehavior.RETHROW
    require_permission_for_children: bool = True
    log_mode: str | None = None
    log_filename: str | None = "parlance.log"

    @field_validator("log_mode")
    @classmethod
    def validate_log_mode(cls, value: str | None) -> str | None:
        if value is not None and value not in ("cli", "json"):
            raise ValueError(f"log_mode must be 'cli' or 'json', got '{value}'")
        return value


DEFAULT_SETTINGS = ParlanceSettings()


def load_settings(file_path: Path | str) -> ParlanceSettings:
    """
    Load Parlance settings from a YAML or TOML file.

    Args:
        file_path (Path | str): Path to a `.yaml`, `.yml` or `.toml` file.

    Returns:
        ParlanceSettings: The validated settings.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the format is unsupported or the content is not a mapping.
        pydantic.ValidationError: If a setting has an invalid value.
    """
    if isinstance(file_path, (str, Path)):
        path = Path(file_path)
    else:
        raise TypeError("file_path must be a string or Path object.")

    if not path.is_file():
        raise FileNotFoundError(f"No such config file: {file_path}")

    suffix = path.suffix
    with path.open("r", encoding="UTF-8") as config_file:
        if suffix in (".yaml", ".yml"):
            raw_config = yaml.safe_load(config_file)
        elif suffix == ".toml":
            raw_config = toml.load(config_file)
        else:
            raise ValueError(f"Unsupported config format: {suffix}")

    if raw_config is None:
        raw_config = {}
    if not isinstance(raw_config, dict):
        raise ValueError(
            "Configuration file must contain a mapping of settings.\n"
            "Example:\n"
            "anchor_flags: true\n"
            "unknown_long_flag_behavior: positional"
        )
    if isinstance(raw_config.get("parlance"), dict):
        raw_config = raw_config["parlance"]

    logger.debug("Loaded settings from %s: %s", path, raw_config)
    return ParlanceSettings(**raw_config)


def find_settings_file(directory: Path | str | None = None) -> Path | None:
    """
    Locate a settings file.

    `PARLANCE_CONFIG` wins when set. Otherwise `parlance.yaml`, `parlance.yml`
    and `parlance.toml` are searched for in `directory` (the working directory
    by default).
    """
    env_path = os.getenv(SETTINGS_ENV_VAR)
    if env_path:
        return Path(env_path)
    base = Path(directory) if directory is not None else Path.cwd()
    for name in SETTINGS_FILENAMES:
        candidate = base / name
        if candidate.is_file():
            return candidate
    return None

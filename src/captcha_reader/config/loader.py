"""
Reading and writing captcha reader configuration files.

The file suffix picks the format: JSON, YAML or TOML for reading, JSON or
YAML for writing. String values may reference environment variables as
``${NAME}`` or ``${NAME:default}``; ``CAPTCHA_NAME`` is tried before
``NAME``.
"""

import json
import os
import re
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

import yaml
from pydantic import ValidationError

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from .models import Config
from ..exceptions import ConfigurationError

PathLike = Union[str, Path]

ENV_PREFIX = "CAPTCHA_"

_ENV_REFERENCE = re.compile(r"\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::(?P<default>[^}]*))?\}")


def _read_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _read_yaml(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _read_toml(path: Path) -> Any:
    with path.open("rb") as f:
        return tomllib.load(f)


def _write_json(data: Dict[str, Any], path: Path) -> None:
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def _write_yaml(data: Dict[str, Any], path: Path) -> None:
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=False)


READERS: Dict[str, Callable[[Path], Any]] = {
    "json": _read_json,
    "yaml": _read_yaml,
    "yml": _read_yaml,
    "toml": _read_toml,
}

WRITERS: Dict[str, Callable[[Dict[str, Any], Path], None]] = {
    "json": _write_json,
    "yaml": _write_yaml,
    "yml": _write_yaml,
}

PARSE_ERRORS = (json.JSONDecodeError, yaml.YAMLError, tomllib.TOMLDecodeError)


def load_config(config_path: PathLike) -> Config:
    """
    Load and validate a configuration file.

    Args:
        config_path: Path to a .json, .yaml/.yml or .toml file

    Returns:
        Validated configuration object

    Raises:
        ConfigurationError: If the file is missing, unparsable or invalid
    """
    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    file_format = path.suffix.lower().lstrip(".")
    reader = READERS.get(file_format)
    if reader is None:
        raise ConfigurationError(
            f"Unsupported configuration format: {path.suffix or '(none)'}",
            {"supported": ", ".join(sorted(READERS))},
        )

    try:
        data = reader(path)
    except PARSE_ERRORS as e:
        raise ConfigurationError(f"Invalid {file_format.upper()} in {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration in {path} must be a mapping")

    return load_config_from_dict(expand_env_vars(data))


def load_config_from_dict(config_data: Dict[str, Any]) -> Config:
    """
    Validate a configuration mapping.

    Raises:
        ConfigurationError: With one line per failing field
    """
    try:
        return Config(**config_data)
    except ValidationError as e:
        problems = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        ]
        raise ConfigurationError("Invalid configuration:\n" + "\n".join(problems)) from e


def save_config(config: Config, output_path: PathLike, format_type: Optional[str] = None) -> None:
    """
    Write ``config`` as JSON or YAML.

    The format follows ``format_type`` when given, the file suffix otherwise.

    Raises:
        ConfigurationError: If the format is unsupported or the file cannot be written
    """
    path = Path(output_path)
    file_format = (format_type or path.suffix.lstrip(".")).lower()
    writer = WRITERS.get(file_format)
    if writer is None:
        raise ConfigurationError(f"Unsupported format: {file_format}")

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        # Tuples such as blur_kernel become plain lists in "json" mode
        writer(config.model_dump(mode="json"), path)
    except OSError as e:
        raise ConfigurationError(f"Error saving configuration to {path}: {e}") from e


def get_default_config() -> Config:
    """Get default configuration object."""
    return Config()


def expand_env_vars(data: Any, prefix: str = ENV_PREFIX) -> Any:
    """Replace ``${NAME}`` references in every string of a nested structure.

    Unset variables without a default are left as written.
    """
    if isinstance(data, dict):
        return {key: expand_env_vars(value, prefix) for key, value in data.items()}
    if isinstance(data, list):
        return [expand_env_vars(item, prefix) for item in data]
    if not isinstance(data, str):
        return data

    def lookup(match: "re.Match[str]") -> str:
        name = match.group("name")
        for candidate in (prefix + name, name):
            if candidate in os.environ:
                return os.environ[candidate]
        default = match.group("default")
        return match.group(0) if default is None else default

    return _ENV_REFERENCE.sub(lookup, data)

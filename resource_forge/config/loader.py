from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

"""Config loader.

Responsibilities:
- Load the YAML config (default ``config/forge.yml``, overridable with the
  ``RESOURCE_FORGE_CONFIG`` environment variable)
- Validate it against the packaged ``config_schema.json``
- Apply defaults (output ./out, logs ./logs, validate_before_export=true)
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/forge.yml")
CONFIG_ENV_VAR = "RESOURCE_FORGE_CONFIG"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class ForgeConfig:
    inputs: dict[str, Path]  # dataset label (clients/workers/tasks) -> file
    output_directory: Path = Path("out")
    logs_directory: Path = Path("logs")
    validate_before_export: bool = True
    clean_export: bool = True  # "_" で始まる UI 内部列を出力しない
    keep_na_strings: list[str] = field(default_factory=list)
    rules: list[dict[str, Any]] = field(default_factory=list)


def resolve_config_path(explicit: str | Path | None = None) -> Path:
    """Explicit path > RESOURCE_FORGE_CONFIG > config/forge.yml."""
    if explicit:
        return Path(explicit)
    env = os.getenv(CONFIG_ENV_VAR)
    if env:
        return Path(env)
    return DEFAULT_CONFIG_PATH


def _validate_config_schema(data: Any) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing / not JSON, or the data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path) -> ForgeConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    _validate_config_schema(data)

    # 相対パスは設定ファイルの場所ではなくカレントディレクトリ基準
    return ForgeConfig(
        inputs={label: Path(p) for label, p in data["inputs"].items()},
        output_directory=Path(data.get("output_directory", "out")),
        logs_directory=Path(data.get("logs_directory", "logs")),
        validate_before_export=data.get("validate_before_export", True),
        clean_export=data.get("clean_export", True),
        keep_na_strings=list(data.get("keep_na_strings", [])),
        rules=list(data.get("rules", [])),
    )

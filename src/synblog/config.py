"""Application configuration: settings schema and layered loader (config.yaml < env < CLI)"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field

from synblog.core.document import TIMESTAMP_FORMAT


CONFIG_FILE = "config.yaml"
ENV_PREFIX = "SYNBLOG_"
CONFIG_ENV = f"{ENV_PREFIX}CONFIG"


class Settings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    site_title:       str = Field(default="SynBlog",         description="Title of the exported index page")
    db_url:           str = "sqlite:///synblog.db"
    posts_dir:        str = Field(default="posts",           description="Directory holding post files")
    output_dir:       str = Field(default="dist",            description="Directory for exported HTML + JSON files")
    post_extension:   str = Field(default=".syn", pattern=r"^\.\w+$", description="File suffix of post files")
    encoding:         str = Field(default="utf-8",           description="Text encoding of post files")
    timestamp_format: str = Field(default=TIMESTAMP_FORMAT,  description="strftime format for posted dates")
    log_level:        str = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")


def config_path() -> Path:
    """SYNBLOG_CONFIG if set, else config.yaml in the working directory."""
    return Path(os.getenv(CONFIG_ENV) or CONFIG_FILE)


def _file_layer(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid {path.name}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid {path.name}: expected a mapping, got {type(data).__name__}")
    return data


def _env_layer() -> dict[str, str]:
    # Empty variables count as unset
    values = {name: os.getenv(f"{ENV_PREFIX}{name.upper()}") for name in Settings.model_fields}
    return {name: val for name, val in values.items() if val}


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Merge config file, SYNBLOG_<FIELD> env vars and non-None CLI overrides, later layers winning.

    Raises ValueError for unreadable YAML, unknown keys and invalid values.
    """
    data = _file_layer(config_path())
    data.update(_env_layer())
    data.update({k: v for k, v in (overrides or {}).items() if v is not None})
    return Settings(**data)

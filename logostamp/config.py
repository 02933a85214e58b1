# logostamp/config.py
# Layered settings: built-in defaults < TOML file < environment < command line.

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import tomlkit
from tomlkit.exceptions import TOMLKitError

from logostamp.errors import ConfigError
from logostamp.models.enums import BaseDimension, OutputFormat, Placement
from logostamp.models.settings import (
    DEFAULT_FALLBACK_DENSITY,
    DEFAULT_MARGIN_RATIO,
    DEFAULT_PERCENT,
    DEFAULT_TIMEOUT,
    MarginPolicy,
    RunSettings,
    SizingPolicy,
)

log = logging.getLogger("logostamp.config")

CONFIG_PATH = Path.home() / ".logostamp.toml"
ENV_MAGICK = "LOGOSTAMP_MAGICK"

DEFAULTS: Dict[str, Any] = {
    "percent": DEFAULT_PERCENT,
    "base_dimension": BaseDimension.WIDTH.value,
    "position": Placement.TOP_RIGHT.value,
    "margin_px": -1,
    "margin_ratio": DEFAULT_MARGIN_RATIO,
    "fallback_density": DEFAULT_FALLBACK_DENSITY,
    "format": "png",
    "recurse": False,
    "magick": None,
    "timeout": DEFAULT_TIMEOUT,
    "strict": False,
    "log_file": None,
}


def load_config_file(path: Optional[Path] = None) -> Dict[str, Any]:
    """Read a TOML config file. A missing default file is not an error."""
    explicit = path is not None
    path = Path(path) if explicit else CONFIG_PATH
    if not path.exists():
        if explicit:
            raise ConfigError(f"Config file not found: {path}")
        return {}

    try:
        doc = tomlkit.parse(path.read_text(encoding="utf-8"))
    except (OSError, TOMLKitError) as e:
        raise ConfigError(f"Cannot read config {path}: {e}") from e

    data = doc.unwrap()
    if isinstance(data.get("logostamp"), dict):
        data = data["logostamp"]

    cfg = {}
    for key, value in data.items():
        if key not in DEFAULTS:
            log.warning("Ignoring unknown config key %r in %s", key, path)
            continue
        cfg[key] = value
    log.debug("Loaded %d setting(s) from %s", len(cfg), path)
    return cfg


def merge_settings(file_cfg: Mapping[str, Any], cli: Mapping[str, Any],
                   env: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Defaults, then file, then environment, then explicitly given CLI values."""
    env = os.environ if env is None else env
    merged = dict(DEFAULTS)
    merged.update(file_cfg)
    if env.get(ENV_MAGICK):
        merged["magick"] = env[ENV_MAGICK]
    merged.update({k: v for k, v in cli.items() if v is not None})
    return merged


def build_run_settings(input_dir: Path, logo_path: Path, output_dir: Path,
                       values: Mapping[str, Any]) -> RunSettings:
    """Turn merged values into validated RunSettings. Raises InvalidInput."""
    try:
        percent = float(values["percent"])
        margin_px = int(values["margin_px"])
        margin_ratio = float(values["margin_ratio"])
        fallback_density = int(values["fallback_density"])
        timeout = float(values["timeout"])
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid numeric setting: {e}") from e

    return RunSettings(
        input_dir=Path(input_dir),
        logo_path=Path(logo_path),
        output_dir=Path(output_dir),
        sizing=SizingPolicy(
            percent_of_size=percent,
            base_dimension=BaseDimension.parse(values["base_dimension"]),
        ),
        margin=MarginPolicy(margin_px=margin_px, margin_height_ratio=margin_ratio),
        placement=Placement.parse(values["position"]),
        output_format=OutputFormat.parse(values["format"]),
        fallback_density=fallback_density,
        recurse=_flag(values, "recurse"),
        magick_path=values.get("magick"),
        timeout=timeout,
        strict=_flag(values, "strict"),
    )


def _flag(values: Mapping[str, Any], key: str) -> bool:
    value = values[key]
    if not isinstance(value, bool):
        raise ConfigError(f"Setting {key!r} must be true or false, got {value!r}")
    return value

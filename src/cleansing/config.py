from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError

from cleansing.exceptions import ConfigurationError
from cleansing.fusion.configs import FusionConfig
from cleansing.linkage.configs import LinkageConfig


def _f(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _s(name: str, default: str) -> str:
    value = os.getenv(name)
    return value.strip() if value and value.strip() else default


@dataclass(frozen=True)
class Settings:
    """Process-wide defaults, overridable through the environment."""

    log_level: str = "INFO"
    default_threshold: float = 0.5
    default_fusion_rule: str = "most_weighted"

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            log_level=_s("CLEANSING_LOG_LEVEL", "INFO").upper(),
            default_threshold=_f("CLEANSING_DEFAULT_THRESHOLD", 0.5),
            default_fusion_rule=_s("CLEANSING_DEFAULT_FUSION_RULE", "most_weighted"),
        )


class PipelineConfig(BaseModel):
    """A configuration file: linkage, fusion, or both."""

    linkage: LinkageConfig | None = None
    fusion: FusionConfig | None = None


def load_config(path: str | Path) -> PipelineConfig:
    """Load a pipeline configuration from YAML or JSON.

    Raises:
        ConfigurationError: if the file cannot be read or does not validate
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(reason=f"Cannot read {path}: {e}", option="config") from e

    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(reason=f"Cannot parse {path}: {e}", option="config") from e

    try:
        return PipelineConfig.model_validate(data or {})
    except ValidationError as e:
        raise ConfigurationError(reason=f"Invalid configuration in {path}: {e}", option="config") from e

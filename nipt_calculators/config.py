from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

CONFIG_ENV_VAR = "NIPT_CONFIG_PATH"

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "configs" / "calculator_default.yaml"


class CalculatorConfig(BaseModel):
    """Calculator settings.

    Attributes:
        default_sensitivity_percent: Sensitivity assumed when the caller leaves it blank
        default_specificity_percent: Specificity assumed when the caller leaves it blank
        min_age: First age offered to callers and used by the scenario grid
        max_age: Last age offered to callers and used by the scenario grid
        tables_dir: Directory with replacement risk tables (None = packaged tables)
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    default_sensitivity_percent: float = Field(default=99.0, ge=0, le=100)
    default_specificity_percent: float = Field(default=99.9, ge=0, le=100)
    min_age: int = 20
    max_age: int = 40
    tables_dir: str | None = None

    @model_validator(mode="after")
    def _check_age_range(self) -> CalculatorConfig:
        if self.min_age > self.max_age:
            raise ValueError("min_age must not exceed max_age")
        return self

    @property
    def ages(self) -> list[int]:
        return list(range(self.min_age, self.max_age + 1))


def _config_path(path: str | Path | None) -> Path:
    if path:
        return Path(path).expanduser().resolve()
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser().resolve()
    return DEFAULT_CONFIG_PATH


def load_config(path: str | Path | None = None) -> CalculatorConfig:
    """Load calculator settings from YAML.

    Lookup order: explicit path, then $NIPT_CONFIG_PATH, then the packaged
    configs/calculator_default.yaml.
    """
    config_path = _config_path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")

    return CalculatorConfig(**data)

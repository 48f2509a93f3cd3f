from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator

DEFAULT_CONFIG_PATH = "catalog/calculator.yml"


class CalculatorConfigModel(BaseModel):
    season_base: str = "docs/_static/json/seasons"
    filename_template: str = "nba_season_{year}.json.gz"
    request_timeout_seconds: float = Field(30.0, gt=0)
    chart_dir: str = "charts"

    @field_validator("filename_template")
    @classmethod
    def has_year_placeholder(cls, v: str) -> str:
        if "{year}" not in v:
            raise ValueError("filename_template must contain {year}")
        return v

    @field_validator("season_base")
    @classmethod
    def non_empty_base(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("season_base must not be empty")
        return v.strip()


@dataclass
class CalculatorConfig:
    season_base: str
    filename_template: str
    request_timeout_seconds: float
    chart_dir: str


def load_calculator_config(path: Optional[str] = None) -> CalculatorConfig:
    yaml_path = Path(path or DEFAULT_CONFIG_PATH)
    data = {}
    if yaml_path.exists():
        data = yaml.safe_load(yaml_path.read_text()) or {}
    env_base = os.getenv("NBACC_SEASON_BASE")
    if env_base:
        data["season_base"] = env_base
    parsed = CalculatorConfigModel.model_validate(data)

    return CalculatorConfig(
        season_base=parsed.season_base,
        filename_template=parsed.filename_template,
        request_timeout_seconds=parsed.request_timeout_seconds,
        chart_dir=parsed.chart_dir,
    )

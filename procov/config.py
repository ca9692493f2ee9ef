"""
Configuration loading and validation for coverage runs.

Supports YAML-based configuration files.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

DEFAULT_REPORT_DIR = "target/procov"


class CoverageConfig(BaseModel):
    """Settings for one coverage run."""

    report_dir: str | None = Field(
        default=DEFAULT_REPORT_DIR,
        description="Directory reports are written to; None disables report export",
    )
    excluded_definition_keys: list[str] = Field(
        default_factory=list, description="Process definition keys left out of coverage"
    )
    html_report: bool = Field(default=False, description="Also write an HTML summary")
    log_level: str = Field(default="INFO", description="DEBUG, INFO, WARNING or ERROR")
    json_logs: bool = Field(default=False, description="Emit logs as JSON")
    minimum_coverage: float | None = Field(
        default=None, ge=0.0, le=1.0, description="Warn when class coverage falls below this"
    )

    def is_excluded(self, definition_key: str | None) -> bool:
        return definition_key is not None and definition_key in self.excluded_definition_keys


class CoverageConfigLoader:
    """Load and validate coverage configuration from YAML files."""

    @classmethod
    def from_yaml(cls, path: str | Path) -> CoverageConfig:
        """
        Load configuration from a YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            CoverageConfig loaded from file
        """
        path = Path(path)
        if not path.exists():
            msg = f"Configuration file not found: {path}"
            raise FileNotFoundError(msg)

        with path.open() as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CoverageConfig:
        """
        Create configuration from a dictionary.

        Args:
            data: Configuration dictionary

        Returns:
            CoverageConfig from dictionary
        """
        if not isinstance(data, dict):
            msg = "Configuration must be a mapping"
            raise ValueError(msg)

        excluded = data.get("excluded_definition_keys", [])
        if isinstance(excluded, str):
            excluded = [excluded]

        return CoverageConfig(
            report_dir=data.get("report_dir", DEFAULT_REPORT_DIR),
            excluded_definition_keys=excluded,
            html_report=data.get("html_report", False),
            log_level=data.get("log_level", "INFO"),
            json_logs=data.get("json_logs", False),
            minimum_coverage=data.get("minimum_coverage"),
        )

    @classmethod
    def generate_sample_config(cls) -> str:
        """
        Generate a sample YAML configuration file.

        Returns:
            YAML string for sample configuration
        """
        sample = {
            "report_dir": DEFAULT_REPORT_DIR,
            "excluded_definition_keys": ["LegacyProcess"],
            "html_report": True,
            "log_level": "INFO",
            "json_logs": False,
            "minimum_coverage": 0.8,
        }
        return yaml.dump(sample, default_flow_style=False, sort_keys=False)

"""Runner configuration, read from the environment and optional YAML files."""

from collections.abc import Sequence
from pathlib import Path
from typing import Annotated, Any

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from live_test_runner.filtering import split_patterns

ENV_PREFIX = "LIVE_TEST_RUNNER_"


class RunnerConfig(BaseSettings):
    """Configuration of a test runner.

    Every field can be set through a ``LIVE_TEST_RUNNER_<FIELD>`` environment
    variable; pattern lists accept comma or space separated values there.
    """

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, frozen=True)

    reports_path: Path = Field(
        default=Path("surefire-reports"),
        description="Directory where XML reports are written",
    )
    rerun_count: int = Field(
        default=0, ge=0, description="Extra attempts for each failed test method"
    )
    autostart: bool = Field(
        default=False, description="Start continuous mode when the runner activates"
    )
    include_patterns: Annotated[Sequence[str], NoDecode] = Field(
        default=(), description="Glob patterns a test name has to match"
    )
    exclude_patterns: Annotated[Sequence[str], NoDecode] = Field(
        default=(), description="Glob patterns excluding test names"
    )
    registry_mode: str = Field(
        default="auto", description="Discovery mode of the registry to bind"
    )
    interval: float = Field(
        default=5.0, gt=0, description="Seconds between continuous mode ticks"
    )

    @field_validator("include_patterns", "exclude_patterns", mode="before")
    @classmethod
    def _split(cls, value: Any) -> Any:
        if value is None or isinstance(value, str | list | tuple):
            return split_patterns(value)
        return value


def load_runner_config(path: Path, **overrides: Any) -> RunnerConfig:
    """Load a runner configuration from a YAML file.

    Values from the file take precedence over the environment, and keyword
    overrides take precedence over both.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not valid YAML or not a mapping

    """
    if not path.exists():
        raise FileNotFoundError(f"Runner configuration not found: {path}")

    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Runner configuration must be a mapping: {path}")

    return RunnerConfig(**{**data, **overrides})

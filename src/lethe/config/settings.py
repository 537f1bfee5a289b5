"""Pydantic settings models for Lethe configuration."""

from typing import Dict, Optional, Tuple, Type

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from lethe.core.constants import (
    DEFAULT_DELAY_HOURS,
    DEFAULT_STRATEGY_WEIGHTS,
    HIGH_CONFIDENCE_THRESHOLD,
    RECOMMENDATION_THRESHOLD,
)
from lethe.utils.exceptions import ConfigurationError


class EvaluationSettings(BaseSettings):
    """Forgetting evaluation engine configuration."""

    enable_temporal_decay: bool = Field(
        default=True,
        description="Accept a strategy named temporal_decay",
    )
    enable_interference: bool = Field(
        default=True,
        description="Accept a strategy named interference_based",
    )
    enable_importance: bool = Field(
        default=True,
        description="Accept a strategy named importance_based",
    )
    strategy_weights: Dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_STRATEGY_WEIGHTS),
        description="Per-strategy weights; strategies missing here weigh 1.0",
    )
    recommendation_threshold: float = Field(
        default=RECOMMENDATION_THRESHOLD,
        ge=0.0,
        le=1.0,
        description="Combined score at which degrade/forget are recommended",
    )
    high_confidence_threshold: float = Field(
        default=HIGH_CONFIDENCE_THRESHOLD,
        ge=0.0,
        le=1.0,
        description="Combined score at which forget is recommended and consent required",
    )
    max_concurrency: int = Field(
        default=8,
        ge=1,
        le=256,
        description="Maximum memories evaluated concurrently",
    )
    strategy_timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0.0,
        description="Deadline for a single strategy call (None = no deadline)",
    )

    model_config = SettingsConfigDict(env_prefix="LETHE_EVALUATION_")

    @field_validator("strategy_weights")
    @classmethod
    def validate_weights(cls, v: Dict[str, float]) -> Dict[str, float]:
        """Reject negative weights."""
        for name, weight in v.items():
            if weight < 0:
                raise ValueError(f"Strategy weight for '{name}' must be non-negative")
        return v

    def is_strategy_enabled(self, name: str) -> bool:
        """Whether a strategy with this name may be registered.

        Only the built-in strategy kinds can be switched off.
        """
        flags = {
            "temporal_decay": self.enable_temporal_decay,
            "interference_based": self.enable_interference,
            "importance_based": self.enable_importance,
        }
        return flags.get(name, True)


class PolicySettings(BaseSettings):
    """Forgetting policy manager configuration."""

    seed_default_policy: bool = Field(
        default=True,
        description="Seed the default conservative policy at construction",
    )
    default_delay_hours: float = Field(
        default=DEFAULT_DELAY_HOURS,
        gt=0.0,
        description="Delay used by delay rules without a delay_hours parameter",
    )

    model_config = SettingsConfigDict(env_prefix="LETHE_POLICY_")


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    output_file: Optional[str] = Field(
        default=None,
        description="Optional log file path",
    )
    format: str = Field(
        default="text",
        description="File log format (text or json)",
    )
    quiet: bool = Field(
        default=False,
        description="Suppress stderr output (used when embedded in another process)",
    )

    model_config = SettingsConfigDict(env_prefix="LETHE_LOGGING_")


class Settings(BaseSettings):
    """Root configuration for Lethe.

    Sections loaded here are overridden by SECTION__KEY environment variables
    (e.g. EVALUATION__MAX_CONCURRENCY); the per-section LETHE_* prefixes only
    apply when a section is constructed on its own.
    """

    evaluation: EvaluationSettings = Field(default_factory=EvaluationSettings)
    policy: PolicySettings = Field(default_factory=PolicySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        toml_file="configs/lethe.toml",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """Configure settings sources with TOML support.

        Priority (highest to lowest):
        1. Init settings (constructor arguments)
        2. Environment variables
        3. TOML config file
        4. Default values
        """
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls),
        )


def load_settings(**overrides) -> Settings:
    """Load settings from the environment and TOML file.

    Raises:
        ConfigurationError: A configured value failed validation
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid Lethe configuration: {e}") from e

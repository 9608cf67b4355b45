from pathlib import Path
from dotenv import dotenv_values
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

import os

from ..core.warping import WarpingOptions

# Load .env for local/dev environments only for values missing from the environment
BASE_DIR = Path(__file__).resolve().parent.parent.parent
env_file = BASE_DIR / ".env"

if env_file.exists():
    file_env = dotenv_values(env_file)
    missing_keys = {k: v for k, v in file_env.items() if k not in os.environ and v is not None}
    for k, v in missing_keys.items():
        os.environ[k] = v


class Settings(BaseSettings):
    """Application settings pulled from TERRAGEN_* environment variables."""

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="console", description="Logging format (console or json)")

    # Domain Warping Configuration
    warping_strength: float = Field(default=1.0, description="Maximum warp displacement in cells")
    warping_frequency: float = Field(default=0.125, description="Frequency of the warp offset fields")
    warping_octaves: int = Field(default=1, description="Octaves of the warp offset fields")
    warping_seed: int = Field(default=0, description="Seed of the warp offset fields")

    # World Configuration
    default_sea_level: float = Field(default=0.3, ge=0.0, le=1.0, description="Sea level of new worlds")
    default_map_width: int = Field(default=256, gt=0, description="Default map width")
    default_map_height: int = Field(default=256, gt=0, description="Default map height")

    # Tree Placement Configuration
    placement_frequency: float = Field(default=1.0, description="Tree grid density relative to the terrain")
    placement_max_attempts: int = Field(default=30, description="Poisson-disk attempts per active point")

    model_config = SettingsConfigDict(
        env_prefix="TERRAGEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("warping_strength")
    @classmethod
    def _non_negative_strength(cls, value: float) -> float:
        if value < 0:
            raise ValueError("warping_strength must not be negative")
        return value

    @field_validator("warping_frequency", "placement_frequency")
    @classmethod
    def _positive_frequency(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("frequency must be positive")
        return value

    @field_validator("warping_octaves", "placement_max_attempts")
    @classmethod
    def _at_least_one(cls, value: int) -> int:
        if value < 1:
            raise ValueError("value must be at least 1")
        return value

    @field_validator("log_format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("console", "json"):
            raise ValueError("log_format must be 'console' or 'json'")
        return value

    def warping_options(self) -> WarpingOptions:
        """Build warping options from the settings."""
        return WarpingOptions(
            strength=self.warping_strength,
            frequency=self.warping_frequency,
            octaves=self.warping_octaves,
            seed=self.warping_seed,
        )


# Instantiate singleton settings object
settings = Settings()

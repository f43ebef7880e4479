"""
Configuration settings for the roadsiege core.
"""

from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from roadsiege.core.errors import ConfigurationError


class Settings(BaseSettings):
    """
    Core settings with environment variable support.

    Attributes:
        environment: Deployment environment, drives logging defaults
        log_level: Explicit log level (falls back to environment default)
        elevation_range_bonus_per_meter: Range factor gained per meter of height advantage
        elevation_min_range_factor: Largest range penalty (e.g. -0.3 = -30%)
        elevation_max_range_factor: Largest range bonus (e.g. 0.5 = +50%)
        visibility_scan_multiplier: How far past the base range visibility rays scan
        visibility_target_height_m: Height of a target above ground for visibility rays
        line_of_sight_step_degrees: Sampling interval along line-of-sight rays
        road_tolerance_meters: Default distance for point-on-road tests
        min_area_km: Minimum play area width/height in kilometers
        max_area_km: Maximum play area width/height in kilometers
        no_build_radius_meters: Radius around the defended point where building is forbidden
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="ROADSIEGE_",
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Optional[str] = None

    # Elevation range modifiers
    elevation_range_bonus_per_meter: float = 0.003
    elevation_min_range_factor: float = -0.3
    elevation_max_range_factor: float = 0.5

    # Visibility sampling
    visibility_scan_multiplier: float = 1.5
    visibility_target_height_m: float = 2.0
    line_of_sight_step_degrees: float = 0.0001

    # Road network
    road_tolerance_meters: float = 20.0

    # Play area limits
    min_area_km: float = 0.2
    max_area_km: float = 8.0
    no_build_radius_meters: float = 500.0

    def model_post_init(self, __context: object) -> None:
        """Reject inverted ranges."""
        if self.elevation_min_range_factor > self.elevation_max_range_factor:
            raise ConfigurationError(
                "elevation_min_range_factor must not exceed elevation_max_range_factor",
                config_key="elevation_min_range_factor",
            )
        if self.min_area_km > self.max_area_km:
            raise ConfigurationError(
                "min_area_km must not exceed max_area_km",
                config_key="min_area_km",
            )
        if self.line_of_sight_step_degrees <= 0:
            raise ConfigurationError(
                "line_of_sight_step_degrees must be positive",
                config_key="line_of_sight_step_degrees",
            )


# Global settings instance
settings = Settings()

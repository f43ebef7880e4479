"""
Tests for configuration module.
"""

import pytest

from roadsiege.core.config import Settings
from roadsiege.core.errors import ConfigurationError


class TestSettings:
    """Tests for Settings class."""

    def test_default_values(self, monkeypatch) -> None:
        """Test that default values are set correctly."""
        monkeypatch.delenv("ROADSIEGE_ENVIRONMENT", raising=False)
        settings = Settings(_env_file=None)

        assert settings.environment == "development"
        assert settings.log_level is None
        assert settings.elevation_range_bonus_per_meter == 0.003
        assert settings.elevation_min_range_factor == -0.3
        assert settings.elevation_max_range_factor == 0.5
        assert settings.visibility_scan_multiplier == 1.5
        assert settings.line_of_sight_step_degrees == 0.0001
        assert settings.road_tolerance_meters == 20.0
        assert settings.no_build_radius_meters == 500.0

    def test_env_override(self, monkeypatch) -> None:
        """Test that environment variables override defaults."""
        monkeypatch.setenv("ROADSIEGE_ROAD_TOLERANCE_METERS", "35")
        monkeypatch.setenv("ROADSIEGE_ENVIRONMENT", "production")

        settings = Settings(_env_file=None)
        assert settings.road_tolerance_meters == 35.0
        assert settings.environment == "production"

    def test_inverted_range_factors(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            Settings(elevation_min_range_factor=0.6, elevation_max_range_factor=0.5)
        assert exc_info.value.details["config_key"] == "elevation_min_range_factor"

    def test_inverted_area_limits(self) -> None:
        with pytest.raises(ConfigurationError):
            Settings(min_area_km=10.0, max_area_km=8.0)

    def test_non_positive_step(self) -> None:
        with pytest.raises(ConfigurationError):
            Settings(line_of_sight_step_degrees=0)

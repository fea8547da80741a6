"""Tests for climate calculation module."""

import numpy as np
import pytest

from py_mapgen.core.climate import (
    Climate,
    ClimateOptions,
    calculate_humidity,
    generate_climate_maps,
)


class TestTemperature:
    """Test temperature and wind calculations."""

    @pytest.fixture
    def land_heights(self):
        """Flat lowland covering the whole map."""
        return np.full((32, 64), 0.6)

    def test_latitude_factors(self, land_heights):
        lat = Climate(land_heights).latitude_factors()
        assert lat[0] == pytest.approx(1.0)
        assert lat[16] == pytest.approx(0.0)
        assert lat[8] == pytest.approx(0.5)

    def test_temperature_range(self, land_heights):
        temperature, _ = Climate(land_heights).calculate_temperatures(seed=42)
        assert temperature.shape == (32, 64)
        assert temperature.min() >= 0.0
        assert temperature.max() <= 1.0

    def test_equator_warmer_than_poles(self, land_heights):
        temperature, _ = Climate(land_heights).calculate_temperatures(seed=42)
        assert temperature[16].mean() > temperature[1].mean()
        assert temperature[16].mean() > temperature[31].mean()

    def test_temperature_offset(self, land_heights):
        climate = Climate(land_heights)
        cold, _ = climate.calculate_temperatures(seed=42, temperature_offset=-0.3)
        warm, _ = climate.calculate_temperatures(seed=42, temperature_offset=0.3)
        assert warm.mean() > cold.mean()

    def test_altitude_cooling(self):
        heights = np.full((32, 64), 0.6)
        heights[:, 32:] = 0.95
        temperature, _ = Climate(heights).calculate_temperatures(seed=42)
        assert temperature[16, 32:].mean() < temperature[16, :32].mean()

    def test_wind_bands(self, land_heights):
        _, winds = Climate(land_heights).calculate_temperatures(seed=42)
        assert (winds[8] == 1.0).all()
        assert (winds[0] == -1.0).all()
        assert (winds[16] == -1.0).all()

    def test_deterministic(self, land_heights):
        a, _ = generate_climate_maps(7, 64, 32, land_heights)
        b, _ = generate_climate_maps(7, 64, 32, land_heights)
        assert np.array_equal(a, b)


class TestHumidity:
    """Test wind-driven moisture transport."""

    @pytest.fixture
    def coast(self):
        """Ocean to the west, a ridge, then flat inland."""
        heights = np.full((16, 64), 0.6)
        heights[:, :32] = 0.3
        heights[:, 32:40] = np.linspace(0.5, 0.85, 8)
        return heights

    @pytest.fixture
    def east_winds(self):
        return np.ones((16, 64))

    def test_ocean_is_saturated(self, coast, east_winds):
        climate = Climate(coast, options=ClimateOptions(humidity_smooth_radius=0))
        humidity = climate.calculate_humidity(east_winds)
        assert (humidity[:, :32] == 1.0).all()

    def test_rain_shadow(self, coast, east_winds):
        climate = Climate(coast, options=ClimateOptions(humidity_smooth_radius=0))
        humidity = climate.calculate_humidity(east_winds)
        windward = humidity[:, 33:37].mean()
        leeward = humidity[:, 55:63].mean()
        assert windward > leeward

    def test_range(self, coast, east_winds):
        humidity = calculate_humidity(64, 16, coast, east_winds, humidity_offset=0.5)
        assert humidity.min() >= 0.0
        assert humidity.max() <= 1.0

    def test_humidity_offset(self, coast, east_winds):
        dry = calculate_humidity(64, 16, coast, east_winds, humidity_offset=-0.5)
        wet = calculate_humidity(64, 16, coast, east_winds, humidity_offset=0.5)
        assert wet[:, 40:].mean() > dry[:, 40:].mean()

    def test_wind_direction_matters(self, coast, east_winds):
        east = calculate_humidity(64, 16, coast, east_winds)
        west = calculate_humidity(64, 16, coast, -east_winds)
        assert not np.allclose(east, west)

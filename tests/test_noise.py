"""Tests for cylindrical noise sampling."""

import math

import numpy as np
from opensimplex import OpenSimplex
import pytest

from py_mapgen.core.noise import (
    CylindricalNoise,
    cylindrical_coordinates,
    dither_field,
    dither_noise,
)
from py_mapgen.utils.random import derive_seed, get_rng


def reference_fbm(seed, x, y, width, frequency, octaves, lacunarity=2.0, gain=0.5):
    """Scalar fBm at (x, y) on the map cylinder, in [0, 1]."""
    gen = OpenSimplex(seed)
    radius = width / (2 * math.pi)
    angle = x / width * 2 * math.pi
    px, pz = radius * math.cos(angle), radius * math.sin(angle)
    value, amplitude, total, freq = 0.0, 1.0, 0.0, frequency
    for _ in range(octaves):
        value += amplitude * gen.noise3(px * freq, y * freq, pz * freq)
        total += amplitude
        amplitude *= gain
        freq *= lacunarity
    return (value / total + 1.0) * 0.5


class TestCylindricalNoise:
    """Test seamless noise sampling."""

    @pytest.fixture
    def noise(self):
        return CylindricalNoise(seed=42, frequency=0.05, octaves=4)

    def test_coordinates_form_a_circle(self):
        cx, cz = cylindrical_coordinates(64)
        radius = 64 / (2 * math.pi)

        assert cx.shape == (64,)
        assert np.allclose(np.hypot(cx, cz), radius)
        assert cx[0] == pytest.approx(radius)
        assert cz[0] == pytest.approx(0.0)

    def test_sample_shape_and_range(self, noise):
        data = noise.sample(48, 24)

        assert data.shape == (24, 48)
        assert data.min() >= 0.0
        assert data.max() <= 1.0

    def test_sample_is_deterministic(self, noise):
        other = CylindricalNoise(seed=42, frequency=0.05, octaves=4)
        assert np.array_equal(noise.sample(32, 16), other.sample(32, 16))

    def test_different_seeds_differ(self, noise):
        other = CylindricalNoise(seed=43, frequency=0.05, octaves=4)
        assert not np.array_equal(noise.sample(32, 16), other.sample(32, 16))

    def test_seam_wraps(self):
        """x = width lands on the same noise point as x = 0."""
        width = 80
        for y in (0, 5, 17):
            assert reference_fbm(42, width, y, width, 0.05, 4) == pytest.approx(
                reference_fbm(42, 0, y, width, 0.05, 4), abs=1e-9
            )

    def test_seam_columns_are_close(self, noise):
        data = noise.sample(128, 32)
        seam_jump = np.abs(data[:, -1] - data[:, 0]).max()
        interior_jump = np.abs(np.diff(data, axis=1)).max()

        assert seam_jump <= 2 * interior_jump

    def test_sample_matches_scalar_fbm(self, noise):
        data = noise.sample(40, 10)
        for x, y in ((0, 0), (7, 3), (39, 9), (20, 5)):
            assert data[y, x] == pytest.approx(reference_fbm(42, x, y, 40, 0.05, 4), abs=1e-9)

    def test_custom_lacunarity_and_gain(self):
        noise = CylindricalNoise(seed=7, frequency=0.03, octaves=3, lacunarity=3.0, gain=0.4)
        data = noise.sample(24, 12)
        assert data[6, 11] == pytest.approx(
            reference_fbm(7, 11, 6, 24, 0.03, 3, lacunarity=3.0, gain=0.4), abs=1e-9
        )

    def test_octaves_at_least_one(self):
        assert CylindricalNoise(seed=1, frequency=0.1, octaves=0).octaves == 1


class TestDitherNoise:
    """Test biome dither noise."""

    def test_pure_function(self):
        assert dither_noise(98765, 10, 20) == dither_noise(98765, 10, 20)

    def test_range(self):
        field = dither_field(98765, 40, 20, frequency=0.2)
        assert field.shape == (20, 40)
        assert field.min() >= -1.0
        assert field.max() <= 1.0

    def test_field_matches_point_values(self):
        field = dither_field(5, 16, 8, frequency=0.3)
        assert field[4, 9] == pytest.approx(dither_noise(5, 9, 4, frequency=0.3))

    def test_field_matches_every_point(self):
        field = dither_field(98765, 12, 6, frequency=0.15)
        expected = np.array(
            [[dither_noise(98765, x, y, frequency=0.15) for x in range(12)] for y in range(6)]
        )
        assert np.allclose(field, expected, atol=1e-12)

    def test_matches_public_opensimplex(self):
        gen = OpenSimplex(321)
        assert dither_noise(321, 13, 8, frequency=0.1) == pytest.approx(gen.noise2(1.3, 0.8), abs=1e-12)


class TestRandom:
    """Test per-stage seed derivation."""

    def test_derive_seed_wraps_64_bits(self):
        assert derive_seed(2**64 - 1, 2) == 1
        assert derive_seed(10, 5) == 15

    def test_stage_generators_are_independent(self):
        a = get_rng(42, 1).random(5)
        b = get_rng(42, 2).random(5)
        assert not np.array_equal(a, b)

    def test_generators_are_reproducible(self):
        assert np.array_equal(get_rng(42, 7).random(5), get_rng(42, 7).random(5))

"""Tests for hash noise functions."""

import numpy as np
import pytest

from worldgen.terrain.noise import multi_octave_noise, noise, noise_field


class TestNoise:
    """Tests for scalar hash noise."""

    def test_deterministic(self) -> None:
        """Same inputs give the same value."""
        assert noise(3.5, 7.25, 42) == noise(3.5, 7.25, 42)

    def test_range(self) -> None:
        """Values lie in [0, 1)."""
        values = [noise(x * 0.37, y * 1.13, 9) for x in range(20) for y in range(20)]
        assert min(values) >= 0.0
        assert max(values) < 1.0

    def test_seed_changes_value(self) -> None:
        """Different seeds give different values."""
        assert noise(1.0, 2.0, 1) != noise(1.0, 2.0, 2)


class TestMultiOctaveNoise:
    """Tests for octave-summed noise."""

    def test_range(self) -> None:
        """Amplitude normalization keeps values in [0, 1)."""
        for octaves in (1, 3, 6):
            value = multi_octave_noise(0.3, 0.9, 5, octaves)
            assert 0.0 <= value < 1.0

    def test_single_octave_matches_noise(self) -> None:
        """One octave is plain noise."""
        assert multi_octave_noise(0.4, 0.2, 11, 1) == pytest.approx(noise(0.4, 0.2, 11))

    def test_zero_octaves_treated_as_one(self) -> None:
        """Octave counts below one fall back to a single octave."""
        assert multi_octave_noise(0.4, 0.2, 11, 0) == multi_octave_noise(0.4, 0.2, 11, 1)


class TestNoiseField:
    """Tests for vectorized noise grids."""

    def test_shape(self) -> None:
        """Field is indexed [y, x]."""
        field = noise_field(7, 4, seed=1, scale=0.1)
        assert field.shape == (4, 7)

    def test_matches_scalar(self) -> None:
        """Each cell equals the scalar multi-octave sample."""
        field = noise_field(6, 5, seed=3, scale=0.1, octaves=3)
        for y in range(5):
            for x in range(6):
                expected = multi_octave_noise(x * 0.1, y * 0.1, 3, 3)
                assert field[y, x] == pytest.approx(expected, abs=1e-6)

    def test_deterministic(self) -> None:
        """Same seed gives identical fields."""
        a = noise_field(16, 16, seed=5, scale=0.05)
        b = noise_field(16, 16, seed=5, scale=0.05)
        np.testing.assert_array_equal(a, b)

    def test_range(self) -> None:
        """Values lie in [0, 1)."""
        field = noise_field(32, 32, seed=2, scale=0.3, octaves=4)
        assert field.min() >= 0.0
        assert field.max() < 1.0

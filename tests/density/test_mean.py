"""Tests for NEC mean functions."""

import math

import numpy as np
import pytest

from pynec.density import nec_hormesis, nec_sigmoidal, step


class TestStep:

    def test_heaviside(self):
        np.testing.assert_array_equal(step(np.array([-1.0, -1e-12, 0.0, 2.0])), [0, 0, 1, 1])


class TestHormesis:
    """``(top + slope*C) * exp(-beta*(C-nec)*step(C-nec))``."""

    def test_reference_scenario(self):
        conc = np.array([0.0, 0.5, 1.0])
        mu = nec_hormesis(conc, top=2.0, beta=1.0, nec=0.3, slope=0.0)
        np.testing.assert_allclose(mu, [2.0, 2.0 * math.exp(-0.2), 2.0 * math.exp(-0.7)])

    def test_flat_below_threshold(self):
        conc = np.array([0.0, 0.1, 0.29])
        mu = nec_hormesis(conc, top=5.0, beta=3.0, nec=0.3, slope=0.0)
        np.testing.assert_array_equal(mu, [5.0, 5.0, 5.0])

    def test_equals_top_at_threshold(self):
        mu = nec_hormesis(np.array([0.3]), top=5.0, beta=3.0, nec=0.3, slope=0.0)
        assert mu[0] == 5.0

    def test_continuous_across_threshold(self):
        eps = 1e-9
        conc = np.array([0.3 - eps, 0.3, 0.3 + eps])
        mu = nec_hormesis(conc, top=4.0, beta=2.0, nec=0.3, slope=1.5)
        assert np.ptp(mu) < 1e-7

    def test_slope_raises_baseline(self):
        conc = np.array([0.1, 0.2])
        mu = nec_hormesis(conc, top=1.0, beta=1.0, nec=0.5, slope=2.0)
        np.testing.assert_allclose(mu, [1.2, 1.4])

    def test_per_observation_predictors(self):
        conc = np.array([1.0, 1.0])
        mu = nec_hormesis(
            conc,
            top=np.array([1.0, 2.0]),
            beta=np.array([1.0, 1.0]),
            nec=np.array([0.0, 2.0]),
            slope=np.array([0.0, 0.0]),
        )
        np.testing.assert_allclose(mu, [math.exp(-1.0), 2.0])


class TestSigmoidal:
    """``top * exp(-beta*(C-nec)^d*step(C-nec))``."""

    def test_formula_above_threshold(self):
        conc = np.array([1.3])
        mu = nec_sigmoidal(conc, top=2.0, beta=0.5, nec=0.3, d=2.5)
        assert mu[0] == pytest.approx(2.0 * math.exp(-0.5))

    def test_non_integer_exponent_below_threshold(self):
        """A negative base never reaches pow, so no NaN appears."""
        conc = np.array([0.0, 0.1, 0.2])
        mu = nec_sigmoidal(conc, top=3.0, beta=1.0, nec=0.3, d=1.7)
        assert np.all(np.isfinite(mu))
        np.testing.assert_array_equal(mu, [3.0, 3.0, 3.0])

    def test_continuous_across_threshold(self):
        eps = 1e-9
        conc = np.array([0.3 - eps, 0.3, 0.3 + eps])
        mu = nec_sigmoidal(conc, top=4.0, beta=2.0, nec=0.3, d=1.5)
        assert np.ptp(mu) < 1e-7
        assert mu[1] == 4.0

    def test_unit_exponent_matches_hormesis(self):
        conc = np.linspace(0.0, 2.0, 9)
        a = nec_hormesis(conc, top=2.0, beta=1.3, nec=0.4, slope=0.0)
        b = nec_sigmoidal(conc, top=2.0, beta=1.3, nec=0.4, d=1.0)
        np.testing.assert_allclose(a, b)

    def test_decreasing_above_threshold(self):
        conc = np.array([0.5, 1.0, 2.0, 4.0])
        mu = nec_sigmoidal(conc, top=1.0, beta=1.0, nec=0.3, d=0.8)
        assert np.all(np.diff(mu) < 0)

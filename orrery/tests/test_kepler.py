import unittest

import numpy as np
from numpy.testing import assert_allclose

from orrery import solve_kepler, solve_kepler_vec
from orrery.astrodynamics import kepler_residual


class TestKepler(unittest.TestCase):

    def test_residual_below_tolerance(self):
        """Newton iteration reaches |E - e sin E - M| < 1e-6 across the elliptic range"""
        for e in (0.0, 0.0167, 0.2056, 0.5, 0.9):
            for M in np.linspace(0.0, 2.0 * np.pi, 13, endpoint=False):
                with self.subTest(e=e, M=M):
                    E = solve_kepler(M, e)
                    self.assertLess(kepler_residual(E, M, e), 1.0e-6)

    def test_high_eccentricity(self):
        e = 0.96714  # Halley's comet
        for M in (0.5, 1.0, 2.0, 3.0, 5.5):
            with self.subTest(M=M):
                E = solve_kepler(M, e)
                self.assertLess(kepler_residual(E, M, e), 1.0e-6)

    def test_circular_orbit_is_identity(self):
        for M in (0.0, 0.3, 2.5, 6.0):
            assert_allclose(float(solve_kepler(M, 0.0)), M, rtol=0.0, atol=1e-15)

    def test_iteration_cap(self):
        """With no updates allowed the starting guess E = M is returned, no error raised"""
        E = solve_kepler(1.0, 0.5, 1.0e-6, 0)
        assert_allclose(float(E), 1.0, rtol=0.0, atol=0.0)

    def test_vectorized_matches_scalar(self):
        M = np.array([0.1, 1.0, 2.0, 3.0, 4.0, 5.0])
        e = np.array([0.0, 0.1, 0.3, 0.5, 0.7, 0.9])
        E_vec = np.asarray(solve_kepler_vec(M, e))
        E_scalar = np.array([float(solve_kepler(m, ecc)) for m, ecc in zip(M, e)])
        assert_allclose(E_vec, E_scalar, rtol=1e-12, atol=1e-12)


if __name__ == '__main__':
    unittest.main()

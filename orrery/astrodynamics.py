"""
Keplerian position solver.

Converts orbital elements and elapsed time into positions. Positions are in AU,
relative to the parent body, and expressed in render space: the ecliptic Z axis
(north) becomes the vertical render axis and the ecliptic Y axis becomes render
depth, i.e. (x, y, z)_ecliptic -> (x, z, y)_render.
"""
from typing import Optional, Sequence

import jax
import jax.numpy as jnp
from jax import jit
import numpy as np

from .orbital_elements import OrbitalElements
from .constants import DEG2RAD, KEPLER_MAX_ITER, KEPLER_TOL, TWO_PI


def solve_kepler(M: float, e: float, tol: float = KEPLER_TOL, max_iter: int = KEPLER_MAX_ITER) -> float:
    """
    Solve Kepler's equation M = E - e*sin(E) for eccentric anomaly E
    using Newton-Raphson iteration with jax.lax.while_loop for JIT compatibility.

    Iteration starts from E = M and stops once |E - e*sin(E) - M| < tol or after
    max_iter updates. No error is raised when the cap is hit; the last estimate
    is returned. Only 0 <= e < 1 is supported.
    """
    M = jnp.asarray(M, dtype=jnp.float64)
    e = jnp.asarray(e, dtype=jnp.float64)

    def cond_fn(carry):
        E, k = carry
        return jnp.logical_and(k < max_iter, jnp.abs(E - e * jnp.sin(E) - M) >= tol)

    def body_fn(carry):
        E, k = carry
        # Newton-Raphson iteration
        f = E - e * jnp.sin(E) - M
        fp = 1.0 - e * jnp.cos(E)
        return E - f / fp, k + 1

    E_final, _ = jax.lax.while_loop(cond_fn, body_fn, (M, jnp.asarray(0)))
    return E_final


# Vectorized version using vmap
# Note: vmap over first two arguments (M and e arrays), broadcast tol and max_iter
_solve_kepler_vec = jax.vmap(solve_kepler, in_axes=(0, 0, None, None))


def solve_kepler_vec(M, e, tol=KEPLER_TOL, max_iter=KEPLER_MAX_ITER):
    """
    Vectorized version of solve_kepler that handles arrays of M and e.

    Parameters
    ----------
    M : jnp.ndarray
        Array of mean anomalies (rad)
    e : jnp.ndarray
        Array of eccentricities
    tol : float, optional
        Tolerance on the residual of Kepler's equation
    max_iter : int, optional
        Maximum number of Newton-Raphson updates

    Returns
    -------
    E : jnp.ndarray
        Array of eccentric anomalies (rad)
    """
    return _solve_kepler_vec(jnp.asarray(M, dtype=jnp.float64), jnp.asarray(e, dtype=jnp.float64), tol, max_iter)


def kepler_residual(E: float, M: float, e: float) -> float:
    """|E - e*sin(E) - M|, the quantity the solver drives below its tolerance."""
    return float(jnp.abs(E - e * jnp.sin(E) - M))


def _ecliptic_core(row: jnp.ndarray, period_years: float, time_years: float) -> jnp.ndarray:
    """
    Heliocentric-ecliptic position from a row of elements (a, e, i, Omega, omega, M0),
    angles in degrees. Rows without a semi-major axis or period give the origin.
    """
    a, e = row[0], row[1]
    i = row[2] * DEG2RAD
    Omega = row[3] * DEG2RAD
    omega = row[4] * DEG2RAD
    M0 = row[5] * DEG2RAD

    valid = jnp.logical_and(a != 0.0, period_years != 0.0)
    period = jnp.where(valid, period_years, 1.0)

    # Mean anomaly at time t, reduced to [0, 2pi) so long sessions keep precision
    n = TWO_PI / period  # mean motion (rad/year)
    M = jnp.mod(M0 + n * time_years, TWO_PI)

    # Solve for eccentric anomaly
    E = solve_kepler(M, e)

    # Position in orbital plane (perifocal frame)
    x_orb = a * (jnp.cos(E) - e)
    y_orb = a * jnp.sqrt(1.0 - e**2) * jnp.sin(E)

    # Rotate from orbital plane to ecliptic frame
    # R = Rz(Omega) * Rx(i) * Rz(omega)
    cos_O = jnp.cos(Omega)
    sin_O = jnp.sin(Omega)
    cos_w = jnp.cos(omega)
    sin_w = jnp.sin(omega)
    cos_i = jnp.cos(i)
    sin_i = jnp.sin(i)

    x = x_orb * (cos_w * cos_O - sin_w * sin_O * cos_i) - y_orb * (sin_w * cos_O + cos_w * sin_O * cos_i)
    y = x_orb * (cos_w * sin_O + sin_w * cos_O * cos_i) - y_orb * (sin_w * sin_O - cos_w * cos_O * cos_i)
    z = x_orb * (sin_w * sin_i) + y_orb * (cos_w * sin_i)

    return jnp.where(valid, jnp.stack([x, y, z]), jnp.zeros(3))


def _render_core(row: jnp.ndarray, period_years: float, time_years: float) -> jnp.ndarray:
    r = _ecliptic_core(row, period_years, time_years)
    # Ecliptic Z (north) is the render up axis, ecliptic Y is render depth
    return jnp.stack([r[0], r[2], r[1]])


_ecliptic_position = jit(_ecliptic_core)
_render_position = jit(_render_core)
_render_positions = jit(jax.vmap(_render_core, in_axes=(0, 0, 0)))


def has_orbital_motion(elements: Optional[OrbitalElements], period_years: Optional[float]) -> bool:
    """True when the body has both a semi-major axis and a period, i.e. it actually moves."""
    return bool(elements is not None and elements.semi_major_axis_au and period_years)


def ecliptic_position(elements: Optional[OrbitalElements], period_years: Optional[float],
                      time_years: float) -> np.ndarray:
    """
    Position in the parent's ecliptic frame (AU) at time_years, before the render axis remap.
    """
    if not has_orbital_motion(elements, period_years):
        return np.zeros(3)
    row = jnp.asarray(elements.as_row(), dtype=jnp.float64)
    return np.asarray(_ecliptic_position(row, float(period_years), float(time_years)))


def orbit_position(elements: Optional[OrbitalElements], period_years: Optional[float],
                   time_years: float) -> np.ndarray:
    """
    Calculate the render-space position of a body relative to its parent.

    Args:
        elements: Orbital elements of the body (degrees, AU)
        period_years: Sidereal orbital period (years)
        time_years: Elapsed simulated time since epoch (years)

    Returns:
        Array [x, y, z] in AU where y is the vertical render axis. Bodies
        without a semi-major axis or a period stay at the origin.

    Examples:
        >>> circle = OrbitalElements(semi_major_axis_au=1.0, eccentricity=0.0)
        >>> orbit_position(circle, 1.0, 0.25)  # quarter period, approximately [0, 0, 1]
    """
    if not has_orbital_motion(elements, period_years):
        return np.zeros(3)
    row = jnp.asarray(elements.as_row(), dtype=jnp.float64)
    return np.asarray(_render_position(row, float(period_years), float(time_years)))


def orbit_positions(element_rows, periods, times) -> np.ndarray:
    """
    Vectorized render-space positions for many bodies at once.

    Parameters
    ----------
    element_rows : array_like, shape (n, 6)
        Rows of (a, e, i, Omega, omega, M0) with angles in degrees and
        missing values set to 0.
    periods : array_like, shape (n,)
        Orbital periods in years, 0 for bodies that do not move.
    times : array_like, shape (n,)
        Elapsed time of each body's own clock in years.

    Returns
    -------
    r : np.ndarray, shape (n, 3)
        Positions relative to each body's parent (AU).
    """
    rows = jnp.asarray(element_rows, dtype=jnp.float64).reshape(-1, 6)
    if rows.shape[0] == 0:
        return np.zeros((0, 3))
    return np.asarray(_render_positions(rows,
                                        jnp.asarray(periods, dtype=jnp.float64),
                                        jnp.asarray(times, dtype=jnp.float64)))


def orbit_path(elements: Optional[OrbitalElements], period_years: Optional[float],
               segments: int = 128) -> np.ndarray:
    """
    Sample one full period of an orbit for drawing orbit lines.

    Returns an array of shape (segments + 1, 3), closed (first point == last point
    up to rounding), or an empty (0, 3) array for bodies without orbital motion.
    """
    if not has_orbital_motion(elements, period_years):
        return np.zeros((0, 3))
    times = np.linspace(0.0, float(period_years), segments + 1)
    rows = np.tile(np.asarray(elements.as_row(), dtype=float), (segments + 1, 1))
    periods = np.full(segments + 1, float(period_years))
    return orbit_positions(rows, periods, times)


def element_table(elements: Sequence[Optional[OrbitalElements]],
                  periods: Sequence[Optional[float]]) -> tuple[np.ndarray, np.ndarray]:
    """
    Pack catalog elements into the (rows, periods) arrays used by orbit_positions.
    Bodies without orbital motion get a zero row and zero period.
    """
    rows = np.zeros((len(elements), 6))
    period_arr = np.zeros(len(elements))
    for k, (el, period) in enumerate(zip(elements, periods)):
        if has_orbital_motion(el, period):
            rows[k] = el.as_row()
            period_arr[k] = float(period)
    return rows, period_arr

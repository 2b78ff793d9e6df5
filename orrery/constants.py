"""
Physical and presentation constants for the orrery.

Orbits are drawn to scale with 1 scene unit = 1 AU. Body sizes are exaggerated.
"""

import jax.numpy as jnp

# Basic astronomical and time constants
KMPAU = 149597870.7  # km per AU
DAY = 86400.0  # seconds per day
DAYS_PER_YEAR = 365.25
YEAR = DAYS_PER_YEAR * DAY  # seconds per year
TWO_PI = 2.0 * jnp.pi
DEG2RAD = jnp.pi / 180.0

# Kepler solver defaults
KEPLER_TOL = 1.0e-6
KEPLER_MAX_ITER = 30

# Simulation speed: years of orbital motion per real second at time scale 1.0
BASE_SPEED = 0.5
SIMULATION_SPEED = 0.25
BASE_SPEED_YEARS_PER_SECOND = BASE_SPEED * SIMULATION_SPEED

# Visual size of bodies (orbits stay in AU)
SIZE_SCALE = 300.0  # visual boost for body radii
MIN_VISUAL_RADIUS = 0.003  # floor so tiny bodies remain visible
STAR_RENDER_SCALE = 0.14  # the star is drawn smaller than its boosted radius

# Camera defaults
SELECTION_MIN_ZOOM = 0.08
SELECTION_ZOOM_STAR = 1.2
SELECTION_ZOOM_BODY = 2.5
DEFAULT_CAMERA_POSITION = (0.0, 40.0, 50.0)

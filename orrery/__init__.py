# Configure JAX to use double precision (64-bit floats) throughout the package
import jax
jax.config.update("jax_enable_x64", True)

from .orbital_elements import OrbitalElements

from .constants import (
    # Constants
    KMPAU,
    DAY,
    YEAR,
    BASE_SPEED_YEARS_PER_SECOND,
    SIZE_SCALE,
    MIN_VISUAL_RADIUS,
)

from .errors import (
    TourAborted,
    PlaybackError,
    CatalogError,
)

from .astrodynamics import (
    # Functions
    solve_kepler,
    solve_kepler_vec,
    ecliptic_position,
    orbit_position,
    orbit_positions,
    orbit_path,
)

from .bodies import (
    # Body class
    Body,
    load_bodies_data,
    hierarchy_order,
    bodies_data,
)

from .simulation import (
    SimulationState,
    BodyClocks,
)

from .scene import (
    SolarSystemScene,
    VisualState,
)

from .camera import (
    CameraState,
    CameraCommandInterpreter,
)

from .config import (
    OrreryConfig,
    make_config,
)

from .controls import ControlPanel

from .app import Orrery

__all__ = [
    # Constants
    "KMPAU",
    "DAY",
    "YEAR",
    "BASE_SPEED_YEARS_PER_SECOND",
    "SIZE_SCALE",
    "MIN_VISUAL_RADIUS",

    # Named tuples
    "OrbitalElements",

    # Errors
    "TourAborted",
    "PlaybackError",
    "CatalogError",

    # Functions
    "solve_kepler",
    "solve_kepler_vec",
    "ecliptic_position",
    "orbit_position",
    "orbit_positions",
    "orbit_path",

    # Bodies
    "Body",
    "load_bodies_data",
    "hierarchy_order",
    "bodies_data",

    # Simulation and scene
    "SimulationState",
    "BodyClocks",
    "SolarSystemScene",
    "VisualState",
    "CameraState",
    "CameraCommandInterpreter",

    # Application
    "OrreryConfig",
    "make_config",
    "ControlPanel",
    "Orrery",
]

import csv
import logging
from pathlib import Path
from typing import Literal, Optional

import numpy as np
import pydantic
from pydantic import ConfigDict, field_validator

from orrery.constants import (
    DAYS_PER_YEAR,
    KMPAU,
    MIN_VISUAL_RADIUS,
    SELECTION_MIN_ZOOM,
    SELECTION_ZOOM_BODY,
    SELECTION_ZOOM_STAR,
    SIZE_SCALE,
)
from orrery.errors import CatalogError
from orrery.orbital_elements import OrbitalElements

logger = logging.getLogger(__name__)

BodyCategory = Literal['star', 'planet', 'dwarf_planet', 'moon', 'comet', 'artificial_satellite']

CATEGORY_ORDER = ('star', 'planet', 'dwarf_planet', 'moon', 'artificial_satellite', 'comet')

CATEGORY_LABELS = {
    'star': 'Star',
    'planet': 'Planets',
    'dwarf_planet': 'Dwarf Planets',
    'moon': 'Moons',
    'artificial_satellite': 'Satellites',
    'comet': 'Comets',
}

DEFAULT_CATALOG = Path(__file__).parent / 'data' / 'bodies.csv'


class Body(pydantic.BaseModel):
    """
    Represents a celestial body of the orrery.

    Attributes:
        id: Unique identifier for the body (e.g. "earth")
        name_en: English name
        name_ja: Japanese name
        category: Category tag
        parent_id: Identifier of the body this one orbits, None for roots
        elements: Orbital elements relative to the parent
        period_years: Sidereal orbital period (years)
        mean_radius_km: Mean physical radius (km)
        axial_tilt_deg: Obliquity (deg)
        rotation_period_hours: Sidereal rotation period, negative when retrograde (h)
        narration_clip: Path of the narration clip for tours and the info panel
        texture: Path of the texture image
    """
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)  # Allow OrbitalElements (NamedTuple)

    id: str
    name_en: str
    name_ja: str = ''
    category: BodyCategory = 'planet'
    parent_id: Optional[str] = None
    elements: Optional[OrbitalElements] = None
    period_years: Optional[float] = None
    mean_radius_km: Optional[float] = None
    axial_tilt_deg: Optional[float] = None
    rotation_period_hours: Optional[float] = None
    narration_clip: Optional[str] = None
    texture: Optional[str] = None

    @field_validator('category', mode='before')
    @classmethod
    def normalize_category(cls, v):
        # Unknown tags render as planets
        if v not in CATEGORY_ORDER:
            return 'planet'
        return v

    @field_validator('elements')
    @classmethod
    def validate_eccentricity(cls, v):
        if v is not None and v.eccentricity is not None and not 0.0 <= v.eccentricity < 1.0:
            raise ValueError("eccentricity must be in [0, 1)")
        return v

    @property
    def has_motion(self) -> bool:
        """Whether the body moves; bodies lacking a semi-major axis or period stay at their parent's origin."""
        return bool(self.elements is not None and self.elements.semi_major_axis_au and self.period_years)

    def orbit_position(self, time_years: float) -> np.ndarray:
        """
        Position relative to the parent body at time_years, in render space (AU).

        Composition with the parent's world position is the caller's job
        (see SolarSystemScene).
        """
        from orrery.astrodynamics import orbit_position

        return orbit_position(self.elements, self.period_years, time_years)

    def get_period(self, units: str = 'year') -> Optional[float]:
        """
        Orbital period of the body.

        Args:
            units: 'year'/'years' (default) or 'day'/'days'

        Returns:
            The period, or None for bodies without orbital motion
        """
        if self.period_years is None:
            return None
        units_lower = units.lower()
        if units_lower in ('year', 'years'):
            return self.period_years
        elif units_lower in ('day', 'days'):
            return self.period_years * DAYS_PER_YEAR
        else:
            raise ValueError(f"Invalid units '{units}'. Must be one of: 'year', 'day'")

    def visual_radius_au(self) -> float:
        """Rendered radius: the physical radius boosted by SIZE_SCALE, floored so tiny bodies stay visible."""
        radius_au = (self.mean_radius_km or 0.0) / KMPAU
        return max(radius_au * SIZE_SCALE, MIN_VISUAL_RADIUS)

    def selection_zoom_distance(self) -> float:
        """Camera distance used when the user selects this body."""
        multiplier = SELECTION_ZOOM_STAR if self.category == 'star' else SELECTION_ZOOM_BODY
        return max(self.visual_radius_au() * multiplier, SELECTION_MIN_ZOOM)

    def is_small_target(self) -> bool:
        """Small categories and tiny bodies are what the highlight mode points out."""
        radius = self.mean_radius_km or 0.0
        return self.category in ('dwarf_planet', 'moon', 'artificial_satellite', 'comet') or radius < 1500.0

    def __repr__(self) -> str:
        return f"Body(id='{self.id}', name='{self.name_en}', category='{self.category}')"

    def __str__(self) -> str:
        return f"{self.name_en} ({self.name_ja})"


def _optional_float(row: dict, key: str) -> Optional[float]:
    value = (row.get(key) or '').strip()
    if not value:
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise CatalogError(f"Body '{row.get('id')}': column '{key}' is not a number: {value!r}") from exc


def _optional_str(row: dict, key: str) -> Optional[str]:
    value = (row.get(key) or '').strip()
    return value or None


def _body_from_row(row: dict) -> Body:
    body_id = (row.get('id') or '').strip()
    if not body_id:
        raise CatalogError(f"Catalog row without an id: {row}")

    period_years = _optional_float(row, 'period_years')
    if period_years is None:
        period_days = _optional_float(row, 'period_days')
        if period_days is not None:
            period_years = period_days / DAYS_PER_YEAR

    elements = None
    a = _optional_float(row, 'semi_major_axis_au')
    if a is not None:
        elements = OrbitalElements.from_raw(
            semi_major_axis_au=a,
            eccentricity=_optional_float(row, 'eccentricity'),
            inclination_deg=_optional_float(row, 'inclination_deg'),
            longitude_of_ascending_node_deg=_optional_float(row, 'longitude_of_ascending_node_deg'),
            argument_of_periapsis_deg=_optional_float(row, 'argument_of_periapsis_deg'),
            mean_anomaly_deg=_optional_float(row, 'mean_anomaly_deg'),
            longitude_of_perihelion_deg=_optional_float(row, 'longitude_of_perihelion_deg'),
            mean_longitude_deg=_optional_float(row, 'mean_longitude_deg'),
        )

    try:
        return Body(
            id=body_id,
            name_en=_optional_str(row, 'name_en') or body_id,
            name_ja=_optional_str(row, 'name_ja') or '',
            category=_optional_str(row, 'category') or 'planet',
            parent_id=_optional_str(row, 'parent_id'),
            elements=elements,
            period_years=period_years,
            mean_radius_km=_optional_float(row, 'mean_radius_km'),
            axial_tilt_deg=_optional_float(row, 'axial_tilt_deg'),
            rotation_period_hours=_optional_float(row, 'rotation_period_hours'),
            narration_clip=_optional_str(row, 'narration_clip'),
            texture=_optional_str(row, 'texture'),
        )
    except pydantic.ValidationError as exc:
        raise CatalogError(f"Body '{body_id}' is invalid: {exc}") from exc


def hierarchy_order(bodies: dict[str, Body]) -> list[str]:
    """
    Body ids ordered so every parent precedes its children.

    Siblings keep catalog order. Raises CatalogError for unknown parents and
    for cycles in the parent graph.
    """
    for body in bodies.values():
        if body.parent_id is not None and body.parent_id not in bodies:
            raise CatalogError(f"Body '{body.id}' references unknown parent '{body.parent_id}'")

    order = []
    placed = set()
    for body_id in bodies:
        # Walk up to the first placed ancestor, then place the chain top-down
        chain = []
        seen = set()
        current = body_id
        while current is not None and current not in placed:
            if current in seen:
                raise CatalogError(f"Cycle in body hierarchy involving '{current}'")
            seen.add(current)
            chain.append(current)
            current = bodies[current].parent_id
        for node in reversed(chain):
            order.append(node)
            placed.add(node)
    return order


def load_bodies_data(path: Optional[Path] = None) -> dict[str, Body]:
    """
    Load all bodies (star, planets, moons, dwarf planets, comets, satellites) from a CSV file.

    Args:
        path: CSV file to read; defaults to the packaged catalog

    Returns:
        Dictionary mapping body ID to Body object, in catalog order
    """
    filepath = Path(path) if path is not None else DEFAULT_CATALOG
    bodies = {}

    with open(filepath, 'r', encoding='utf-8', newline='') as f:
        reader = csv.DictReader(f)
        for row in reader:
            body = _body_from_row(row)
            if body.id in bodies:
                raise CatalogError(f"Duplicate body id '{body.id}' in {filepath}")
            if not body.has_motion:
                logger.debug("Body '%s' has no orbital motion; it stays at its parent's origin", body.id)
            bodies[body.id] = body

    # Validate the hierarchy at load time
    hierarchy_order(bodies)
    logger.debug("Loaded %d bodies from %s", len(bodies), filepath)
    return bodies


def children_of(bodies: dict[str, Body], parent_id: str) -> list[Body]:
    """Direct children of a body, in catalog order."""
    return [b for b in bodies.values() if b.parent_id == parent_id]


def grouped_bodies(bodies: dict[str, Body]) -> dict[str, list[Body]]:
    """Bodies grouped by category in display order, empty groups omitted."""
    groups = {cat: [] for cat in CATEGORY_ORDER}
    for body in bodies.values():
        groups[body.category].append(body)
    return {cat: members for cat, members in groups.items() if members}


bodies_data = load_bodies_data()

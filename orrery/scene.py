"""
Scene positions and the visual state bundle handed to the renderer.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol, Union

import numpy as np

from orrery.astrodynamics import element_table, orbit_path, orbit_positions
from orrery.bodies import Body, hierarchy_order

logger = logging.getLogger(__name__)


class PositionProvider(Protocol):
    """Anything that can report the current world position of a body."""

    def world_position(self, body_id: str) -> np.ndarray:
        ...


@dataclass
class VisualState:
    """
    Transient visual overrides set by the tour and the user.

    Attributes:
        orbit_speed_multipliers: Per-body factor on orbital speed (default 1)
        show_sun_effect: Flare/prominence effect around the star
        highlight_ids: Bodies drawn with a highlight ring and label
        show_small_targets: User toggle that highlights every small body
    """
    orbit_speed_multipliers: dict[str, float] = field(default_factory=dict)
    show_sun_effect: bool = False
    highlight_ids: frozenset[str] = frozenset()
    show_small_targets: bool = False

    def reset_overrides(self) -> None:
        """Clear everything a tour may have set. The user's highlight toggle is kept."""
        self.orbit_speed_multipliers = {}
        self.show_sun_effect = False
        self.highlight_ids = frozenset()


class SolarSystemScene:
    """
    World positions of every catalog body, recomputed once per frame.

    Bodies are registered with integer handles in parent-first order. Local
    orbital offsets for all bodies are computed in one vectorized call, then
    each body's parent world position is added; because parents come first,
    a parent is always updated before its children within a frame.
    """

    def __init__(self, bodies: dict[str, Body]):
        self.bodies = bodies
        self.order = hierarchy_order(bodies)
        self._handles = {body_id: k for k, body_id in enumerate(self.order)}
        self._parent_handles = np.array(
            [self._handles[bodies[b].parent_id] if bodies[b].parent_id else -1 for b in self.order],
            dtype=int,
        )
        self._rows, self._periods = element_table(
            [bodies[b].elements for b in self.order],
            [bodies[b].period_years for b in self.order],
        )
        self.local = np.zeros((len(self.order), 3))
        self.world = np.zeros((len(self.order), 3))

    def handle(self, body_id: str) -> int:
        """Integer handle of a registered body. Raises KeyError for unknown ids."""
        return self._handles[body_id]

    def __contains__(self, body_id: str) -> bool:
        return body_id in self._handles

    def update(self, times_years) -> np.ndarray:
        """
        Recompute all positions.

        Args:
            times_years: Elapsed years per body, in scene order (self.order),
                or a single float applied to every body

        Returns:
            World positions, shape (n, 3), in scene order
        """
        times = np.broadcast_to(np.asarray(times_years, dtype=float), (len(self.order),))
        self.local = orbit_positions(self._rows, self._periods, times)
        world = self.local.copy()
        for k, parent in enumerate(self._parent_handles):
            if parent >= 0:
                world[k] += world[parent]
        self.world = world
        return self.world

    def world_position(self, body_id: Union[str, int]) -> np.ndarray:
        """World position of a body from the most recent update."""
        k = body_id if isinstance(body_id, (int, np.integer)) else self._handles[body_id]
        return self.world[k].copy()

    def local_position(self, body_id: str) -> np.ndarray:
        return self.local[self._handles[body_id]].copy()

    def positions(self) -> dict[str, np.ndarray]:
        return {body_id: self.world[k].copy() for body_id, k in self._handles.items()}

    def orbit_line(self, body_id: str, segments: int = 128) -> Optional[np.ndarray]:
        """
        Orbit path of a body translated to its parent's current world position,
        or None for bodies without orbital motion.
        """
        body = self.bodies[body_id]
        path = orbit_path(body.elements, body.period_years, segments)
        if path.shape[0] == 0:
            return None
        if body.parent_id:
            path = path + self.world_position(body.parent_id)
        return path

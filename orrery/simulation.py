"""
Simulation clock.

The clock is explicit state owned by a running scene: it is created at mount
with zero elapsed time, advanced once per frame, and never persisted.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

from orrery.constants import BASE_SPEED_YEARS_PER_SECOND


@dataclass
class SimulationState:
    """
    Process-wide simulated time of one scene.

    Attributes:
        elapsed_years: Simulated years since mount
        time_scale: User speed multiplier (0 freezes motion like a pause)
        paused: When True, advance() does nothing
    """
    elapsed_years: float = 0.0
    time_scale: float = 1.0
    paused: bool = False

    def advance(self, frame_delta_s: float) -> float:
        """
        Advance by one frame and return the simulated years added.

        dt_years = frame_delta_s * time_scale * BASE_SPEED_YEARS_PER_SECOND
        """
        if self.paused or frame_delta_s <= 0.0:
            return 0.0
        dt_years = frame_delta_s * self.time_scale * BASE_SPEED_YEARS_PER_SECOND
        self.elapsed_years += dt_years
        return dt_years


@dataclass
class BodyClocks:
    """
    Per-body orbital time.

    Each body accumulates the frame increment scaled by its orbit-speed
    multiplier, so changing a multiplier changes the body's speed without
    making it jump along its orbit.
    """
    body_ids: tuple[str, ...]
    years: dict[str, float] = field(default_factory=dict)

    def __post_init__(self):
        for body_id in self.body_ids:
            self.years.setdefault(body_id, 0.0)

    def advance(self, dt_years: float, multipliers: Mapping[str, float] | None = None) -> None:
        multipliers = multipliers or {}
        for body_id in self.body_ids:
            self.years[body_id] += dt_years * multipliers.get(body_id, 1.0)

    def times(self, order: Iterable[str]) -> list[float]:
        return [self.years[body_id] for body_id in order]

    def reset(self) -> None:
        for body_id in self.body_ids:
            self.years[body_id] = 0.0

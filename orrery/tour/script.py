"""
Tour scripts.

A tour is plain data: an ordered tuple of steps. Each step may change the
visual overrides, issue one camera command, cue background music, and then
wait on narration, a timer and/or the end of the music, in that order. The
engine executes the steps; nothing here touches the clock or the audio.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from orrery.bodies import Body, children_of
from orrery.constants import DEFAULT_CAMERA_POSITION
from orrery.scene import VisualState
from orrery.tour.commands import (
    FollowBodyCommand,
    MoveToBodyCommand,
    OverviewCommand,
    TourCommand,
)

GRAND_TOUR_ID = 'grand_tour'
TOUR_MUSIC = '/audio/BGM/birth_of_the_universe.mp3'

TOUR_TIME_SCALE = 0.2  # time scale pinned while a tour runs
MOON_SPEED_MULTIPLIER = 0.25  # moons of the visited planet slow down
ORBIT_SPEED = 0.25  # rad/s of the circling camera
APPROACH_MS = 1800.0
NO_CLIP_DWELL_MS = 4000.0
INTRO_POSITION = (0.0, 30.0, 45.0)


@dataclass(frozen=True)
class VisualPatch:
    """Overrides applied at the start of a step. Fields left as None are unchanged."""
    orbit_speed_multipliers: Optional[dict] = None
    show_sun_effect: Optional[bool] = None
    highlight_ids: Optional[frozenset] = None

    def apply(self, visuals: VisualState) -> None:
        if self.orbit_speed_multipliers is not None:
            visuals.orbit_speed_multipliers = dict(self.orbit_speed_multipliers)
        if self.show_sun_effect is not None:
            visuals.show_sun_effect = self.show_sun_effect
        if self.highlight_ids is not None:
            visuals.highlight_ids = frozenset(self.highlight_ids)


CLEAR_VISUALS = VisualPatch(orbit_speed_multipliers={}, show_sun_effect=False, highlight_ids=frozenset())


@dataclass(frozen=True)
class TourStep:
    name: str
    visuals: Optional[VisualPatch] = None
    camera: Optional[TourCommand] = None
    music: Optional[str] = None
    narration: Optional[str] = None
    wait_ms: float = 0.0
    wait_music_end: bool = False


@dataclass(frozen=True)
class Tour:
    id: str
    title: str
    steps: tuple[TourStep, ...] = field(default_factory=tuple)
    time_scale: float = TOUR_TIME_SCALE

    def __len__(self) -> int:
        return len(self.steps)


def tour_distance(body: Body) -> float:
    """Camera distance used while visiting a body."""
    return max(body.selection_zoom_distance() * 2.0, 0.15)


def body_visit(body: Body, bodies: dict[str, Body]) -> list[TourStep]:
    """Approach a body from its lit side, then circle it while its narration plays."""
    distance = tour_distance(body)
    moon_ids = frozenset(child.id for child in children_of(bodies, body.id))
    visuals = VisualPatch(
        orbit_speed_multipliers={moon_id: MOON_SPEED_MULTIPLIER for moon_id in moon_ids},
        show_sun_effect=body.category == 'star',
        highlight_ids=moon_ids,
    )
    approach = TourStep(
        name=f"{body.id}:approach",
        visuals=visuals,
        camera=MoveToBodyCommand(target_body_id=body.id, distance=distance, duration_ms=APPROACH_MS,
                                 sun_facing=body.category != 'star'),
        wait_ms=APPROACH_MS,
    )
    follow = FollowBodyCommand(target_body_id=body.id, distance=distance, orbit_speed=ORBIT_SPEED)
    if body.narration_clip:
        narrate = TourStep(name=f"{body.id}:narration", camera=follow, narration=body.narration_clip)
    else:
        narrate = TourStep(name=f"{body.id}:dwell", camera=follow, wait_ms=NO_CLIP_DWELL_MS)
    return [approach, narrate]


def build_grand_tour(bodies: dict[str, Body]) -> Tour:
    """
    The full guided tour: an overview with music, the star, every planet and
    dwarf planet in catalog order, and a closing overview that lets the music
    finish.
    """
    steps = [
        TourStep(
            name='intro',
            visuals=CLEAR_VISUALS,
            camera=OverviewCommand(position=INTRO_POSITION, look_at=(0.0, 0.0, 0.0), duration_ms=2500.0),
            music=TOUR_MUSIC,
            wait_ms=3000.0,
        ),
    ]
    for category in ('star', 'planet', 'dwarf_planet'):
        for body in bodies.values():
            if body.category == category:
                steps.extend(body_visit(body, bodies))
    steps.append(
        TourStep(
            name='outro',
            visuals=CLEAR_VISUALS,
            camera=OverviewCommand(position=DEFAULT_CAMERA_POSITION, duration_ms=3000.0),
            wait_ms=3000.0,
            wait_music_end=True,
        )
    )
    return Tour(id=GRAND_TOUR_ID, title='Grand Tour of the Solar System', steps=tuple(steps))


def build_body_tour(body: Body, bodies: dict[str, Body]) -> Tour:
    steps = body_visit(body, bodies)
    steps.append(
        TourStep(
            name='return',
            visuals=CLEAR_VISUALS,
            camera=OverviewCommand(position=DEFAULT_CAMERA_POSITION, duration_ms=2000.0),
            wait_ms=2000.0,
        )
    )
    return Tour(id=body.id, title=f"{body.name_en} ({body.name_ja})", steps=tuple(steps))


def available_tours(bodies: dict[str, Body]) -> list[str]:
    return [GRAND_TOUR_ID] + [b.id for b in bodies.values() if b.narration_clip]


def build_tour(tour_id: str, bodies: dict[str, Body]) -> Tour:
    """
    Look up a tour by id: 'grand_tour' or the id of a body with a narration clip.
    Raises KeyError for anything else.
    """
    if tour_id == GRAND_TOUR_ID:
        return build_grand_tour(bodies)
    body = bodies.get(tour_id)
    if body is None or not body.narration_clip:
        raise KeyError(f"Unknown tour '{tour_id}'. Available: {', '.join(available_tours(bodies))}")
    return build_body_tour(body, bodies)

"""
Camera command interpreter.

Turns the current discrete camera command (from the tour engine or from a user
selection) into a camera position and look-at target, once per frame. All math
is synchronous and never blocks the frame.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

import numpy as np

from orrery.constants import DEFAULT_CAMERA_POSITION
from orrery.scene import PositionProvider
from orrery.tour.commands import (
    IDLE,
    FollowBodyCommand,
    MoveToBodyCommand,
    OverviewCommand,
    SelectBodyCommand,
    TourCommand,
)

logger = logging.getLogger(__name__)

# Per-frame smoothing factors at the reference frame rate
REFERENCE_FPS = 60.0
OVERVIEW_LOOK_SMOOTHING = 0.08
MOVE_LOOK_SMOOTHING = 0.1
FOLLOW_LOOK_SMOOTHING = 0.12
FOLLOW_POSITION_SMOOTHING = 0.08
SELECT_LOOK_SMOOTHING = 0.1
SELECT_POSITION_SMOOTHING = 0.05
SELECT_ARRIVAL_DISTANCE = 0.1

FALLBACK_OFFSET = np.array([1.0, 0.2, 1.0])
DEGENERATE_LENGTH_SQ = 1.0e-4
DEFAULT_FOLLOW_DISTANCE = 1.2


@dataclass
class CameraState:
    """Camera position and the point it looks at, both in world space (AU)."""
    position: np.ndarray = field(default_factory=lambda: np.array(DEFAULT_CAMERA_POSITION, dtype=float))
    target: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def copy(self) -> 'CameraState':
        return CameraState(position=self.position.copy(), target=self.target.copy())


def smoothing_alpha(k: float, delta_s: float) -> float:
    """
    Frame-rate independent version of a per-frame lerp factor k.

    Applying k once per frame at REFERENCE_FPS and applying the returned
    alpha once per delta_s give the same exponential approach.
    """
    if delta_s <= 0.0:
        return 0.0
    return 1.0 - (1.0 - k) ** (delta_s * REFERENCE_FPS)


def ease(current: np.ndarray, goal: np.ndarray, k: float, delta_s: float) -> np.ndarray:
    return current + (goal - current) * smoothing_alpha(k, delta_s)


def lerp(start: np.ndarray, end: np.ndarray, t: float) -> np.ndarray:
    return start + (end - start) * t


def with_length(v: np.ndarray, length: float) -> np.ndarray:
    norm = np.linalg.norm(v)
    if norm == 0.0:
        return v.copy()
    return v * (length / norm)


def _usable(direction: np.ndarray) -> np.ndarray:
    if float(np.dot(direction, direction)) < DEGENERATE_LENGTH_SQ:
        return FALLBACK_OFFSET.copy()
    return direction


def _approach_direction(target: np.ndarray, reference: np.ndarray, sun_facing: bool, offset) -> np.ndarray:
    """
    Direction from the target toward where the camera should sit: away from the star
    when sun_facing is set (so the lit side faces the camera), otherwise from the
    target toward the reference camera position, optionally biased by offset.
    """
    if sun_facing and float(np.dot(target, target)) > 0.0:
        base = -target / np.linalg.norm(target)
    else:
        base = reference - target
    if offset is not None:
        base = base + np.asarray(offset, dtype=float)
    return _usable(base)


class CameraCommandInterpreter:
    """
    Small state machine keyed by command identity.

    Whenever a different command object arrives, the start state (start camera
    position, start time, offset vector and orbit angle) is re-derived from the
    camera's actual current state, never from the previous command's goal, so
    a transition is seamless however far the previous motion had progressed.
    """

    def __init__(self, positions: PositionProvider):
        self.positions = positions
        self.command: TourCommand = IDLE
        self.start_position = np.zeros(3)
        self.start_ms = 0.0
        self.offset = FALLBACK_OFFSET.copy()
        self.orbit_angle = 0.0
        self.orbit_radius = DEFAULT_FOLLOW_DISTANCE
        self.transitioning = False

    def _begin(self, command: TourCommand, camera: CameraState, now_ms: float) -> None:
        self.command = command
        self.start_position = camera.position.copy()
        self.start_ms = now_ms

        if isinstance(command, FollowBodyCommand):
            target = self.positions.world_position(command.target_body_id)
            if command.offset is not None and not command.sun_facing:
                direction = _usable(np.asarray(command.offset, dtype=float))
            else:
                direction = _approach_direction(target, camera.position, command.sun_facing, command.offset)
            length = command.distance if command.distance is not None else float(np.linalg.norm(direction))
            self.offset = with_length(direction, length)
            self.orbit_angle = math.atan2(self.offset[2], self.offset[0])
            # Circling keeps the height and the horizontal radius, so |offset| is constant
            self.orbit_radius = math.hypot(self.offset[0], self.offset[2]) or DEFAULT_FOLLOW_DISTANCE
        elif isinstance(command, SelectBodyCommand):
            self.transitioning = True

        logger.debug("Camera command -> %s (target=%s)", command.mode, command.target)

    def update(self, command: TourCommand, camera: CameraState, delta_s: float, now_ms: float) -> CameraState:
        """
        Advance the camera by one frame.

        Args:
            command: The command currently in force
            camera: Camera state at the end of the previous frame
            delta_s: Frame duration (s)
            now_ms: Current clock reading (ms), used for timed moves

        Returns:
            The new camera state (the input is not modified)
        """
        # Identity, not equality: a freshly built equal command restarts the motion
        if command is not self.command:
            self._begin(command, camera, now_ms)

        if isinstance(command, OverviewCommand):
            return self._overview(command, camera, delta_s, now_ms)
        if isinstance(command, MoveToBodyCommand):
            return self._move_to_body(command, camera, delta_s, now_ms)
        if isinstance(command, FollowBodyCommand):
            return self._follow_body(command, camera, delta_s)
        if isinstance(command, SelectBodyCommand):
            return self._select_body(command, camera, delta_s)
        # idle: user controls drive the camera
        return camera.copy()

    def _progress(self, duration_ms: float, now_ms: float) -> float:
        if duration_ms <= 0.0:
            return 1.0
        return min(1.0, max(0.0, (now_ms - self.start_ms) / duration_ms))

    def _overview(self, command: OverviewCommand, camera: CameraState, delta_s: float, now_ms: float) -> CameraState:
        t = self._progress(command.duration_ms, now_ms)
        position = lerp(self.start_position, np.asarray(command.position, dtype=float), t)
        target = ease(camera.target, np.asarray(command.look_at, dtype=float), OVERVIEW_LOOK_SMOOTHING, delta_s)
        return CameraState(position=position, target=target)

    def _move_to_body(self, command: MoveToBodyCommand, camera: CameraState, delta_s: float,
                      now_ms: float) -> CameraState:
        # The target keeps moving, so the goal is recomputed every frame
        target = self.positions.world_position(command.target_body_id)
        direction = _approach_direction(target, self.start_position, command.sun_facing, command.offset)
        desired = target + with_length(direction, command.distance)
        t = self._progress(command.duration_ms, now_ms)
        position = lerp(self.start_position, desired, t)
        look = ease(camera.target, target, MOVE_LOOK_SMOOTHING, delta_s)
        return CameraState(position=position, target=look)

    def _follow_body(self, command: FollowBodyCommand, camera: CameraState, delta_s: float) -> CameraState:
        target = self.positions.world_position(command.target_body_id)
        if command.orbit_speed:
            self.orbit_angle += command.orbit_speed * delta_s
            self.offset = np.array([
                math.cos(self.orbit_angle) * self.orbit_radius,
                self.offset[1],
                math.sin(self.orbit_angle) * self.orbit_radius,
            ])
        else:
            current_length = float(np.linalg.norm(self.offset))
            distance = command.distance if command.distance is not None else (current_length or DEFAULT_FOLLOW_DISTANCE)
            self.offset = with_length(self.offset, distance)

        desired = target + self.offset
        position = ease(camera.position, desired, FOLLOW_POSITION_SMOOTHING, delta_s)
        look = ease(camera.target, target, FOLLOW_LOOK_SMOOTHING, delta_s)
        return CameraState(position=position, target=look)

    def _select_body(self, command: SelectBodyCommand, camera: CameraState, delta_s: float) -> CameraState:
        target = self.positions.world_position(command.target_body_id)
        look = ease(camera.target, target, SELECT_LOOK_SMOOTHING, delta_s)
        position = camera.position.copy()
        if self.transitioning:
            # Keep the current viewing angle, move closer
            direction = _usable(camera.position - target)
            desired = target + with_length(direction, command.zoom_distance)
            position = ease(camera.position, desired, SELECT_POSITION_SMOOTHING, delta_s)
            if np.linalg.norm(position - desired) < SELECT_ARRIVAL_DISTANCE:
                self.transitioning = False
        return CameraState(position=position, target=look)

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from orrery.tour.audio import DEFAULT_CLIP_DURATION_S
from orrery.tour.engine import DEFAULT_MUSIC_VOLUME, DEFAULT_NARRATION_VOLUME
from orrery.tour.script import TOUR_TIME_SCALE

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
DEFAULT_FPS = 30
DEFAULT_TIME_SCALE = 1.0
TIME_SCALE_MIN = 0.0
TIME_SCALE_MAX = 5.0
TIME_SCALE_STEP = 0.5
USER_MUSIC = '/audio/BGM/birth_of_the_universe.mp3'


@dataclass(frozen=True, slots=True)
class OrreryConfig:
    fps: int = DEFAULT_FPS
    time_scale: float = DEFAULT_TIME_SCALE
    tour_time_scale: float = TOUR_TIME_SCALE
    music_volume: float = DEFAULT_MUSIC_VOLUME
    narration_volume: float = DEFAULT_NARRATION_VOLUME
    clip_duration_s: float = DEFAULT_CLIP_DURATION_S
    catalog_path: Optional[Path] = None
    user_music: str = USER_MUSIC

    @property
    def frame_interval_s(self) -> float:
        return 1.0 / self.fps


def snap_time_scale(value: float) -> float:
    """Clamp to the slider range and snap to its step."""
    clamped = min(TIME_SCALE_MAX, max(TIME_SCALE_MIN, float(value)))
    return round(clamped / TIME_SCALE_STEP) * TIME_SCALE_STEP


def _unit_interval(value: Optional[float], default: float) -> float:
    if value is None:
        return default
    return min(1.0, max(0.0, float(value)))


def make_config(
    fps: Optional[int] = None,
    time_scale: Optional[float] = None,
    *,
    tour_time_scale: Optional[float] = None,
    music_volume: Optional[float] = None,
    narration_volume: Optional[float] = None,
    clip_duration_s: Optional[float] = None,
    catalog_path: Optional[str] = None,
) -> OrreryConfig:
    """Normalize CLI-style inputs into an OrreryConfig."""
    frames = DEFAULT_FPS if fps is None or fps <= 0 else int(fps)
    scale = DEFAULT_TIME_SCALE if time_scale is None else snap_time_scale(time_scale)
    duration = DEFAULT_CLIP_DURATION_S if clip_duration_s is None or clip_duration_s <= 0.0 else clip_duration_s
    return OrreryConfig(
        fps=frames,
        time_scale=scale,
        tour_time_scale=TOUR_TIME_SCALE if tour_time_scale is None else max(0.0, float(tour_time_scale)),
        music_volume=_unit_interval(music_volume, DEFAULT_MUSIC_VOLUME),
        narration_volume=_unit_interval(narration_volume, DEFAULT_NARRATION_VOLUME),
        clip_duration_s=duration,
        catalog_path=Path(catalog_path) if catalog_path else None,
    )

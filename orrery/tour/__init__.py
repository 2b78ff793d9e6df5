from .commands import (
    IDLE,
    IdleCommand,
    OverviewCommand,
    MoveToBodyCommand,
    FollowBodyCommand,
    SelectBodyCommand,
    TourCommand,
)
from .clock import AbortToken, AsyncioClock, ManualClock
from .audio import AudioBackend, AudioChannel, AudioClip, SimulatedAudioBackend
from .script import Tour, TourStep, VisualPatch, available_tours, build_tour, GRAND_TOUR_ID
from .engine import TourEngine, TourOutcome, TourState, UiLock

__all__ = [
    "IDLE",
    "IdleCommand",
    "OverviewCommand",
    "MoveToBodyCommand",
    "FollowBodyCommand",
    "SelectBodyCommand",
    "TourCommand",
    "AbortToken",
    "AsyncioClock",
    "ManualClock",
    "AudioBackend",
    "AudioChannel",
    "AudioClip",
    "SimulatedAudioBackend",
    "Tour",
    "TourStep",
    "VisualPatch",
    "available_tours",
    "build_tour",
    "GRAND_TOUR_ID",
    "TourEngine",
    "TourOutcome",
    "TourState",
    "UiLock",
]

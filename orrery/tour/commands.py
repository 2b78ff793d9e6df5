"""
Camera commands.

A command is a discrete directive; the camera interpreter turns it into
continuous motion, one frame at a time. Commands are immutable so the
interpreter can key its internal state on command identity.
"""
from typing import Annotated, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

Vec3 = Tuple[float, float, float]

DEFAULT_OVERVIEW_MS = 1500.0
DEFAULT_MOVE_MS = 1200.0
DEFAULT_MOVE_DISTANCE = 1.2


class _Command(BaseModel):
    model_config = ConfigDict(frozen=True)

    @property
    def target(self) -> Optional[str]:
        return getattr(self, 'target_body_id', None)


class IdleCommand(_Command):
    """No override: the user's camera controls are in charge."""
    mode: Literal['idle'] = 'idle'


class OverviewCommand(_Command):
    """Timed straight-line move to a fixed point while the look-at eases toward look_at."""
    mode: Literal['overview'] = 'overview'
    position: Vec3 = Field(..., description="Camera destination (AU)")
    look_at: Vec3 = Field(default=(0.0, 0.0, 0.0), description="Point the camera turns toward (AU)")
    duration_ms: float = Field(default=DEFAULT_OVERVIEW_MS, ge=0.0)


class MoveToBodyCommand(_Command):
    """Timed move to a point `distance` away from a (possibly moving) body."""
    mode: Literal['move_to_body'] = 'move_to_body'
    target_body_id: str
    distance: float = Field(default=DEFAULT_MOVE_DISTANCE, gt=0.0)
    duration_ms: float = Field(default=DEFAULT_MOVE_MS, ge=0.0)
    offset: Optional[Vec3] = Field(default=None, description="Bias added to the approach direction")
    sun_facing: bool = Field(default=False, description="Approach from the star's side of the body")


class FollowBodyCommand(_Command):
    """Track a moving body at a fixed distance, optionally circling it at orbit_speed rad/s."""
    mode: Literal['follow_body'] = 'follow_body'
    target_body_id: str
    distance: Optional[float] = Field(default=None, gt=0.0)
    offset: Optional[Vec3] = None
    orbit_speed: Optional[float] = Field(default=None, description="Angular speed of the circling camera (rad/s)")
    sun_facing: bool = False


class SelectBodyCommand(_Command):
    """User selection outside a tour: look at the body and fly in to zoom_distance once."""
    mode: Literal['select_body'] = 'select_body'
    target_body_id: str
    zoom_distance: float = Field(..., gt=0.0)

    @field_validator('target_body_id')
    @classmethod
    def validate_target(cls, v):
        if not v:
            raise ValueError("target_body_id must not be empty")
        return v


TourCommand = Annotated[
    Union[IdleCommand, OverviewCommand, MoveToBodyCommand, FollowBodyCommand, SelectBodyCommand],
    Field(discriminator='mode'),
]

IDLE = IdleCommand()

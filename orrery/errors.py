"""
Exceptions raised by the orrery core.
"""


class TourAborted(Exception):
    """
    Cooperative cancellation of a running tour.

    Not a failure: it is the expected outcome of a stop request and is caught
    once, at the top of the tour run.
    """

    def __init__(self, reason: str = "stop requested"):
        super().__init__(reason)
        self.reason = reason


class PlaybackError(Exception):
    """An audio clip could not be loaded or played."""

    def __init__(self, clip: str, message: str = "playback failed"):
        super().__init__(f"{message}: {clip}")
        self.clip = clip


class CatalogError(ValueError):
    """The body catalog is malformed (bad row, unknown parent, hierarchy cycle)."""

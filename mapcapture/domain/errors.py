"""Failure kinds surfaced by a capture run."""


class CaptureError(Exception):
    """Base class for every failure a capture run can end with."""


class InvalidFrame(CaptureError):
    """Capture corners are missing, duplicated, collinear or zero-area."""


class MissingRenderable(CaptureError):
    """An element points at an object the render backend cannot draw."""

    def __init__(self, index: int, handle: object) -> None:
        super().__init__(f"Element {index} has no renderable object (handle={handle!r})")
        self.index = index
        self.handle = handle


class EmptyElementSet(CaptureError):
    """No elements were configured for capture."""


class SizeMismatch(CaptureError):
    """A buffer does not have the dimensions the stage requires."""


class AlreadyCapturing(CaptureError):
    """A run was requested while another one is still in progress."""


class InvalidExportSettings(CaptureError):
    """Output name or output size cannot be used."""


class CaptureAborted(CaptureError):
    """The run was cancelled before it produced a composite."""

class TrackerError(Exception):
    """Base class for errors raised by the radar tracker."""


class ImageLoadFailed(TrackerError):
    """A legend or frame image could not be fetched or decoded."""

    def __init__(self, source, reason=None):
        self.source = source
        self.reason = reason
        msg = f'Failed to load image: {source}'
        if reason:
            msg += f' ({reason})'
        super().__init__(msg)


class NoColorsFound(TrackerError):
    """The legend scan did not yield a single qualifying color."""

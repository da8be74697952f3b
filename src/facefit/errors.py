"""Exception types raised by facefit.

Unreadable images and unopenable videos raise the built-in ``IOError``;
everything specific to this tool derives from :class:`FaceFitError`.
"""


class FaceFitError(Exception):
    """Base class for facefit errors."""


class UsageError(FaceFitError):
    """Invalid command line or inconsistent input/output arguments."""


class UnsupportedFormatError(FaceFitError):
    """A decoded frame has a pixel layout that cannot be converted to grayscale."""


class UserCancellation(Exception):
    """Raised when the user presses ESC in the display window.

    Not a failure: the CLI turns it into a clean early exit.
    """

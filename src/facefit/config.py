"""Run configuration and mode records.

The command line is resolved once into a :class:`Configuration` (options
shared by every mode) and exactly one mode record describing what to read
and where to write. Both are immutable and passed explicitly to every
component.

Example:
    >>> from facefit.config import Configuration, VideoMode
    >>> cfg = Configuration(model_path="lbf.yaml", params_path="params.yaml")
    >>> mode = VideoMode(video_path="clip.mp4", landmarks_template="out_%04u.pts")
"""

from dataclasses import dataclass, field
from typing import Optional, Union

DEFAULT_THRESHOLD = 5
DEFAULT_WINDOW_TITLE = "Face Fit"
# Default display wait for modes that step through many frames.
DEFAULT_STREAM_WAIT_TIME = 1.0 / 30


@dataclass(frozen=True)
class MarkerStyle:
    """cv2.circle parameters used for landmark markers.

    Attributes:
        radius: Circle radius in pixels.
        thickness: Outline thickness (negative fills the circle).
        line_type: OpenCV line type (8 = 8-connected).
        shift: Number of fractional bits in the point coordinates.
    """

    radius: int = 2
    thickness: int = 1
    line_type: int = 8
    shift: int = 0


@dataclass(frozen=True)
class Configuration:
    """Options shared by all modes.

    Attributes:
        model_path: Pathname of the tracker model.
        params_path: Pathname of the tracker parameters; None uses built-in defaults.
        wait_time: Seconds to wait after displaying a frame; 0 waits for a key.
        threshold: Minimum confidence (inclusive) for a fit to be accepted.
        window_title: Title of the display window.
        verbose: Print progress and display results even when saving.
        marker: Landmark marker rendering parameters.
    """

    model_path: str
    params_path: Optional[str] = None
    wait_time: float = 0.0
    threshold: int = DEFAULT_THRESHOLD
    window_title: str = DEFAULT_WINDOW_TITLE
    verbose: bool = False
    marker: MarkerStyle = field(default_factory=MarkerStyle)


@dataclass(frozen=True)
class ImageMode:
    """Fit a single image; save to ``landmarks_path`` or display."""

    image_path: str
    landmarks_path: Optional[str] = None

    @property
    def has_destination(self) -> bool:
        return self.landmarks_path is not None


@dataclass(frozen=True)
class ListMode:
    """Fit every image named in ``list_path``.

    ``landmarks_list_path``, when given, names a file listing one output
    pathname per input image, in the same order.
    """

    list_path: str
    landmarks_list_path: Optional[str] = None

    @property
    def has_destination(self) -> bool:
        return self.landmarks_list_path is not None


@dataclass(frozen=True)
class VideoMode:
    """Track a face through a video.

    ``landmarks_template`` is a printf-style pattern taking the 1-based
    frame number, e.g. ``"out_%04u.pts"``.
    """

    video_path: str
    landmarks_template: Optional[str] = None

    @property
    def has_destination(self) -> bool:
        return self.landmarks_template is not None


RunMode = Union[ImageMode, ListMode, VideoMode]


def default_wait_time(mode: RunMode) -> float:
    """Display wait used when ``--wait-time`` is not given."""
    if isinstance(mode, ImageMode):
        return 0.0
    return DEFAULT_STREAM_WAIT_TIME

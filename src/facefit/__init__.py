"""facefit - Fit facial landmarks on images, image lists and videos.

Example:
    >>> from facefit import Configuration, VideoMode, run
    >>> cfg = Configuration(model_path="lbfmodel.yaml", wait_time=1 / 30)
    >>> stats = run(cfg, VideoMode("clip.mp4", "out_%04u.pts"))
"""

from facefit.config import Configuration, ImageMode, ListMode, MarkerStyle, VideoMode
from facefit.drivers import RunStats, run
from facefit.errors import FaceFitError, UnsupportedFormatError, UsageError, UserCancellation
from facefit.policy import Decision, decide
from facefit.pts import load_pts, save_pts
from facefit.tracking import TrackerParams, TrackingEngine, TrackingSession

__version__ = "0.1.0"

__all__ = [
    "Configuration",
    "ImageMode",
    "ListMode",
    "VideoMode",
    "MarkerStyle",
    "RunStats",
    "run",
    "FaceFitError",
    "UsageError",
    "UnsupportedFormatError",
    "UserCancellation",
    "Decision",
    "decide",
    "load_pts",
    "save_pts",
    "TrackerParams",
    "TrackingEngine",
    "TrackingSession",
]

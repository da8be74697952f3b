"""Mode drivers: the image, list and video loops.

Each driver wires a frame source to a :class:`TrackingSession`, applies
the accept/reject policy and hands the result to an :class:`OutputRouter`.
They differ only in how frames are produced and whether tracking
continues from the previous frame (video) or cold-starts (image, list).

Collaborators are injectable so the loops can be driven by a scripted
engine in tests::

    >>> stats = run(config, VideoMode("clip.mp4"), engine_factory=ScriptedEngine)
"""

import logging
from contextlib import closing
from dataclasses import dataclass
from typing import Callable, Optional

from facefit.config import Configuration, ImageMode, ListMode, RunMode, VideoMode
from facefit.display import FrameDisplay
from facefit.errors import UsageError
from facefit.policy import resolve
from facefit.router import LandmarkTemplate, ListDestinations, OutputRouter
from facefit.sources import Frame, image_frames, list_frames, read_list, video_frames
from facefit.tracking import TrackingSession, load_tracker, load_tracker_params

logger = logging.getLogger(__name__)

EngineFactory = Callable[[str], object]
ParamsLoader = Callable[[Optional[str]], object]


@dataclass
class RunStats:
    """Summary of a driver run.

    Attributes:
        frames: Frames tracked.
        accepted: Frames whose confidence reached the threshold.
        rejected: Frames whose result was discarded.
        persisted: Point files written.
    """

    frames: int = 0
    accepted: int = 0
    rejected: int = 0
    persisted: int = 0


def _open_session(config: Configuration, engine_factory: EngineFactory,
                  params_loader: ParamsLoader) -> TrackingSession:
    engine = engine_factory(config.model_path)
    params = params_loader(config.params_path)
    return TrackingSession(engine, params)


def _step(config: Configuration, session: TrackingSession, router: OutputRouter,
          frame: Frame, stats: RunStats, *, continuing: bool = False,
          reset_on_reject: bool = True, pathname: Optional[str] = None) -> None:
    """Track, decide and route one frame."""
    confidence, shape = session.process(frame.gray, continuing=continuing)
    decision, shape = resolve(
        session, confidence, shape, config.threshold, reset_on_reject=reset_on_reject
    )

    stats.frames += 1
    if decision.accepted:
        stats.accepted += 1
    else:
        stats.rejected += 1
        logger.debug(
            "Frame %d of %s rejected (confidence %d < %d)",
            frame.index, frame.source, confidence, config.threshold,
        )

    router.dispatch(frame.image, shape, pathname)


def run_image_mode(config: Configuration, mode: ImageMode, display, *,
                   engine_factory: EngineFactory = load_tracker,
                   params_loader: ParamsLoader = load_tracker_params) -> RunStats:
    """Fit a single image."""
    stats = RunStats()
    router = OutputRouter(mode.has_destination, display, verbose=config.verbose)

    with _open_session(config, engine_factory, params_loader) as session:
        for frame in image_frames(mode.image_path):
            # The session ends with this frame, so a rejection needs no reset.
            _step(config, session, router, frame, stats,
                  reset_on_reject=False, pathname=mode.landmarks_path)

    stats.persisted = router.persisted
    return stats


def run_list_mode(config: Configuration, mode: ListMode, display, *,
                  engine_factory: EngineFactory = load_tracker,
                  params_loader: ParamsLoader = load_tracker_params) -> RunStats:
    """Fit every image of a list, each one independently.

    Raises:
        UsageError: If the landmarks list and the image list differ in length.
            Checked before any image is read or tracked.
    """
    image_paths = read_list(mode.list_path)
    destinations = None
    if mode.has_destination:
        destinations = ListDestinations(read_list(mode.landmarks_list_path))
        if len(destinations) != len(image_paths):
            raise UsageError(
                f"Number of pathnames in list '{mode.list_path}' does not match "
                f"the number in '{mode.landmarks_list_path}'"
            )

    stats = RunStats()
    router = OutputRouter(mode.has_destination, display, verbose=config.verbose)
    total = len(image_paths)

    with _open_session(config, engine_factory, params_loader) as session:
        for frame in list_frames(image_paths):
            if config.verbose:
                print(f" Image {frame.index}/{total}", end="\r", flush=True)
            pathname = destinations.next() if destinations is not None else None
            _step(config, session, router, frame, stats, pathname=pathname)

    stats.persisted = router.persisted
    return stats


def run_video_mode(config: Configuration, mode: VideoMode, display, *,
                   engine_factory: EngineFactory = load_tracker,
                   params_loader: ParamsLoader = load_tracker_params) -> RunStats:
    """Track a face through a video, frame after frame."""
    template = LandmarkTemplate(mode.landmarks_template) if mode.has_destination else None

    stats = RunStats()
    router = OutputRouter(mode.has_destination, display, verbose=config.verbose)

    with _open_session(config, engine_factory, params_loader) as session:
        with closing(video_frames(mode.video_path)) as frames:
            for frame in frames:
                if config.verbose:
                    print(f" Frame number {frame.index}", end="\r", flush=True)
                pathname = template.format(frame.index) if template is not None else None
                _step(config, session, router, frame, stats,
                      continuing=True, pathname=pathname)

    stats.persisted = router.persisted
    return stats


def run(config: Configuration, mode: RunMode, *,
        display=None,
        engine_factory: Optional[EngineFactory] = None,
        params_loader: Optional[ParamsLoader] = None) -> RunStats:
    """Run the driver matching *mode*.

    Args:
        config: Run configuration.
        mode: ImageMode, ListMode or VideoMode record.
        display: Object with ``show(image, shape)``. Defaults to a
            :class:`FrameDisplay`, closed when the run ends.
        engine_factory: ``model_path -> engine``. Defaults to :func:`load_tracker`.
        params_loader: ``params_path -> parameters``. Defaults to
            :func:`load_tracker_params`.

    Raises:
        UserCancellation: If ESC was pressed in the display window.
    """
    owns_display = display is None
    if owns_display:
        display = FrameDisplay(config)

    kwargs = dict(
        engine_factory=engine_factory or load_tracker,
        params_loader=params_loader or load_tracker_params,
    )
    try:
        if isinstance(mode, ImageMode):
            stats = run_image_mode(config, mode, display, **kwargs)
        elif isinstance(mode, ListMode):
            stats = run_list_mode(config, mode, display, **kwargs)
        elif isinstance(mode, VideoMode):
            stats = run_video_mode(config, mode, display, **kwargs)
        else:
            raise TypeError(f"Unknown run mode: {mode!r}")
    finally:
        if owns_display:
            display.close()

    logger.info(
        "Processed %d frames: %d accepted, %d rejected, %d saved",
        stats.frames, stats.accepted, stats.rejected, stats.persisted,
    )
    return stats

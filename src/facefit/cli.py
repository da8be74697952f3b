"""Command-line interface for facefit.

Exit codes: 0 on success (or when only usage was printed), 1 when the
user pressed ESC, 2 on any failure.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from facefit.config import (
    DEFAULT_THRESHOLD,
    DEFAULT_WINDOW_TITLE,
    Configuration,
    ImageMode,
    ListMode,
    RunMode,
    VideoMode,
    default_wait_time,
)
from facefit.errors import UsageError, UserCancellation
from facefit.paths import default_model_path, default_params_path

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CANCELLED = 1
EXIT_FAILURE = 2

_EPILOG = """
Default mode:
  Fit the image at <image-argument> and save the landmarks to
  [landmarks-argument] if given, otherwise display the result.

List mode (--lists):
  <image-argument> is a file listing image pathnames, one per line.
  [landmarks-argument], if given, must list the same number of output
  pathnames, in the same order.

Video mode (--video):
  Track the face through the video at <image-argument>. [landmarks-argument],
  if given, is a printf-style template taking the frame number, e.g.
  out_%04u.pts. Without it the tracking is displayed on screen.

Press ESC in the display window to stop early.
"""


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises UsageError instead of exiting."""

    def error(self, message):
        raise UsageError(message)


def configure_gui_environment(windowed: bool) -> None:
    """Quiet OpenCV logging and, when a window may open, Qt's backend chatter.

    Only defaults are set; values already in the environment win.
    """
    os.environ.setdefault("OPENCV_LOG_LEVEL", "ERROR")
    if not windowed:
        return
    os.environ.setdefault("QT_LOGGING_RULES", "*.debug=false;qt.qpa.*=false")
    # OpenCV's Qt highgui cannot open windows natively under Wayland.
    if os.environ.get("XDG_SESSION_TYPE") == "wayland":
        os.environ.setdefault("QT_QPA_PLATFORM", "xcb")


def display_expected(mode: RunMode, config: Configuration) -> bool:
    """Whether a run may open the display window."""
    return not mode.has_destination or config.verbose


def _build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="facefit",
        usage="%(prog)s [options] <image-argument> [landmarks-argument]",
        description="Fit facial landmarks on an image, a list of images or a video.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=_EPILOG,
    )
    parser.add_argument("input", nargs="?", metavar="image-argument",
                        help="Image, image list or video, depending on the mode")
    parser.add_argument("output", nargs="?", metavar="landmarks-argument",
                        help="Where to save landmarks (pathname, list or template)")
    parser.add_argument("--lists", action="store_true",
                        help="Switch to list processing mode")
    parser.add_argument("--video", action="store_true",
                        help="Switch to video processing mode")
    parser.add_argument("--wait-time", type=float, default=None, metavar="SECONDS",
                        help="How long to wait when displaying results. "
                             "0 waits for a key press. Default: 0 for images, 1/30 otherwise")
    parser.add_argument("--model", type=str, default=None, metavar="PATH",
                        help="Tracker model to use")
    parser.add_argument("--params", type=str, default=None, metavar="PATH",
                        help="Tracker parameters (YAML) to use")
    parser.add_argument("--threshold", type=int, default=DEFAULT_THRESHOLD,
                        help="Minimum tracking confidence, 0 (lenient) to 10 "
                             f"(extremely picky). Default: {DEFAULT_THRESHOLD}")
    parser.add_argument("--title", type=str, default=DEFAULT_WINDOW_TITLE,
                        help="Window title")
    parser.add_argument("--verbose", action="store_true",
                        help="Show progress, and display results even when saving them")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        default=None, help="Logging level (default: WARNING, INFO with --verbose)")
    return parser


def resolve_mode(args: argparse.Namespace) -> RunMode:
    """Turn the positional arguments and mode switches into a mode record."""
    if args.lists and args.video:
        raise UsageError(
            "The operator is confused as the switches --lists and --video "
            "are present on the command line."
        )
    if args.lists:
        return ListMode(list_path=args.input, landmarks_list_path=args.output)
    if args.video:
        return VideoMode(video_path=args.input, landmarks_template=args.output)
    return ImageMode(image_path=args.input, landmarks_path=args.output)


def build_configuration(args: argparse.Namespace, mode: RunMode) -> Configuration:
    """Resolve option defaults that depend on the mode or the environment."""
    wait_time = args.wait_time if args.wait_time is not None else default_wait_time(mode)
    if wait_time < 0:
        raise UsageError(f"--wait-time must not be negative, got {wait_time}")

    params_path = args.params
    if params_path is None:
        candidate = default_params_path()
        if os.path.isfile(candidate):
            params_path = candidate
        else:
            logger.debug("No tracker parameters at %s, using built-in defaults", candidate)

    return Configuration(
        model_path=args.model or default_model_path(),
        params_path=params_path,
        wait_time=wait_time,
        threshold=args.threshold,
        window_title=args.title,
        verbose=args.verbose,
    )


def configure_logging(level: Optional[str], verbose: bool) -> None:
    if level is None:
        level = "INFO" if verbose else "WARNING"
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(levelname)s %(name)s: %(message)s",
    )


def run_program(argv: Optional[List[str]] = None) -> int:
    """Parse *argv* and run the selected mode.

    Returns:
        Process exit code for a normal completion.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.log_level, args.verbose)

    if args.input is None:
        parser.print_help()
        return EXIT_OK

    mode = resolve_mode(args)
    config = build_configuration(args, mode)
    logger.debug("Running %s with %s", mode, config)

    configure_gui_environment(display_expected(mode, config))

    from facefit.drivers import run

    run(config, mode)
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the ``facefit`` CLI."""
    try:
        code = run_program(argv)
    except UserCancellation:
        print("Stopping prematurely.")
        code = EXIT_CANCELLED
    except Exception as e:
        logger.debug("Run failed", exc_info=True)
        print(f"Caught unhandled exception: {e}", file=sys.stderr)
        code = EXIT_FAILURE
    sys.exit(code)


if __name__ == "__main__":
    main()

"""Frame sources for the three input shapes.

Every source yields :class:`Frame` objects lazily, one at a time. A frame
carries the grayscale buffer handed to the tracker plus the original
decoded image, which is only used for display.

Example:
    >>> from facefit.sources import video_frames
    >>> for frame in video_frames("clip.mp4"):
    ...     print(frame.index, frame.gray.shape)
"""

import logging
from dataclasses import dataclass
from typing import Iterator, List, Sequence, Tuple

import cv2
import numpy as np

from facefit.errors import UnsupportedFormatError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Frame:
    """One decoded frame.

    Attributes:
        gray: Single-channel uint8 image given to the tracker.
        image: Original decoded buffer (grayscale or BGR).
        index: 1-based position in the source.
        source: Path of the image or video it came from.
    """

    gray: np.ndarray
    image: np.ndarray
    index: int
    source: str


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """Convert a decoded uint8 buffer to a single-channel image.

    Raises:
        UnsupportedFormatError: If the layout is not 1 or 3 channel uint8.
    """
    if image.dtype != np.uint8:
        raise UnsupportedFormatError(
            f"Do not know how to convert {image.dtype} frame to a grayscale image."
        )
    if image.ndim == 2:
        return image
    if image.ndim == 3 and image.shape[2] == 1:
        return image[:, :, 0]
    if image.ndim == 3 and image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    raise UnsupportedFormatError(
        f"Do not know how to convert frame of shape {image.shape} to a grayscale image."
    )


def load_grayscale_image(path: str) -> Tuple[np.ndarray, np.ndarray]:
    """Decode an image file.

    Returns:
        ``(gray, image)`` where *image* is the decoded buffer with any alpha
        channel dropped and 16-bit data scaled to 8 bits.

    Raises:
        IOError: If the file cannot be read or decoded.
        UnsupportedFormatError: If the decoded layout is not supported.
    """
    image = cv2.imread(path, cv2.IMREAD_UNCHANGED)
    if image is None:
        raise IOError(f"Unable to read image '{path}'")

    if image.dtype == np.uint16:
        image = cv2.convertScaleAbs(image, alpha=1.0 / 256)
    if image.ndim == 3 and image.shape[2] == 4:
        image = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)

    return to_grayscale(image), image


def read_list(path: str) -> List[str]:
    """Read a list file: one pathname per line, blank lines ignored.

    Raises:
        IOError: If the list file cannot be opened.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            lines = f.read().splitlines()
    except OSError as e:
        raise IOError(f"Unable to read list '{path}': {e}") from e
    return [line.strip() for line in lines if line.strip()]


def image_frames(path: str) -> Iterator[Frame]:
    """Yield the single frame of an image file."""
    gray, image = load_grayscale_image(path)
    yield Frame(gray=gray, image=image, index=1, source=path)


def list_frames(paths: Sequence[str]) -> Iterator[Frame]:
    """Yield one frame per pathname, in order.

    Decoding happens as the iterator advances, so the first unreadable
    image aborts the iteration without skipping ahead.
    """
    for index, path in enumerate(paths, start=1):
        gray, image = load_grayscale_image(path)
        yield Frame(gray=gray, image=image, index=index, source=path)


def video_frames(path: str) -> Iterator[Frame]:
    """Yield frames from a video until the stream is exhausted.

    Raises:
        IOError: If the video cannot be opened.
        UnsupportedFormatError: If a frame is neither 1 nor 3 channel uint8.
    """
    cap = cv2.VideoCapture(path)
    if not cap.isOpened():
        raise IOError(f"Unable to open video file '{path}'")

    logger.debug(
        "Opened video %s: %d frames, %.1f FPS",
        path,
        int(cap.get(cv2.CAP_PROP_FRAME_COUNT)),
        cap.get(cv2.CAP_PROP_FPS),
    )

    try:
        index = 1
        while True:
            ret, image = cap.read()
            if not ret or image is None or image.size == 0:
                break
            yield Frame(gray=to_grayscale(image), image=image, index=index, source=path)
            index += 1
    finally:
        cap.release()

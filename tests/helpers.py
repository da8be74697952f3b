"""Shared test helpers for facefit tests."""

from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np

from facefit.errors import UserCancellation


def make_shape(n_points: int = 5, offset: float = 0.0) -> np.ndarray:
    """Create an (n, 2) landmark shape inside a 320x240 frame."""
    xs = 100.0 + 10.0 * np.arange(n_points) + offset
    ys = 120.0 + 5.0 * np.arange(n_points) + offset
    return np.stack([xs, ys], axis=1)


def write_image(path: Path, channels: int = 3, width: int = 320, height: int = 240) -> str:
    """Write a small test image and return its path as str."""
    if channels == 1:
        image = np.full((height, width), 128, dtype=np.uint8)
    else:
        image = np.zeros((height, width, channels), dtype=np.uint8)
        image[:, :, 0] = 50
        image[:, :, 1] = 100
        image[:, :, 2] = 150
    assert cv2.imwrite(str(path), image)
    return str(path)


def write_list(path: Path, entries: Sequence[str]) -> str:
    path.write_text("\n".join(entries) + "\n")
    return str(path)


def create_test_video(path: Path, num_frames: int = 6, fps: int = 10) -> str:
    """Create a small MJPG test video.

    Args:
        path: Output path for the video file (.avi).
        num_frames: Number of frames to generate.
        fps: Frame rate of the video.
    """
    width, height = 320, 240
    fourcc = cv2.VideoWriter_fourcc(*"MJPG")
    writer = cv2.VideoWriter(str(path), fourcc, fps, (width, height))

    for i in range(num_frames):
        frame = np.zeros((height, width, 3), dtype=np.uint8)
        frame[:, :, 0] = (i * 30) % 256
        frame[:, :, 1] = (i * 20) % 256
        frame[:, :, 2] = (i * 10) % 256
        cv2.putText(
            frame, f"F{i}", (10, 30),
            cv2.FONT_HERSHEY_SIMPLEX, 0.7, (255, 255, 255), 2,
        )
        writer.write(frame)

    writer.release()
    return str(path)


class FakeEngine:
    """Tracking engine returning scripted ``(confidence, shape)`` results.

    Every ``new_frame``/``track`` call consumes the next result; the last
    result repeats once the script runs out. ``calls`` records
    ``(method, warm)`` where *warm* tells whether a previous fit was
    still held when the call was made.
    """

    def __init__(self, results: Sequence[Tuple[int, np.ndarray]]):
        self._results = list(results)
        self._position = 0
        self._shape = np.empty((0, 2))
        self._warm = False
        self.calls: List[Tuple[str, bool]] = []
        self.resets = 0
        self.closed = False
        self.model_path: Optional[str] = None

    def _next(self, method: str) -> int:
        self.calls.append((method, self._warm))
        index = min(self._position, len(self._results) - 1)
        self._position += 1
        confidence, shape = self._results[index]
        self._shape = np.asarray(shape, dtype=np.float64)
        self._warm = True
        return confidence

    def new_frame(self, gray, params) -> int:
        return self._next("new_frame")

    def track(self, gray, params) -> int:
        return self._next("track")

    def reset(self) -> None:
        self.resets += 1
        self._warm = False
        self._shape = np.empty((0, 2))

    def get_shape(self) -> np.ndarray:
        return self._shape

    def close(self) -> None:
        self.closed = True

    def factory(self, model_path: str) -> "FakeEngine":
        """Use as ``engine_factory``."""
        self.model_path = model_path
        return self


class RecordingDisplay:
    """Display stand-in that records what it was asked to show.

    Args:
        cancel_on: 1-based show() call that raises UserCancellation.
    """

    def __init__(self, cancel_on: Optional[int] = None):
        self.shown: List[Tuple[np.ndarray, np.ndarray]] = []
        self._cancel_on = cancel_on
        self.closed = False

    def show(self, image: np.ndarray, shape: np.ndarray) -> None:
        self.shown.append((image, np.array(shape, copy=True)))
        if self._cancel_on is not None and len(self.shown) >= self._cancel_on:
            raise UserCancellation()

    def close(self) -> None:
        self.closed = True


def default_params(path):
    """``params_loader`` that ignores the path."""
    return None

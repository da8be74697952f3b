"""Tracking engine protocol, bundled OpenCV engine, and tracking session.

The orchestration code only talks to a :class:`TrackingSession`, which
wraps one engine and one parameter set. Engines follow the
:class:`TrackingEngine` protocol: a cold-start entry point, a continuation
entry point, a reset, and a shape accessor.

Example:
    >>> from facefit.tracking import load_tracker, load_tracker_params, TrackingSession
    >>> engine = load_tracker("lbfmodel.yaml")
    >>> with TrackingSession(engine, load_tracker_params(None)) as session:
    ...     confidence, shape = session.process(gray)
"""

import logging
import os
from dataclasses import dataclass, fields
from typing import Optional, Protocol, Tuple

import cv2
import numpy as np
import yaml

from facefit.pts import as_shape

logger = logging.getLogger(__name__)

MAX_CONFIDENCE = 10

Rect = Tuple[int, int, int, int]


@dataclass(frozen=True)
class TrackerParams:
    """Tunable parameters for the bundled engine.

    Attributes:
        face_cascade: Haar cascade file for face detection. None uses the
            frontal face cascade shipped with OpenCV.
        scale_factor: ``detectMultiScale`` scale step.
        min_neighbors: ``detectMultiScale`` neighbour count.
        min_face_size: Smallest face side in pixels.
        track_margin: Fraction by which the previous shape's bounding box is
            grown to form the search region when continuing.
        confidence_gain: Multiplier applied to the detector/shape overlap
            before it is mapped to the 0-10 confidence range.
    """

    face_cascade: Optional[str] = None
    scale_factor: float = 1.1
    min_neighbors: int = 3
    min_face_size: int = 30
    track_margin: float = 0.25
    confidence_gain: float = 1.5


def load_tracker_params(path: Optional[str]) -> TrackerParams:
    """Load tracker parameters from a YAML mapping.

    Args:
        path: YAML file, or None for the built-in defaults.

    Raises:
        IOError: If the file cannot be read.
        ValueError: If the document is not a mapping or has unknown keys.
    """
    if path is None:
        return TrackerParams()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise IOError(f"Unable to read tracker parameters '{path}': {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Tracker parameters '{path}' must be a YAML mapping")

    known = {f.name for f in fields(TrackerParams)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown tracker parameters in '{path}': {', '.join(unknown)}")

    params = TrackerParams(**data)
    logger.debug("Loaded tracker parameters from %s: %s", path, params)
    return params


class TrackingEngine(Protocol):
    """Protocol for landmark tracking engines.

    ``new_frame`` and ``track`` return an integer confidence (higher is
    better); the fitted shape is then available from ``get_shape``.
    """

    def new_frame(self, gray: np.ndarray, params: TrackerParams) -> int:
        """Fit a frame with no assumption about previous frames."""
        ...

    def track(self, gray: np.ndarray, params: TrackerParams) -> int:
        """Fit a frame starting from the previous frame's fit."""
        ...

    def reset(self) -> None:
        """Forget the previous fit so the next call is a cold start."""
        ...

    def get_shape(self) -> np.ndarray:
        """Landmarks of the last fit as an ``(N, 2)`` array."""
        ...


def shape_bounds(shape: np.ndarray) -> Rect:
    """Integer bounding box ``(x, y, w, h)`` of a shape."""
    x_min, y_min = np.floor(shape.min(axis=0)).astype(int)
    x_max, y_max = np.ceil(shape.max(axis=0)).astype(int)
    return int(x_min), int(y_min), int(x_max - x_min), int(y_max - y_min)


def inflate(rect: Rect, margin: float, width: int, height: int) -> Rect:
    """Grow *rect* by *margin* on every side, clipped to the image."""
    x, y, w, h = rect
    dx, dy = int(round(w * margin)), int(round(h * margin))
    x0, y0 = max(0, x - dx), max(0, y - dy)
    x1, y1 = min(width, x + w + dx), min(height, y + h + dy)
    return x0, y0, max(0, x1 - x0), max(0, y1 - y0)


def overlap(a: Rect, b: Rect) -> float:
    """Intersection over union of two rectangles."""
    ax, ay, aw, ah = a
    bx, by, bw, bh = b
    iw = max(0, min(ax + aw, bx + bw) - max(ax, bx))
    ih = max(0, min(ay + ah, by + bh) - max(ay, by))
    inter = iw * ih
    union = aw * ah + bw * bh - inter
    return inter / union if union > 0 else 0.0


class FacemarkTracker:
    """OpenCV LBF facemark engine with a Haar cascade face detector.

    Cold starts fit landmarks inside the largest detected face.
    Continuation fits inside the previous shape's bounding box grown by
    ``track_margin``. The confidence is the overlap between the fitted
    shape and a fresh face detection around it, mapped to 0-10.

    Args:
        model_path: LBF model file (e.g. ``lbfmodel.yaml``).

    Raises:
        IOError: If the model file does not exist.
        ImportError: If OpenCV was built without the ``face`` module.
    """

    def __init__(self, model_path: str):
        if not os.path.isfile(model_path):
            raise IOError(f"Unable to find tracker model '{model_path}'")

        face = getattr(cv2, "face", None)
        if face is None:
            raise ImportError(
                "cv2.face is required for landmark fitting. "
                "Install it with: pip install opencv-contrib-python"
            )

        self._facemark = face.createFacemarkLBF()
        self._facemark.loadModel(model_path)
        self._detectors = {}
        self._shape = as_shape([])
        self._previous: Optional[np.ndarray] = None
        logger.info("Facemark LBF model loaded from %s", model_path)

    def new_frame(self, gray: np.ndarray, params: TrackerParams) -> int:
        faces = self._detect(gray, params)
        if not faces:
            return self._lost()
        largest = max(faces, key=lambda r: r[2] * r[3])
        return self._fit(gray, largest, params)

    def track(self, gray: np.ndarray, params: TrackerParams) -> int:
        if self._previous is None:
            return self.new_frame(gray, params)
        height, width = gray.shape[:2]
        region = inflate(shape_bounds(self._previous), params.track_margin, width, height)
        if region[2] == 0 or region[3] == 0:
            return self._lost()
        return self._fit(gray, region, params)

    def reset(self) -> None:
        self._shape = as_shape([])
        self._previous = None

    def get_shape(self) -> np.ndarray:
        return self._shape.copy()

    def close(self) -> None:
        self._detectors.clear()

    def _detector(self, params: TrackerParams) -> cv2.CascadeClassifier:
        path = params.face_cascade or os.path.join(
            cv2.data.haarcascades, "haarcascade_frontalface_default.xml"
        )
        detector = self._detectors.get(path)
        if detector is None:
            detector = cv2.CascadeClassifier(path)
            if detector.empty():
                raise IOError(f"Unable to load face cascade '{path}'")
            self._detectors[path] = detector
        return detector

    def _detect(self, gray: np.ndarray, params: TrackerParams, region: Optional[Rect] = None):
        x0, y0 = 0, 0
        image = gray
        if region is not None:
            x0, y0, w, h = region
            image = gray[y0:y0 + h, x0:x0 + w]
        found = self._detector(params).detectMultiScale(
            image,
            scaleFactor=params.scale_factor,
            minNeighbors=params.min_neighbors,
            minSize=(params.min_face_size, params.min_face_size),
        )
        return [(int(x) + x0, int(y) + y0, int(w), int(h)) for x, y, w, h in found]

    def _fit(self, gray: np.ndarray, rect: Rect, params: TrackerParams) -> int:
        ok, landmarks = self._facemark.fit(gray, np.array([rect], dtype=np.int32))
        if not ok or len(landmarks) == 0:
            return self._lost()

        shape = as_shape(landmarks[0])
        self._shape = shape
        self._previous = shape
        return self._confidence(gray, shape, params)

    def _confidence(self, gray: np.ndarray, shape: np.ndarray, params: TrackerParams) -> int:
        height, width = gray.shape[:2]
        bounds = shape_bounds(shape)
        region = inflate(bounds, params.track_margin, width, height)
        if region[2] == 0 or region[3] == 0:
            return 0
        faces = self._detect(gray, params, region)
        if not faces:
            return 0
        best = max(overlap(bounds, face) for face in faces)
        return int(round(MAX_CONFIDENCE * min(1.0, best * params.confidence_gain)))

    def _lost(self) -> int:
        self.reset()
        return 0


def load_tracker(model_path: str) -> FacemarkTracker:
    """Load the bundled tracking engine from *model_path*."""
    return FacemarkTracker(model_path)


class TrackingSession:
    """One tracking engine plus one parameter set for the duration of a run.

    Args:
        engine: Object following :class:`TrackingEngine`.
        params: Parameters passed to every engine call.
    """

    def __init__(self, engine: TrackingEngine, params: TrackerParams):
        self._engine = engine
        self._params = params
        self.resets = 0

    def process(self, gray: np.ndarray, continuing: bool = False) -> Tuple[int, np.ndarray]:
        """Fit one frame.

        Args:
            gray: Single-channel frame.
            continuing: Use the continuation entry point (video) instead of
                a cold start (image and list modes).

        Returns:
            ``(confidence, shape)``.
        """
        if continuing:
            confidence = self._engine.track(gray, self._params)
        else:
            confidence = self._engine.new_frame(gray, self._params)
        return int(confidence), as_shape(self._engine.get_shape())

    def reset(self) -> None:
        """Reset the engine so the next frame is a cold start."""
        self._engine.reset()
        self.resets += 1

    def close(self) -> None:
        """Release the engine."""
        close = getattr(self._engine, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> "TrackingSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

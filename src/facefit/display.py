"""FrameDisplay - cv2 window showing a frame with landmark markers. ESC to quit."""

import logging

import cv2
import numpy as np

from facefit.config import Configuration
from facefit.errors import UserCancellation

logger = logging.getLogger(__name__)

ESCAPE_KEY = 27
GRAY_MARKER_COLOR = (255,)
BGR_MARKER_COLOR = (0, 0, 255)


def draw_landmarks(image: np.ndarray, shape: np.ndarray, config: Configuration) -> np.ndarray:
    """Draw one circle per landmark on a copy of *image*.

    Markers are white on single-channel images and red on BGR images.
    """
    output = image.copy()
    color = BGR_MARKER_COLOR if output.ndim == 3 and output.shape[2] == 3 else GRAY_MARKER_COLOR
    marker = config.marker
    scale = 1 << marker.shift

    for x, y in np.asarray(shape, dtype=np.float64).reshape(-1, 2):
        center = (int(round(x * scale)), int(round(y * scale)))
        cv2.circle(
            output,
            center,
            marker.radius,
            color,
            marker.thickness,
            marker.line_type,
            marker.shift,
        )
    return output


class FrameDisplay:
    """Live display window using cv2.imshow.

    Each :meth:`show` blocks for ``config.wait_time`` seconds, or until a
    key is pressed when the wait time is 0.

    Args:
        config: Run configuration (window title, wait time, marker style).
    """

    def __init__(self, config: Configuration):
        self._config = config

    @property
    def wait_ms(self) -> int:
        """cv2.waitKey delay; 0 means wait for a key."""
        if self._config.wait_time <= 0:
            return 0
        return max(1, int(self._config.wait_time * 1000))

    def show(self, image: np.ndarray, shape: np.ndarray) -> None:
        """Display *image* with *shape* overlaid and wait.

        Raises:
            UserCancellation: If ESC was pressed.
        """
        cv2.imshow(self._config.window_title, draw_landmarks(image, shape, self._config))

        wait_ms = self.wait_ms
        if wait_ms == 0:
            print("Press any key to continue.")

        key = cv2.waitKey(wait_ms)
        if key != -1 and key & 0xFF == ESCAPE_KEY:
            raise UserCancellation()

    def close(self) -> None:
        """Close the display window."""
        try:
            cv2.destroyAllWindows()
        except cv2.error:
            logger.debug("No window to destroy", exc_info=True)

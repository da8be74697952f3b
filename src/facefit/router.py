"""Routing of per-frame results to the display and to point files.

:func:`route` is the pure decision table; :class:`OutputRouter` carries it
out for one frame. Destination pathnames come from a
:class:`LandmarkTemplate` (video mode) or a :class:`ListDestinations`
cursor (list mode).
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from facefit.errors import UsageError
from facefit.pts import save_pts

logger = logging.getLogger(__name__)

# printf conversion: %% escape, or flags/width/precision/length + type.
_CONVERSION_RE = re.compile(r"%(?:%|[-+ #0]*\d*(?:\.\d+)?[hlL]?([a-zA-Z]))")
_INTEGER_TYPES = frozenset("diu")


@dataclass(frozen=True)
class Action:
    """What to do with one frame's result."""

    persist: bool
    display: bool


def route(has_destination: bool, shape: np.ndarray, verbose: bool) -> Action:
    """Decide whether to persist and/or display a frame.

    Without a destination the frame is always displayed. With one, a
    non-empty shape is persisted, and verbose runs also display the frame
    whether or not anything was saved.
    """
    if not has_destination:
        return Action(persist=False, display=True)
    return Action(persist=len(shape) > 0, display=verbose)


class LandmarkTemplate:
    """printf-style pathname template taking a 1-based frame number.

    Args:
        template: Pattern with at most one integer conversion
            (``%d``, ``%i`` or ``%u`` with optional flags and width).

    Raises:
        UsageError: If the pattern holds other conversions or more than one.

    Example:
        >>> LandmarkTemplate("out_%04u.pts").format(3)
        'out_0003.pts'
    """

    def __init__(self, template: str):
        slots = []
        for match in _CONVERSION_RE.finditer(template):
            conversion = match.group(1)
            if conversion is None:
                continue
            if conversion not in _INTEGER_TYPES:
                raise UsageError(
                    f"Landmark template '{template}' may only contain an unsigned "
                    f"integer conversion, found '{match.group(0)}'"
                )
            slots.append(match.group(0))
        if len(slots) > 1:
            raise UsageError(
                f"Landmark template '{template}' must accept at most one integer value"
            )

        self._template = template
        self._has_slot = bool(slots)
        try:
            self.format(1)
        except (TypeError, ValueError) as e:
            raise UsageError(f"Invalid landmark template '{template}': {e}") from e
        if not self._has_slot:
            logger.warning(
                "Landmark template '%s' has no frame number slot; "
                "every frame will be written to the same file", template
            )

    @property
    def has_slot(self) -> bool:
        return self._has_slot

    def format(self, index: int) -> str:
        """Return the pathname for frame *index*."""
        if self._has_slot:
            return self._template % index
        return self._template % ()

    def __repr__(self) -> str:
        return f"LandmarkTemplate({self._template!r})"


class ListDestinations:
    """Output pathnames consumed in lock-step with the input list.

    One entry is consumed per processed image, whether or not that image
    produced anything to save.
    """

    def __init__(self, paths: Sequence[str]):
        self._paths = list(paths)
        self._position = 0

    def __len__(self) -> int:
        return len(self._paths)

    def next(self) -> str:
        if self._position >= len(self._paths):
            raise IndexError("No landmark pathname left for this image")
        path = self._paths[self._position]
        self._position += 1
        return path


class OutputRouter:
    """Persist and/or display one frame's result.

    Args:
        has_destination: Whether an output argument was supplied.
        display: Object with ``show(image, shape)``, used when displaying.
        verbose: Display results even when saving them.
    """

    def __init__(self, has_destination: bool, display, verbose: bool = False):
        self._has_destination = has_destination
        self._display = display
        self._verbose = verbose
        self.persisted = 0

    def dispatch(self, image: np.ndarray, shape: np.ndarray,
                 pathname: Optional[str] = None) -> Action:
        """Carry out the routing decision for one frame.

        Args:
            image: Original frame, used for display.
            shape: Accepted shape, empty when rejected.
            pathname: Destination for this frame when one was supplied.

        Returns:
            The action that was performed.
        """
        action = route(self._has_destination, shape, self._verbose)

        if action.persist:
            save_pts(pathname, shape)
            self.persisted += 1
            logger.debug("Saved %d points to %s", len(shape), pathname)

        if action.display:
            self._display.show(image, shape)

        return action

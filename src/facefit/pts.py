"""Read and write landmark point files (``.pts``).

File layout::

    version: 1
    n_points:  68
    {
    x y
    ...
    }
"""

from typing import Sequence, Union

import numpy as np

PointsLike = Union[np.ndarray, Sequence[Sequence[float]]]


def as_shape(points: PointsLike) -> np.ndarray:
    """Coerce *points* to a float64 ``(N, 2)`` array (``(0, 2)`` when empty)."""
    shape = np.asarray(points, dtype=np.float64)
    if shape.size == 0:
        return np.empty((0, 2), dtype=np.float64)
    return shape.reshape(-1, 2)


def save_pts(path: str, points: PointsLike) -> None:
    """Write *points* to *path*.

    Raises:
        IOError: If the file cannot be written.
    """
    shape = as_shape(points)
    lines = ["version: 1", f"n_points:  {len(shape)}", "{"]
    lines.extend(f"{x!r} {y!r}" for x, y in shape.tolist())
    lines.append("}")

    with open(path, "w", encoding="utf-8") as f:
        f.write("\n".join(lines) + "\n")


def load_pts(path: str) -> np.ndarray:
    """Read a point file written by :func:`save_pts`.

    Raises:
        IOError: If the file cannot be opened.
        ValueError: If the contents are not a valid point file.
    """
    with open(path, "r", encoding="utf-8") as f:
        tokens = f.read().split()

    try:
        n_index = tokens.index("n_points:")
        n_points = int(tokens[n_index + 1])
        start = tokens.index("{", n_index)
        end = tokens.index("}", start)
    except (ValueError, IndexError) as e:
        raise ValueError(f"Malformed point file '{path}'") from e

    values = tokens[start + 1:end]
    if len(values) != 2 * n_points:
        raise ValueError(
            f"Point file '{path}' declares {n_points} points but holds {len(values) / 2:g}"
        )
    return as_shape([float(v) for v in values])

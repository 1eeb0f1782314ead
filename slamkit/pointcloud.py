"""Point-cloud loading, colouring, filtering and neighbour search.

Clouds are ``(N, 3)`` arrays of ``x, y, z`` coordinates.
"""

from __future__ import annotations

import os

import numpy as np
from scipy.spatial import cKDTree

_FIELDS = {"x": 0, "y": 1, "z": 2}
_RECORD_FLOATS = 4
_POINT_BYTES = 3 * 4
_RECORD_BYTES = _RECORD_FLOATS * 4


def _points(points, name: str = "points") -> np.ndarray:
    array = np.asarray(points, dtype=float)
    if array.size == 0:
        return np.zeros((0, 3))
    if array.ndim != 2 or array.shape[1] != 3:
        raise ValueError(f"{name} must have shape (N, 3), got {array.shape}")
    return array


def _query(query) -> np.ndarray:
    array = np.asarray(query, dtype=float)
    if array.shape != (3,):
        raise ValueError(f"query must have shape (3,), got {array.shape}")
    return array


def load_bin(filename: str | os.PathLike[str]) -> np.ndarray:
    """Read a binary scan of little-endian ``float32`` ``x, y, z, intensity`` records.

    The intensity is ignored.  A last record that holds ``x, y, z`` but lacks its
    intensity is still read; shorter trailing fragments are dropped.
    """
    try:
        with open(filename, "rb") as handle:
            data = handle.read()
    except OSError as exc:
        raise FileNotFoundError(f"failed to load {filename}") from exc

    full = len(data) // _RECORD_BYTES
    records = np.frombuffer(data, dtype="<f4", count=full * _RECORD_FLOATS)
    points = records.reshape(full, _RECORD_FLOATS)[:, :3]
    if len(data) - full * _RECORD_BYTES >= _POINT_BYTES:
        tail = np.frombuffer(data, dtype="<f4", count=3, offset=full * _RECORD_BYTES)
        points = np.vstack([points, tail.reshape(1, 3)])
    return points.astype(np.float32)


def kitti_scan_path(directory: str, index: int) -> str:
    """Return the path of scan ``index`` in a directory of six-digit ``.bin`` files."""
    return f"{directory}/{index:06d}.bin"


def colorize(points, color) -> np.ndarray:
    """Attach one RGB colour to every point, giving ``(N, 6)`` rows of ``x, y, z, r, g, b``."""
    cloud = _points(points)
    rgb = np.asarray(color)
    if rgb.shape != (3,):
        raise ValueError(f"color must have three components, got shape {rgb.shape}")
    if np.any(rgb < 0) or np.any(rgb > 255):
        raise ValueError(f"color components must lie in [0, 255], got {color!r}")
    colored = np.empty((len(cloud), 6))
    colored[:, :3] = cloud
    colored[:, 3:] = rgb
    return colored


def transform_points(points, transform) -> np.ndarray:
    """Apply a 4x4 homogeneous transform to every point."""
    cloud = _points(points)
    matrix = np.asarray(transform, dtype=float)
    if matrix.shape != (4, 4):
        raise ValueError(f"transform must have shape (4, 4), got {matrix.shape}")
    return cloud @ matrix[:3, :3].T + matrix[:3, 3]


def passthrough(points, field: str, low: float, high: float, negative: bool = False) -> np.ndarray:
    """Keep the points whose ``field`` lies in ``[low, high]``, or outside it if ``negative``.

    Points with non-finite coordinates are dropped either way.
    """
    if field not in _FIELDS:
        raise ValueError(f"unknown field {field!r}; expected one of x, y, z")
    cloud = _points(points)
    finite = np.all(np.isfinite(cloud), axis=1)
    values = cloud[:, _FIELDS[field]]
    with np.errstate(invalid="ignore"):
        inside = (values >= low) & (values <= high)
    keep = finite & (inside != negative)
    return cloud[keep]


def voxel_downsample(points, leaf_size) -> np.ndarray:
    """Replace the points in each voxel of size ``leaf_size`` by their centroid.

    ``leaf_size`` is one edge length or three.  Voxels come out in order of their
    linear index, ``x`` varying fastest.  Non-finite points are dropped.
    """
    leaf = np.broadcast_to(np.asarray(leaf_size, dtype=float), (3,))
    if np.any(leaf <= 0):
        raise ValueError(f"leaf_size must be positive, got {leaf_size!r}")
    cloud = _points(points)
    cloud = cloud[np.all(np.isfinite(cloud), axis=1)]
    if len(cloud) == 0:
        return np.zeros((0, 3))

    cells = np.floor(cloud / leaf).astype(np.int64)
    lowest = cells.min(axis=0)
    spans = cells.max(axis=0) - lowest + 1
    strides = np.array([1, spans[0], spans[0] * spans[1]], dtype=np.int64)
    linear = (cells - lowest) @ strides

    _, inverse, counts = np.unique(linear, return_inverse=True, return_counts=True)
    inverse = inverse.ravel()
    sums = np.zeros((len(counts), 3))
    np.add.at(sums, inverse, cloud)
    return sums / counts[:, np.newaxis]


def statistical_outlier_removal(
    points, mean_k: int, stddev_mul: float, negative: bool = False
) -> np.ndarray:
    """Drop points whose mean distance to their ``mean_k`` nearest neighbours is unusual.

    A point is an outlier when that mean distance exceeds the mean over all points
    plus ``stddev_mul`` sample standard deviations.  With ``negative`` only the
    outliers are returned.  Non-finite points are dropped either way.
    """
    if mean_k < 1:
        raise ValueError(f"mean_k must be at least 1, got {mean_k}")
    cloud = _points(points)
    cloud = cloud[np.all(np.isfinite(cloud), axis=1)]
    if len(cloud) == 0:
        return np.zeros((0, 3))
    if len(cloud) <= mean_k:
        raise ValueError(f"need more than {mean_k} points, got {len(cloud)}")

    distances, _ = cKDTree(cloud).query(cloud, k=mean_k + 1)
    mean_distances = distances[:, 1:].mean(axis=1)

    n = len(mean_distances)
    mean = mean_distances.mean()
    stddev = float(np.std(mean_distances, ddof=1)) if n > 1 else 0.0
    threshold = mean + stddev_mul * stddev

    outlier = mean_distances > threshold
    return cloud[outlier if negative else ~outlier]


def knn_search(points, query, k: int) -> tuple[np.ndarray, np.ndarray]:
    """Return indices and squared distances of the ``k`` points nearest ``query``, nearest first."""
    if k < 1:
        raise ValueError(f"k must be at least 1, got {k}")
    cloud = _points(points)
    target = _query(query)
    if len(cloud) == 0:
        return np.zeros(0, dtype=int), np.zeros(0)
    count = min(k, len(cloud))
    distances, indices = cKDTree(cloud).query(target, k=count)
    distances = np.atleast_1d(distances)
    indices = np.atleast_1d(indices)
    return indices.astype(int), distances**2


def radius_search(points, query, radius: float) -> tuple[np.ndarray, np.ndarray]:
    """Return indices and squared distances of points within ``radius`` of ``query``, nearest first."""
    if radius <= 0:
        raise ValueError(f"radius must be positive, got {radius}")
    cloud = _points(points)
    target = _query(query)
    if len(cloud) == 0:
        return np.zeros(0, dtype=int), np.zeros(0)
    indices = np.asarray(cKDTree(cloud).query_ball_point(target, r=radius), dtype=int)
    squared = np.sum((cloud[indices] - target) ** 2, axis=1)
    order = np.argsort(squared, kind="stable")
    return indices[order], squared[order]
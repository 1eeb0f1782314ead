"""Reading camera trajectories and building the line geometry used to draw them.

A pose file holds one pose per line: an index followed by a row-major 4x4
matrix whose translation is in millimetres.  Poses are returned as 4x4 rigid
transforms with translations in metres.
"""

from __future__ import annotations

import os

import numpy as np

_MILLIMETRES_TO_METRES = 0.001
_FIELDS_PER_LINE = 17


def parse_pose_line(line: str) -> np.ndarray:
    """Parse one pose line into a 4x4 transform.

    The upper-left 3x3 block becomes the rotation and the last column's first
    three entries, scaled from millimetres to metres, the translation.
    """
    fields = line.split()
    if len(fields) != _FIELDS_PER_LINE:
        raise ValueError(
            f"pose line must hold {_FIELDS_PER_LINE} numbers, got {len(fields)}"
        )
    try:
        values = np.array([float(field) for field in fields[1:]])
    except ValueError as exc:
        raise ValueError(f"pose line holds a non-numeric value: {line!r}") from exc
    matrix = values.reshape(4, 4)
    pose = np.eye(4)
    pose[:3, :3] = matrix[:3, :3]
    pose[:3, 3] = matrix[:3, 3] * _MILLIMETRES_TO_METRES
    return pose


def read_poses(path: str | os.PathLike[str]) -> list[np.ndarray]:
    """Read every pose in a trajectory file, skipping blank lines."""
    try:
        with open(path, encoding="utf-8") as handle:
            return [parse_pose_line(line) for line in handle if line.strip()]
    except FileNotFoundError as exc:
        raise FileNotFoundError(f"cannot find trajectory file at {path}") from exc


def _pose(pose) -> np.ndarray:
    array = np.asarray(pose, dtype=float)
    if array.shape != (4, 4):
        raise ValueError(f"pose must have shape (4, 4), got {array.shape}")
    return array


def pose_axes(pose, scale: float = 0.001) -> np.ndarray:
    """Return the pose origin and the ends of its three axes of length ``scale``.

    The result has rows ``origin, x end, y end, z end`` in world coordinates.
    """
    matrix = _pose(pose)
    rotation, translation = matrix[:3, :3], matrix[:3, 3]
    ends = (rotation @ (scale * np.eye(3))).T + translation
    return np.vstack([translation, ends])


def trajectory_segments(poses) -> np.ndarray:
    """Return the line segments joining consecutive pose positions.

    The result has shape ``(len(poses) - 1, 2, 3)``; it is empty for fewer than
    two poses.
    """
    positions = np.array([_pose(pose)[:3, 3] for pose in poses]).reshape(-1, 3)
    if len(positions) < 2:
        return np.zeros((0, 2, 3))
    return np.stack([positions[:-1], positions[1:]], axis=1)
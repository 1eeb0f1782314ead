"""Keypoint matching helpers built around the matcher network's inputs and outputs.

Feature matrices have one column per keypoint laid out as
``(score, x, y, descriptor...)``.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from slamkit.transport import DEFAULT_MATCH_THRESHOLD, decode


@dataclass(frozen=True)
class Match:
    """A correspondence between keypoint ``query_idx`` of the first set and
    ``train_idx`` of the second, with a distance where lower is better."""

    query_idx: int
    train_idx: int
    distance: float


def _features(features) -> np.ndarray:
    array = np.asarray(features, dtype=float)
    if array.ndim != 2 or array.shape[0] < 3:
        raise ValueError(
            f"features must have shape (3 + dim, N), got {array.shape}"
        )
    return array


def normalize_feature_keypoints(features, width: int, height: int) -> np.ndarray:
    """Return a copy of ``features`` with ``x`` and ``y`` centred on the image and
    scaled by 0.7 times its larger side.

    The image centre is taken with integer division of ``width`` and ``height``.
    """
    normalized = _features(features).copy()
    scale = max(width, height) * 0.7
    if scale == 0:
        raise ValueError("width and height must not both be zero")
    normalized[1] = (normalized[1] - width // 2) / scale
    normalized[2] = (normalized[2] - height // 2) / scale
    return normalized


def split_features(features) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Split a feature matrix into ``(keypoints, scores, descriptors)``.

    ``keypoints`` has shape ``(N, 2)`` holding ``(x, y)``, ``scores`` shape ``(N,)``
    and ``descriptors`` shape ``(dim, N)``; all are ``float32``.
    """
    array = _features(features)
    keypoints = array[1:3].T.astype(np.float32)
    scores = array[0].astype(np.float32)
    descriptors = array[3:].astype(np.float32)
    return keypoints, scores, descriptors


def matches_from_indices(indices0, indices1, mscores0, mscores1) -> list[Match]:
    """Collect mutual matches from per-point match indices.

    A point ``i`` of the first set is matched to ``j = indices0[i]`` when ``j`` is a
    valid index into the second set and ``indices1[j] == i``.  The distance is one
    minus the mean of the two match scores.
    """
    idx0 = np.asarray(indices0, dtype=int).ravel()
    idx1 = np.asarray(indices1, dtype=int).ravel()
    ms0 = np.asarray(mscores0, dtype=float).ravel()
    ms1 = np.asarray(mscores1, dtype=float).ravel()
    if len(ms0) != len(idx0):
        raise ValueError("indices0 and mscores0 must have the same length")
    if len(ms1) != len(idx1):
        raise ValueError("indices1 and mscores1 must have the same length")

    matches = []
    for i, j in enumerate(idx0):
        if 0 <= j < len(idx1) and idx1[j] == i:
            distance = 1.0 - (ms0[i] + ms1[j]) / 2.0
            matches.append(Match(int(i), int(j), float(distance)))
    return matches


def match_from_scores(scores, threshold: float = DEFAULT_MATCH_THRESHOLD) -> list[Match]:
    """Decode a log-score matrix with dustbins into a list of mutual matches."""
    indices0, indices1, mscores0, mscores1 = decode(scores, threshold)
    return matches_from_indices(indices0, indices1, mscores0, mscores1)
"""Match decoding and log-domain optimal transport for keypoint matching.

Score matrices carry one extra "dustbin" row and column for unmatched points.
"""

from __future__ import annotations

import math

import numpy as np
from scipy.special import logsumexp

DEFAULT_MATCH_THRESHOLD = 0.2
DEFAULT_ALPHA = 2.3457
DEFAULT_ITERATIONS = 100


def _score_matrix(scores, name: str = "scores") -> np.ndarray:
    array = np.asarray(scores, dtype=float)
    if array.ndim != 2:
        raise ValueError(f"{name} must be a 2-D matrix, got shape {array.shape}")
    return array


def decode(
    scores, threshold: float = DEFAULT_MATCH_THRESHOLD
) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Extract mutual best matches from a log-score matrix with dustbins.

    ``scores`` has shape ``(m + 1, n + 1)``; the last row and column are the
    dustbins and take no part in the search.  Returns ``(indices0, indices1,
    mscores0, mscores1)``: for every point the index of its match in the other
    set or -1, and the exponentiated score of every mutual match (0 otherwise).
    A match is kept only if it is mutual and its score exceeds ``threshold``.
    """
    matrix = _score_matrix(scores)
    h, w = matrix.shape
    if h < 2 or w < 2:
        raise ValueError(f"scores must be at least 2x2, got shape {matrix.shape}")
    core = matrix[:-1, :-1]
    m, n = core.shape

    max_indices0 = np.argmax(core, axis=1)
    max_values0 = core[np.arange(m), max_indices0]
    max_indices1 = np.argmax(core, axis=0)

    mutual0 = max_indices1[max_indices0] == np.arange(m)
    mutual1 = max_indices0[max_indices1] == np.arange(n)

    mscores0 = np.where(mutual0, np.exp(max_values0), 0.0)
    mscores1 = np.where(mutual1, mscores0[max_indices1], 0.0)

    valid0 = mutual0 & (mscores0 > threshold)
    valid1 = mutual1 & valid0[max_indices1]

    indices0 = np.where(valid0, max_indices0, -1).astype(int)
    indices1 = np.where(valid1, max_indices1, -1).astype(int)
    return indices0, indices1, mscores0, mscores1


def log_sinkhorn_iterations(couplings, log_mu, log_nu, iters: int) -> np.ndarray:
    """Run Sinkhorn normalisation in log space and return the log transport plan."""
    z = _score_matrix(couplings, "couplings")
    m, n = z.shape
    mu = np.asarray(log_mu, dtype=float)
    nu = np.asarray(log_nu, dtype=float)
    if mu.shape != (m,):
        raise ValueError(f"log_mu must have shape ({m},), got {mu.shape}")
    if nu.shape != (n,):
        raise ValueError(f"log_nu must have shape ({n},), got {nu.shape}")
    if iters < 0:
        raise ValueError(f"iters must be non-negative, got {iters}")

    u = np.zeros(m)
    v = np.zeros(n)
    for _ in range(iters):
        u = mu - logsumexp(z + v[np.newaxis, :], axis=1)
        v = nu - logsumexp(z + u[:, np.newaxis], axis=0)
    return z + u[:, np.newaxis] + v[np.newaxis, :]


def log_optimal_transport(
    scores, alpha: float = DEFAULT_ALPHA, iters: int = DEFAULT_ITERATIONS
) -> np.ndarray:
    """Augment an ``(m, n)`` score matrix with dustbins scored ``alpha`` and solve transport.

    Returns the ``(m + 1, n + 1)`` log assignment matrix.
    """
    matrix = _score_matrix(scores)
    m, n = matrix.shape
    if m == 0 or n == 0:
        raise ValueError(f"scores must not be empty, got shape {matrix.shape}")

    couplings = np.full((m + 1, n + 1), float(alpha))
    couplings[:m, :n] = matrix

    norm = -math.log(m + n)
    log_mu = np.append(np.full(m, norm), math.log(n) + norm)
    log_nu = np.append(np.full(n, norm), math.log(m) + norm)

    return log_sinkhorn_iterations(couplings, log_mu, log_nu, iters) - norm
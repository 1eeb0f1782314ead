"""Rotations, quaternions and the SO(3)/SE(3) exponential and logarithm maps.

Quaternions are stored as ``(x, y, z, w)``. SE(3) tangent vectors are ordered
``(translation part, rotation part)``.
"""

from __future__ import annotations

import math

import numpy as np

_EPSILON = 1e-10


def _vector(value, size: int, name: str) -> np.ndarray:
    array = np.asarray(value, dtype=float)
    if array.shape != (size,):
        raise ValueError(f"{name} must have shape ({size},), got {array.shape}")
    return array


def _matrix(value, size: int, name: str) -> np.ndarray:
    array = np.asarray(value, dtype=float)
    if array.shape != (size, size):
        raise ValueError(f"{name} must have shape ({size}, {size}), got {array.shape}")
    return array


def hat(vector) -> np.ndarray:
    """Return the skew-symmetric matrix of a 3-vector."""
    x, y, z = _vector(vector, 3, "vector")
    return np.array([[0.0, -z, y], [z, 0.0, -x], [-y, x, 0.0]])


def _quaternion_to_matrix(q: np.ndarray) -> np.ndarray:
    x, y, z, w = q
    return np.array(
        [
            [1 - 2 * (y * y + z * z), 2 * (x * y - z * w), 2 * (x * z + y * w)],
            [2 * (x * y + z * w), 1 - 2 * (x * x + z * z), 2 * (y * z - x * w)],
            [2 * (x * z - y * w), 2 * (y * z + x * w), 1 - 2 * (x * x + y * y)],
        ]
    )


def _matrix_to_quaternion(r: np.ndarray) -> np.ndarray:
    trace = r[0, 0] + r[1, 1] + r[2, 2]
    if trace > 0:
        t = math.sqrt(trace + 1.0)
        w = 0.5 * t
        t = 0.5 / t
        return np.array(
            [(r[2, 1] - r[1, 2]) * t, (r[0, 2] - r[2, 0]) * t, (r[1, 0] - r[0, 1]) * t, w]
        )
    i = 0
    if r[1, 1] > r[0, 0]:
        i = 1
    if r[2, 2] > r[i, i]:
        i = 2
    j = (i + 1) % 3
    k = (j + 1) % 3
    t = math.sqrt(r[i, i] - r[j, j] - r[k, k] + 1.0)
    q = np.zeros(4)
    q[i] = 0.5 * t
    t = 0.5 / t
    q[3] = (r[k, j] - r[j, k]) * t
    q[j] = (r[j, i] + r[i, j]) * t
    q[k] = (r[k, i] + r[i, k]) * t
    return q


def angle_axis_to_quaternion(angle: float, axis) -> np.ndarray:
    """Return the ``(x, y, z, w)`` quaternion of a rotation by ``angle`` about a unit ``axis``."""
    a = _vector(axis, 3, "axis")
    half = 0.5 * angle
    return np.concatenate([math.sin(half) * a, [math.cos(half)]])


def angle_axis_to_matrix(angle: float, axis) -> np.ndarray:
    """Return the rotation matrix of a rotation by ``angle`` about a unit ``axis``."""
    a = _vector(axis, 3, "axis")
    c, s = math.cos(angle), math.sin(angle)
    return c * np.eye(3) + s * hat(a) + (1.0 - c) * np.outer(a, a)


def quaternion_rotate(quaternion, vector) -> np.ndarray:
    """Rotate ``vector`` by the unit ``(x, y, z, w)`` quaternion."""
    q = _vector(quaternion, 4, "quaternion")
    v = _vector(vector, 3, "vector")
    imag, w = q[:3], q[3]
    uv = 2.0 * np.cross(imag, v)
    return v + w * uv + np.cross(imag, uv)


def _so3_exp_quaternion(omega: np.ndarray) -> tuple[np.ndarray, float]:
    theta_sq = float(omega @ omega)
    theta = math.sqrt(theta_sq)
    if theta < _EPSILON:
        theta_po4 = theta_sq * theta_sq
        imag_factor = 0.5 - theta_sq / 48.0 + theta_po4 / 3840.0
        real_factor = 1.0 - theta_sq / 8.0 + theta_po4 / 384.0
    else:
        half = 0.5 * theta
        imag_factor = math.sin(half) / theta
        real_factor = math.cos(half)
    q = np.concatenate([imag_factor * omega, [real_factor]])
    return q / np.linalg.norm(q), theta


def so3_exp(omega) -> np.ndarray:
    """Map a rotation vector to its rotation matrix."""
    q, _ = _so3_exp_quaternion(_vector(omega, 3, "omega"))
    return _quaternion_to_matrix(q)


def _so3_log_and_theta(rotation: np.ndarray) -> tuple[np.ndarray, float]:
    q = _matrix_to_quaternion(rotation)
    q = q / np.linalg.norm(q)
    imag, w = q[:3], q[3]
    squared_n = float(imag @ imag)
    if squared_n < _EPSILON * _EPSILON:
        if abs(w) < _EPSILON:
            raise ValueError("quaternion is not normalised")
        two_atan_nbyw_by_n = 2.0 / w - (2.0 / 3.0) * squared_n / (w * w * w)
        theta = 2.0 * squared_n / w
    else:
        n = math.sqrt(squared_n)
        if abs(w) < _EPSILON:
            two_atan_nbyw_by_n = (math.pi if w > 0 else -math.pi) / n
        else:
            two_atan_nbyw_by_n = 2.0 * math.atan(n / w) / n
        theta = two_atan_nbyw_by_n * n
    return two_atan_nbyw_by_n * imag, theta


def so3_log(rotation) -> np.ndarray:
    """Map a rotation matrix to its rotation vector."""
    omega, _ = _so3_log_and_theta(_matrix(rotation, 3, "rotation"))
    return omega


def se3_exp(twist) -> np.ndarray:
    """Map a 6-vector ``(translation part, rotation part)`` to a 4x4 rigid transform."""
    xi = _vector(twist, 6, "twist")
    upsilon, omega = xi[:3], xi[3:]
    q, theta = _so3_exp_quaternion(omega)
    rotation = _quaternion_to_matrix(q)
    big_omega = hat(omega)
    if theta < _EPSILON:
        v = rotation
    else:
        theta_sq = theta * theta
        v = (
            np.eye(3)
            + (1.0 - math.cos(theta)) / theta_sq * big_omega
            + (theta - math.sin(theta)) / (theta_sq * theta) * (big_omega @ big_omega)
        )
    transform = np.eye(4)
    transform[:3, :3] = rotation
    transform[:3, 3] = v @ upsilon
    return transform


def se3_log(transform) -> np.ndarray:
    """Map a 4x4 rigid transform to its 6-vector ``(translation part, rotation part)``."""
    t = _matrix(transform, 4, "transform")
    omega, theta = _so3_log_and_theta(t[:3, :3])
    big_omega = hat(omega)
    omega_sq = big_omega @ big_omega
    if abs(theta) < _EPSILON:
        v_inv = np.eye(3) - 0.5 * big_omega + (1.0 / 12.0) * omega_sq
    else:
        half = 0.5 * theta
        v_inv = (
            np.eye(3)
            - 0.5 * big_omega
            + (1.0 - theta * math.cos(half) / (2.0 * math.sin(half))) / (theta * theta) * omega_sq
        )
    upsilon = v_inv @ t[:3, 3]
    return np.concatenate([upsilon, omega])
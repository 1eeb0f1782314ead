import math

import numpy as np
import pytest

from slamkit.lie import (
    angle_axis_to_matrix,
    angle_axis_to_quaternion,
    hat,
    quaternion_rotate,
    se3_exp,
    se3_log,
    so3_exp,
    so3_log,
)

RNG = np.random.default_rng(7)
SMALL_VECTORS = [RNG.uniform(-1, 1, 3) / 100.0 for _ in range(4)]
LARGE_VECTORS = [RNG.uniform(-2, 2, 3) for _ in range(4)]


def test_hat_matches_cross_product():
    v = np.array([0.3, -1.2, 2.0])
    u = np.array([1.5, 0.5, -0.7])
    assert np.allclose(hat(v) @ u, np.cross(v, u))
    assert np.allclose(hat(v), -hat(v).T)


def test_hat_rejects_wrong_shape():
    with pytest.raises(ValueError):
        hat([1.0, 2.0])


def test_angle_axis_rotates_x_axis_about_z():
    rot = angle_axis_to_matrix(math.pi / 4.0, [0.0, 0.0, 1.0])
    rotated = rot @ np.array([1.0, 0.0, 0.0])
    assert np.allclose(rotated, [math.sqrt(0.5), math.sqrt(0.5), 0.0])


def test_quaternion_agrees_with_matrix():
    axis = np.array([1.0, 2.0, -2.0]) / 3.0
    angle = 1.1
    quat = angle_axis_to_quaternion(angle, axis)
    vec = np.array([0.4, -0.3, 2.5])
    assert np.isclose(np.linalg.norm(quat), 1.0)
    assert np.allclose(quaternion_rotate(quat, vec), angle_axis_to_matrix(angle, axis) @ vec)


def test_quaternion_has_w_last():
    quat = angle_axis_to_quaternion(0.0, [0.0, 0.0, 1.0])
    assert np.allclose(quat, [0.0, 0.0, 0.0, 1.0])


def test_quaternion_rotate_rejects_bad_quaternion():
    with pytest.raises(ValueError):
        quaternion_rotate([0.0, 0.0, 1.0], [1.0, 0.0, 0.0])


@pytest.mark.parametrize("omega", SMALL_VECTORS + LARGE_VECTORS)
def test_so3_exp_is_rotation(omega):
    r = so3_exp(omega)
    assert np.allclose(r @ r.T, np.eye(3))
    assert np.isclose(np.linalg.det(r), 1.0)


@pytest.mark.parametrize("omega", SMALL_VECTORS + LARGE_VECTORS)
def test_so3_log_exp_round_trip(omega):
    assert np.allclose(so3_log(so3_exp(omega)), omega)


def test_so3_exp_matches_angle_axis():
    axis = np.array([0.0, 0.6, 0.8])
    angle = 0.9
    assert np.allclose(so3_exp(angle * axis), angle_axis_to_matrix(angle, axis))


def test_so3_exp_of_zero_is_identity():
    assert np.allclose(so3_exp([0.0, 0.0, 0.0]), np.eye(3))
    assert np.allclose(so3_log(np.eye(3)), np.zeros(3))


def test_so3_log_near_pi_keeps_angle():
    omega = np.array([0.0, 0.0, math.pi - 1e-6])
    assert np.isclose(np.linalg.norm(so3_log(so3_exp(omega))), math.pi - 1e-6, atol=1e-6)


def test_small_perturbation_composition():
    rand_r = so3_exp(SMALL_VECTORS[0])
    small_r = so3_exp([0.0001, 0.0, 0.0])
    new_r = small_r @ rand_r
    assert np.allclose(new_r @ new_r.T, np.eye(3))
    assert np.allclose(so3_log(new_r @ rand_r.T), [0.0001, 0.0, 0.0])


@pytest.mark.parametrize(
    "twist",
    [np.concatenate([RNG.uniform(-1, 1, 3), w]) for w in SMALL_VECTORS + LARGE_VECTORS],
)
def test_se3_log_exp_round_trip(twist):
    t = se3_exp(twist)
    assert np.allclose(t[3], [0.0, 0.0, 0.0, 1.0])
    assert np.allclose(se3_log(t), twist)


def test_se3_pure_translation():
    t = se3_exp([1.0, 2.0, 3.0, 0.0, 0.0, 0.0])
    assert np.allclose(t[:3, :3], np.eye(3))
    assert np.allclose(t[:3, 3], [1.0, 2.0, 3.0])


def test_se3_rotation_block_matches_so3():
    omega = LARGE_VECTORS[1]
    t = se3_exp(np.concatenate([[0.5, -0.5, 0.2], omega]))
    assert np.allclose(t[:3, :3], so3_exp(omega))


def test_se3_log_rejects_wrong_shape():
    with pytest.raises(ValueError):
        se3_log(np.eye(3))
    with pytest.raises(ValueError):
        se3_exp([0.0] * 5)
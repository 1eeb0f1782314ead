import math

import numpy as np
import pytest

from slamkit.superglue import (
    Match,
    match_from_scores,
    matches_from_indices,
    normalize_feature_keypoints,
    split_features,
)


def _features(n=3, dim=4):
    rng = np.random.default_rng(0)
    return rng.random((3 + dim, n))


def test_normalize_centre_maps_to_zero():
    feats = _features()
    feats[1, 0] = 320
    feats[2, 0] = 240
    out = normalize_feature_keypoints(feats, 640, 480)
    assert out[1, 0] == pytest.approx(0.0)
    assert out[2, 0] == pytest.approx(0.0)


def test_normalize_scale_uses_larger_side():
    feats = _features()
    feats[1, 1] = 320 + 640 * 0.7
    feats[2, 1] = 240 - 640 * 0.7
    out = normalize_feature_keypoints(feats, 640, 480)
    assert out[1, 1] == pytest.approx(1.0)
    assert out[2, 1] == pytest.approx(-1.0)


def test_normalize_uses_integer_centre():
    feats = _features()
    feats[1, 0] = 2
    feats[2, 0] = 1
    out = normalize_feature_keypoints(feats, 5, 3)
    assert out[1, 0] == pytest.approx(0.0)
    assert out[2, 0] == pytest.approx(0.0)


def test_normalize_leaves_other_rows_and_input():
    feats = _features()
    original = feats.copy()
    out = normalize_feature_keypoints(feats, 640, 480)
    np.testing.assert_array_equal(out[0], original[0])
    np.testing.assert_array_equal(out[3:], original[3:])
    np.testing.assert_array_equal(feats, original)


def test_normalize_rejects_bad_shape():
    with pytest.raises(ValueError):
        normalize_feature_keypoints(np.zeros((2, 5)), 640, 480)


def test_split_features_layout():
    feats = _features(n=5, dim=6)
    keypoints, scores, descriptors = split_features(feats)
    assert keypoints.shape == (5, 2)
    assert scores.shape == (5,)
    assert descriptors.shape == (6, 5)
    np.testing.assert_allclose(keypoints[:, 0], feats[1], rtol=1e-6)
    np.testing.assert_allclose(keypoints[:, 1], feats[2], rtol=1e-6)
    np.testing.assert_allclose(scores, feats[0], rtol=1e-6)
    np.testing.assert_allclose(descriptors, feats[3:], rtol=1e-6)
    assert descriptors.dtype == np.float32


def test_split_features_rejects_bad_shape():
    with pytest.raises(ValueError):
        split_features(np.zeros(7))


def test_matches_from_indices_mutual():
    matches = matches_from_indices([1, -1, 0], [2, 0], [0.8, 0.0, 0.6], [0.6, 0.8])
    assert [(m.query_idx, m.train_idx) for m in matches] == [(0, 1), (2, 0)]
    assert matches[0].distance == pytest.approx(1 - (0.8 + 0.8) / 2)
    assert matches[1].distance == pytest.approx(1 - (0.6 + 0.6) / 2)


def test_matches_from_indices_skips_non_mutual_and_out_of_range():
    assert matches_from_indices([0], [-1], [0.9], [0.9]) == []
    assert matches_from_indices([5], [0], [0.9], [0.9]) == []


def test_matches_from_indices_length_mismatch():
    with pytest.raises(ValueError):
        matches_from_indices([0, 1], [0, 1], [0.5], [0.5, 0.5])


def test_match_from_scores_diagonal():
    low = math.log(0.01)
    high = math.log(0.9)
    scores = np.full((3, 3), low)
    scores[0, 0] = high
    scores[1, 1] = high
    matches = match_from_scores(scores)
    assert [(m.query_idx, m.train_idx) for m in matches] == [(0, 0), (1, 1)]
    for m in matches:
        assert m.distance == pytest.approx(1 - 0.9)
        assert isinstance(m, Match)


def test_match_from_scores_threshold_filters():
    scores = np.full((3, 3), math.log(0.01))
    scores[0, 0] = math.log(0.9)
    scores[1, 1] = math.log(0.9)
    assert match_from_scores(scores, threshold=0.95) == []
# slamkit

Numerical building blocks for SLAM pipelines, written with NumPy and SciPy.

## What is inside

- `slamkit.lie`: rotations and rigid transforms.
  - `hat` builds the skew-symmetric matrix of a 3-vector.
  - `angle_axis_to_matrix`, `angle_axis_to_quaternion` and `quaternion_rotate` work with
    angle-axis rotations and `(x, y, z, w)` quaternions.
  - `so3_exp` and `so3_log` map between rotation vectors and rotation matrices.
  - `se3_exp` and `se3_log` map between 6-vectors `(translation part, rotation part)` and
    4x4 rigid transforms.
- `slamkit.transport`: score matrices with a dustbin row and column.
  - `log_sinkhorn_iterations` runs Sinkhorn normalisation in log space.
  - `log_optimal_transport` adds dustbins scored `alpha` (default 2.3457) to an `(m, n)`
    score matrix and solves the transport problem (100 iterations by default).
  - `decode` keeps mutual best matches whose exponentiated score exceeds a threshold
    (default 0.2) and returns `(indices0, indices1, mscores0, mscores1)`.
- `slamkit.superglue`: glue between feature matrices and matches. Feature matrices have one
  column per keypoint, laid out as `(score, x, y, descriptor...)`.
  - `normalize_feature_keypoints` centres `x` and `y` on the image and scales them by 0.7
    times its larger side.
  - `split_features` splits a feature matrix into `float32` keypoints, scores and descriptors.
  - `matches_from_indices` and `match_from_scores` produce `Match` records with
    `query_idx`, `train_idx` and `distance` (one minus the mean of the two match scores).
- `slamkit.pointcloud`: clouds are `(N, 3)` arrays.
  - `load_bin` reads KITTI-style `.bin` scans of `float32` `x, y, z, intensity` records,
    and `kitti_scan_path` builds the six-digit file name of a scan.
  - `colorize` attaches an RGB colour to every point; `transform_points` applies a 4x4
    transform.
  - `passthrough`, `voxel_downsample` and `statistical_outlier_removal` filter points.
  - `knn_search` and `radius_search` return indices and squared distances, nearest first.
- `slamkit.trajectory`: pose files hold an index and a row-major 4x4 matrix per line, with
  translations in millimetres.
  - `parse_pose_line` and `read_poses` turn them into 4x4 transforms in metres.
  - `pose_axes` and `trajectory_segments` give the line geometry for drawing them.

## Examples

```python
import numpy as np
from slamkit.lie import se3_exp, se3_log
from slamkit.pointcloud import knn_search, load_bin, transform_points, voxel_downsample

cloud = voxel_downsample(load_bin("000000.bin"), 0.5)
pose = se3_exp([2.0, 0.0, 0.0, 0.0, 0.0, np.pi / 18])
moved = transform_points(cloud, pose)
indices, squared_distances = knn_search(moved, [8.0, 10.0, 0.1], 100)
print(se3_log(pose))
```

```python
import numpy as np
from slamkit.transport import log_optimal_transport
from slamkit.superglue import match_from_scores

similarity = np.array([[5.0, 0.0], [0.0, 5.0]])
assignment = log_optimal_transport(similarity)
for match in match_from_scores(assignment):
    print(match.query_idx, match.train_idx, match.distance)
```

## What it does not do

The package has no command-line programs and opens no windows: it computes geometry but
does not draw it. It does not run neural networks; keypoint detection and descriptor
extraction from images, and reading configuration files for them, are not included. It
does not register point clouds (no ICP) and does not fit planes.

## Installing and testing

```
pip install .
pip install ".[test]"
pytest
```
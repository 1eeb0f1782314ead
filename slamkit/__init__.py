"""Building blocks for SLAM: Lie groups, match decoding, point clouds and trajectories."""

__version__ = "0.1.0"
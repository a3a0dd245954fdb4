"""Calibration walk: approach the floor target from each quadrant, then lose tracking."""

SCRIPT = {
    "steps": [
        {"pose": "empty", "frames": 10},
        {"pose": "stand", "dx": -0.6, "dz": -0.6, "frames": 15},
        {"pose": "stand", "dx": -0.6, "dz": 0.6, "frames": 15},
        {"pose": "stand", "dx": 0.6, "dz": 0.6, "frames": 15},
        {"pose": "stand", "dx": 0.6, "dz": -0.6, "frames": 15},
        {"pose": "stand", "dx": 0.1, "dz": 0.1, "frames": 5},
        {"pose": "empty", "frames": 10},
    ],
}

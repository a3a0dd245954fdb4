"""
Screen projection and goal-region hit tests.

Projector maps sensor-space points (metres) into depth-space screen pixels;
the predicates below answer "is this hand on that button / in that volume".
"""

import numpy as np
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from skeleton import Body, HandState

# ──────────────────────────────────────────────
# Constants
# ──────────────────────────────────────────────
INFERRED_Z_CLAMP: float = 0.1  # m, replaces negative depth of inferred joints

# Depth-space display (px)
DISPLAY_WIDTH: int = 512
DISPLAY_HEIGHT: int = 424

# Pinhole approximation of the depth camera intrinsics (px)
DEPTH_FOCAL_LENGTH: float = 365.5
DEPTH_CENTER_X: float = 256.0
DEPTH_CENTER_Y: float = 212.0

# Floor calibration target (sensor space, m)
FLOOR_CENTER: np.ndarray = np.array([0.0, -1.0, 2.5])

# ── Runtime-editable behavior constants ───────────────────────────────────────
# Read by name every call so server.py can tune them live:
#   import regions as _regions;  _regions.FLOOR_TOLERANCE = 0.25
FLOOR_TOLERANCE: float = 0.3        # per-axis half-width of the floor target box (m)


Point2D = Tuple[float, float]


# ──────────────────────────────────────────────
# Projection
# ──────────────────────────────────────────────

def pinhole_depth_mapping(point) -> Point2D:
    """Default camera-space → depth-space mapping (no vendor SDK needed)."""
    x, y, z = float(point[0]), float(point[1]), float(point[2])
    if z == 0.0:
        z = INFERRED_Z_CLAMP
    u = DEPTH_CENTER_X + DEPTH_FOCAL_LENGTH * x / z
    v = DEPTH_CENTER_Y - DEPTH_FOCAL_LENGTH * y / z
    return (u, v)


def unproject_depth(u: float, v: float, z: float) -> np.ndarray:
    """Inverse of ``pinhole_depth_mapping`` at a given depth."""
    x = (u - DEPTH_CENTER_X) * z / DEPTH_FOCAL_LENGTH
    y = (DEPTH_CENTER_Y - v) * z / DEPTH_FOCAL_LENGTH
    return np.array([x, y, z], dtype=float)


class Projector:
    """Clamps negative depth, then delegates to the camera mapping."""

    def __init__(self, mapping: Optional[Callable] = None):
        self.mapping = mapping or pinhole_depth_mapping

    def project(self, point) -> Point2D:
        p = np.array(point, dtype=float)
        if p[2] < 0:
            p[2] = INFERRED_Z_CLAMP
        u, v = self.mapping(p)
        return (float(u), float(v))

    def project_joints(self, body: Body) -> dict:
        return {jt: self.project(j.position) for jt, j in body.joints.items()}


# ──────────────────────────────────────────────
# Hit tests
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Rect:
    """Screen rectangle, half-open: x in [left, right), y in [top, bottom)."""
    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def center(self) -> Point2D:
        return ((self.left + self.right) / 2, (self.top + self.bottom) / 2)

    def contains(self, point) -> bool:
        x, y = point[0], point[1]
        return self.left <= x < self.right and self.top <= y < self.bottom

    def xywh(self) -> list:
        return [self.left, self.top, self.width, self.height]


def in_rect(point, rect: Rect) -> bool:
    if point is None:
        return False
    return rect.contains(point)


def hand_engaged(point, rect: Rect, hand_state: HandState) -> bool:
    """Activation: hand inside the rect AND closed. Hover uses ``in_rect`` alone."""
    return in_rect(point, rect) and hand_state is HandState.CLOSED


def near_3d(a, b, epsilon: float) -> bool:
    """Per-axis box test (|dx|, |dy|, |dz| all < epsilon), not a sphere."""
    if a is None or b is None:
        return False
    d = np.abs(np.asarray(a, dtype=float)[:3] - np.asarray(b, dtype=float)[:3])
    return bool(np.all(d < epsilon))


def within_floor_tolerance(point, center=None, tol: Optional[float] = None) -> bool:
    """Per-axis box around the floor calibration target."""
    if center is None:
        center = FLOOR_CENTER
    if tol is None:
        tol = FLOOR_TOLERANCE
    return near_3d(point, center, tol)

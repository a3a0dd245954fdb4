"""
Projection and hit-test tests.

Projector clamp, half-open rectangles, Closed-only engagement and the
per-axis (box, not sphere) 3-D proximity test.
"""

import sys
import os
import math
import numpy as np
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import regions
from regions import (
    FLOOR_CENTER, INFERRED_Z_CLAMP, Projector, Rect,
    hand_engaged, in_rect, near_3d, pinhole_depth_mapping, unproject_depth,
    within_floor_tolerance,
)
from skeleton import HandState


# ── Projector ────────────────────────────────────────────

class _RecordingMapping:
    def __init__(self):
        self.calls = []

    def __call__(self, point):
        self.calls.append(np.array(point, dtype=float))
        return (point[0] * 100.0, point[1] * 100.0)


class TestProjector:

    def test_negative_depth_is_clamped_before_mapping(self):
        mapping = _RecordingMapping()
        Projector(mapping).project([0.2, 0.4, -1.5])
        assert mapping.calls[0][2] == pytest.approx(INFERRED_Z_CLAMP)

    def test_positive_depth_passes_through(self):
        mapping = _RecordingMapping()
        Projector(mapping).project([0.2, 0.4, 1.5])
        np.testing.assert_allclose(mapping.calls[0], [0.2, 0.4, 1.5])

    def test_input_point_is_not_mutated(self):
        p = np.array([0.0, 0.0, -0.5])
        Projector(_RecordingMapping()).project(p)
        assert p[2] == -0.5

    @pytest.mark.parametrize("z", [-5.0, -0.001, 0.0, 0.05, 3.0])
    def test_default_mapping_stays_finite(self, z):
        u, v = Projector().project([0.3, -0.4, z])
        assert math.isfinite(u) and math.isfinite(v)

    def test_floor_center_lands_on_screen(self):
        u, v = Projector().project(FLOOR_CENTER)
        assert 0 <= u < regions.DISPLAY_WIDTH
        assert 0 <= v < regions.DISPLAY_HEIGHT

    def test_unproject_inverts_pinhole(self):
        u, v = pinhole_depth_mapping(unproject_depth(137.0, 88.0, 2.2))
        assert u == pytest.approx(137.0)
        assert v == pytest.approx(88.0)


# ── Rectangles / engagement ──────────────────────────────

class TestInRect:
    RECT = Rect(100, 150, 200, 200)

    @pytest.mark.parametrize("point, expected", [
        ((100, 150), True),      # top-left corner is inside
        ((199.9, 199.9), True),
        ((200, 175), False),     # right edge excluded
        ((150, 200), False),     # bottom edge excluded
        ((99.9, 175), False),
        ((150, 149.9), False),
    ])
    def test_half_open(self, point, expected):
        assert in_rect(point, self.RECT) is expected

    def test_missing_point_is_outside(self):
        assert in_rect(None, self.RECT) is False

    def test_xywh(self):
        assert self.RECT.xywh() == [100, 150, 100, 50]


class TestHandEngaged:
    RECT = Rect(0, 0, 10, 10)

    def test_closed_inside_engages(self):
        assert hand_engaged((5, 5), self.RECT, HandState.CLOSED)

    @pytest.mark.parametrize("state", [
        HandState.OPEN, HandState.LASSO, HandState.UNKNOWN, HandState.NOT_TRACKED,
    ])
    def test_other_states_never_engage(self, state):
        assert not hand_engaged((5, 5), self.RECT, state)

    def test_closed_outside_does_not_engage(self):
        assert not hand_engaged((15, 5), self.RECT, HandState.CLOSED)

    def test_missing_hand_does_not_engage(self):
        assert not hand_engaged(None, self.RECT, HandState.CLOSED)


# ── 3-D proximity ────────────────────────────────────────

class TestNear3D:

    def test_per_axis_offsets_inside_box(self):
        a = np.array([1.0, 1.0, 1.0])
        assert near_3d(a + 0.03, a, 0.05)

    def test_box_corner_beyond_sphere_still_near(self):
        """Euclidean distance 0.085 > ε but every axis is < ε: box, not sphere."""
        a = np.array([0.0, 0.0, 2.0])
        b = a + np.array([0.049, -0.049, 0.049])
        assert np.linalg.norm(a - b) > 0.05
        assert near_3d(a, b, 0.05)

    def test_one_axis_outside_is_not_near(self):
        a = np.array([0.0, 0.0, 2.0])
        assert not near_3d(a, a + np.array([0.0, 0.06, 0.0]), 0.05)

    def test_boundary_is_exclusive(self):
        a = np.array([0.0, 0.0, 0.0])
        assert not near_3d(a, np.array([0.5, 0.0, 0.0]), 0.5)

    def test_missing_point(self):
        assert not near_3d(None, np.zeros(3), 1.0)


class TestFloorTolerance:

    def test_on_target(self):
        assert within_floor_tolerance(FLOOR_CENTER + np.array([0.29, -0.29, 0.29]))

    @pytest.mark.parametrize("offset", [
        [0.31, 0.0, 0.0], [0.0, 0.31, 0.0], [0.0, 0.0, -0.31],
    ])
    def test_off_target_on_any_axis(self, offset):
        assert not within_floor_tolerance(FLOOR_CENTER + np.array(offset))

    def test_tolerance_is_read_at_call_time(self, monkeypatch):
        p = FLOOR_CENTER + np.array([0.2, 0.0, 0.0])
        assert within_floor_tolerance(p)
        monkeypatch.setattr(regions, "FLOOR_TOLERANCE", 0.1)
        assert not within_floor_tolerance(p)

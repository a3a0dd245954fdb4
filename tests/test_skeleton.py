"""
Skeleton data-model tests — JSON decoding, player selection and draw data.
"""

import sys
import os
import numpy as np
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from skeleton import (
    BONES, Body, FrameEdge, HandState, Joint, JointType, TrackingState,
    first_tracked_body, frame_from_dicts, skeleton_draw_data,
)


class TestJointType:

    def test_sdk_names(self):
        assert JointType.SPINE_SHOULDER.sdk_name == "SpineShoulder"
        assert JointType.HAND_TIP_LEFT.sdk_name == "HandTipLeft"

    @pytest.mark.parametrize("name", ["HandRight", "HAND_RIGHT", "hand_right"])
    def test_from_name(self, name):
        assert JointType.from_name(name) is JointType.HAND_RIGHT

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            JointType.from_name("Tail")

    def test_bone_list(self):
        assert len(BONES) == 24
        used = {jt for bone in BONES for jt in bone}
        assert used == set(JointType)


class TestDecoding:

    def test_full_body(self):
        body = Body.from_dict({
            "tracked": True,
            "joints": {
                "Head": {"pos": [0.1, 0.6, 2.5], "state": "Tracked"},
                "HandLeft": {"pos": [-0.3, 0.0, 2.3], "state": "Inferred"},
                "FootRight": [0.1, -1.0, 2.4],
            },
            "hand_left": "Closed",
            "hand_right": "Lasso",
            "clipped": ["Bottom", "Left"],
        }, index=3)

        np.testing.assert_allclose(body.position(JointType.HEAD), [0.1, 0.6, 2.5])
        assert body.joints[JointType.HAND_LEFT].tracking_state is TrackingState.INFERRED
        assert body.joints[JointType.FOOT_RIGHT].tracking_state is TrackingState.TRACKED
        assert body.hand_left_state is HandState.CLOSED
        assert body.hand_right_state is HandState.LASSO
        assert body.clipped_edges == FrameEdge.BOTTOM | FrameEdge.LEFT
        assert body.index == 3

    def test_absent_joint_is_none(self):
        body = Body.from_dict({"joints": {}})
        assert body.position(JointType.HEAD) is None
        assert body.hand_left_state is HandState.UNKNOWN

    def test_sdk_enum_spelling(self):
        body = Body.from_dict({"hand_left": "NotTracked", "joints": {
            "Neck": {"pos": [0, 0, 1], "state": "NotTracked"}}})
        assert body.hand_left_state is HandState.NOT_TRACKED
        assert body.joints[JointType.NECK].tracking_state is TrackingState.NOT_TRACKED

    @pytest.mark.parametrize("data", [
        "not a body",
        {"joints": []},
        {"joints": {"Elbow": [0, 0, 1]}},
        {"joints": {"Head": [0, 0]}},
        {"joints": {"Head": [0, "x", 1]}},
        {"joints": {"Head": [0, float("nan"), 1]}},
        {"hand_left": "Fist"},
        {"clipped": ["Middle"]},
        {"clipped": 5},
        {"clipped": True},
        {"index": None},
        {"index": [1]},
        {"index": {"slot": 1}},
    ])
    def test_malformed_raises_value_error(self, data):
        with pytest.raises(ValueError):
            Body.from_dict(data)

    def test_frame_from_dicts(self):
        frame = frame_from_dicts([{"tracked": False}, {"tracked": True}])
        assert [b.index for b in frame] == [0, 1]
        assert frame_from_dicts(None) == []
        with pytest.raises(ValueError):
            frame_from_dicts({"tracked": True})

    def test_to_dict_decodes_back(self):
        src = Body(joints={JointType.HEAD: Joint(JointType.HEAD, [0.0, 0.5, 2.0],
                                                 TrackingState.INFERRED)},
                   hand_right_state=HandState.CLOSED,
                   clipped_edges=FrameEdge.TOP, index=2)
        out = Body.from_dict(src.to_dict())
        assert out.joints[JointType.HEAD].tracking_state is TrackingState.INFERRED
        assert out.hand_right_state is HandState.CLOSED
        assert out.clipped_edges == FrameEdge.TOP
        assert out.index == 2


class TestFirstTrackedBody:

    def test_enumeration_order(self):
        a, b, c = Body(is_tracked=False), Body(index=1), Body(index=2)
        assert first_tracked_body([a, b, c]) is b

    @pytest.mark.parametrize("frame", [None, [], [Body(is_tracked=False)]])
    def test_no_player(self, frame):
        assert first_tracked_body(frame) is None


class TestDrawData:

    def _body(self, **states):
        joints = {jt: Joint(jt, [0.0, 0.0, 2.0], states.get(jt.name, TrackingState.TRACKED))
                  for jt in (JointType.WRIST_RIGHT, JointType.HAND_RIGHT,
                             JointType.HAND_TIP_RIGHT)}
        return Body(joints=joints, hand_right_state=HandState.CLOSED,
                    hand_left_state=HandState.UNKNOWN)

    def _points(self, body):
        return {jt: (float(i), 0.0) for i, jt in enumerate(body.joints)}

    def test_bones_need_both_ends(self):
        body = self._body()
        data = skeleton_draw_data(body, self._points(body))
        assert len(data["bones"]) == 2      # wrist-hand, hand-tip
        assert len(data["joints"]) == 3

    def test_not_tracked_end_skips_bone(self):
        body = self._body(HAND_TIP_RIGHT=TrackingState.NOT_TRACKED)
        data = skeleton_draw_data(body, self._points(body))
        assert len(data["bones"]) == 1
        assert len(data["joints"]) == 2

    def test_inferred_end_uses_inferred_style(self):
        body = self._body(HAND_RIGHT=TrackingState.INFERRED)
        data = skeleton_draw_data(body, self._points(body))
        assert {b["style"] for b in data["bones"]} == {"bone_inferred"}

    def test_hand_circles_only_for_known_states(self):
        body = self._body()
        data = skeleton_draw_data(body, self._points(body), hand_radius=12.0)
        assert data["hands"] == [{"joint": "HandRight", "pos": [1.0, 0.0],
                                  "style": "hand_closed", "radius": 12.0}]

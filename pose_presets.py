"""
Pose presets — synthetic bodies for scripted sessions and tests.

Every preset starts from a neutral standing pose on the floor target and moves
one hand (or the whole body) to where a gesture needs it.  Screen-space goals
(menu buttons) are reached through the default pinhole mapping.
"""

import numpy as np

from regions import FLOOR_CENTER, Rect, unproject_depth
from skeleton import Body, HandState, Joint, JointType, TrackingState

NEUTRAL_HEAD_Y: float = 0.6    # head height of the template (sensor space, m)
PRESS_DEPTH: float = 2.2       # hand depth when reaching for a menu button (m)

# Standing template: (x offset, absolute y, z offset) around the floor target
_TEMPLATE = {
    JointType.HEAD:           ( 0.00,  0.60,  0.00),
    JointType.NECK:           ( 0.00,  0.45,  0.00),
    JointType.SPINE_SHOULDER: ( 0.00,  0.38,  0.00),
    JointType.SPINE_MID:      ( 0.00,  0.10,  0.00),
    JointType.SPINE_BASE:     ( 0.00, -0.15,  0.00),
    JointType.SHOULDER_LEFT:  (-0.18,  0.35,  0.00),
    JointType.ELBOW_LEFT:     (-0.22,  0.08,  0.00),
    JointType.WRIST_LEFT:     (-0.24, -0.15,  0.00),
    JointType.HAND_LEFT:      (-0.25, -0.22,  0.00),
    JointType.HAND_TIP_LEFT:  (-0.25, -0.30,  0.00),
    JointType.THUMB_LEFT:     (-0.22, -0.24,  0.00),
    JointType.SHOULDER_RIGHT: ( 0.18,  0.35,  0.00),
    JointType.ELBOW_RIGHT:    ( 0.22,  0.08,  0.00),
    JointType.WRIST_RIGHT:    ( 0.24, -0.15,  0.00),
    JointType.HAND_RIGHT:     ( 0.25, -0.22,  0.00),
    JointType.HAND_TIP_RIGHT: ( 0.25, -0.30,  0.00),
    JointType.THUMB_RIGHT:    ( 0.22, -0.24,  0.00),
    JointType.HIP_LEFT:       (-0.09, -0.18,  0.00),
    JointType.KNEE_LEFT:      (-0.10, -0.58,  0.00),
    JointType.ANKLE_LEFT:     (-0.10, -0.95,  0.00),
    JointType.FOOT_LEFT:      (-0.10, -1.00, -0.08),
    JointType.HIP_RIGHT:      ( 0.09, -0.18,  0.00),
    JointType.KNEE_RIGHT:     ( 0.10, -0.58,  0.00),
    JointType.ANKLE_RIGHT:    ( 0.10, -0.95,  0.00),
    JointType.FOOT_RIGHT:     ( 0.10, -1.00, -0.08),
}
# Joints that do not move when the head height changes
_GROUNDED = {
    JointType.KNEE_LEFT, JointType.ANKLE_LEFT, JointType.FOOT_LEFT,
    JointType.KNEE_RIGHT, JointType.ANKLE_RIGHT, JointType.FOOT_RIGHT,
}

_SIDES = {
    "left": JointType.HAND_LEFT,
    "right": JointType.HAND_RIGHT,
}


def _hand_joint(side) -> JointType:
    if isinstance(side, JointType):
        return side
    try:
        return _SIDES[str(side).lower()]
    except KeyError:
        raise ValueError(f"side must be 'left' or 'right', got {side!r}") from None


class PosePreset:
    """Each preset returns a fresh Body."""

    @staticmethod
    def standing(head_y: float = NEUTRAL_HEAD_Y, dx: float = 0.0, dz: float = 0.0,
                 tracked: bool = True, index: int = 0) -> Body:
        """Neutral pose on the floor target, shifted by (dx, dz) metres."""
        lift = head_y - NEUTRAL_HEAD_Y
        joints = {}
        for jt, (ox, y, oz) in _TEMPLATE.items():
            if jt not in _GROUNDED:
                y += lift
            pos = [FLOOR_CENTER[0] + ox + dx, y, FLOOR_CENTER[2] + oz + dz]
            joints[jt] = Joint(jt, pos, TrackingState.TRACKED)
        return Body(joints=joints,
                    hand_left_state=HandState.OPEN,
                    hand_right_state=HandState.OPEN,
                    is_tracked=tracked,
                    index=index)

    @staticmethod
    def with_hand(body: Body, side, position, state: HandState = None) -> Body:
        """Copy of ``body`` with one hand moved to ``position``."""
        jt = _hand_joint(side)
        out = body.copy()
        out.joints[jt] = Joint(jt, np.array(position, dtype=float), TrackingState.TRACKED)
        if state is not None:
            if jt is JointType.HAND_LEFT:
                out.hand_left_state = state
            else:
                out.hand_right_state = state
        return out

    @staticmethod
    def without(body: Body, *joint_types) -> Body:
        """Copy of ``body`` with the given joints missing."""
        out = body.copy()
        for jt in joint_types:
            out.joints.pop(jt, None)
        return out

    @staticmethod
    def pressing(target, side="right", state: HandState = HandState.CLOSED,
                 depth: float = PRESS_DEPTH, **standing_kw) -> Body:
        """Hand held over the centre of a screen rect (or Button)."""
        rect = getattr(target, "hit", target)
        if not isinstance(rect, Rect):
            raise ValueError(f"pressing() needs a Rect or Button, got {target!r}")
        u, v = rect.center
        body = PosePreset.standing(**standing_kw)
        return PosePreset.with_hand(body, side, unproject_depth(u, v, depth), state)

    @staticmethod
    def grabbing(side="right", **standing_kw) -> Body:
        """Hand reached down and forward: 0.2 m below and 0.1 m ahead of spine mid."""
        body = PosePreset.standing(**standing_kw)
        spine = body.position(JointType.SPINE_MID)
        return PosePreset.with_hand(body, side, spine + np.array([0.0, -0.2, -0.1]))

    @staticmethod
    def at_goal(goal, side="right", jitter=(0.0, 0.0, 0.0), **standing_kw) -> Body:
        """Hand at a 3-D shot goal (optionally offset per axis)."""
        body = PosePreset.standing(**standing_kw)
        pos = np.asarray(goal, dtype=float) + np.asarray(jitter, dtype=float)
        return PosePreset.with_hand(body, side, pos)

"""
Skeletal frame data model
Joints, hand states, bodies and the bone list used to draw them.

Positions are sensor-space metres (x right-of-sensor, y up, z away from the
sensor), stored as numpy arrays like every other vector in the game.
"""

import enum
import numpy as np
from dataclasses import dataclass, field
from typing import Dict, List, Optional

# ──────────────────────────────────────────────
# Enumerations (sensor SDK order)
# ──────────────────────────────────────────────


class JointType(enum.Enum):
    SPINE_BASE = 0
    SPINE_MID = 1
    NECK = 2
    HEAD = 3
    SHOULDER_LEFT = 4
    ELBOW_LEFT = 5
    WRIST_LEFT = 6
    HAND_LEFT = 7
    SHOULDER_RIGHT = 8
    ELBOW_RIGHT = 9
    WRIST_RIGHT = 10
    HAND_RIGHT = 11
    HIP_LEFT = 12
    KNEE_LEFT = 13
    ANKLE_LEFT = 14
    FOOT_LEFT = 15
    HIP_RIGHT = 16
    KNEE_RIGHT = 17
    ANKLE_RIGHT = 18
    FOOT_RIGHT = 19
    SPINE_SHOULDER = 20
    HAND_TIP_LEFT = 21
    THUMB_LEFT = 22
    HAND_TIP_RIGHT = 23
    THUMB_RIGHT = 24

    @property
    def sdk_name(self) -> str:
        """CamelCase name used by the sensor SDK and the JSON wire format."""
        return "".join(w.capitalize() for w in self.name.split("_"))

    @classmethod
    def from_name(cls, name: str) -> "JointType":
        key = str(name).strip()
        jt = _JOINTS_BY_SDK_NAME.get(key)
        if jt is not None:
            return jt
        try:
            return cls[key.upper()]
        except KeyError:
            raise ValueError(f"unknown joint '{name}'") from None


class TrackingState(enum.Enum):
    NOT_TRACKED = 0
    INFERRED = 1
    TRACKED = 2


class HandState(enum.Enum):
    UNKNOWN = 0
    NOT_TRACKED = 1
    OPEN = 2
    CLOSED = 3
    LASSO = 4


class FrameEdge(enum.IntFlag):
    NONE = 0
    RIGHT = 1
    LEFT = 2
    TOP = 4
    BOTTOM = 8


_JOINTS_BY_SDK_NAME = {jt.sdk_name: jt for jt in JointType}


def _enum_from_name(enum_cls, value, what: str):
    """Accept either the enum member name or the SDK CamelCase spelling."""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return enum_cls(value)
        except ValueError:
            raise ValueError(f"bad {what} value {value!r}") from None
    key = str(value).strip()
    upper = "".join("_" + c if c.isupper() and i else c for i, c in enumerate(key)).upper()
    for candidate in (key.upper(), upper):
        if candidate in enum_cls.__members__:
            return enum_cls[candidate]
    raise ValueError(f"bad {what} value {value!r}")


# ──────────────────────────────────────────────
# Bones (pairs of joints drawn as a line)
# ──────────────────────────────────────────────
BONES: List[tuple] = [
    # Torso
    (JointType.HEAD, JointType.NECK),
    (JointType.NECK, JointType.SPINE_SHOULDER),
    (JointType.SPINE_SHOULDER, JointType.SPINE_MID),
    (JointType.SPINE_MID, JointType.SPINE_BASE),
    (JointType.SPINE_SHOULDER, JointType.SHOULDER_RIGHT),
    (JointType.SPINE_SHOULDER, JointType.SHOULDER_LEFT),
    (JointType.SPINE_BASE, JointType.HIP_RIGHT),
    (JointType.SPINE_BASE, JointType.HIP_LEFT),
    # Right arm
    (JointType.SHOULDER_RIGHT, JointType.ELBOW_RIGHT),
    (JointType.ELBOW_RIGHT, JointType.WRIST_RIGHT),
    (JointType.WRIST_RIGHT, JointType.HAND_RIGHT),
    (JointType.HAND_RIGHT, JointType.HAND_TIP_RIGHT),
    (JointType.WRIST_RIGHT, JointType.THUMB_RIGHT),
    # Left arm
    (JointType.SHOULDER_LEFT, JointType.ELBOW_LEFT),
    (JointType.ELBOW_LEFT, JointType.WRIST_LEFT),
    (JointType.WRIST_LEFT, JointType.HAND_LEFT),
    (JointType.HAND_LEFT, JointType.HAND_TIP_LEFT),
    (JointType.WRIST_LEFT, JointType.THUMB_LEFT),
    # Right leg
    (JointType.HIP_RIGHT, JointType.KNEE_RIGHT),
    (JointType.KNEE_RIGHT, JointType.ANKLE_RIGHT),
    (JointType.ANKLE_RIGHT, JointType.FOOT_RIGHT),
    # Left leg
    (JointType.HIP_LEFT, JointType.KNEE_LEFT),
    (JointType.KNEE_LEFT, JointType.ANKLE_LEFT),
    (JointType.ANKLE_LEFT, JointType.FOOT_LEFT),
]

_HAND_STYLES = {
    HandState.CLOSED: "hand_closed",
    HandState.OPEN: "hand_open",
    HandState.LASSO: "hand_lasso",
}


# ──────────────────────────────────────────────
# Joint / Body
# ──────────────────────────────────────────────

@dataclass
class Joint:
    """One tracked body landmark."""
    joint_type: JointType
    position: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0, 0.0]))
    tracking_state: TrackingState = TrackingState.TRACKED

    def __post_init__(self):
        self.position = np.array(self.position, dtype=float)

    def copy(self) -> "Joint":
        return Joint(self.joint_type, self.position.copy(), self.tracking_state)


@dataclass
class Body:
    """One body slot of a skeletal frame."""
    joints: Dict[JointType, Joint] = field(default_factory=dict)
    hand_left_state: HandState = HandState.UNKNOWN
    hand_right_state: HandState = HandState.UNKNOWN
    clipped_edges: FrameEdge = FrameEdge.NONE
    is_tracked: bool = True
    index: int = 0

    def position(self, joint_type: JointType) -> Optional[np.ndarray]:
        """Joint position, or None when the joint is absent from this body."""
        joint = self.joints.get(joint_type)
        return None if joint is None else joint.position

    def hand_state(self, joint_type: JointType) -> HandState:
        if joint_type is JointType.HAND_LEFT:
            return self.hand_left_state
        if joint_type is JointType.HAND_RIGHT:
            return self.hand_right_state
        return HandState.UNKNOWN

    def copy(self) -> "Body":
        return Body(
            joints={jt: j.copy() for jt, j in self.joints.items()},
            hand_left_state=self.hand_left_state,
            hand_right_state=self.hand_right_state,
            clipped_edges=self.clipped_edges,
            is_tracked=self.is_tracked,
            index=self.index,
        )

    # ── JSON wire format ─────────────────────────────────────────────────────

    @classmethod
    def from_dict(cls, data: dict, index: int = 0) -> "Body":
        """Build a Body from its JSON form.

        Format::

            {"tracked": true, "index": 0,
             "joints": {"HandRight": {"pos": [x, y, z], "state": "Tracked"}, ...},
             "hand_left": "Open", "hand_right": "Closed",
             "clipped": ["Bottom"]}

        Raises ``ValueError`` on malformed input.
        """
        if not isinstance(data, dict):
            raise ValueError(f"body must be an object, got {type(data).__name__}")

        joints: Dict[JointType, Joint] = {}
        raw_joints = data.get("joints", {})
        if not isinstance(raw_joints, dict):
            raise ValueError("'joints' must be an object")
        for name, jd in raw_joints.items():
            jt = JointType.from_name(name)
            if isinstance(jd, dict):
                pos = jd.get("pos")
                state = _enum_from_name(TrackingState, jd.get("state", "Tracked"), "tracking state")
            else:
                pos, state = jd, TrackingState.TRACKED
            try:
                vec = np.array([float(v) for v in pos], dtype=float)
            except (TypeError, ValueError):
                raise ValueError(f"joint '{name}': bad position {pos!r}") from None
            if vec.shape != (3,) or not np.all(np.isfinite(vec)):
                raise ValueError(f"joint '{name}': position must be 3 finite numbers")
            joints[jt] = Joint(jt, vec, state)

        raw_clipped = data.get("clipped") or []
        if not isinstance(raw_clipped, list):
            raise ValueError("'clipped' must be a list of edge names")
        edges = FrameEdge.NONE
        for edge in raw_clipped:
            edges |= _enum_from_name(FrameEdge, edge, "clipped edge")

        body_index = data.get("index", index)
        if isinstance(body_index, bool) or not isinstance(body_index, int):
            raise ValueError(f"'index' must be an integer, got {body_index!r}")

        return cls(
            joints=joints,
            hand_left_state=_enum_from_name(HandState, data.get("hand_left", "Unknown"), "hand state"),
            hand_right_state=_enum_from_name(HandState, data.get("hand_right", "Unknown"), "hand state"),
            clipped_edges=edges,
            is_tracked=bool(data.get("tracked", True)),
            index=body_index,
        )

    def to_dict(self) -> dict:
        return {
            "tracked": self.is_tracked,
            "index": self.index,
            "joints": {
                jt.sdk_name: {
                    "pos": [round(float(v), 5) for v in j.position],
                    "state": j.tracking_state.name,
                }
                for jt, j in self.joints.items()
            },
            "hand_left": self.hand_left_state.name,
            "hand_right": self.hand_right_state.name,
            "clipped": [e.name for e in (FrameEdge.RIGHT, FrameEdge.LEFT,
                                         FrameEdge.TOP, FrameEdge.BOTTOM)
                        if self.clipped_edges & e],
        }


def frame_from_dicts(bodies) -> List[Body]:
    """Decode a list of JSON body objects into a frame (list of Body)."""
    if bodies is None:
        return []
    if not isinstance(bodies, list):
        raise ValueError("'bodies' must be a list")
    return [Body.from_dict(b, index=i) for i, b in enumerate(bodies)]


def first_tracked_body(frame) -> Optional[Body]:
    """The player: first tracked body in enumeration order (others ignored)."""
    for body in frame or ():
        if body is not None and body.is_tracked:
            return body
    return None


# ──────────────────────────────────────────────
# Skeleton draw data
# ──────────────────────────────────────────────

def skeleton_draw_data(body: Body, points: dict,
                       joint_radius: float = 3.0, hand_radius: float = 30.0) -> dict:
    """Bones, joint dots and hand-state circles for one body in screen space.

    A bone is skipped when either end is missing or NotTracked, and is drawn
    with the inferred style unless both ends are Tracked.
    """
    bones = []
    for a, b in BONES:
        ja, jb = body.joints.get(a), body.joints.get(b)
        if ja is None or jb is None or a not in points or b not in points:
            continue
        if (ja.tracking_state is TrackingState.NOT_TRACKED or
                jb.tracking_state is TrackingState.NOT_TRACKED):
            continue
        both = (ja.tracking_state is TrackingState.TRACKED and
                jb.tracking_state is TrackingState.TRACKED)
        bones.append({
            "from": list(points[a]),
            "to": list(points[b]),
            "style": "bone_tracked" if both else "bone_inferred",
        })

    joints = []
    for jt, joint in body.joints.items():
        if jt not in points:
            continue
        if joint.tracking_state is TrackingState.TRACKED:
            style = "joint_tracked"
        elif joint.tracking_state is TrackingState.INFERRED:
            style = "joint_inferred"
        else:
            continue
        joints.append({"joint": jt.sdk_name, "pos": list(points[jt]),
                       "style": style, "radius": joint_radius})

    hands = []
    for jt, state in ((JointType.HAND_LEFT, body.hand_left_state),
                      (JointType.HAND_RIGHT, body.hand_right_state)):
        style = _HAND_STYLES.get(state)
        if style is None or jt not in points:
            continue
        hands.append({"joint": jt.sdk_name, "pos": list(points[jt]),
                      "style": style, "radius": hand_radius})

    return {"bones": bones, "joints": joints, "hands": hands}

"""
Shot gesture tracking — grab the ball, hit the start volume, hit the end volume.

Goal volumes hang in front of the calibrated player: the start goal just below
head height, the end goal above it (higher for longer shots), both offset
sideways towards the shooting hand.
"""

import enum
import numpy as np
from dataclasses import dataclass
from typing import Optional

from regions import FLOOR_CENTER, near_3d
from score_timer import ScoreTimer
from session import DistanceTier, GameSession, Handedness
from skeleton import JointType

# ──────────────────────────────────────────────
# Goal placement (m, relative to floor target / head height)
# ──────────────────────────────────────────────
SHOT_X_OFFSET: float = 0.3          # towards the shooting hand
SHOT_START_Y_OFFSET: float = -0.2   # below head
SHOT_START_Z_OFFSET: float = 0.1
SHOT_END_Z_OFFSET: float = -0.15
SHOT_END_Y_OFFSETS = {
    DistanceTier.NEAR: 0.10,
    DistanceTier.MID: 0.15,
    DistanceTier.FAR: 0.20,
}
INDICATOR_DEPTH_SCALE: float = 2.0  # goal ellipse scale = this / goal.z

# ── Runtime-editable behavior constants ───────────────────────────────────────
GESTURE_TOLERANCE: float = 0.05     # per-axis half-width of a goal volume (m)
BALL_GRAB_DROP: float = 0.1         # hand must be this far below spine mid (m)


class ShotStep(enum.Enum):
    ACQUIRE = "acquire"
    BEGIN = "begin"
    END = "end"


def shot_goals(handedness: Handedness, tier: DistanceTier,
               head_height: float) -> tuple:
    """(start, end) goal centres for this player."""
    side = 1.0 if handedness is Handedness.RIGHT else -1.0
    x = FLOOR_CENTER[0] + side * SHOT_X_OFFSET
    start = np.array([
        x,
        head_height + SHOT_START_Y_OFFSET,
        FLOOR_CENTER[2] + SHOT_START_Z_OFFSET,
    ])
    end = np.array([
        x,
        head_height + SHOT_END_Y_OFFSETS.get(tier, SHOT_END_Y_OFFSETS[DistanceTier.FAR]),
        FLOOR_CENTER[2] + SHOT_END_Z_OFFSET,
    ])
    return start, end


def has_ball(hand, spine_mid) -> bool:
    """Ball is picked up by reaching down and forward past the spine."""
    if hand is None or spine_mid is None:
        return False
    return bool(hand[1] < spine_mid[1] - BALL_GRAB_DROP and hand[2] < spine_mid[2])


def indicator_scale(goal) -> float:
    return INDICATOR_DEPTH_SCALE / float(goal[2])


def shooting_hand(handedness: Handedness) -> JointType:
    return JointType.HAND_RIGHT if handedness is Handedness.RIGHT else JointType.HAND_LEFT


@dataclass
class ShotOutcome:
    """What one frame of the shot sub-cycle did."""
    step: ShotStep
    hit: bool
    goal: Optional[np.ndarray] = None
    scale: float = 0.0
    committed: bool = False
    points: int = 0
    bonus_ms: int = 0


class ShotGestureTracker:
    """Runs the shot sub-cycle for one hand and one distance tier.

    The flags it advances (ball_in_hand, shot_begin_captured,
    shot_end_captured) and the score/deadline it commits to belong to the
    session passed to ``update``.
    """

    def __init__(self, handedness: Handedness, tier: DistanceTier):
        self.handedness = handedness
        self.tier = tier

    @classmethod
    def for_session(cls, session: GameSession) -> "ShotGestureTracker":
        return cls(session.handedness, session.distance_tier)

    @property
    def hand_joint(self) -> JointType:
        return shooting_hand(self.handedness)

    def goals(self, head_height: float) -> tuple:
        return shot_goals(self.handedness, self.tier, head_height)

    def update(self, session: GameSession, hand, spine_mid) -> ShotOutcome:
        """Evaluate one frame: acquire → begin → end, then commit if ended."""
        if not session.ball_in_hand:
            session.ball_in_hand = has_ball(hand, spine_mid)
            outcome = ShotOutcome(ShotStep.ACQUIRE, session.ball_in_hand)
        elif not session.shot_begin_captured:
            goal = session.shot_start_pos
            session.shot_begin_captured = near_3d(hand, goal, GESTURE_TOLERANCE)
            outcome = ShotOutcome(ShotStep.BEGIN, session.shot_begin_captured,
                                  goal=goal.copy(), scale=indicator_scale(goal))
        else:
            goal = session.shot_end_pos
            session.shot_end_captured = near_3d(hand, goal, GESTURE_TOLERANCE)
            outcome = ShotOutcome(ShotStep.END, session.shot_end_captured,
                                  goal=goal.copy(), scale=indicator_scale(goal))

        if session.shot_end_captured:
            outcome.bonus_ms = ScoreTimer.commit_shot(session)
            outcome.points = session.points_per_shot
            outcome.committed = True
            session.ball_in_hand = False
            session.shot_begin_captured = False
            session.shot_end_captured = False
        return outcome

"""
GameSession — the mutable game state owned by GamePhaseController.
"""

import enum
import numpy as np
from dataclasses import dataclass, field

HEAD_HEIGHT_UNSET: float = -10.0  # sentinel: player not calibrated yet


class Phase(enum.Enum):
    CALIBRATING = "calibrating"
    SELECT_HAND = "select_hand"
    SELECT_DISTANCE = "select_distance"
    PLAYING = "playing"
    ROUND_OVER = "round_over"
    TERMINATED = "terminated"


class Handedness(enum.Enum):
    UNSELECTED = 0
    LEFT = 1
    RIGHT = 2


class DistanceTier(enum.IntEnum):
    """Shot distance; the value is also the points scored per shot."""
    UNSELECTED = 0
    NEAR = 1
    MID = 2
    FAR = 3


@dataclass
class GameSession:
    phase: Phase = Phase.CALIBRATING
    calibrated_head_height: float = HEAD_HEIGHT_UNSET
    handedness: Handedness = Handedness.UNSELECTED
    distance_tier: DistanceTier = DistanceTier.UNSELECTED
    ball_in_hand: bool = False
    shot_begin_captured: bool = False
    shot_end_captured: bool = False
    score: int = 0
    remaining_time_ms: int = 0
    countdown_deadline_ms: int = 0
    countdown_armed: bool = False
    shot_start_pos: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0, 0.0]))
    shot_end_pos: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0, 0.0]))

    @property
    def is_calibrated(self) -> bool:
        return self.calibrated_head_height != HEAD_HEIGHT_UNSET

    @property
    def points_per_shot(self) -> int:
        return int(self.distance_tier)

    def reset_round(self) -> None:
        """Retry: clear shot progress and score; hand, tier and height persist."""
        self.ball_in_hand = False
        self.shot_begin_captured = False
        self.shot_end_captured = False
        self.score = 0

    def copy(self) -> "GameSession":
        s = GameSession(
            phase=self.phase,
            calibrated_head_height=self.calibrated_head_height,
            handedness=self.handedness,
            distance_tier=self.distance_tier,
            ball_in_hand=self.ball_in_hand,
            shot_begin_captured=self.shot_begin_captured,
            shot_end_captured=self.shot_end_captured,
            score=self.score,
            remaining_time_ms=self.remaining_time_ms,
            countdown_deadline_ms=self.countdown_deadline_ms,
            countdown_armed=self.countdown_armed,
        )
        s.shot_start_pos = self.shot_start_pos.copy()
        s.shot_end_pos = self.shot_end_pos.copy()
        return s

    def to_dict(self) -> dict:
        return {
            "phase": self.phase.value,
            "head_height": round(float(self.calibrated_head_height), 4),
            "handedness": self.handedness.name.lower(),
            "distance_tier": int(self.distance_tier),
            "ball_in_hand": self.ball_in_hand,
            "shot_begin": self.shot_begin_captured,
            "shot_end": self.shot_end_captured,
            "score": self.score,
            "remaining_ms": self.remaining_time_ms,
            "deadline_ms": self.countdown_deadline_ms,
            "shot_start_pos": [round(float(v), 4) for v in self.shot_start_pos],
            "shot_end_pos": [round(float(v), 4) for v in self.shot_end_pos],
        }

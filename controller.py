"""
GamePhaseController — game logic layer.

Owns the GameSession and turns every skeletal frame into a phase transition
plus an ordered list of draw commands (plain dicts) for the renderer.

Adapters call:
  ctrl.step(frame, now_ms)    — evaluate one frame; returns (snapshot, commands)
  ctrl.submit_frame(frame)    — hand a frame over from a capture thread
  ctrl.process_pending()      — evaluate the latest submitted frame, if any
  ctrl.pending_events         — commands queued by process_pending(), drained by the adapter
  ctrl.status_msg             — sensor status text
  ctrl.snapshot()             — read-only copy of the session
"""

import logging
import threading
import time
from dataclasses import dataclass

import numpy as np

from regions import (
    DISPLAY_HEIGHT, DISPLAY_WIDTH, FLOOR_CENTER, Projector, Rect,
    hand_engaged, in_rect, within_floor_tolerance,
)
from score_timer import ScoreTimer
from session import DistanceTier, GameSession, Handedness, Phase
from shot_gesture import ShotGestureTracker
from skeleton import FrameEdge, JointType, first_tracked_body, skeleton_draw_data

log = logging.getLogger(__name__)

# ── Status text ───────────────────────────────────────────────────────────────
STATUS_RUNNING = "Running"
STATUS_NO_SENSOR = "No ready Kinect found!"
STATUS_NOT_AVAILABLE = "Kinect not available!"

# ── On-screen advice ──────────────────────────────────────────────────────────
HAND_ADVICE = (
    "Choose right-handed to shoot with your right hand.\n"
    "Choose left-handed to shoot with your left hand."
)
DISTANCE_ADVICE = "Choose your shooting distance\n"
GRAB_ADVICE = "Grab the ball:\n reach forward and down"
READY_ADVICE = "Get ready to shoot!"
SHOOT_ADVICE = "Shoot the ball!"

# Keyed by (sign of head.x - floor.x, sign of head.z - floor.z)
CALIBRATION_HINTS = {
    (-1, -1): "Move to the right and \n backwards",
    (-1, 1): "Move to the right and \n forwards",
    (1, -1): "Move to the left and \n backwards",
    (1, 1): "Move to the left and \n forwards",
}

# ── Draw styles (renderers look these up by name) ─────────────────────────────
WHITE = [255, 255, 255, 255]
BLACK = [0, 0, 0, 255]
STYLES = {
    "bone_tracked":   {"pen": "body", "width": 6},
    "bone_inferred":  {"color": [128, 128, 128, 255], "width": 1},
    "joint_tracked":  {"color": [68, 192, 68, 255]},
    "joint_inferred": {"color": [255, 255, 0, 255]},
    "hand_closed":    {"color": [255, 0, 0, 128]},
    "hand_open":      {"color": [0, 255, 0, 128]},
    "hand_lasso":     {"color": [0, 0, 255, 128]},
    "clip_edge":      {"color": [255, 0, 0, 255]},
    "floor_target":   {"color": [255, 0, 0, 255]},
    "gesture_point":  {"color": [255, 165, 0, 150]},
    "menu_advice":    {"font": "Arial Black", "size": 17, "color": WHITE},
    "floor_advice":   {"font": "Arial Black", "size": 22, "color": WHITE},
    "hud":            {"font": "Arial Black", "size": 28, "color": [255, 215, 0, 255]},
    "grab_advice":    {"font": "Arial Black", "size": 30, "color": BLACK},
    "shot_advice":    {"font": "Arial Black", "size": 25, "color": BLACK},
    "final_score":    {"font": "Arial Black", "size": 36, "color": WHITE},
}
# One pen colour per sensor body slot
BODY_COLORS = ["red", "orange", "green", "blue", "indigo", "violet"]


# ── Draw command builders ─────────────────────────────────────────────────────

def _background(image: str) -> dict:
    return {"type": "draw_background", "image": image}


def _text(text: str, pos, style: str) -> dict:
    return {"type": "draw_text", "text": text, "pos": [float(pos[0]), float(pos[1])],
            "style": style}


def _image(image: str, rect) -> dict:
    return {"type": "draw_image", "image": image, "rect": [float(v) for v in rect]}


def _ellipse(center, rx: float, ry: float, style: str) -> dict:
    return {"type": "draw_ellipse", "center": [float(center[0]), float(center[1])],
            "rx": float(rx), "ry": float(ry), "style": style}


def _rect(rect, style: str) -> dict:
    return {"type": "draw_rect", "rect": [float(v) for v in rect], "style": style}


def calibration_hint(head) -> str:
    """Directional hint towards the floor target; empty when on an axis."""
    if head is None:
        return ""
    sx = int(np.sign(head[0] - FLOOR_CENTER[0]))
    sz = int(np.sign(head[2] - FLOOR_CENTER[2]))
    return CALIBRATION_HINTS.get((sx, sz), "")


# ──────────────────────────────────────────────────────────────────────────────
# Buttons
# ──────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Button:
    """Menu button: ``hit`` is the activation rect, ``art`` the image rect."""
    name: str
    hit: Rect
    art: tuple
    image: str

    @property
    def pressed_image(self) -> str:
        return f"{self.image}_pressed"

    def draw(self, hovered: bool) -> dict:
        return _image(self.pressed_image if hovered else self.image, self.art)


def make_buttons(width: int = DISPLAY_WIDTH) -> dict:
    """All menu buttons for a display ``width`` pixels wide."""
    w = width
    return {
        "left_handed":  Button("left_handed",  Rect(100, 150, 200, 200),
                               (100, 125, 100, 125), "left_handed"),
        "right_handed": Button("right_handed", Rect(w - 200, 150, w - 100, 200),
                               (w - 200, 125, 100, 125), "right_handed"),
        "near":         Button("near", Rect(50, 125, 150, 250),
                               (50, 125, 100, 125), "free_throw"),
        "mid":          Button("mid", Rect(200, 20, 300, 145),
                               (200, 20, 100, 125), "paint"),
        "far":          Button("far", Rect(350, 125, 450, 250),
                               (350, 125, 100, 125), "three_pointer"),
        "retry":        Button("retry", Rect(100, 20, 200, 145),
                               (100, 20, 100, 125), "try_again"),
        "exit":         Button("exit", Rect(w - 200, 20, w - 100, 145),
                               (w - 200, 20, 100, 125), "exit"),
    }


DISTANCE_BUTTONS = [
    ("near", DistanceTier.NEAR),
    ("mid", DistanceTier.MID),
    ("far", DistanceTier.FAR),
]


# ──────────────────────────────────────────────────────────────────────────────
# Frame handoff
# ──────────────────────────────────────────────────────────────────────────────

class FrameSlot:
    """Single-slot, latest-frame-wins handoff from a capture thread."""

    def __init__(self):
        self._lock = threading.Lock()
        self._frame = None
        self.dropped = 0

    def put(self, frame) -> None:
        with self._lock:
            if self._frame is not None:
                self.dropped += 1
            self._frame = frame

    def take(self):
        with self._lock:
            frame, self._frame = self._frame, None
            return frame


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


# ──────────────────────────────────────────────────────────────────────────────
# Controller
# ──────────────────────────────────────────────────────────────────────────────

class GamePhaseController:
    """Game-phase state machine: calibrate → hand → distance → play → over."""

    # ── Class-level constants ─────────────────────────────────────────────────
    HAND_SIZE             = 30.0              # px, hand circle / goal indicator base
    JOINT_THICKNESS       = 3.0               # px, joint dot radius
    CLIP_BOUNDS_THICKNESS = 10.0              # px
    FLOOR_RADII_SEARCHING = (50.0, 8.0)
    FLOOR_RADII_FOUND     = (24.0, 8.0)
    BALL_INDICATOR_SIZE   = 80.0              # px, square at the top-right corner

    def __init__(self, mapping=None, clock=None,
                 width: int = DISPLAY_WIDTH, height: int = DISPLAY_HEIGHT,
                 sensor_available: bool = False):
        self.session = GameSession()
        self.projector = Projector(mapping)
        self.clock = clock or _wall_clock_ms
        self.width = width
        self.height = height
        self.buttons = make_buttons(width)

        self.status_msg = STATUS_RUNNING if sensor_available else STATUS_NO_SENSOR

        # Draw-command queue for adapters that drain instead of using step()'s return
        self.pending_events: list[dict] = []

        self.frame_slot = FrameSlot()
        self._lock = threading.Lock()
        self._handlers = {
            Phase.CALIBRATING:     self._handle_calibrating,
            Phase.SELECT_HAND:     self._handle_select_hand,
            Phase.SELECT_DISTANCE: self._handle_select_distance,
            Phase.PLAYING:         self._handle_playing,
            Phase.ROUND_OVER:      self._handle_round_over,
        }

    @property
    def phase(self) -> Phase:
        return self.session.phase

    @property
    def terminated(self) -> bool:
        return self.session.phase is Phase.TERMINATED

    def snapshot(self) -> GameSession:
        with self._lock:
            return self.session.copy()

    def set_sensor_available(self, available: bool) -> None:
        """Sensor availability only changes the status text."""
        self.status_msg = STATUS_RUNNING if available else STATUS_NOT_AVAILABLE
        log.info("[SENSOR] %s", self.status_msg)

    # ──────────────────────────────────────────────────────────────────────────
    # Main loop
    # ──────────────────────────────────────────────────────────────────────────

    def submit_frame(self, frame) -> None:
        self.frame_slot.put(frame)

    def process_pending(self, now_ms=None):
        """Evaluate the latest submitted frame and queue its commands.

        Returns None if there was none.
        """
        frame = self.frame_slot.take()
        if frame is None:
            return None
        snap, events = self.step(frame, now_ms)
        self.pending_events.extend(events)
        return snap, events

    def step(self, frame, now_ms=None) -> tuple:
        """Evaluate one frame to completion. Returns (snapshot, draw commands)."""
        with self._lock:
            now = self.clock() if now_ms is None else int(now_ms)
            events = self._evaluate(frame, now)
            return self.session.copy(), events

    def _evaluate(self, frame, now: int) -> list:
        s = self.session
        if s.phase is Phase.TERMINATED:
            return []

        events = [_background("menu")]
        body = first_tracked_body(frame)
        if body is None:
            return events

        points = self.projector.project_joints(body)
        events.extend(self._clipped_edges(body))

        next_phase, phase_events = self._handlers[s.phase](body, points, now)
        events.extend(phase_events)
        if next_phase is not s.phase:
            log.info("[PHASE] %s -> %s", s.phase.value, next_phase.value)
            s.phase = next_phase
        return events

    # ──────────────────────────────────────────────────────────────────────────
    # Phase handlers: (body, points, now) -> (next_phase, commands)
    # ──────────────────────────────────────────────────────────────────────────

    def _handle_calibrating(self, body, points, now):
        s = self.session
        events = [self._skeleton(body, points)]
        floor_2d = self.projector.project(FLOOR_CENTER)
        head = body.position(JointType.HEAD)

        on_target = (within_floor_tolerance(body.position(JointType.FOOT_LEFT)) and
                     within_floor_tolerance(body.position(JointType.FOOT_RIGHT)))
        if on_target and head is not None:
            s.calibrated_head_height = float(head[1])
            events.append(_ellipse(floor_2d, *self.FLOOR_RADII_FOUND, "floor_target"))
            log.info("[CAL] head height %.3f m", s.calibrated_head_height)
            return Phase.SELECT_HAND, events

        events.append(_text(calibration_hint(head), (90, 20), "floor_advice"))
        events.append(_ellipse(floor_2d, *self.FLOOR_RADII_SEARCHING, "floor_target"))
        return Phase.CALIBRATING, events

    def _handle_select_hand(self, body, points, now):
        s = self.session
        left = points.get(JointType.HAND_LEFT)
        right = points.get(JointType.HAND_RIGHT)
        left_btn = self.buttons["left_handed"]
        right_btn = self.buttons["right_handed"]

        events = [
            _text(HAND_ADVICE, (10, 20), "menu_advice"),
            self._skeleton(body, points),
            left_btn.draw(in_rect(left, left_btn.hit)),
            right_btn.draw(in_rect(right, right_btn.hit)),
        ]

        if hand_engaged(left, left_btn.hit, body.hand_left_state):
            s.handedness = Handedness.LEFT
        elif hand_engaged(right, right_btn.hit, body.hand_right_state):
            s.handedness = Handedness.RIGHT
        else:
            return Phase.SELECT_HAND, events
        log.info("[MENU] handedness=%s", s.handedness.name)
        return Phase.SELECT_DISTANCE, events

    def _handle_select_distance(self, body, points, now):
        s = self.session
        events = [
            _text(DISTANCE_ADVICE, (10, 20), "menu_advice"),
            self._skeleton(body, points),
        ]
        for name, _tier in DISTANCE_BUTTONS:
            btn = self.buttons[name]
            events.append(btn.draw(self._hovered(points, btn.hit)))

        for name, tier in DISTANCE_BUTTONS:
            if self._engaged(body, points, self.buttons[name].hit):
                s.distance_tier = tier
                ScoreTimer.arm(s, now)
                log.info("[MENU] distance=%s  deadline=%d", tier.name, s.countdown_deadline_ms)
                return Phase.PLAYING, events
        return Phase.SELECT_DISTANCE, events

    def _handle_playing(self, body, points, now):
        s = self.session
        if ScoreTimer.tick(s, now) <= 0:
            log.info("[GAME] time up, final score %d", s.score)
            return Phase.ROUND_OVER, self._round_over_screen(body, points)

        tracker = ShotGestureTracker.for_session(s)
        s.shot_start_pos, s.shot_end_pos = tracker.goals(s.calibrated_head_height)

        events = [
            _background("court"),
            self._skeleton(body, points),
            _text(f"Points: {s.score}    Time: {ScoreTimer.display(s, now)}", (20, 10), "hud"),
        ]
        indicator = (self.width - self.BALL_INDICATOR_SIZE, 10,
                     self.BALL_INDICATOR_SIZE, self.BALL_INDICATOR_SIZE)
        if not s.ball_in_hand:
            events.append(_text(GRAB_ADVICE, (20, self.height - 120), "grab_advice"))
            events.append(_image("no_ball", indicator))
        else:
            events.append(_image("ball", indicator))
            advice = SHOOT_ADVICE if s.shot_begin_captured else READY_ADVICE
            events.append(_text(advice, (20, self.height - 100), "shot_advice"))

        outcome = tracker.update(s, body.position(tracker.hand_joint),
                                 body.position(JointType.SPINE_MID))
        if outcome.goal is not None:
            r = outcome.scale * self.HAND_SIZE
            events.append(_ellipse(self.projector.project(outcome.goal), r, r, "gesture_point"))
        return Phase.PLAYING, events

    def _handle_round_over(self, body, points, now):
        s = self.session
        events = self._round_over_screen(body, points)

        if self._engaged(body, points, self.buttons["retry"].hit):
            s.reset_round()
            ScoreTimer.rearm(s, now)
            log.info("[GAME] retry  deadline=%d", s.countdown_deadline_ms)
            return Phase.PLAYING, events
        if self._engaged(body, points, self.buttons["exit"].hit):
            events.append({"type": "close"})
            return Phase.TERMINATED, events
        return Phase.ROUND_OVER, events

    # ──────────────────────────────────────────────────────────────────────────
    # Helpers
    # ──────────────────────────────────────────────────────────────────────────

    def _round_over_screen(self, body, points) -> list:
        retry = self.buttons["retry"]
        exit_btn = self.buttons["exit"]
        return [
            _background("game_over"),
            _text(f"Final score: {self.session.score}", (70, 250), "final_score"),
            self._skeleton(body, points),
            retry.draw(self._hovered(points, retry.hit)),
            exit_btn.draw(self._hovered(points, exit_btn.hit)),
        ]

    @staticmethod
    def _hovered(points, rect) -> bool:
        return (in_rect(points.get(JointType.HAND_RIGHT), rect) or
                in_rect(points.get(JointType.HAND_LEFT), rect))

    @staticmethod
    def _engaged(body, points, rect) -> bool:
        return (hand_engaged(points.get(JointType.HAND_RIGHT), rect, body.hand_right_state) or
                hand_engaged(points.get(JointType.HAND_LEFT), rect, body.hand_left_state))

    def _skeleton(self, body, points) -> dict:
        cmd = {"type": "draw_skeleton", "body_index": body.index,
               "color": BODY_COLORS[body.index % len(BODY_COLORS)]}
        cmd.update(skeleton_draw_data(body, points, self.JOINT_THICKNESS, self.HAND_SIZE))
        return cmd

    def _clipped_edges(self, body) -> list:
        w, h, t = self.width, self.height, self.CLIP_BOUNDS_THICKNESS
        edges = body.clipped_edges
        out = []
        if edges & FrameEdge.BOTTOM:
            out.append(_rect((0, h - t, w, t), "clip_edge"))
        if edges & FrameEdge.TOP:
            out.append(_rect((0, 0, w, t), "clip_edge"))
        if edges & FrameEdge.LEFT:
            out.append(_rect((0, 0, t, h), "clip_edge"))
        if edges & FrameEdge.RIGHT:
            out.append(_rect((w - t, 0, t, h), "clip_edge"))
        return out

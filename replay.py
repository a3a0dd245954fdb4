"""
Scripted sessions and frame recording.

A script is a .py file defining ``SCRIPT``::

    SCRIPT = {
        "head_y": 0.6,
        "steps": [
            {"pose": "stand", "dx": 0.4, "frames": 10},
            {"pose": "stand", "frames": 2},
            {"pose": "press", "button": "right_handed", "frames": 1},
            {"pose": "press", "button": "far", "hand": "left", "frames": 1},
            {"pose": "grab", "frames": 1},
            {"pose": "shot_start", "frames": 1},
            {"pose": "shot_end", "frames": 1},
            {"pose": "empty", "frames": 5},
        ],
    }

ScriptPlayer turns it into one frame per tick; FrameRecorder writes the
player's joints of every ingested frame to CSV.
"""

import csv
import importlib.util
import logging
import os
from pathlib import Path

from pose_presets import NEUTRAL_HEAD_Y, PosePreset
from session import DistanceTier, GameSession, Handedness
from shot_gesture import shot_goals
from skeleton import FrameEdge, HandState, JointType, first_tracked_body

log = logging.getLogger(__name__)

POSES = ("stand", "press", "grab", "shot_start", "shot_end", "empty")


# ──────────────────────────────────────────────────────────────────────────────
# Script loading
# ──────────────────────────────────────────────────────────────────────────────

def collect_script_files(scripts_dir="scripts") -> list:
    """Sorted list of .py files in ``scripts_dir``."""
    d = Path(scripts_dir)
    if not d.is_dir():
        return []
    return sorted(p for p in d.glob("*.py") if not p.name.startswith("_"))


def load_script_file(path) -> dict:
    """Import a script file and return its SCRIPT dict. Raises ValueError."""
    abs_path = os.path.abspath(path)
    if not os.path.exists(abs_path):
        raise ValueError(f"Script not found: {abs_path}")
    spec = importlib.util.spec_from_file_location("_user_session_script", abs_path)
    mod = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(mod)
    except Exception as exc:
        raise ValueError(f"Script error: {exc}") from exc
    script = getattr(mod, "SCRIPT", None)
    if not isinstance(script, dict):
        raise ValueError(f"No SCRIPT dict in {os.path.basename(abs_path)}")
    return script


# ──────────────────────────────────────────────────────────────────────────────
# Playback
# ──────────────────────────────────────────────────────────────────────────────

class ScriptPlayer:
    """Yields one synthetic frame per call from a SCRIPT dict."""

    def __init__(self, script: dict, buttons: dict):
        self.head_y = float(script.get("head_y", NEUTRAL_HEAD_Y))
        self.buttons = buttons
        self.ticks = self._expand(script.get("steps"))
        self._i = 0

    def _expand(self, steps) -> list:
        if not isinstance(steps, list) or not steps:
            raise ValueError("SCRIPT needs a non-empty 'steps' list")
        ticks = []
        for n, step in enumerate(steps):
            if not isinstance(step, dict):
                raise ValueError(f"step {n}: expected a dict, got {step!r}")
            frames = step.get("frames", 1)
            if isinstance(frames, bool) or not isinstance(frames, int):
                raise ValueError(f"step {n}: 'frames' must be an integer, got {frames!r}")
            pose = step.get("pose")
            if pose not in POSES:
                raise ValueError(f"step {n}: unknown pose {pose!r}")
            if pose == "press" and step.get("button") not in self.buttons:
                raise ValueError(f"step {n}: unknown button {step.get('button')!r}")
            if str(step.get("state", "closed")).upper() not in HandState.__members__:
                raise ValueError(f"step {n}: unknown hand state {step.get('state')!r}")
            ticks.extend([step] * max(1, frames))
        return ticks

    @property
    def done(self) -> bool:
        return self._i >= len(self.ticks)

    def __len__(self):
        return len(self.ticks)

    def next_frame(self, session: GameSession) -> list:
        """Frame for the next tick; ``session`` supplies hand, tier and goals."""
        if self.done:
            return []
        step = self.ticks[self._i]
        self._i += 1
        return self._build(step, session)

    def _build(self, step: dict, session: GameSession) -> list:
        pose = step["pose"]
        if pose == "empty":
            return []

        head_y = float(step.get("head_y", self.head_y))
        side = step.get("hand") or (
            "left" if session.handedness is Handedness.LEFT else "right")
        stand_kw = {"head_y": head_y,
                    "dx": float(step.get("dx", 0.0)),
                    "dz": float(step.get("dz", 0.0))}

        if pose == "stand":
            body = PosePreset.standing(**stand_kw)
        elif pose == "press":
            state = HandState[str(step.get("state", "closed")).upper()]
            body = PosePreset.pressing(self.buttons[step["button"]], side, state, **stand_kw)
        elif pose == "grab":
            body = PosePreset.grabbing(side, **stand_kw)
        else:
            tier = session.distance_tier
            if tier is DistanceTier.UNSELECTED:
                tier = DistanceTier.NEAR
            start, end = shot_goals(session.handedness, tier, session.calibrated_head_height)
            goal = start if pose == "shot_start" else end
            body = PosePreset.at_goal(goal, side, **stand_kw)
        return [body]


# ──────────────────────────────────────────────────────────────────────────────
# Recording
# ──────────────────────────────────────────────────────────────────────────────

class FrameRecorder:
    """Buffers the player's joints per frame and writes them as CSV on stop()."""

    def __init__(self):
        self.active = False
        self.path = ""
        self.rows: list = []
        self._t0 = None

    @staticmethod
    def header() -> list:
        cols = ["t_ms"]
        for jt in JointType:
            n = jt.sdk_name
            cols += [f"{n}_x", f"{n}_y", f"{n}_z", f"{n}_state"]
        cols += ["hand_left", "hand_right", "clipped"]
        return cols

    def start(self, path: str) -> None:
        self.active = True
        self.path = path
        self.rows = []
        self._t0 = None
        log.info("[REC] Recording started → %s", path)

    def record(self, frame, now_ms: int) -> None:
        if not self.active:
            return
        if self._t0 is None:
            self._t0 = now_ms
        row = [str(int(now_ms - self._t0))]
        body = first_tracked_body(frame)
        for jt in JointType:
            joint = body.joints.get(jt) if body is not None else None
            if joint is None:
                row += ["", "", "", ""]
            else:
                x, y, z = joint.position
                row += [f"{x:.6f}", f"{y:.6f}", f"{z:.6f}", joint.tracking_state.name]
        if body is None:
            row += ["", "", ""]
        else:
            clipped = "|".join(e.name for e in (FrameEdge.RIGHT, FrameEdge.LEFT,
                                                FrameEdge.TOP, FrameEdge.BOTTOM)
                               if body.clipped_edges & e)
            row += [body.hand_left_state.name, body.hand_right_state.name, clipped]
        self.rows.append(row)

    def stop(self) -> int:
        """Write the buffered rows. Returns the number of frames written."""
        written = 0
        try:
            with open(self.path, "w", newline="", encoding="utf-8") as f:
                writer = csv.writer(f)
                writer.writerow(self.header())
                writer.writerows(self.rows)
            written = len(self.rows)
            log.info("[REC] Saved %d frames → %s", written, self.path)
        except OSError as e:
            log.error("[REC] Write failed: %s", e)
        self.active = False
        self.rows = []
        self._t0 = None
        return written

"""
Replay tests — bundled scripts drive a full game, bad scripts are rejected and
the recorder writes one CSV row per ingested frame.
"""

import sys
import os
import csv
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from controller import GamePhaseController
from pose_presets import PosePreset
from replay import FrameRecorder, ScriptPlayer, collect_script_files, load_script_file
from session import DistanceTier, Handedness, Phase
from skeleton import FrameEdge, HandState, JointType

SCRIPTS_DIR = os.path.join(os.path.dirname(__file__), "..", "scripts")
T0 = 5_000
FRAME_MS = 33


def play(name):
    ctrl = GamePhaseController(clock=lambda: T0)
    script = load_script_file(os.path.join(SCRIPTS_DIR, f"{name}.py"))
    player = ScriptPlayer(script, ctrl.buttons)
    now = T0
    while not player.done:
        ctrl.step(player.next_frame(ctrl.snapshot()), now)
        now += FRAME_MS
    return ctrl


class TestBundledScripts:

    def test_scripts_are_listed(self):
        names = [p.stem for p in collect_script_files(SCRIPTS_DIR)]
        assert {"free_throw_right", "three_pointer_left", "calibration_walk"} <= set(names)

    def test_free_throw_right(self):
        ctrl = play("free_throw_right")
        s = ctrl.session
        assert s.phase is Phase.PLAYING
        assert s.handedness is Handedness.RIGHT
        assert s.distance_tier is DistanceTier.NEAR
        assert s.score == 3

    def test_three_pointer_left(self):
        ctrl = play("three_pointer_left")
        s = ctrl.session
        assert s.handedness is Handedness.LEFT
        assert s.distance_tier is DistanceTier.FAR
        assert s.calibrated_head_height == pytest.approx(0.75)
        assert s.score == 6

    def test_calibration_walk(self):
        ctrl = play("calibration_walk")
        assert ctrl.phase is Phase.SELECT_HAND


class TestScriptValidation:

    def _write(self, tmp_path, text):
        p = tmp_path / "bad.py"
        p.write_text(text, encoding="utf-8")
        return str(p)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValueError, match="not found"):
            load_script_file(str(tmp_path / "nope.py"))

    def test_syntax_error(self, tmp_path):
        with pytest.raises(ValueError, match="Script error"):
            load_script_file(self._write(tmp_path, "SCRIPT = {\n"))

    def test_no_script_dict(self, tmp_path):
        with pytest.raises(ValueError, match="No SCRIPT"):
            load_script_file(self._write(tmp_path, "STEPS = []\n"))

    @pytest.mark.parametrize("steps", [
        [],
        [{"pose": "dance"}],
        [{"pose": "press", "button": "pause"}],
        [{"pose": "press", "button": "far", "state": "fist"}],
        ["stand"],
        [{"pose": "stand", "frames": None}],
        [{"pose": "stand", "frames": "3"}],
    ])
    def test_bad_steps(self, steps):
        buttons = GamePhaseController().buttons
        with pytest.raises(ValueError):
            ScriptPlayer({"steps": steps}, buttons)

    def test_frames_expand(self):
        buttons = GamePhaseController().buttons
        player = ScriptPlayer({"steps": [{"pose": "stand", "frames": 4},
                                         {"pose": "empty"}]}, buttons)
        assert len(player) == 5


class TestFrameRecorder:

    def test_records_player_joints(self, tmp_path):
        path = tmp_path / "session.csv"
        body = PosePreset.standing()
        body.hand_right_state = HandState.CLOSED
        body.clipped_edges = FrameEdge.LEFT | FrameEdge.BOTTOM

        rec = FrameRecorder()
        rec.start(str(path))
        rec.record([body], 1_000)
        rec.record([], 1_033)
        assert rec.stop() == 2
        assert not rec.active

        with open(path, newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))
        header = rows[0]
        assert header == FrameRecorder.header()
        assert len(header) == 1 + 25 * 4 + 3

        first = dict(zip(header, rows[1]))
        assert first["t_ms"] == "0"
        assert float(first["Head_y"]) == pytest.approx(0.6)
        assert first["Head_state"] == "TRACKED"
        assert first["hand_right"] == "CLOSED"
        assert first["clipped"] == "LEFT|BOTTOM"

        second = dict(zip(header, rows[2]))
        assert second["t_ms"] == "33"
        assert second["Head_x"] == ""

    def test_inactive_recorder_ignores_frames(self):
        rec = FrameRecorder()
        rec.record([PosePreset.standing()], 0)
        assert rec.rows == []

    def test_write_failure_returns_zero(self, tmp_path):
        rec = FrameRecorder()
        rec.start(str(tmp_path))            # a directory, not a file
        rec.record([PosePreset.standing()], 0)
        assert rec.stop() == 0
        assert not rec.active

    def test_missing_joint_leaves_blank_columns(self, tmp_path):
        path = tmp_path / "s.csv"
        rec = FrameRecorder()
        rec.start(str(path))
        rec.record([PosePreset.without(PosePreset.standing(), JointType.HEAD)], 0)
        rec.stop()
        with open(path, newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))
        row = dict(zip(rows[0], rows[1]))
        assert row["Head_x"] == "" and row["Neck_x"] != ""

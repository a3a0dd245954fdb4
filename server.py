"""
Hoops Web Server — sensor/renderer adapter (FastAPI + WebSocket)

A sensor bridge pushes decoded body frames over the WebSocket; the game loop
evaluates the latest one at the sensor's frame rate and broadcasts the
resulting draw commands, status text and session state to every client.
"""

import asyncio
import json
import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, WebSocket, WebSocketDisconnect

from controller import BODY_COLORS, STYLES, GamePhaseController
from regions import DISPLAY_HEIGHT, DISPLAY_WIDTH
import regions as _regions
from replay import FrameRecorder, ScriptPlayer, collect_script_files, load_script_file
import score_timer as _timer
import shot_gesture as _gesture
from skeleton import frame_from_dicts

log = logging.getLogger(__name__)

SCRIPTS_DIR = Path(__file__).resolve().parent / "scripts"

# ── Controller ──────────────────────────────────────────────────────────────

ctrl = GamePhaseController()
recorder = FrameRecorder()
player: ScriptPlayer | None = None


# ── Lifespan (startup/shutdown) ─────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    task = asyncio.create_task(game_loop())
    yield
    task.cancel()
    if recorder.active:
        recorder.stop()


app = FastAPI(lifespan=lifespan)

clients: list[WebSocket] = []

# ── Game params (live-tunable module constants) ─────────────────────────────

GAME_PARAMS = [
    (_regions, "FLOOR_TOLERANCE",   "Floor Tol.",    0.05,  0.6,     0.01),
    (_gesture, "GESTURE_TOLERANCE", "Gesture Tol.",  0.01,  0.2,     0.005),
    (_gesture, "BALL_GRAB_DROP",    "Grab Drop",     0.0,   0.4,     0.01),
    (_timer,   "COUNTDOWN_MS",      "Round (ms)",    5000,  120000,  5000),
]

PARAM_DEFAULTS = {attr: getattr(mod, attr) for mod, attr, *_ in GAME_PARAMS}

# ── Async game loop ─────────────────────────────────────────────────────────

TARGET_FPS = 30           # body frame rate of the sensor
FRAME_DT = 1.0 / TARGET_FPS


async def game_loop():
    """Evaluate the latest frame ~30 times a second and broadcast the result."""
    global player
    last_status = None

    while True:
        now = time.perf_counter()

        # 1. Scripted session feeds the slot like a sensor would
        if player is not None:
            if player.done:
                log.info("[SCRIPT] finished")
                ctrl.status_msg = "Script finished."
                player = None
            else:
                _ingest(player.next_frame(ctrl.snapshot()))

        # 2. Evaluate the latest frame (older ones were dropped)
        result = ctrl.process_pending()

        # 3. Drain queued commands, broadcast to clients
        if result is not None or ctrl.status_msg != last_status:
            last_status = ctrl.status_msg
            frame_msg = _build_frame_message()
            if clients:
                await _broadcast(frame_msg)

        elapsed = time.perf_counter() - now
        sleep_time = FRAME_DT - elapsed
        if sleep_time > 0:
            await asyncio.sleep(sleep_time)
        else:
            await asyncio.sleep(0)


async def _broadcast(text: str) -> None:
    dead: list[WebSocket] = []
    for ws in clients:
        try:
            await ws.send_text(text)
        except Exception:
            dead.append(ws)
    for ws in dead:
        if ws in clients:
            clients.remove(ws)


def _ingest(frame) -> None:
    recorder.record(frame, ctrl.clock())
    ctrl.submit_frame(frame)


def _build_frame_message() -> str:
    """Serialize drained draw commands + status + session into one frame message."""
    events = list(ctrl.pending_events)
    ctrl.pending_events.clear()

    frame = {
        "type": "frame",
        "events": events,
        "status": ctrl.status_msg,
        "session": ctrl.snapshot().to_dict(),
        "dropped": ctrl.frame_slot.dropped,
    }
    return json.dumps(frame, separators=(',', ':'))


def _init_payload() -> dict:
    return {
        "type": "init",
        "display_width": DISPLAY_WIDTH,
        "display_height": DISPLAY_HEIGHT,
        "styles": STYLES,
        "body_colors": BODY_COLORS,
        "status": ctrl.status_msg,
        "scripts": [p.stem for p in collect_script_files(SCRIPTS_DIR)],
    }


# ── Params helpers ──────────────────────────────────────────────────────────

def _get_params_data() -> list:
    result = []
    for mod, attr, label, mn, mx, step in GAME_PARAMS:
        result.append({
            "attr": attr, "label": label,
            "value": round(getattr(mod, attr), 6),
            "min": mn, "max": mx, "step": step,
        })
    return result


def _adjust_param(idx: int, direction: int, fine: bool):
    """Nudge one param by its step (a tenth with ``fine``). Returns the new value."""
    if not 0 <= idx < len(GAME_PARAMS):
        return None
    mod, attr, label, mn, mx, step = GAME_PARAMS[idx]
    s = step / 10.0 if fine else step
    cur = getattr(mod, attr)
    new_val = max(mn, min(mx, cur + direction * s))
    if isinstance(cur, int):
        new_val = int(round(new_val))
    setattr(mod, attr, new_val)
    return new_val


def _reset_params() -> None:
    for mod, attr, *_ in GAME_PARAMS:
        setattr(mod, attr, PARAM_DEFAULTS[attr])


# ── Command handlers ────────────────────────────────────────────────────────

def _handle_frame(msg: dict) -> None:
    try:
        frame = frame_from_dicts(msg.get("bodies"))
    except ValueError as exc:
        log.warning("[WS] dropped malformed frame: %s", exc)
        return
    _ingest(frame)


def _run_script(name: str) -> None:
    global player
    path = SCRIPTS_DIR / f"{Path(name).stem}.py"
    try:
        script = load_script_file(str(path))
        player = ScriptPlayer(script, ctrl.buttons)
    except ValueError as exc:
        ctrl.status_msg = str(exc)
        log.warning("[SCRIPT] %s", exc)
        return
    ctrl.status_msg = f"Script: {path.stem} ({len(player)} frames)"
    log.info("[SCRIPT] running %s", path)


# ── WebSocket endpoint ──────────────────────────────────────────────────────

@app.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    await ws.accept()
    clients.append(ws)
    await ws.send_text(json.dumps(_init_payload()))

    try:
        while True:
            data = await ws.receive_text()
            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                continue
            if not isinstance(msg, dict):
                continue

            cmd = msg.get("cmd", "")
            if cmd == "frame":
                _handle_frame(msg)
            elif cmd == "sensor":
                ctrl.set_sensor_available(bool(msg.get("available", False)))
            elif cmd == "get_state":
                await ws.send_text(json.dumps({
                    "type": "state",
                    "data": ctrl.snapshot().to_dict(),
                }))
            elif cmd == "get_params":
                await ws.send_text(json.dumps({
                    "type": "params",
                    "data": _get_params_data(),
                }))
            elif cmd == "adjust_param":
                idx = int(msg.get("index", 0))
                new_val = _adjust_param(idx, int(msg.get("direction", 0)),
                                        bool(msg.get("fine", False)))
                if new_val is not None:
                    await ws.send_text(json.dumps({
                        "type": "param_update",
                        "index": idx,
                        "value": round(new_val, 6),
                    }))
            elif cmd == "reset_params":
                _reset_params()
                await ws.send_text(json.dumps({
                    "type": "params",
                    "data": _get_params_data(),
                }))
            elif cmd == "run_script":
                _run_script(str(msg.get("name", "")))
            elif cmd == "record_start":
                recorder.start(str(msg.get("file", f"session_{int(time.time())}.csv")))
            elif cmd == "record_stop":
                if recorder.active:
                    saved = recorder.path
                    count = recorder.stop()
                    await ws.send_text(json.dumps({
                        "type": "session_saved", "file": saved, "frames": count,
                    }))
    except WebSocketDisconnect:
        pass
    finally:
        if ws in clients:
            clients.remove(ws)


@app.get("/")
async def root():
    return _init_payload()


# ── Run with uvicorn ────────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(message)s")
    uvicorn.run("server:app", host="0.0.0.0", port=8000, reload=False)

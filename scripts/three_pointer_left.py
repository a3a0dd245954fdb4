"""Three-pointers, left hand: taller player, far distance, two shots."""

SCRIPT = {
    "head_y": 0.75,
    "steps": [
        {"pose": "stand", "frames": 5},
        {"pose": "press", "button": "left_handed", "hand": "left", "frames": 1},
        {"pose": "stand", "frames": 10},
        {"pose": "press", "button": "far", "hand": "left", "frames": 1},
        {"pose": "stand", "frames": 5},

        {"pose": "grab", "frames": 2},
        {"pose": "shot_start", "frames": 2},
        {"pose": "shot_end", "frames": 1},
        {"pose": "stand", "frames": 5},

        {"pose": "grab", "frames": 2},
        {"pose": "shot_start", "frames": 2},
        {"pose": "shot_end", "frames": 1},
        {"pose": "stand", "frames": 5},
    ],
}

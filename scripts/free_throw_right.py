"""Free throws, right hand: calibrate, pick near, make three shots."""

SCRIPT = {
    "head_y": 0.6,
    "steps": [
        {"pose": "stand", "dx": 0.5, "dz": 0.5, "frames": 15},
        {"pose": "stand", "frames": 5},
        {"pose": "press", "button": "right_handed", "hand": "right", "frames": 1},
        {"pose": "stand", "frames": 10},
        {"pose": "press", "button": "near", "hand": "right", "frames": 1},
        {"pose": "stand", "frames": 10},

        {"pose": "grab", "frames": 3},
        {"pose": "shot_start", "frames": 3},
        {"pose": "shot_end", "frames": 1},
        {"pose": "stand", "frames": 10},

        {"pose": "grab", "frames": 3},
        {"pose": "shot_start", "frames": 3},
        {"pose": "shot_end", "frames": 1},
        {"pose": "stand", "frames": 10},

        {"pose": "grab", "frames": 3},
        {"pose": "shot_start", "frames": 3},
        {"pose": "shot_end", "frames": 1},
        {"pose": "stand", "frames": 10},
    ],
}

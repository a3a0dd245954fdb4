"""
ScoreTimer — countdown clock and score arithmetic over a GameSession.

Holds no state of its own: the deadline, the arm latch and the score all live
in the session.  Times are integer milliseconds from the caller's clock.
"""

import logging

from session import GameSession

log = logging.getLogger(__name__)

# ── Runtime-editable behavior constants ───────────────────────────────────────
COUNTDOWN_MS: int = 30000           # length of one round (ms)


class ScoreTimer:
    """Static helpers; every method takes the session it works on."""

    @staticmethod
    def arm(session: GameSession, now_ms: int) -> bool:
        """Start the countdown once. Returns False if it was already armed."""
        if session.countdown_armed:
            return False
        session.countdown_deadline_ms = int(now_ms) + COUNTDOWN_MS
        session.remaining_time_ms = COUNTDOWN_MS
        session.countdown_armed = True
        return True

    @staticmethod
    def rearm(session: GameSession, now_ms: int) -> None:
        """Retry: drop the latch and start a fresh countdown."""
        session.countdown_armed = False
        ScoreTimer.arm(session, now_ms)

    @staticmethod
    def tick(session: GameSession, now_ms: int) -> int:
        """Recompute and store the remaining time (may be negative)."""
        session.remaining_time_ms = session.countdown_deadline_ms - int(now_ms)
        return session.remaining_time_ms

    @staticmethod
    def remaining_seconds(session: GameSession, now_ms: int) -> float:
        return max(0, session.countdown_deadline_ms - int(now_ms)) / 1000

    @staticmethod
    def display(session: GameSession, now_ms: int) -> str:
        return f"{ScoreTimer.remaining_seconds(session, now_ms):.1f}"

    @staticmethod
    def bonus_ms(points: int) -> int:
        """Time added per completed shot: points * 1000 / 3, truncated."""
        return int(points) * 1000 // 3

    @staticmethod
    def commit_shot(session: GameSession) -> int:
        """Add the tier's points and its time bonus. Returns the bonus in ms."""
        points = session.points_per_shot
        bonus = ScoreTimer.bonus_ms(points)
        session.score += points
        session.countdown_deadline_ms += bonus
        log.info("[SHOT] +%d pts (score=%d)  +%d ms", points, session.score, bonus)
        return bonus

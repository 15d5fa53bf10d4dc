from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from .geometry import Pos


@dataclass(frozen=True)
class Settings:
    field_width: int = 10
    field_height: int = 20
    tick: int = 10  # ms between timer ticks
    lock_delay: int = 500  # ms
    lock_delay_reset_count: int = 15
    spawn_pos: Pos = Pos(3, -1)
    gravity: Pos = Pos(0, 1)
    lines_per_level: int = 10
    level_start: int = 1
    level_max: int = 20
    target_fps: int = 60


@dataclass(frozen=True)
class ScoringRules:
    line_clear_scores: tuple[int, int, int, int] = (100, 300, 500, 800)
    clear_actions: tuple[str, str, str, str] = ("SINGLE", "DOUBLE", "TRIPLE", "TETRIS")
    combo: int = 50
    soft_drop: int = 1
    hard_drop: int = 2  # per row descended

    def score_for_lines(self, lines: int) -> int:
        if lines <= 0:
            return 0
        return self.line_clear_scores[min(lines, len(self.line_clear_scores)) - 1]

    def clear_action(self, lines: int) -> Optional[str]:
        if lines <= 0:
            return None
        return self.clear_actions[min(lines, len(self.clear_actions)) - 1]

    def score_for_clear(self, lines: int, combo_before: int, level: int) -> int:
        return (self.score_for_lines(lines) + self.combo * combo_before) * level


# Frames per row at each level, out of Settings.target_fps.
GRAVITY_LEVEL_TABLE: Dict[int, int] = {
    1: 43,
    2: 38,
    3: 33,
    4: 28,
    5: 23,
    6: 18,
    7: 13,
    8: 8,
    9: 6,
    10: 5,
    11: 5,
    12: 5,
    13: 4,
    14: 4,
    15: 4,
    16: 3,
    17: 3,
    18: 3,
    19: 2,
    20: 2,
}

SETTINGS = Settings()
SCORING = ScoringRules()


def clamp_level(level: int, settings: Settings = SETTINGS) -> int:
    return max(settings.level_start, min(settings.level_max, level))


def get_gravity(level: int) -> int:
    return GRAVITY_LEVEL_TABLE[clamp_level(level)]


def gravity_interval_ms(level: int, settings: Settings = SETTINGS) -> float:
    return get_gravity(level) / settings.target_fps * 1000


def level_for_rows(rows_cleared: int, settings: Settings = SETTINGS) -> int:
    return min(settings.level_max, settings.level_start + rows_cleared // settings.lines_per_level)

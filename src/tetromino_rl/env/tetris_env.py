from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Optional, Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from tetromino_rl.game import (
    SETTINGS,
    Effect,
    GameState,
    HardDrop,
    Hold,
    Rotate,
    SoftDrop,
    Tick,
    Translate,
    TetrominoType,
    get_fresh_state,
    reduce,
)

logger = logging.getLogger(__name__)

EMPTY_HOLD = len(TetrominoType)


class Action(IntEnum):
    NONE = 0
    LEFT = 1
    RIGHT = 2
    ROTATE_CW = 3
    ROTATE_CCW = 4
    SOFT_DROP = 5
    HARD_DROP = 6
    HOLD = 7


ACTION_EFFECTS: Dict[Action, Optional[Effect]] = {
    Action.NONE: None,
    Action.LEFT: Translate(-1, 0),
    Action.RIGHT: Translate(1, 0),
    Action.ROTATE_CW: Rotate(1),
    Action.ROTATE_CCW: Rotate(-1),
    Action.SOFT_DROP: SoftDrop(0, 1),
    Action.HARD_DROP: HardDrop(),
    Action.HOLD: Hold(),
}


@dataclass
class GameConfig:
    frame_ms: int = 50  # simulated time advanced after every action
    max_episode_steps: int = 10000


def board_observation(s: GameState) -> np.ndarray:
    """Field as int8: 0 empty, 1 locked block, 2 falling piece."""
    board = (s.play_field.grid.filled != 0).astype(np.int8)
    if not s.game_end:
        height, width = board.shape
        for x, y in s.active.tetromino.cells():
            if 0 <= y < height and 0 <= x < width:
                board[y, x] = 2
    return board


def render_text(s: GameState) -> str:
    glyphs = {0: "·", 1: "█", 2: "▒"}
    board = board_observation(s)
    lines = ["".join(glyphs[int(v)] for v in row) for row in board]
    m = s.metrics
    lines.append(f"score {m.score}  level {m.level}  lines {m.rows_cleared}")
    return "\n".join(lines)


class TetrisEnv(gym.Env):
    """Drives the rule engine one action at a time.

    Each step applies the chosen effect and then advances the simulated
    clock by `GameConfig.frame_ms` in `Settings.tick` sized Tick effects,
    so gravity and lock delay play out as they would in real time.
    """

    metadata = {"render_modes": ["ansi"], "render_fps": 20}

    def __init__(self, config: Optional[GameConfig] = None, render_mode: Optional[str] = None) -> None:
        super().__init__()
        self.config = config or GameConfig()
        self.render_mode = render_mode

        height, width = SETTINGS.field_height, SETTINGS.field_width
        kinds = len(TetrominoType)
        self.observation_space = spaces.Dict(
            {
                "board": spaces.Box(low=0, high=2, shape=(height, width), dtype=np.int8),
                "active": spaces.Discrete(kinds),
                "next": spaces.Discrete(kinds),
                "hold": spaces.Discrete(kinds + 1),
            }
        )
        self.action_space = spaces.Discrete(len(Action))

        self.state: Optional[GameState] = None
        self._clock = 0
        self._steps = 0

    def _get_obs(self) -> Dict[str, Any]:
        assert self.state is not None
        s = self.state
        held = s.hold.tetromino
        return {
            "board": board_observation(s),
            "active": int(s.active.tetromino.kind),
            "next": int(s.next.tetromino.kind),
            "hold": int(held.kind) if held is not None else EMPTY_HOLD,
        }

    def _get_info(self) -> Dict[str, Any]:
        assert self.state is not None
        m = self.state.metrics
        return {
            "score": m.score,
            "level": m.level,
            "lines_cleared_total": m.rows_cleared,
            "lock_count": m.lock_count,
            "steps": self._steps,
        }

    def reset(self, *, seed: Optional[int] = None, options: Optional[dict] = None) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        super().reset(seed=seed)
        game_seed = seed if seed is not None else int(self.np_random.integers(0, 2**31 - 1))
        logger.debug("reset with game seed %d", game_seed)
        self.state = get_fresh_state(game_seed)
        self._clock = 0
        self._steps = 0
        return self._get_obs(), self._get_info()

    def step(self, action: int):
        assert self.state is not None, "call reset() before step()"
        s = self.state
        before = s.metrics.score

        effect = ACTION_EFFECTS[Action(int(action))]
        if effect is not None:
            s = reduce(s, effect)
        target = self._clock + self.config.frame_ms
        while self._clock < target and not s.game_end:
            self._clock += SETTINGS.tick
            s = reduce(s, Tick(self._clock))

        self.state = s
        self._steps += 1
        terminated = bool(s.game_end)
        truncated = self._steps >= self.config.max_episode_steps
        reward = float(s.metrics.score - before)
        return self._get_obs(), reward, terminated, truncated, self._get_info()

    def render(self) -> Optional[str]:
        if self.render_mode == "ansi" and self.state is not None:
            return render_text(self.state)
        return None

    def close(self) -> None:
        pass

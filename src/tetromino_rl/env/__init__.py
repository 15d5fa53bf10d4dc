"""Gymnasium environments for Tetromino RL."""

from __future__ import annotations

from gymnasium.envs.registration import register

register(
    id="Tetris-10x20-v0",
    entry_point="tetromino_rl.env.tetris_env:TetrisEnv",
)

__all__ = ["Tetris-10x20-v0"]

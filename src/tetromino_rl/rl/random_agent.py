from __future__ import annotations

import argparse
import logging
from typing import Optional, Tuple

import gymnasium as gym

import tetromino_rl.env  # noqa: F401

logger = logging.getLogger(__name__)


def run_random(steps: int = 200, seed: Optional[int] = None) -> Tuple[float, int]:
    env = gym.make("Tetris-10x20-v0")
    env.action_space.seed(seed)
    obs, info = env.reset(seed=seed)
    total_reward = 0.0
    best_score = 0
    for _ in range(steps):
        action = env.action_space.sample()
        obs, reward, terminated, truncated, info = env.step(action)
        total_reward += float(reward)
        best_score = max(best_score, int(info["score"]))
        if terminated or truncated:
            logger.info("episode over: score %d, lines %d", info["score"], info["lines_cleared_total"])
            obs, info = env.reset()
    env.close()
    return total_reward, best_score


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser()
    p.add_argument("--steps", type=int, default=200)
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--log-level", type=str, default="WARNING")
    return p


def main() -> None:
    args = build_parser().parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(name)s %(levelname)s %(message)s")
    total_reward, best_score = run_random(args.steps, args.seed)
    print(f"Random agent total reward: {total_reward:.2f}, best score: {best_score}")


if __name__ == "__main__":  # pragma: no cover
    main()

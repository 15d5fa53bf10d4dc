"""Immutable game snapshot records.

Every field is a frozen dataclass; transitions build new snapshots with
`dataclasses.replace` and never mutate the one they were given.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional

from .geometry import DOWN, UP
from .grid import PlayField, empty_field
from .pieces import Tetromino, TetrominoType, get_tetromino
from .randomizer import BagSequence, new_bag
from .rules import SETTINGS


@dataclass(frozen=True)
class LockTimer:
    ready: bool = False
    timer_start: float = 0
    resetted_count: int = 0


@dataclass(frozen=True)
class ActivePiece:
    tetromino: Tetromino
    ghost: Tetromino
    lock: LockTimer = field(default_factory=LockTimer)


@dataclass(frozen=True)
class NextPiece:
    tetromino: Tetromino
    sequence: BagSequence  # node whose value becomes the following next piece


@dataclass(frozen=True)
class HoldSlot:
    tetromino: Optional[Tetromino] = None
    used: bool = False


@dataclass(frozen=True)
class Metrics:
    score: int = 0
    hi_score: int = 0
    level: int = SETTINGS.level_start
    combo: int = 0
    max_combo: int = 0
    lock_count: int = 0
    rows_cleared: int = 0  # running total
    clear_action: Optional[str] = None
    hold_count: int = 0
    start_time: float = 0
    current_time: float = 0
    end_time: float = 0
    previous_gravitate_time: float = 0


@dataclass(frozen=True)
class GameState:
    active: ActivePiece
    next: NextPiece
    hold: HoldSlot
    play_field: PlayField
    metrics: Metrics
    game_end: bool = False
    game_paused: bool = False


def spawn(letter: str) -> Tetromino:
    return get_tetromino(SETTINGS.spawn_pos, TetrominoType[letter])


def draw_next(sequence: BagSequence) -> NextPiece:
    """Queue the piece `sequence` points at and advance the stream."""
    return NextPiece(spawn(sequence.value), sequence.next())


def get_ghost(play_field: PlayField, tetromino: Tetromino) -> Tetromino:
    """Landing preview: the piece pushed down until it rests, without color."""
    ghost = tetromino.without_color().translate(DOWN)
    while not play_field.is_colliding(ghost):
        ghost = ghost.translate(DOWN)
    return ghost.translate(UP)


def update_ghost(s: GameState) -> GameState:
    ghost = get_ghost(s.play_field, s.active.tetromino)
    return replace(s, active=replace(s.active, ghost=ghost))


def get_fresh_state(seed: int) -> GameState:
    first = new_bag(seed)
    second = first.next()
    active = spawn(first.value)
    s = GameState(
        active=ActivePiece(tetromino=active, ghost=active),
        next=draw_next(second),
        hold=HoldSlot(),
        play_field=empty_field(SETTINGS.field_width, SETTINGS.field_height),
        metrics=Metrics(),
    )
    return update_ghost(s)

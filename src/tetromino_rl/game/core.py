from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from functools import reduce as fold
from typing import Iterable, Iterator, Union

from .geometry import DOWN, Pos
from .grid import clear_filled_rows, empty_field
from .kicks import get_offsets
from .pieces import Tetromino
from .rules import SCORING, SETTINGS, gravity_interval_ms, level_for_rows
from .state import (
    ActivePiece,
    GameState,
    HoldSlot,
    LockTimer,
    Metrics,
    draw_next,
    get_ghost,
    spawn,
    update_ghost,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Translate:
    dx: int
    dy: int

    @property
    def offset(self) -> Pos:
        return Pos(self.dx, self.dy)


@dataclass(frozen=True)
class SoftDrop:
    dx: int = 0
    dy: int = 1

    @property
    def offset(self) -> Pos:
        return Pos(self.dx, self.dy)


@dataclass(frozen=True)
class HardDrop:
    pass


@dataclass(frozen=True)
class Rotate:
    direction: int  # 1 clockwise, -1 counter-clockwise

    def __post_init__(self) -> None:
        if self.direction not in (-1, 1):
            raise ValueError(f"rotation direction must be -1 or 1, got {self.direction}")


@dataclass(frozen=True)
class Hold:
    pass


@dataclass(frozen=True)
class Pause:
    flag: bool


@dataclass(frozen=True)
class Restart:
    pass


@dataclass(frozen=True)
class Tick:
    elapsed: float  # ms since the game started, supplied by the driver


Effect = Union[Translate, SoftDrop, HardDrop, Rotate, Hold, Pause, Restart, Tick]


def colliding(s: GameState, tetromino: Tetromino) -> bool:
    return s.play_field.is_colliding(tetromino)


def grounded(s: GameState) -> bool:
    return colliding(s, s.active.tetromino.translate(DOWN))


def with_active(s: GameState, tetromino: Tetromino) -> GameState:
    return replace(s, active=replace(s.active, tetromino=tetromino))


def with_lock(s: GameState, **changes) -> GameState:
    return replace(s, active=replace(s.active, lock=replace(s.active.lock, **changes)))


def with_metrics(s: GameState, **changes) -> GameState:
    return replace(s, metrics=replace(s.metrics, **changes))


def add_score(s: GameState, points: int) -> GameState:
    return with_metrics(s, score=s.metrics.score + points)


def translate(s: GameState, offset: Pos) -> GameState:
    moved = s.active.tetromino.translate(offset)
    return s if colliding(s, moved) else with_active(s, moved)


def reset_lock(s: GameState) -> GameState:
    return with_lock(s, ready=False, resetted_count=0)


def start_lock_timer(s: GameState) -> GameState:
    return with_lock(s, ready=True, timer_start=s.metrics.current_time)


def reset_lock_timer(s: GameState) -> GameState:
    lock = s.active.lock
    if lock.ready and lock.resetted_count < SETTINGS.lock_delay_reset_count:
        return with_lock(s, timer_start=s.metrics.current_time, resetted_count=lock.resetted_count + 1)
    return s


def update_lock(s: GameState) -> GameState:
    """Arm the lock timer when the piece rests, re-arm it if it already was."""
    if s.active.lock.ready:
        return reset_lock_timer(s)
    return start_lock_timer(s) if grounded(s) else reset_lock(s)


def lock_expired(s: GameState) -> bool:
    lock = s.active.lock
    return (
        lock.ready
        and s.metrics.current_time - lock.timer_start > SETTINGS.lock_delay
        and grounded(s)
    )


def end_game(s: GameState) -> GameState:
    m = s.metrics
    logger.debug("game over: score=%d lines=%d", m.score, m.rows_cleared)
    s = with_metrics(s, end_time=m.current_time, hi_score=max(m.hi_score, m.score))
    return replace(s, game_end=True)


def next_tetromino(s: GameState) -> GameState:
    if colliding(s, s.next.tetromino):
        return end_game(s)
    s = with_active(s, s.next.tetromino)
    return replace(s, next=draw_next(s.next.sequence))


def clear_rows(s: GameState) -> GameState:
    play_field, removed = clear_filled_rows(s.play_field)
    m = s.metrics
    if removed == 0:
        return with_metrics(s, combo=0)
    combo = m.combo + 1
    gained = SCORING.score_for_clear(removed, m.combo, m.level)
    logger.debug("cleared %d rows, combo %d, +%d", removed, combo, gained)
    return replace(
        s,
        play_field=play_field,
        metrics=replace(
            m,
            score=m.score + gained,
            combo=combo,
            max_combo=max(m.max_combo, combo),
            rows_cleared=m.rows_cleared + removed,
            clear_action=SCORING.clear_action(removed),
        ),
    )


def update_level(s: GameState) -> GameState:
    return with_metrics(s, level=level_for_rows(s.metrics.rows_cleared))


def lock(s: GameState) -> GameState:
    """Merge the active piece into the field and bring in the next one."""
    if s.game_end:
        return s
    s = with_metrics(s, lock_count=s.metrics.lock_count + 1)
    s = replace(s, hold=replace(s.hold, used=False))
    s = replace(s, play_field=s.play_field.merge(s.active.tetromino))
    s = reset_lock(s)
    s = clear_rows(s)
    s = update_level(s)
    s = next_tetromino(s)
    s = update_ghost(s)
    return update_lock(s)


def apply_translate(s: GameState, offset: Pos) -> GameState:
    if s.game_end or colliding(s, s.active.tetromino.translate(offset)):
        return s
    return update_ghost(update_lock(translate(s, offset)))


def apply_soft_drop(s: GameState, offset: Pos) -> GameState:
    if s.game_end or colliding(s, s.active.tetromino.translate(offset)):
        return s
    return apply_translate(add_score(s, SCORING.soft_drop), offset)


def apply_hard_drop(s: GameState) -> GameState:
    if s.game_end:
        return s
    current = s.active.tetromino
    landing = get_ghost(s.play_field, current).pos
    rows = landing.y - current.pos.y
    s = with_active(s, current.translate_to(landing))
    return lock(add_score(s, SCORING.hard_drop * rows))


def apply_rotate(s: GameState, direction: int) -> GameState:
    if s.game_end:
        return s
    current = s.active.tetromino
    rotated = current.rotate(direction)
    for offset in get_offsets(current.kind.name, current.rotation_state, rotated.rotation_state):
        candidate = rotated.translate(offset)
        if not colliding(s, candidate):
            return update_lock(update_ghost(with_active(s, candidate)))
    return s


def apply_hold(s: GameState) -> GameState:
    if s.game_end or s.hold.used:
        return s
    held = s.hold.tetromino
    stored = spawn(s.active.tetromino.kind.name)
    if held is None:
        s = with_active(s, s.next.tetromino)
        s = replace(s, next=draw_next(s.next.sequence))
    else:
        s = with_active(s, held)
    logger.debug("hold %s", stored.kind.name)
    s = replace(s, hold=HoldSlot(tetromino=stored, used=True))
    s = with_metrics(s, hold_count=s.metrics.hold_count + 1)
    s = update_ghost(reset_lock(s))
    if colliding(s, s.active.tetromino):
        return end_game(s)
    return update_lock(s)


def apply_pause(s: GameState, flag: bool) -> GameState:
    return replace(s, game_paused=flag)


def apply_restart(s: GameState) -> GameState:
    """Start over after a game over, keeping the hi-score and the piece stream."""
    if not s.game_end:
        return s
    now = s.metrics.current_time
    hi_score = max(s.metrics.hi_score, s.metrics.score)
    logger.debug("restart at %s ms, hi-score %d", now, hi_score)
    promoted = s.next.tetromino
    fresh = GameState(
        active=ActivePiece(tetromino=promoted, ghost=promoted, lock=LockTimer(timer_start=now)),
        next=draw_next(s.next.sequence),
        hold=HoldSlot(),
        play_field=empty_field(SETTINGS.field_width, SETTINGS.field_height),
        metrics=Metrics(
            hi_score=hi_score,
            start_time=now,
            current_time=now,
            previous_gravitate_time=now,
        ),
    )
    return update_ghost(fresh)


def gravitate(s: GameState) -> GameState:
    interval = gravity_interval_ms(s.metrics.level)
    if s.metrics.current_time - s.metrics.previous_gravitate_time <= interval:
        return s
    # Advance by the interval, not to now, so irregular ticks do not drift.
    s = with_metrics(s, previous_gravitate_time=s.metrics.previous_gravitate_time + interval)
    return apply_translate(s, SETTINGS.gravity)


def apply_tick(s: GameState, elapsed: float) -> GameState:
    if not s.game_end and lock_expired(s):
        s = lock(s)
    s = with_metrics(s, current_time=elapsed)
    if s.game_end:
        return s
    return gravitate(s)


def reduce(s: GameState, effect: Effect) -> GameState:
    """Apply one effect. Rejected moves return `s` itself."""
    if isinstance(effect, Translate):
        return apply_translate(s, effect.offset)
    elif isinstance(effect, SoftDrop):
        return apply_soft_drop(s, effect.offset)
    elif isinstance(effect, HardDrop):
        return apply_hard_drop(s)
    elif isinstance(effect, Rotate):
        return apply_rotate(s, effect.direction)
    elif isinstance(effect, Hold):
        return apply_hold(s)
    elif isinstance(effect, Pause):
        return apply_pause(s, effect.flag)
    elif isinstance(effect, Restart):
        return apply_restart(s)
    elif isinstance(effect, Tick):
        return apply_tick(s, effect.elapsed)
    raise TypeError(f"unknown effect {effect!r}")


def reduce_all(s: GameState, effects: Iterable[Effect]) -> GameState:
    return fold(reduce, effects, s)


def iter_states(s: GameState, effects: Iterable[Effect]) -> Iterator[GameState]:
    """Fold effects one by one, yielding every snapshot.

    While the game is paused only Pause and Restart reach the reducer; other
    effects are dropped.
    """
    for effect in effects:
        if s.game_paused and not isinstance(effect, (Pause, Restart)):
            continue
        s = reduce(s, effect)
        yield s

import unittest
from dataclasses import replace

import numpy as np

from tetromino_rl.game import (
    SETTINGS,
    Grid,
    HardDrop,
    Hold,
    Pause,
    PlayField,
    Pos,
    Restart,
    Rotate,
    SoftDrop,
    TetrominoType,
    Tick,
    Translate,
    get_fresh_state,
    get_tetromino,
    iter_states,
    new_bag,
    reduce,
    reduce_all,
)
from tetromino_rl.game.rules import gravity_interval_ms
from tetromino_rl.game.state import HoldSlot, LockTimer, spawn, update_ghost


def field_from(filled):
    filled = np.asarray(filled, dtype=np.int8)
    return PlayField(Pos(0, 0), Grid(filled, np.zeros_like(filled)))


def with_piece(s, tetromino):
    s = replace(s, active=replace(s.active, tetromino=tetromino))
    return update_ghost(s)


def with_field(s, filled):
    return update_ghost(replace(s, play_field=field_from(filled)))


def with_metrics(s, **changes):
    return replace(s, metrics=replace(s.metrics, **changes))


def bottom_row_gap():
    """Empty well whose bottom row is full except columns 6..9."""
    filled = np.zeros((SETTINGS.field_height, SETTINGS.field_width), dtype=np.int8)
    filled[-1, :6] = 1
    return filled


class TestFreshState(unittest.TestCase):
    def test_deterministic(self):
        self.assertEqual(get_fresh_state(7), get_fresh_state(7))

    def test_pieces_come_from_bag(self):
        drawn, _ = new_bag(11).take(3)
        s = get_fresh_state(11)
        self.assertEqual(TetrominoType[drawn[0]], s.active.tetromino.kind)
        self.assertEqual(TetrominoType[drawn[1]], s.next.tetromino.kind)
        self.assertEqual(drawn[2], s.next.sequence.value)
        self.assertEqual(SETTINGS.spawn_pos, s.active.tetromino.pos)

    def test_initial_values(self):
        s = get_fresh_state(0)
        self.assertFalse(s.game_end)
        self.assertFalse(s.game_paused)
        self.assertIsNone(s.hold.tetromino)
        self.assertEqual(1, s.metrics.level)
        self.assertEqual(0, s.metrics.score)
        self.assertEqual((20, 10), (s.play_field.height, s.play_field.width))

    def test_ghost_rests_on_floor(self):
        for seed in range(7):
            s = get_fresh_state(seed)
            ghost = s.active.ghost
            self.assertEqual(19, max(y for _, y in ghost.cells()))
            self.assertEqual(s.active.tetromino.kind, ghost.kind)
            self.assertFalse(np.any(ghost.grid.color))


class TestTranslate(unittest.TestCase):
    def setUp(self):
        self.s = get_fresh_state(0)

    def test_move(self):
        moved = reduce(self.s, Translate(0, 1))
        self.assertEqual(self.s.active.tetromino.pos.add(Pos(0, 1)), moved.active.tetromino.pos)

    def test_rejected(self):
        moved = reduce(self.s, Translate(SETTINGS.field_width + 1, 0))
        self.assertIs(self.s, moved)
        self.assertEqual(self.s.active.tetromino.pos, moved.active.tetromino.pos)

    def test_blocked_by_stack(self):
        filled = np.zeros((20, 10), dtype=np.int8)
        filled[11, 6] = 1
        s = with_field(self.s, filled)
        s = with_piece(s, get_tetromino(Pos(3, 10), TetrominoType.T))
        self.assertIs(s, reduce(s, Translate(1, 0)))
        self.assertIsNot(s, reduce(s, Translate(-1, 0)))

    def test_wall_stops_piece(self):
        s = reduce_all(self.s, [Translate(-1, 0)] * 15)
        cells = s.active.tetromino.cells()
        self.assertEqual(0, min(x for x, _ in cells))

    def test_ghost_follows(self):
        moved = reduce(self.s, Translate(1, 0))
        self.assertEqual(self.s.active.ghost.pos.x + 1, moved.active.ghost.pos.x)

    def test_soft_drop_scores(self):
        dropped = reduce(self.s, SoftDrop(0, 1))
        self.assertEqual(1, dropped.metrics.score)
        self.assertEqual(self.s.active.tetromino.pos.y + 1, dropped.active.tetromino.pos.y)

    def test_soft_drop_rejected_keeps_score(self):
        s = with_piece(self.s, self.s.active.ghost)
        self.assertIs(s, reduce(s, SoftDrop(0, 1)))


class TestRotate(unittest.TestCase):
    def test_rotate(self):
        s = get_fresh_state(0)
        self.assertEqual(1, reduce(s, Rotate(1)).active.tetromino.rotation_state)
        self.assertEqual(3, reduce(s, Rotate(-1)).active.tetromino.rotation_state)

    def test_rotate_back_and_forth(self):
        for seed in range(10):
            s = get_fresh_state(seed)
            back = reduce_all(s, [Rotate(1), Rotate(-1)])
            self.assertEqual(s.active.tetromino.rotation_state, back.active.tetromino.rotation_state)

    def test_wall_kick(self):
        s = get_fresh_state(0)
        t = get_tetromino(Pos(0, 5), TetrominoType.T).rotate(1).translate_to(Pos(-1, 5))
        s = with_piece(s, t)
        rotated = reduce(s, Rotate(1))
        self.assertEqual(2, rotated.active.tetromino.rotation_state)
        self.assertEqual(Pos(0, 5), rotated.active.tetromino.pos)

    def test_no_kick_fits(self):
        filled = np.ones((20, 10), dtype=np.int8)
        for x, y in [(4, 17), (3, 18), (4, 18), (5, 18)]:
            filled[y, x] = 0
        s = with_field(get_fresh_state(0), filled)
        s = with_piece(s, get_tetromino(Pos(3, 17), TetrominoType.T))
        self.assertIs(s, reduce(s, Rotate(1)))
        self.assertIs(s, reduce(s, Rotate(-1)))

    def test_invalid_direction(self):
        with self.assertRaises(ValueError):
            Rotate(2)


class TestHardDrop(unittest.TestCase):
    def test_lands_on_ghost(self):
        for seed in range(7):
            s = get_fresh_state(seed)
            ghost = s.active.ghost
            rows = ghost.pos.y - s.active.tetromino.pos.y
            dropped = reduce(s, HardDrop())
            self.assertEqual(1, dropped.metrics.lock_count)
            self.assertEqual(2 * rows, dropped.metrics.score)
            for x, y in ghost.cells():
                self.assertEqual(1, dropped.play_field.grid.get_fill(Pos(x, y)))
            self.assertEqual(4, int(dropped.play_field.grid.filled.sum()))
            self.assertEqual(s.next.tetromino.kind, dropped.active.tetromino.kind)

    def test_clear_single(self):
        s = with_field(get_fresh_state(0), bottom_row_gap())
        s = with_piece(s, get_tetromino(Pos(5, -1), TetrominoType.I))
        dropped = reduce(s, HardDrop())
        m = dropped.metrics
        self.assertEqual(2 * 18 + 100, m.score)
        self.assertEqual(1, m.rows_cleared)
        self.assertEqual(1, m.combo)
        self.assertEqual(1, m.max_combo)
        self.assertEqual("SINGLE", m.clear_action)
        self.assertEqual(0, int(dropped.play_field.grid.filled.sum()))

    def test_combo_bonus(self):
        s = with_field(get_fresh_state(0), bottom_row_gap())
        s = with_piece(s, get_tetromino(Pos(5, -1), TetrominoType.I))
        first = reduce(s, HardDrop())
        s = with_field(first, bottom_row_gap())
        s = with_piece(s, get_tetromino(Pos(5, -1), TetrominoType.I))
        second = reduce(s, HardDrop())
        self.assertEqual(2, second.metrics.combo)
        self.assertEqual(first.metrics.score + 2 * 18 + (100 + 50 * 1), second.metrics.score)

    def test_lock_without_clear_resets_combo(self):
        s = with_metrics(get_fresh_state(0), combo=3, max_combo=3)
        dropped = reduce(s, HardDrop())
        self.assertEqual(0, dropped.metrics.combo)
        self.assertEqual(3, dropped.metrics.max_combo)

    def test_level_up(self):
        s = with_field(get_fresh_state(0), bottom_row_gap())
        s = with_metrics(s, rows_cleared=9)
        s = with_piece(s, get_tetromino(Pos(5, -1), TetrominoType.I))
        dropped = reduce(s, HardDrop())
        self.assertEqual(10, dropped.metrics.rows_cleared)
        self.assertEqual(2, dropped.metrics.level)
        # the clear is scored at the level it happened on
        self.assertEqual(2 * 18 + 100, dropped.metrics.score)

    def test_level_is_capped(self):
        s = with_field(get_fresh_state(0), bottom_row_gap())
        s = with_metrics(s, rows_cleared=500, level=20)
        s = with_piece(s, get_tetromino(Pos(5, -1), TetrominoType.I))
        self.assertEqual(SETTINGS.level_max, reduce(s, HardDrop()).metrics.level)


def topped_out(seed=0):
    """A J at the spawn point over a stack reaching row 1: locking it ends the game."""
    filled = np.zeros((20, 10), dtype=np.int8)
    filled[1:, :9] = 1
    s = with_field(get_fresh_state(seed), filled)
    return with_piece(s, get_tetromino(Pos(3, -1), TetrominoType.J))


class TestGameOver(unittest.TestCase):
    def test_game_end(self):
        s = with_metrics(topped_out(), score=1000, current_time=4200)
        ended = reduce(s, HardDrop())
        self.assertTrue(ended.game_end)
        self.assertEqual(1000, ended.metrics.hi_score)
        self.assertEqual(4200, ended.metrics.end_time)

    def test_gameplay_effects_are_ignored(self):
        ended = reduce(topped_out(), HardDrop())
        for effect in (Translate(1, 0), SoftDrop(0, 1), HardDrop(), Rotate(1), Hold()):
            self.assertIs(ended, reduce(ended, effect))

    def test_tick_only_moves_clock(self):
        ended = reduce(topped_out(), HardDrop())
        ticked = reduce(ended, Tick(9000))
        self.assertEqual(9000, ticked.metrics.current_time)
        self.assertEqual(ended.active, ticked.active)

    def test_restart(self):
        s = get_fresh_state(0)
        s = replace(with_metrics(s, score=1000, hi_score=0), game_end=True)
        restarted = reduce(s, Restart())
        self.assertEqual(0, restarted.metrics.score)
        self.assertEqual(1000, restarted.metrics.hi_score)
        self.assertFalse(restarted.game_end)

    def test_restart_continues_stream(self):
        ended = reduce(with_metrics(topped_out(), current_time=5000), HardDrop())
        restarted = reduce(ended, Restart())
        self.assertEqual(ended.next.tetromino.kind, restarted.active.tetromino.kind)
        self.assertEqual(TetrominoType[ended.next.sequence.value], restarted.next.tetromino.kind)
        self.assertEqual(0, int(restarted.play_field.grid.filled.sum()))
        m = restarted.metrics
        self.assertEqual((5000, 5000, 5000), (m.start_time, m.current_time, m.previous_gravitate_time))
        self.assertEqual(5000, restarted.active.lock.timer_start)

    def test_restart_while_playing_is_ignored(self):
        s = get_fresh_state(0)
        self.assertIs(s, reduce(s, Restart()))


class TestHold(unittest.TestCase):
    def test_hold_empty_slot(self):
        s = get_fresh_state(3)
        held = reduce(s, Hold())
        self.assertEqual(s.active.tetromino.kind, held.hold.tetromino.kind)
        self.assertEqual(SETTINGS.spawn_pos, held.hold.tetromino.pos)
        self.assertEqual(s.next.tetromino.kind, held.active.tetromino.kind)
        self.assertEqual(TetrominoType[s.next.sequence.value], held.next.tetromino.kind)
        self.assertTrue(held.hold.used)
        self.assertEqual(1, held.metrics.hold_count)

    def test_hold_once_per_piece(self):
        held = reduce(get_fresh_state(3), Hold())
        self.assertIs(held, reduce(held, Hold()))

    def test_swap_after_lock(self):
        held = reduce(get_fresh_state(3), Hold())
        locked = reduce(held, HardDrop())
        self.assertFalse(locked.hold.used)
        swapped = reduce(locked, Hold())
        self.assertEqual(held.hold.tetromino.kind, swapped.active.tetromino.kind)
        self.assertEqual(locked.active.tetromino.kind, swapped.hold.tetromino.kind)
        self.assertEqual(locked.next, swapped.next)
        self.assertEqual(2, swapped.metrics.hold_count)

    def test_hold_resets_lock(self):
        s = get_fresh_state(3)
        s = reduce(s, Translate(0, s.active.ghost.pos.y - s.active.tetromino.pos.y))
        self.assertTrue(s.active.lock.ready)
        held = reduce(s, Hold())
        self.assertFalse(held.active.lock.ready)
        self.assertEqual(0, held.active.lock.resetted_count)

    def test_grounded_swap_arms_timer(self):
        filled = np.zeros((20, 10), dtype=np.int8)
        filled[1:, :9] = 1
        s = with_field(get_fresh_state(0), filled)
        s = replace(s, hold=HoldSlot(tetromino=spawn("J")))
        s = with_metrics(s, current_time=1000, previous_gravitate_time=1000)
        held = reduce(s, Hold())
        self.assertFalse(held.game_end)
        self.assertTrue(held.active.lock.ready)
        self.assertEqual(1000, held.active.lock.timer_start)
        locked = reduce_all(held, [Tick(1400), Tick(1510)])
        self.assertEqual(0, locked.metrics.lock_count)
        locked = reduce(locked, Tick(1520))
        self.assertEqual(1, locked.metrics.lock_count)

    def test_blocked_spawn_ends_game(self):
        filled = np.zeros((20, 10), dtype=np.int8)
        filled[:, :9] = 1
        s = with_field(get_fresh_state(0), filled)
        for slot in (HoldSlot(), HoldSlot(tetromino=spawn("J"))):
            held = reduce(replace(s, hold=slot), Hold())
            self.assertTrue(held.game_end)
            self.assertTrue(held.hold.used)
            self.assertIs(held, reduce(held, Translate(-1, 0)))


class TestLockDelay(unittest.TestCase):
    def grounded(self, seed=0):
        s = get_fresh_state(seed)
        return reduce(s, Translate(0, s.active.ghost.pos.y - s.active.tetromino.pos.y))

    def test_grounding_arms_timer(self):
        s = self.grounded()
        self.assertTrue(s.active.lock.ready)
        self.assertEqual(0, s.active.lock.timer_start)

    def test_lock_after_delay(self):
        s = self.grounded()
        s = reduce_all(s, [Tick(400), Tick(600)])
        self.assertEqual(0, s.metrics.lock_count)
        s = reduce(s, Tick(610))
        self.assertEqual(1, s.metrics.lock_count)
        self.assertFalse(s.active.lock.ready)

    def test_move_rearms_timer(self):
        s = reduce(self.grounded(), Tick(400))
        s = reduce(s, Translate(1, 0))
        self.assertEqual(400, s.active.lock.timer_start)
        self.assertEqual(1, s.active.lock.resetted_count)
        s = reduce_all(s, [Tick(600), Tick(800)])
        self.assertEqual(0, s.metrics.lock_count)

    def test_reset_cap(self):
        s = self.grounded()
        s = reduce_all(s, [Translate(1, 0), Translate(-1, 0)] * 10)
        self.assertEqual(SETTINGS.lock_delay_reset_count, s.active.lock.resetted_count)
        self.assertTrue(s.active.lock.ready)

    def test_capped_timer_still_expires(self):
        s = reduce(self.grounded(), Tick(150))
        s = reduce_all(s, [Translate(1, 0), Translate(-1, 0)] * 8)
        self.assertEqual(SETTINGS.lock_delay_reset_count, s.active.lock.resetted_count)
        self.assertEqual(150, s.active.lock.timer_start)
        s = reduce_all(s, [Tick(600), Translate(1, 0)])
        self.assertEqual(150, s.active.lock.timer_start)
        s = reduce_all(s, [Tick(650), Tick(660)])
        self.assertEqual(0, s.metrics.lock_count)
        s = reduce(s, Tick(670))
        self.assertEqual(1, s.metrics.lock_count)

    def test_rotation_rearms_timer(self):
        s = with_piece(get_fresh_state(0), get_tetromino(Pos(3, 18), TetrominoType.T))
        s = reduce(s, Translate(1, 0))
        self.assertEqual((True, 0), (s.active.lock.ready, s.active.lock.timer_start))
        s = reduce(reduce(s, Tick(100)), Rotate(1))
        self.assertEqual(1, s.active.tetromino.rotation_state)
        self.assertEqual(100, s.active.lock.timer_start)
        self.assertEqual(1, s.active.lock.resetted_count)

    def test_failed_rotation_keeps_timer(self):
        filled = np.ones((20, 10), dtype=np.int8)
        for x, y in [(4, 17), (3, 18), (4, 18), (5, 18)]:
            filled[y, x] = 0
        s = with_field(get_fresh_state(0), filled)
        s = with_piece(s, get_tetromino(Pos(3, 17), TetrominoType.T))
        s = replace(s, active=replace(s.active, lock=LockTimer(ready=True, timer_start=0, resetted_count=3)))
        s = reduce(s, Tick(100))
        self.assertIs(s, reduce(s, Rotate(1)))
        self.assertEqual(0, s.active.lock.timer_start)

    def test_airborne_piece_does_not_lock(self):
        s = get_fresh_state(0)
        s = reduce_all(s, [Tick(100), Tick(200)])
        self.assertFalse(s.active.lock.ready)
        self.assertEqual(0, s.metrics.lock_count)


class TestGravity(unittest.TestCase):
    def test_gravity_interval(self):
        s = get_fresh_state(0)
        interval = gravity_interval_ms(1)
        self.assertAlmostEqual(43 / 60 * 1000, interval)
        y = s.active.tetromino.pos.y
        s = reduce(s, Tick(700))
        self.assertEqual(y, s.active.tetromino.pos.y)
        s = reduce(s, Tick(720))
        self.assertEqual(y + 1, s.active.tetromino.pos.y)
        self.assertAlmostEqual(interval, s.metrics.previous_gravitate_time)

    def test_no_drift(self):
        s = reduce_all(get_fresh_state(0), [Tick(720), Tick(1500)])
        self.assertAlmostEqual(2 * gravity_interval_ms(1), s.metrics.previous_gravitate_time)

    def test_current_time(self):
        s = reduce(get_fresh_state(0), Tick(10))
        self.assertEqual(10, s.metrics.current_time)


class TestDriver(unittest.TestCase):
    def test_pause_flag(self):
        s = get_fresh_state(0)
        self.assertTrue(reduce(s, Pause(True)).game_paused)
        self.assertFalse(reduce(reduce(s, Pause(True)), Pause(False)).game_paused)

    def test_paused_effects_are_dropped(self):
        s = get_fresh_state(0)
        effects = [Pause(True), Translate(0, 1), Translate(0, 1), Pause(False), Translate(0, 1)]
        states = list(iter_states(s, effects))
        self.assertEqual(3, len(states))
        self.assertEqual(s.active.tetromino.pos.y + 1, states[-1].active.tetromino.pos.y)

    def test_replay_is_deterministic(self):
        script = [Translate(-1, 0), Rotate(1), HardDrop(), Hold(), Tick(100), SoftDrop(0, 1), HardDrop()] * 4
        self.assertEqual(reduce_all(get_fresh_state(21), script), reduce_all(get_fresh_state(21), script))

    def test_unknown_effect(self):
        with self.assertRaises(TypeError):
            reduce(get_fresh_state(0), "left")

    def test_snapshots_are_not_mutated(self):
        s = get_fresh_state(0)
        before = s.active.tetromino
        reduce_all(s, [Translate(1, 0), Rotate(1), HardDrop()])
        self.assertIs(before, s.active.tetromino)
        self.assertEqual(0, int(s.play_field.grid.filled.sum()))


if __name__ == '__main__':
    unittest.main()
